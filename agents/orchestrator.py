"""Orchestrator: run game turns using the game engine, the chat loop and the mini-game modules."""

import logging
import random
from typing import Any

from pydantic_ai.messages import ModelRequest, SystemPromptPart, UserPromptPart

from game.eligibility import (
    get_eligible_turns_for_player,
    offerable_mini_games,
    select_turn_for_trivia,
    used_trivia_turn_ids,
)
from game.engine import (
    add_turn,
    complete_turn,
    eligibility_context,
    pending_turn_for,
    update_player_score,
    update_turn_params,
)
from game.rules import MINI_GAME_TYPES, MiniGameType, TemplateType, TurnStatus
from game.state import GameSession, Player, Turn
from game.transitions import add_transition_turn, next_player_to_ask, pending_transition_event

from agents.announcer import AnnouncerResult, fallback_announcement, parse_announcement
from agents.chat_loop import ChatLoop
from agents.minigames import MiniGameContext, MiniGameModule, get_module, parse_or_default
from agents.models import MiniGameResult
from agents.prompts import (
    DEFAULT_QUESTION,
    build_end_game_prompt,
    build_game_master_prompt,
    turn_instructions,
)
from agents.template_tools import MINI_GAME_TOOL_NAMES, QUESTION_TOOL_NAMES

logger = logging.getLogger(__name__)

def _conversation(system: str, user: str) -> list[ModelRequest]:
    return [ModelRequest(parts=[SystemPromptPart(content=system), UserPromptPart(content=user)])]


def _default_template() -> dict[str, Any]:
    return {
        "templateType": TemplateType.TEXT_AREA.value,
        "prompt": DEFAULT_QUESTION,
        "params": {"placeholder": "Type your answer...", "maxLength": 500},
    }


def _subjects(state: GameSession, player_id: str) -> list[Player]:
    """Other players with at least one usable answer, in roster order."""
    authors = {t.player_id for t in get_eligible_turns_for_player(state.turns, player_id)}
    return [p for p in state.players if p.id in authors]


def _resolve_trivia(
    state: GameSession, player: Player, params: dict[str, Any], rng: random.Random
) -> dict[str, Any] | None:
    """Pick the source turn for a trivia challenge. None when nothing can be quizzed."""
    pool = get_eligible_turns_for_player(state.turns, player.id)
    if not pool:
        return None
    source_id = params.get("sourcePlayerId")
    from_source = [t for t in pool if t.player_id == source_id]
    if not from_source:
        logger.warning("Trivia source player %s has no usable turns; choosing from all players", source_id)
    chosen = select_turn_for_trivia(from_source or pool, used_trivia_turn_ids(state.turns), rng=rng)
    if chosen is None:
        return None
    return {
        **params,
        "sourcePlayerId": chosen.player_id,
        "sourcePlayerName": chosen.player_name,
        "sourceTurnId": chosen.turn_id,
    }


def _resolve_template(
    state: GameSession, player: Player, template: dict[str, Any] | None, rng: random.Random
) -> dict[str, Any]:
    """Check the host's chosen template against game state; fall back to the default question."""
    if not template:
        logger.warning("Game master produced no template; using default question")
        return _default_template()
    template_type = template.get("templateType")
    params = dict(template.get("params") or {})

    if template_type == MiniGameType.TRIVIA_CHALLENGE.value:
        params = _resolve_trivia(state, player, params, rng)
        if params is None:
            logger.warning("No turns to quiz for trivia; using default question")
            return _default_template()
    elif template_type == MiniGameType.PERSONALITY_MATCH.value:
        subject = state.get_player(params.get("subjectPlayerId"))
        if subject is None or subject.id == player.id:
            logger.warning("Invalid personality match subject %s; using default question", params.get("subjectPlayerId"))
            return _default_template()
        params["subjectPlayerName"] = subject.name

    return {**template, "params": params}


def _prompt_for(template: dict[str, Any]) -> str:
    if template.get("prompt"):
        return template["prompt"]
    params = template.get("params") or {}
    if params.get("intro"):
        return params["intro"]
    return get_module(template["templateType"]).name


async def run_next_question(
    state: GameSession,
    loop: ChatLoop,
    player_id: str | None = None,
    rng: random.Random | None = None,
) -> tuple[GameSession, Turn]:
    """
    Ask the host for the next question and record it as a pending turn.
    A player who already has a pending turn gets that turn back. While an
    act-transition event is open the player gets its closing question instead,
    without a model call.
    Returns (new_state, turn). Model/API errors propagate.
    """
    rng = rng or random.Random()
    player = state.get_player(player_id) if player_id else next_player_to_ask(state)
    if player is None:
        raise ValueError(f"Unknown player: {player_id}")
    pending = pending_turn_for(state, player.id)
    if pending is not None:
        return state, pending

    event = pending_transition_event(state)
    if event is not None:
        state, turn_id = add_transition_turn(state, event, player.id)
        logger.info("%s question %s for %s", event.name, turn_id, player.name)
        return state, state.get_turn(turn_id)

    offered = list(offerable_mini_games(eligibility_context(state, player.id)))
    tool_names = QUESTION_TOOL_NAMES + [MINI_GAME_TOOL_NAMES[t] for t in offered]
    system = build_game_master_prompt(state, offered, _subjects(state, player.id))
    result = await loop.run(_conversation(system, turn_instructions(player)), tool_names=tool_names)

    template = _resolve_template(state, player, result.template, rng)
    params = dict(template.get("params") or {})
    if template.get("subtitle"):
        params["subtitle"] = template["subtitle"]
    if result.text.strip():
        params["hostLine"] = result.text.strip()
    state, turn_id = add_turn(state, player.id, template["templateType"], _prompt_for(template), params)
    logger.info("Turn %s for %s: %s", turn_id, player.name, template["templateType"])
    return state, state.get_turn(turn_id)


def _mini_game_turn(state: GameSession, turn_id: str) -> tuple[Turn, MiniGameModule]:
    turn = state.get_turn(turn_id)
    if turn is None:
        raise ValueError(f"Unknown turn: {turn_id}")
    if turn.template_type not in MINI_GAME_TYPES:
        raise ValueError(f"Turn {turn_id} is not a mini-game")
    return turn, get_module(turn.template_type)


def mini_game_context(state: GameSession, turn: Turn, rng: random.Random | None = None) -> MiniGameContext:
    """Context for a mini-game turn; the turn itself is left out of the history."""
    return MiniGameContext(
        target_player=state.get_player(turn.player_id),
        players=list(state.players),
        turns=[t for t in state.turns if t.turn_id != turn.turn_id],
        scores=dict(state.scores),
        params=dict(turn.template_params),
        rng=rng or random.Random(),
    )


async def _ask_model(loop: ChatLoop, system: str, instruction: str, label: str) -> str | None:
    """One tool-free model call; failures are logged and return None."""
    try:
        result = await loop.run(_conversation(system, instruction), tool_names=[])
        return result.text
    except Exception as e:
        logger.warning("%s model call failed: %s", label, e)
        return None


async def generate_mini_game(
    state: GameSession,
    turn_id: str,
    loop: ChatLoop,
    rng: random.Random | None = None,
) -> tuple[GameSession, dict[str, Any]]:
    """
    Generate the puzzle for a pending mini-game turn and store it in the turn's params.
    Returns (new_state, public_puzzle). Generation failures resolve to the module's fallback puzzle.
    """
    turn, module = _mini_game_turn(state, turn_id)
    ctx = mini_game_context(state, turn, rng)
    stored = turn.template_params.get("puzzle")
    if stored:
        return state, module.public_view(module.puzzle_model.model_validate(stored))

    text = await _ask_model(loop, module.build_generator_prompt(ctx), module.generate_instruction, module.name)
    puzzle = parse_or_default(module.parse_puzzle, text, lambda: module.fallback_puzzle(ctx), label=module.name)
    puzzle = module.prepare_puzzle(puzzle, ctx)
    state = update_turn_params(state, turn_id, puzzle=puzzle.to_wire())
    return state, module.public_view(puzzle)


async def score_mini_game(
    state: GameSession,
    turn_id: str,
    submission: dict[str, Any],
    loop: ChatLoop,
    duration: float | None = None,
    rng: random.Random | None = None,
) -> tuple[GameSession, MiniGameResult]:
    """
    Score a submission, complete the turn and add the points to the player.
    Raises ValueError for a submission that does not fit the puzzle; scoring
    failures resolve to the module's fallback result.
    """
    turn, module = _mini_game_turn(state, turn_id)
    if turn.status != TurnStatus.PENDING:
        raise ValueError(f"Turn {turn_id} is already {turn.status.value}")
    stored = turn.template_params.get("puzzle")
    if not stored:
        raise ValueError(f"Mini-game for turn {turn_id} has not been generated")
    puzzle = module.puzzle_model.model_validate(stored)
    answer = module.submission_model.model_validate(submission)
    module.check_submission(puzzle, answer)
    ctx = mini_game_context(state, turn, rng)

    result = module.score_locally(puzzle, answer)
    if result is None:
        text = await _ask_model(loop, module.build_scorer_prompt(ctx, puzzle, answer), module.score_instruction, module.name)
        score = parse_or_default(module.parse_score, text, None, label=module.name) if text else None
        try:
            result = module.to_result(score, puzzle, answer) if score is not None else None
        except ValueError as e:
            logger.warning("%s score could not be normalized: %s", module.name, e)
            result = None
        if result is None:
            result = module.fallback_result(ctx, puzzle, answer)

    state = complete_turn(
        state,
        turn_id,
        response=answer.to_wire(),
        duration=duration,
        score=result.score,
        ai_commentary=result.commentary,
    )
    state = update_player_score(state, turn.player_id, result.score)
    logger.info("%s scored %g/%g for %s", module.name, result.score, result.max_score, turn.player_name)
    return state, result


async def summarize_game(state: GameSession, loop: ChatLoop) -> AnnouncerResult:
    """Ranked results from the announcer; built from scores and stats when the model is unavailable."""
    text = await _ask_model(
        loop,
        build_end_game_prompt(state),
        "Analyze this game and provide the final results. Respond with valid JSON only.",
        "Announcer",
    )
    return parse_or_default(
        lambda t: parse_announcement(t, state), text, lambda: fallback_announcement(state), label="Announcer"
    )
