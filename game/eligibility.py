"""Mini-game eligibility rules and trivia source-turn selection. Works directly on the turn list."""

import json
import random
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from game.rules import (
    FREE_TEXT_BONUS,
    INTEREST_CATEGORY,
    INTEREST_KEYWORDS,
    MIN_ACT,
    MIN_TRIVIA_POOL,
    RICH_ANSWER_BONUS,
    SELECTION_JITTER,
    MiniGameType,
    TemplateType,
    TurnStatus,
)
from game.state import Turn

NEED_OTHER_ANSWERS = "Need answers from other players first"


@dataclass
class EligibilityContext:
    """Derived view of the game used to gate mini-games for the acting player."""

    current_act: int
    current_player_id: str
    turns: list[Turn] = field(default_factory=list)
    player_ids: list[str] = field(default_factory=list)


@dataclass
class EligibilityResult:
    eligible: bool
    reason: Optional[str] = None
    eligible_turns: Optional[list[Turn]] = None


@dataclass(frozen=True)
class MiniGameEligibility:
    """Eligibility definition for one mini-game type."""

    type: MiniGameType
    name: str
    description: str
    min_act: int
    locked_reason: str
    needs_other_players: bool = False
    check: Optional[Callable[[EligibilityContext], EligibilityResult]] = None


def _has_content(response) -> bool:
    if response is None or response is False or response == "":
        return False
    if isinstance(response, (int, float)) and not isinstance(response, bool) and response == 0:
        return False
    return json.dumps(response, default=str) not in ("{}", "null")


def get_eligible_turns_for_player(turns: Iterable[Turn], player_id: str) -> list[Turn]:
    """
    Turns usable to challenge a player: completed, authored by someone else,
    and carrying a response with actual content.
    """
    return [
        t for t in (turns or [])
        if t.status == TurnStatus.COMPLETED
        and t.player_id != player_id
        and _has_content(t.response)
    ]


def get_interest_turns(turns: Iterable[Turn]) -> list[Turn]:
    """Completed turns whose question touched on interests or hobbies."""
    out = []
    for t in turns or []:
        if t.status != TurnStatus.COMPLETED or not _has_content(t.response):
            continue
        prompt = (t.prompt or "").lower()
        if t.template_params.get("category") == INTEREST_CATEGORY or any(k in prompt for k in INTEREST_KEYWORDS):
            out.append(t)
    return out


def _check_needs_others(definition: MiniGameEligibility, context: EligibilityContext) -> EligibilityResult:
    if context.current_act < definition.min_act:
        return EligibilityResult(eligible=False, reason=definition.locked_reason)
    eligible_turns = get_eligible_turns_for_player(context.turns, context.current_player_id)
    if not eligible_turns:
        return EligibilityResult(eligible=False, reason=NEED_OTHER_ANSWERS)
    return EligibilityResult(eligible=True, eligible_turns=eligible_turns)


def _check_standalone(definition: MiniGameEligibility, context: EligibilityContext) -> EligibilityResult:
    if context.current_act < definition.min_act:
        return EligibilityResult(eligible=False, reason=definition.locked_reason)
    return EligibilityResult(eligible=True)


def _check_hard_trivia(context: EligibilityContext) -> EligibilityResult:
    definition = MINI_GAME_ELIGIBILITY[MiniGameType.HARD_TRIVIA]
    if context.current_act < definition.min_act:
        return EligibilityResult(eligible=False, reason=definition.locked_reason)
    # Interest turns are context for the question writer, not a requirement
    return EligibilityResult(eligible=True, eligible_turns=get_interest_turns(context.turns))


MINI_GAME_ELIGIBILITY: dict[MiniGameType, MiniGameEligibility] = {
    d.type: d
    for d in (
        MiniGameEligibility(
            type=MiniGameType.TRIVIA_CHALLENGE,
            name="Trivia Challenge",
            description="Test how well you know your family based on their previous answers",
            min_act=MIN_ACT[MiniGameType.TRIVIA_CHALLENGE],
            locked_reason="Trivia challenges unlock in Act II",
            needs_other_players=True,
        ),
        MiniGameEligibility(
            type=MiniGameType.PERSONALITY_MATCH,
            name="Personality Match",
            description="Select all words that describe another player based on their responses",
            min_act=MIN_ACT[MiniGameType.PERSONALITY_MATCH],
            locked_reason="Personality match unlocks in Act II",
            needs_other_players=True,
        ),
        MiniGameEligibility(
            type=MiniGameType.MADLIBS_CHALLENGE,
            name="Mad Libs Challenge",
            description="Fill in the blanks with words starting with specific letters",
            min_act=MIN_ACT[MiniGameType.MADLIBS_CHALLENGE],
            locked_reason="Mad Libs unlocks in Act III",
        ),
        MiniGameEligibility(
            type=MiniGameType.CRYPTIC_CONNECTION,
            name="Cryptic Connection",
            description="Find hidden connections in a cryptic word puzzle",
            min_act=MIN_ACT[MiniGameType.CRYPTIC_CONNECTION],
            locked_reason="Cryptic Connection unlocks in Act III",
        ),
        MiniGameEligibility(
            type=MiniGameType.HARD_TRIVIA,
            name="Hard Trivia",
            description="Answer challenging trivia questions based on the family's interests",
            min_act=MIN_ACT[MiniGameType.HARD_TRIVIA],
            locked_reason="Hard Trivia unlocks in Act II",
            check=_check_hard_trivia,
        ),
        MiniGameEligibility(
            type=MiniGameType.THE_FILTER,
            name="The Filter",
            description="Select items that match a hidden pattern",
            min_act=MIN_ACT[MiniGameType.THE_FILTER],
            locked_reason="The Filter unlocks in Act II",
        ),
        MiniGameEligibility(
            type=MiniGameType.LIGHTING_ROUND,
            name="Lighting Round",
            description="Five rapid-fire binary questions about family members",
            min_act=MIN_ACT[MiniGameType.LIGHTING_ROUND],
            locked_reason="Lighting Round unlocks in Act III",
            needs_other_players=True,
        ),
    )
}


def check_eligibility(game_type: MiniGameType | str, context: EligibilityContext) -> EligibilityResult:
    """Return whether a mini-game may be offered right now, and the turns it can draw on."""
    definition = MINI_GAME_ELIGIBILITY[MiniGameType(game_type)]
    if definition.check is not None:
        return definition.check(context)
    if definition.needs_other_players:
        return _check_needs_others(definition, context)
    return _check_standalone(definition, context)


def get_eligible_mini_games(context: EligibilityContext) -> dict[MiniGameType, EligibilityResult]:
    """All eligible mini-games, in declaration order."""
    results = {}
    for game_type in MINI_GAME_ELIGIBILITY:
        result = check_eligibility(game_type, context)
        if result.eligible:
            results[game_type] = result
    return results


def offerable_mini_games(context: EligibilityContext) -> dict[MiniGameType, EligibilityResult]:
    """
    Eligible mini-games the host may actually trigger. Trivia and personality match
    also need a pool of at least MIN_TRIVIA_POOL usable turns for variety.
    """
    offerable = {}
    for game_type, result in get_eligible_mini_games(context).items():
        if game_type in (MiniGameType.TRIVIA_CHALLENGE, MiniGameType.PERSONALITY_MATCH):
            if len(result.eligible_turns or []) < MIN_TRIVIA_POOL:
                continue
        offerable[game_type] = result
    return offerable


def used_trivia_turn_ids(turns: Iterable[Turn]) -> set[str]:
    """Source turns already quizzed in earlier trivia challenges."""
    used = set()
    for t in turns or []:
        if t.template_type == MiniGameType.TRIVIA_CHALLENGE.value:
            source_id = (t.template_params or {}).get("sourceTurnId")
            if source_id:
                used.add(source_id)
    return used


def select_turn_for_trivia(
    eligible_turns: list[Turn],
    used_turn_ids: Iterable[str] = (),
    rng: Optional[random.Random] = None,
) -> Optional[Turn]:
    """
    Pick the best turn to quiz about. Unused turns first; when every turn has been
    used, repeats are allowed. Rich, free-text answers score higher, with random
    jitter so the same turn is not always chosen.
    """
    rng = rng or random.Random()
    used = set(used_turn_ids)
    unused = [t for t in eligible_turns if t.turn_id not in used]
    candidates = unused or list(eligible_turns)
    if not candidates:
        return None

    best: Optional[Turn] = None
    best_score = -1.0
    for turn in candidates:
        score = 0.0
        if turn.template_type != TemplateType.TIMED_BINARY.value:
            score += RICH_ANSWER_BONUS
        if turn.template_type in (TemplateType.TEXT_AREA.value, TemplateType.TEXT_INPUT.value):
            score += FREE_TEXT_BONUS
        score += rng.random() * SELECTION_JITTER
        if score > best_score:
            best, best_score = turn, score
    return best
