"""Game engine: pure state transitions, no LLM."""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from game.eligibility import EligibilityContext
from game.rules import ACT_COUNT, ROUNDS_PER_PLAYER, TurnStatus
from game.state import GameSession, Player, Turn


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def start_game(game_id: str, players: list[Player]) -> GameSession:
    """Create a new session with every player on zero points."""
    ids = [p.id for p in players]
    if len(set(ids)) != len(ids):
        raise ValueError("player ids must be unique")
    return GameSession(
        game_id=game_id,
        players=list(players),
        scores={p.id: 0 for p in players},
        started_at=_now_iso(),
    )


def add_turn(
    state: GameSession,
    player_id: str,
    template_type: str,
    prompt: str,
    template_params: Optional[dict[str, Any]] = None,
) -> tuple[GameSession, str]:
    """
    Record a new pending turn for a player.
    Returns (new_state, turn_id); does not mutate input.
    """
    player = state.get_player(player_id)
    if player is None:
        raise ValueError(f"Unknown player: {player_id}")
    state = copy.deepcopy(state)
    turn_id = str(uuid.uuid4())
    state.turns.append(
        Turn(
            turn_id=turn_id,
            player_id=player.id,
            player_name=player.name,
            template_type=template_type,
            prompt=prompt,
            timestamp=_now_iso(),
            template_params=dict(template_params or {}),
        )
    )
    return state, turn_id


def _pending_turn(state: GameSession, turn_id: str) -> Turn:
    turn = state.get_turn(turn_id)
    if turn is None:
        raise ValueError(f"Unknown turn: {turn_id}")
    if turn.status != TurnStatus.PENDING:
        raise ValueError(f"Turn {turn_id} is already {turn.status.value}")
    return turn


def complete_turn(
    state: GameSession,
    turn_id: str,
    response: Any,
    duration: Optional[float] = None,
    score: Optional[float] = None,
    ai_commentary: Optional[str] = None,
) -> GameSession:
    """Move a pending turn to completed with the player's response. Returns new state."""
    state = copy.deepcopy(state)
    turn = _pending_turn(state, turn_id)
    turn.response = response
    turn.duration = duration
    turn.score = score
    turn.ai_commentary = ai_commentary
    turn.status = TurnStatus.COMPLETED
    return state


def update_turn_params(state: GameSession, turn_id: str, **params: Any) -> GameSession:
    """Merge params into a pending turn's template params (e.g. a generated puzzle). Returns new state."""
    state = copy.deepcopy(state)
    _pending_turn(state, turn_id).template_params.update(params)
    return state


def skip_turn(state: GameSession, turn_id: str) -> GameSession:
    """Mark a pending turn as skipped. Returns new state."""
    state = copy.deepcopy(state)
    _pending_turn(state, turn_id).status = TurnStatus.SKIPPED
    return state


def update_player_score(state: GameSession, player_id: str, points: float) -> GameSession:
    """Add points to a player's running total. Returns new state."""
    if state.get_player(player_id) is None:
        raise ValueError(f"Unknown player: {player_id}")
    state = copy.deepcopy(state)
    state.scores[player_id] = state.scores.get(player_id, 0) + points
    return state


def total_rounds(state: GameSession) -> int:
    return ROUNDS_PER_PLAYER * len(state.players)


def current_round(state: GameSession) -> int:
    """Number of completed turns so far. Act-transition questions are extra and do not count."""
    return sum(1 for t in state.completed_turns() if t.transition_event is None)


def current_act(state: GameSession) -> int:
    """Act 1..3: completed turns as a share of total rounds, split in thirds."""
    total = total_rounds(state)
    if total <= 0:
        return 1
    act = 1 + (current_round(state) * ACT_COUNT) // total
    return min(ACT_COUNT, act)


def is_game_complete(state: GameSession) -> bool:
    total = total_rounds(state)
    return total > 0 and current_round(state) >= total


def next_player(state: GameSession) -> Optional[Player]:
    """Pass-and-play rotation: the device goes around the table in roster order."""
    if not state.players:
        return None
    resolved = sum(1 for t in state.turns if t.status != TurnStatus.PENDING and t.transition_event is None)
    return state.players[resolved % len(state.players)]


def pending_turn_for(state: GameSession, player_id: str) -> Optional[Turn]:
    """Return the player's open turn, if any."""
    for t in reversed(state.turns):
        if t.player_id == player_id and t.status == TurnStatus.PENDING:
            return t
    return None


def eligibility_context(state: GameSession, player_id: str) -> EligibilityContext:
    """Derive the eligibility context for the acting player."""
    return EligibilityContext(
        current_act=current_act(state),
        current_player_id=player_id,
        turns=list(state.turns),
        player_ids=[p.id for p in state.players],
    )
