"""Game engine for Family Glitch."""

from game.engine import (
    start_game,
    add_turn,
    complete_turn,
    skip_turn,
    update_turn_params,
    update_player_score,
    current_act,
    next_player,
    eligibility_context,
)
from game.eligibility import (
    EligibilityContext,
    EligibilityResult,
    check_eligibility,
    get_eligible_mini_games,
    get_eligible_turns_for_player,
    select_turn_for_trivia,
)
from game.rules import MiniGameType, TemplateType, TurnStatus
from game.state import GameSession, Player, Turn
from game.transitions import (
    TRANSITION_EVENTS,
    add_transition_turn,
    next_player_to_ask,
    pending_transition_event,
)

__all__ = [
    "start_game",
    "add_turn",
    "complete_turn",
    "skip_turn",
    "update_turn_params",
    "update_player_score",
    "current_act",
    "next_player",
    "eligibility_context",
    "EligibilityContext",
    "EligibilityResult",
    "check_eligibility",
    "get_eligible_mini_games",
    "get_eligible_turns_for_player",
    "select_turn_for_trivia",
    "MiniGameType",
    "TemplateType",
    "TurnStatus",
    "GameSession",
    "Player",
    "Turn",
    "TRANSITION_EVENTS",
    "add_transition_turn",
    "next_player_to_ask",
    "pending_transition_event",
]
