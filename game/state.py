"""Game state types for Family Glitch."""

from dataclasses import dataclass, field
from typing import Any, Optional

from game.rules import TurnStatus


@dataclass(frozen=True)
class Player:
    """A player at the table."""

    id: str
    name: str
    role: Optional[str] = None
    age: Optional[int] = None


@dataclass
class Turn:
    """One question or challenge posed to one player."""

    turn_id: str
    player_id: str
    player_name: str
    template_type: str
    prompt: str
    timestamp: str
    template_params: dict[str, Any] = field(default_factory=dict)
    response: Any = None
    status: TurnStatus = TurnStatus.PENDING
    score: Optional[float] = None
    ai_commentary: Optional[str] = None
    duration: Optional[float] = None

    @property
    def transition_event(self) -> Optional[str]:
        """Id of the act-transition event this turn belongs to, if any."""
        return self.template_params.get("transitionEvent")


@dataclass
class GameSession:
    """Full game state: roster, turn history and scoreboard."""

    game_id: str
    players: list[Player] = field(default_factory=list)
    turns: list[Turn] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    started_at: Optional[str] = None

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return player by id or None."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_turn(self, turn_id: str) -> Optional[Turn]:
        """Return turn by id or None."""
        for t in self.turns:
            if t.turn_id == turn_id:
                return t
        return None

    def completed_turns(self) -> list[Turn]:
        return [t for t in self.turns if t.status == TurnStatus.COMPLETED]
