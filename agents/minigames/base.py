"""
Shared shape of a mini-game module.

Every module builds a generator prompt, parses the model's puzzle (falling back
to a canned puzzle), builds a scorer prompt, parses the score and normalizes it
into a MiniGameResult. Parsers return None on bad input and never raise.
"""

import json
import logging
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from agents.models import MiniGameResult, WireModel
from game.rules import MINI_GAME_TYPES, MiniGameType, TurnStatus
from game.state import Player, Turn

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_BARE_JSON = re.compile(r"\{[\s\S]*\}")

TECHNICAL_DIFFICULTIES_SCORE = 2


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """First JSON object in free-form model text: a fenced ```json block if present, else the outermost braces."""
    if not text:
        return None
    for pattern in (_FENCED_JSON, _BARE_JSON):
        match = pattern.search(text)
        if not match:
            continue
        candidate = match.group(1) if match.groups() else match.group(0)
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def validate_as(model: type[M], data: Any) -> M | None:
    """model.model_validate(data), or None when data does not fit."""
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("%s rejected: %d validation error(s)", model.__name__, e.error_count())
        return None


def parse_or_default(parse: Callable[[str], T | None], text: str, default: T | Callable[[], T], label: str = "") -> T:
    """Run a parser; on None or an unexpected error, log and return the default (or call the default factory)."""
    try:
        parsed = parse(text)
    except Exception as e:
        logger.warning("%s parser failed: %s", label or "Mini-game", e)
        parsed = None
    if parsed is not None:
        return parsed
    logger.warning("%s: unusable model response, using default", label or "Mini-game")
    return default() if callable(default) else default


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def response_text(response: Any) -> str:
    """A turn response as prompt text: strings as-is, anything else as JSON."""
    if isinstance(response, str):
        return response
    return json.dumps(response, indent=2, default=str)


def format_players(players: list[Player]) -> str:
    return ", ".join(f"{p.name} ({p.role})" if p.role else p.name for p in players) or "No players listed."


def format_scores(players: list[Player], scores: dict[str, float]) -> str:
    names = {p.id: p.name for p in players}
    parts = [f"{names[pid]}: {score:g}" for pid, score in scores.items() if pid in names]
    return ", ".join(parts) or "Starting fresh"


def format_turn_summary(turns: list[Turn], limit: int = 5) -> str:
    lines = []
    for i, t in enumerate(turns[-limit:], start=1):
        lines.append(f'{i}. {t.player_name or "Someone"} was asked: "{t.prompt or "a question"}"\n'
                     f"   Response: {response_text(t.response)}")
    return "\n\n".join(lines)


def get_all_mini_games_played(turns: list[Turn]) -> list[dict[str, str]]:
    """Completed mini-game turns, oldest first, for variety tracking."""
    return [
        {"type": t.template_type, "playerId": t.player_id, "playerName": t.player_name}
        for t in turns or []
        if t.template_type in MINI_GAME_TYPES and t.status == TurnStatus.COMPLETED
    ]


@dataclass
class MiniGameContext:
    """Everything a module may draw on for one mini-game turn."""

    target_player: Player
    players: list[Player]
    turns: list[Turn] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    rng: random.Random = field(default_factory=random.Random)

    def player(self, player_id: str | None) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def turn(self, turn_id: str | None) -> Optional[Turn]:
        for t in self.turns:
            if t.turn_id == turn_id:
                return t
        return None

    @property
    def source_turn(self) -> Optional[Turn]:
        return self.turn(self.params.get("sourceTurnId"))

    @property
    def subject_player(self) -> Optional[Player]:
        return self.player(self.params.get("subjectPlayerId"))


class MiniGameModule(ABC):
    """
    Base for mini-game modules. Subclasses set the models and must implement
    generation. Modules that return None from score_locally must also implement
    build_scorer_prompt and to_result.
    """

    type: MiniGameType
    name: str
    max_score: float = 5
    puzzle_model: type[WireModel]
    score_model: type[WireModel] | None = None
    submission_model: type[WireModel]
    generate_instruction = "Generate the puzzle now."
    score_instruction = "Score this attempt now."

    # --- generation -------------------------------------------------------

    @abstractmethod
    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        ...

    def parse_puzzle(self, text: str) -> WireModel | None:
        return validate_as(self.puzzle_model, extract_json_object(text))

    @abstractmethod
    def fallback_puzzle(self, ctx: MiniGameContext) -> WireModel:
        ...

    def prepare_puzzle(self, puzzle: WireModel, ctx: MiniGameContext) -> WireModel:
        """Hook for server-side additions once a puzzle is settled (e.g. assigning letters)."""
        return puzzle

    def public_view(self, puzzle: WireModel) -> dict[str, Any]:
        """The puzzle as shown to the player, without answers."""
        return puzzle.to_wire()

    # --- scoring ----------------------------------------------------------

    def check_submission(self, puzzle: WireModel, submission: WireModel) -> None:
        """Raise ValueError when a submission does not fit the puzzle."""

    def score_locally(self, puzzle: WireModel, submission: WireModel) -> MiniGameResult | None:
        """Result computed without the model, or None when the model must judge."""
        return None

    def build_scorer_prompt(self, ctx: MiniGameContext, puzzle: WireModel, submission: WireModel) -> str:
        raise NotImplementedError(f"{self.name} has no model scorer")

    def parse_score(self, text: str) -> WireModel | None:
        if self.score_model is None:
            return None
        return validate_as(self.score_model, extract_json_object(text))

    def to_result(self, score: Any, puzzle: WireModel, submission: WireModel) -> MiniGameResult:
        raise NotImplementedError(f"{self.name} has no model scorer")

    def fallback_result(self, ctx: MiniGameContext, puzzle: WireModel, submission: WireModel) -> MiniGameResult:
        return MiniGameResult(
            score=TECHNICAL_DIFFICULTIES_SCORE,
            max_score=self.max_score,
            commentary="Technical difficulties! Have some points anyway.",
        )
