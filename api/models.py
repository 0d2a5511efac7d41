"""Pydantic request/response models for the API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from agents.announcer import AnnouncerResult
from agents.llm_config import ChatConfig
from agents.messages import ChatMessage
from agents.minigames import get_module
from game.engine import current_act, current_round, is_game_complete, total_rounds
from game.eligibility import EligibilityResult
from game.rules import MAX_PLAYERS, MIN_PLAYERS, MINI_GAME_TYPES, TurnStatus
from game.state import GameSession, Turn
from game.transitions import next_player_to_ask, pending_transition_event

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 50
MAX_ROLE_LENGTH = 30
MAX_PLAYER_AGE = 120


class ChatRequest(BaseModel):
    """Body for POST /chat. An empty messages list is rejected by the route with a 400."""

    messages: list[ChatMessage] = Field(default_factory=list)
    config: ChatConfig | None = None


class PlayerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    role: str | None = Field(default=None, max_length=MAX_ROLE_LENGTH, description="e.g. Mom, Brother, Friend")
    age: int | None = Field(default=None, ge=1, le=MAX_PLAYER_AGE)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class GameCreateRequest(BaseModel):
    """Body for POST /games."""

    players: list[PlayerCreateRequest] = Field(..., min_length=MIN_PLAYERS, max_length=MAX_PLAYERS)


class NextTurnRequest(BaseModel):
    """Body for POST /games/{id}/turns/next. Omit player_id to follow pass-and-play order."""

    player_id: str | None = None


class CompleteTurnRequest(BaseModel):
    """Body for POST /games/{id}/turns/{turn_id}/complete."""

    response: Any = Field(..., description="The player's answer; shape depends on the template type")
    duration: float | None = Field(default=None, ge=0, description="Seconds taken to answer")
    score: float | None = Field(default=None, ge=0, description="Points to award for this answer")


class MiniGameSubmitRequest(BaseModel):
    """Body for POST /games/{id}/turns/{turn_id}/minigame/score."""

    submission: dict[str, Any] = Field(..., description="Module-specific answer, camelCase keys")
    duration: float | None = Field(default=None, ge=0)


class PlayerPublic(BaseModel):
    id: str
    name: str
    role: str | None = None
    age: int | None = None
    score: float = 0


class TurnPublic(BaseModel):
    turn_id: str
    player_id: str
    player_name: str
    template_type: str
    prompt: str
    template_params: dict[str, Any] = Field(default_factory=dict)
    status: str
    timestamp: str
    response: Any = None
    score: float | None = None
    ai_commentary: str | None = None
    duration: float | None = None


class GameStateResponse(BaseModel):
    """Public game state for GET /games/{id}."""

    game_id: str
    players: list[PlayerPublic]
    turns: list[TurnPublic]
    current_round: int
    total_rounds: int
    current_act: int
    is_complete: bool
    next_player_id: str | None = Field(default=None, description="Whose turn it is in pass-and-play order")
    transition_event: str | None = Field(default=None, description="Open act-transition event, if any")
    started_at: str | None = None
    summary: str | None = Field(default=None, description="Closing commentary once the game is over")
    rankings: list[dict[str, Any]] | None = Field(default=None, description="Final PlayerResult entries, winner first")


class MiniGameEligibilityPublic(BaseModel):
    eligible: bool
    reason: str | None = None
    eligible_turn_count: int | None = None


class EligibilityResponse(BaseModel):
    """Mini-game eligibility for one player: every game, plus the ones the host may offer now."""

    player_id: str
    current_act: int
    games: dict[str, MiniGameEligibilityPublic]
    offered: list[str]


class MiniGameResponse(BaseModel):
    turn_id: str
    game_type: str
    puzzle: dict[str, Any] = Field(..., description="The puzzle as shown to the player; answers are withheld")


class ScoreResponse(BaseModel):
    turn_id: str
    result: dict[str, Any] = Field(..., description="MiniGameResult, camelCase keys")
    total_score: float


class SummaryResponse(BaseModel):
    """Body of POST /games/{id}/summary."""

    summary: str
    rankings: list[dict[str, Any]] = Field(..., description="PlayerResult entries, camelCase keys, winner first")


def turn_to_public(turn: Turn) -> TurnPublic:
    """Pending mini-game turns show only the public view of their puzzle."""
    params = dict(turn.template_params)
    if turn.status == TurnStatus.PENDING and turn.template_type in MINI_GAME_TYPES and params.get("puzzle"):
        module = get_module(turn.template_type)
        params["puzzle"] = module.public_view(module.puzzle_model.model_validate(params["puzzle"]))
    return TurnPublic(
        turn_id=turn.turn_id,
        player_id=turn.player_id,
        player_name=turn.player_name,
        template_type=turn.template_type,
        prompt=turn.prompt,
        template_params=params,
        status=turn.status.value,
        timestamp=turn.timestamp,
        response=turn.response,
        score=turn.score,
        ai_commentary=turn.ai_commentary,
        duration=turn.duration,
    )


def game_state_to_public(state: GameSession, announcement: AnnouncerResult | None = None) -> GameStateResponse:
    """Build public response from GameSession."""
    upcoming = None if is_game_complete(state) else next_player_to_ask(state)
    event = pending_transition_event(state)
    return GameStateResponse(
        game_id=state.game_id,
        players=[
            PlayerPublic(id=p.id, name=p.name, role=p.role, age=p.age, score=state.scores.get(p.id, 0))
            for p in state.players
        ],
        turns=[turn_to_public(t) for t in state.turns],
        current_round=current_round(state),
        total_rounds=total_rounds(state),
        current_act=current_act(state),
        is_complete=is_game_complete(state),
        next_player_id=upcoming.id if upcoming else None,
        transition_event=event.id if event else None,
        started_at=state.started_at,
        summary=announcement.game_summary if announcement else None,
        rankings=[r.to_wire() for r in announcement.rankings] if announcement else None,
    )


def eligibility_to_public(result: EligibilityResult) -> MiniGameEligibilityPublic:
    return MiniGameEligibilityPublic(
        eligible=result.eligible,
        reason=result.reason,
        eligible_turn_count=len(result.eligible_turns) if result.eligible_turns is not None else None,
    )


def summary_to_public(announcement: AnnouncerResult) -> SummaryResponse:
    return SummaryResponse(
        summary=announcement.game_summary or "",
        rankings=[r.to_wire() for r in announcement.rankings],
    )
