"""FastAPI app: chat loop, health, and the pass-and-play game flow."""

import dataclasses
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents.chat_loop import ChatLoop
from agents.errors import ConfigurationError, MaxIterationsError, TranscriptError
from agents.llm_config import (
    ENV_DEFAULT_PROVIDER,
    ENV_OPENAI_API_KEY,
    api_key_prefix,
    get_default_model,
    get_model_from_config,
    merge_config,
    model_settings_for,
)
from agents.messages import to_model_messages
from agents.orchestrator import generate_mini_game, run_next_question, score_mini_game, summarize_game
from agents.template_tools import build_default_registry
from game.engine import (
    complete_turn,
    eligibility_context,
    is_game_complete,
    skip_turn,
    start_game,
    update_player_score,
)
from game.eligibility import check_eligibility, offerable_mini_games
from game.rules import MINI_GAME_TYPES, MiniGameType
from game.state import GameSession, Player, Turn
from api.game_store import (
    create as store_create,
    get_state as store_get_state,
    get_announcement as store_get_announcement,
    list_games,
    set_announcement as store_set_announcement,
    update as store_update,
)
from api.models import (
    ChatRequest,
    CompleteTurnRequest,
    EligibilityResponse,
    GameCreateRequest,
    GameStateResponse,
    MiniGameResponse,
    MiniGameSubmitRequest,
    NextTurnRequest,
    ScoreResponse,
    SummaryResponse,
    TurnPublic,
    eligibility_to_public,
    game_state_to_public,
    summary_to_public,
    turn_to_public,
)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Populated once at process start, read-only afterwards
registry = build_default_registry()
_chat_loop: ChatLoop | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the model client once; a missing credential is logged and chat stays disabled."""
    global _chat_loop
    try:
        _chat_loop = ChatLoop(registry, get_default_model())
        logger.info("Chat client ready with %d tools", len(registry.names()))
    except ConfigurationError as e:
        logger.error("Chat client not initialized: %s", e)
        _chat_loop = None
    yield
    _chat_loop = None


app = FastAPI(title="Family Glitch API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_chat_loop() -> ChatLoop | None:
    """The process-wide chat loop; overridden in tests with a scripted model."""
    return _chat_loop


def _require_loop(loop: ChatLoop | None) -> ChatLoop:
    if loop is None:
        raise HTTPException(500, "Chat client not initialized")
    return loop


def _loop_for_request(loop: ChatLoop, model_name: str | None) -> ChatLoop:
    """Same registry and cap, different model when the request names one."""
    if not model_name or model_name == getattr(loop.model, "model_name", None):
        return loop
    provider = os.environ.get(ENV_DEFAULT_PROVIDER, "openai")
    return ChatLoop(loop.registry, get_model_from_config(provider, model_name), max_iterations=loop.max_iterations)


def _get_state(game_id: str) -> GameSession:
    state = store_get_state(game_id)
    if state is None:
        raise HTTPException(404, "Game not found")
    return state


def _get_turn(state: GameSession, turn_id: str) -> Turn:
    turn = state.get_turn(turn_id)
    if turn is None:
        raise HTTPException(404, "Turn not found")
    return turn


def _get_mini_game_turn(state: GameSession, turn_id: str) -> Turn:
    turn = _get_turn(state, turn_id)
    if turn.template_type not in MINI_GAME_TYPES:
        raise HTTPException(400, "Turn is not a mini-game")
    return turn


@app.get("/health", tags=["System"], summary="Health check")
def health():
    """Process status, whether a credential is configured (prefix only) and the loaded tools."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "has_api_key": bool(os.environ.get(ENV_OPENAI_API_KEY)),
            "api_key_prefix": api_key_prefix(),
        },
        "tools": registry.names(),
    }


@app.post("/chat", tags=["Chat"], summary="Run the tool-calling chat loop")
async def chat(body: ChatRequest, loop: ChatLoop | None = Depends(get_chat_loop)):
    """Drive one conversation to a final answer. Errors come back as {"error": ...}."""
    if not body.messages:
        return JSONResponse(status_code=400, content={"error": "Messages array is required"})
    if loop is None:
        return JSONResponse(status_code=500, content={"error": "Chat client not initialized"})
    try:
        history = to_model_messages(body.messages)
    except TranscriptError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    config = merge_config(body.config)
    try:
        requested = body.config.model if body.config and "model" in body.config.model_fields_set else None
        active = _loop_for_request(loop, requested)
        result = await active.run(
            history,
            tool_names=config.tools or None,
            model_settings=model_settings_for(config),
        )
    except MaxIterationsError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception as e:
        logger.exception("Chat request failed")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to process chat request"})

    return {
        "text": result.text,
        "usage": result.usage,
        "template": result.template,
        "tool_results": [dataclasses.asdict(o) for o in result.tool_results],
    }


@app.post("/games", response_model=dict, tags=["Games"], summary="Create game")
def create_game(body: GameCreateRequest):
    """Create a new game. Returns game_id."""
    game_id = str(uuid.uuid4())
    players = [Player(id=str(uuid.uuid4()), name=p.name, role=p.role, age=p.age) for p in body.players]
    store_create(game_id, start_game(game_id, players))
    logger.info("Created game %s with %d players", game_id, len(players))
    return {"game_id": game_id}


@app.get("/games", response_model=list[str], tags=["Games"], summary="List game IDs")
def list_games_route():
    """List all game IDs."""
    return list_games()


@app.get("/games/{game_id}", response_model=GameStateResponse, tags=["Games"], summary="Get game state")
def get_game(game_id: str):
    """Get public game state."""
    return game_state_to_public(_get_state(game_id), store_get_announcement(game_id))


@app.get(
    "/games/{game_id}/eligibility",
    response_model=EligibilityResponse,
    tags=["Games"],
    summary="Mini-game eligibility for a player",
)
def get_eligibility(game_id: str, player_id: str):
    """Every mini-game's eligibility for the player, and which ones the host may offer now."""
    state = _get_state(game_id)
    if state.get_player(player_id) is None:
        raise HTTPException(404, "Player not found")
    ctx = eligibility_context(state, player_id)
    return EligibilityResponse(
        player_id=player_id,
        current_act=ctx.current_act,
        games={t.value: eligibility_to_public(check_eligibility(t, ctx)) for t in MiniGameType},
        offered=[t.value for t in offerable_mini_games(ctx)],
    )


@app.post("/games/{game_id}/turns/next", response_model=TurnPublic, tags=["Turns"], summary="Ask the next question")
async def next_turn(
    game_id: str,
    body: NextTurnRequest | None = None,
    loop: ChatLoop | None = Depends(get_chat_loop),
):
    """Have the host pick the next question for a player and record it as a pending turn."""
    state = _get_state(game_id)
    if is_game_complete(state):
        raise HTTPException(400, "Game is complete")
    player_id = body.player_id if body else None
    if player_id and state.get_player(player_id) is None:
        raise HTTPException(404, "Player not found")
    try:
        state, turn = await run_next_question(state, _require_loop(loop), player_id=player_id)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("Next question failed for game %s", game_id)
        raise HTTPException(500, str(e) or "Failed to generate question")
    store_update(game_id, state)
    return turn_to_public(turn)


@app.post(
    "/games/{game_id}/turns/{turn_id}/complete",
    response_model=GameStateResponse,
    tags=["Turns"],
    summary="Submit a question answer",
)
def complete_turn_route(game_id: str, turn_id: str, body: CompleteTurnRequest):
    """Record the player's answer to a regular question; mini-games are completed by scoring."""
    state = _get_state(game_id)
    turn = _get_turn(state, turn_id)
    if turn.template_type in MINI_GAME_TYPES:
        raise HTTPException(400, "Mini-game turns are completed by scoring")
    try:
        state = complete_turn(state, turn_id, body.response, duration=body.duration, score=body.score)
        if body.score:
            state = update_player_score(state, turn.player_id, body.score)
    except ValueError as e:
        raise HTTPException(400, str(e))
    store_update(game_id, state)
    return game_state_to_public(state, store_get_announcement(game_id))


@app.post(
    "/games/{game_id}/turns/{turn_id}/skip",
    response_model=GameStateResponse,
    tags=["Turns"],
    summary="Skip a pending turn",
)
def skip_turn_route(game_id: str, turn_id: str):
    """Skip the turn; the device passes to the next player."""
    state = _get_state(game_id)
    _get_turn(state, turn_id)
    try:
        state = skip_turn(state, turn_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    store_update(game_id, state)
    return game_state_to_public(state, store_get_announcement(game_id))


@app.post(
    "/games/{game_id}/turns/{turn_id}/minigame/generate",
    response_model=MiniGameResponse,
    tags=["Mini-games"],
    summary="Generate the mini-game puzzle",
)
async def generate_mini_game_route(game_id: str, turn_id: str, loop: ChatLoop | None = Depends(get_chat_loop)):
    """Generate (or return the already generated) puzzle for a pending mini-game turn."""
    state = _get_state(game_id)
    turn = _get_mini_game_turn(state, turn_id)
    try:
        state, puzzle = await generate_mini_game(state, turn_id, _require_loop(loop))
    except ValueError as e:
        raise HTTPException(400, str(e))
    store_update(game_id, state)
    return MiniGameResponse(turn_id=turn_id, game_type=turn.template_type, puzzle=puzzle)


@app.post(
    "/games/{game_id}/turns/{turn_id}/minigame/score",
    response_model=ScoreResponse,
    tags=["Mini-games"],
    summary="Score a mini-game submission",
)
async def score_mini_game_route(
    game_id: str,
    turn_id: str,
    body: MiniGameSubmitRequest,
    loop: ChatLoop | None = Depends(get_chat_loop),
):
    """Score the submission, complete the turn and add the points to the player."""
    state = _get_state(game_id)
    turn = _get_mini_game_turn(state, turn_id)
    try:
        state, result = await score_mini_game(
            state, turn_id, body.submission, _require_loop(loop), duration=body.duration
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    store_update(game_id, state)
    return ScoreResponse(
        turn_id=turn_id,
        result=result.to_wire(),
        total_score=state.scores.get(turn.player_id, 0),
    )


@app.post("/games/{game_id}/summary", response_model=SummaryResponse, tags=["Games"], summary="Final results")
async def summary_route(game_id: str, loop: ChatLoop | None = Depends(get_chat_loop)):
    """Ranked results and closing line for a finished game; generated once and then cached."""
    state = _get_state(game_id)
    if not is_game_complete(state):
        raise HTTPException(400, "Game is not complete yet")
    announcement = store_get_announcement(game_id)
    if announcement is None:
        announcement = await summarize_game(state, _require_loop(loop))
        store_set_announcement(game_id, announcement)
    return summary_to_public(announcement)
