"""In-memory game store. Replace with DB later if needed."""

from typing import Any

from agents.announcer import AnnouncerResult
from game.state import GameSession

# game_id -> { state, announcement }
_store: dict[str, dict[str, Any]] = {}


def create(game_id: str, state: GameSession) -> None:
    _store[game_id] = {
        "state": state,
        "announcement": None,
    }


def get_state(game_id: str) -> GameSession | None:
    entry = _store.get(game_id)
    return entry["state"] if entry else None


def update(game_id: str, state: GameSession) -> None:
    if game_id in _store:
        _store[game_id]["state"] = state


def set_announcement(game_id: str, announcement: AnnouncerResult) -> None:
    """Store the final results once the game is over."""
    if game_id in _store:
        _store[game_id]["announcement"] = announcement


def get_announcement(game_id: str) -> AnnouncerResult | None:
    return _store.get(game_id, {}).get("announcement")


def list_games() -> list[str]:
    return list(_store.keys())
