"""
End-of-game announcer: per-player stats, structured rankings from the model,
and a score-based fallback when the model's answer is unusable.
"""

import json
import logging
from collections import Counter
from typing import Optional

from pydantic import Field

from agents.minigames.base import extract_json_object, validate_as
from agents.models import WireModel
from game.rules import MINI_GAME_TYPES, TurnStatus
from game.state import GameSession, Player, Turn

logger = logging.getLogger(__name__)

DEFAULT_CLOSING = "Game over! Thanks for playing Family Glitch."

WINNER_TITLE = "The Family Champion"
LAST_PLACE_TITLE = "The Participation Trophy"
MIDDLE_TITLES = [
    "The Dark Horse",
    "The Wildcard",
    "The Diplomat",
    "The Overthinker",
    "The Instigator",
    "The Wordsmith",
    "The Speed Demon",
    "The Trivia Terror",
]


class PlayerStats(WireModel):
    avg_response_time: float = 0
    mini_games_played: int = 0
    best_category: str | None = None
    total_turns: int = 0
    turns_skipped: int = 0


class PlayerResult(WireModel):
    player_id: str
    player_name: str
    final_score: float = 0
    rank: int = Field(ge=1)
    title: str = Field(min_length=1)
    blurb: str = Field(min_length=1)
    highlight_moment: str | None = None
    stats: PlayerStats = Field(default_factory=PlayerStats)


class AnnouncerResult(WireModel):
    """Every player ranked from winner (rank 1) down, plus a one-line game summary."""

    rankings: list[PlayerResult] = Field(min_length=1)
    game_summary: str | None = None


def calculate_player_stats(player_id: str, turns: list[Turn]) -> PlayerStats:
    player_turns = [t for t in turns if t.player_id == player_id]
    completed = [t for t in player_turns if t.status == TurnStatus.COMPLETED]
    timed = [t.duration for t in completed if t.duration is not None]
    categories = Counter(t.template_type for t in completed).most_common(1)
    return PlayerStats(
        avg_response_time=round(sum(timed) / len(timed), 1) if timed else 0,
        mini_games_played=sum(1 for t in player_turns if t.template_type in MINI_GAME_TYPES),
        best_category=categories[0][0] if categories else None,
        total_turns=len(player_turns),
        turns_skipped=sum(1 for t in player_turns if t.status == TurnStatus.SKIPPED),
    )


def ranked_players(state: GameSession) -> list[Player]:
    """Players by score, highest first; ties keep roster order."""
    return sorted(state.players, key=lambda p: state.scores.get(p.id, 0), reverse=True)


def _highlight(player_id: str, turns: list[Turn]) -> Optional[str]:
    """The player's longest text answer, if they gave one."""
    answers = [
        t for t in turns
        if t.player_id == player_id and t.status == TurnStatus.COMPLETED and isinstance(t.response, str) and t.response.strip()
    ]
    if not answers:
        return None
    best = max(answers, key=lambda t: len(t.response))
    return f'"{best.prompt}" -> {best.response.strip()}'


def _fallback_title(index: int, count: int) -> str:
    if index == 0:
        return WINNER_TITLE
    if index == count - 1:
        return LAST_PLACE_TITLE
    return MIDDLE_TITLES[(index - 1) % len(MIDDLE_TITLES)]


def fallback_player_result(state: GameSession, player: Player, index: int) -> PlayerResult:
    stats = calculate_player_stats(player.id, state.turns)
    score = state.scores.get(player.id, 0)
    blurb = f"{score:g} points from {stats.total_turns} turns"
    if stats.turns_skipped:
        blurb += f", {stats.turns_skipped} skipped"
    if stats.avg_response_time:
        blurb += f", averaging {stats.avg_response_time:g}s per answer"
    return PlayerResult(
        player_id=player.id,
        player_name=player.name,
        final_score=score,
        rank=index + 1,
        title=_fallback_title(index, len(state.players)),
        blurb=blurb + ".",
        highlight_moment=_highlight(player.id, state.turns),
        stats=stats,
    )


def fallback_announcement(state: GameSession) -> AnnouncerResult:
    """Rankings built from scores and stats alone."""
    players = ranked_players(state)
    return AnnouncerResult(
        rankings=[fallback_player_result(state, p, i) for i, p in enumerate(players)],
        game_summary=DEFAULT_CLOSING,
    )


def normalize_announcement(result: AnnouncerResult, state: GameSession) -> AnnouncerResult:
    """
    Align the model's rankings with the real game: unknown players are dropped,
    missing ones get a fallback entry, scores and stats come from the game and
    ranks follow the score order.
    """
    by_id = {r.player_id: r for r in result.rankings if state.get_player(r.player_id)}
    rankings = []
    for i, player in enumerate(ranked_players(state)):
        entry = by_id.get(player.id)
        if entry is None:
            logger.warning("Announcer left out %s; using fallback entry", player.name)
            entry = fallback_player_result(state, player, i)
        rankings.append(entry.model_copy(update={
            "player_name": player.name,
            "final_score": state.scores.get(player.id, 0),
            "rank": i + 1,
            "stats": calculate_player_stats(player.id, state.turns),
        }))
    summary = (result.game_summary or "").strip() or DEFAULT_CLOSING
    return AnnouncerResult(rankings=rankings, game_summary=summary)


def parse_announcement(text: str, state: GameSession) -> AnnouncerResult | None:
    result = validate_as(AnnouncerResult, extract_json_object(text))
    return normalize_announcement(result, state) if result is not None else None


def format_turn_history(state: GameSession) -> str:
    """Every completed turn, one line each, for the announcer to draw on."""
    names = {p.id: p.name for p in state.players}
    lines = []
    for i, t in enumerate(state.completed_turns(), start=1):
        duration = f" ({t.duration:g}s)" if t.duration else ""
        name = names.get(t.player_id, t.player_name)
        answer = t.response if isinstance(t.response, str) else json.dumps(t.response, default=str)
        lines.append(f'{i}. [{t.template_type}] {name}: "{t.prompt}" -> {answer}{duration}')
    return "\n".join(lines)
