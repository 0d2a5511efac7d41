"""Agents: the tool-calling chat loop, tool registry, mini-games and orchestrator for Family Glitch."""

from agents.announcer import AnnouncerResult
from agents.chat_loop import ChatLoop, ChatResult
from agents.models import MiniGameResult
from agents.orchestrator import generate_mini_game, run_next_question, score_mini_game, summarize_game
from agents.template_tools import build_default_registry
from agents.tools import ToolRegistry

__all__ = [
    "AnnouncerResult",
    "ChatLoop",
    "ChatResult",
    "MiniGameResult",
    "ToolRegistry",
    "build_default_registry",
    "generate_mini_game",
    "run_next_question",
    "score_mini_game",
    "summarize_game",
]
