"""Mini-game modules, registered through one explicit list."""

from agents.minigames.base import MiniGameContext, MiniGameModule, parse_or_default
from agents.minigames.cryptic_connection import CrypticConnection
from agents.minigames.hard_trivia import HardTrivia
from agents.minigames.lighting_round import LightingRound
from agents.minigames.madlibs import MadLibs
from agents.minigames.personality_match import PersonalityMatch
from agents.minigames.the_filter import TheFilter
from agents.minigames.trivia_challenge import TriviaChallenge
from game.rules import MiniGameType

MINI_GAME_MODULES: list[MiniGameModule] = [
    TriviaChallenge(),
    PersonalityMatch(),
    MadLibs(),
    CrypticConnection(),
    HardTrivia(),
    TheFilter(),
    LightingRound(),
]

MODULES_BY_TYPE: dict[MiniGameType, MiniGameModule] = {m.type: m for m in MINI_GAME_MODULES}


def get_module(game_type: MiniGameType | str) -> MiniGameModule:
    """Module for a mini-game type; raises ValueError for anything else."""
    return MODULES_BY_TYPE[MiniGameType(game_type)]


__all__ = [
    "MINI_GAME_MODULES",
    "MODULES_BY_TYPE",
    "MiniGameContext",
    "MiniGameModule",
    "get_module",
    "parse_or_default",
]
