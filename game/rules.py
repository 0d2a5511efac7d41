"""Game rules and constants for Family Glitch."""

from enum import Enum


class TemplateType(str, Enum):
    """Question templates the UI knows how to render."""

    TEXT_AREA = "tpl_text_area"
    TEXT_INPUT = "tpl_text_input"
    TIMED_BINARY = "tpl_timed_binary"
    WORD_GRID = "tpl_word_grid"
    SLIDER = "tpl_slider"
    PLAYER_SELECTOR = "tpl_player_selector"


class MiniGameType(str, Enum):
    """Mini-game types; the value doubles as the turn's template type tag."""

    TRIVIA_CHALLENGE = "trivia_challenge"
    PERSONALITY_MATCH = "personality_match"
    MADLIBS_CHALLENGE = "madlibs_challenge"
    CRYPTIC_CONNECTION = "cryptic_connection"
    HARD_TRIVIA = "hard_trivia"
    THE_FILTER = "the_filter"
    LIGHTING_ROUND = "lighting_round"


class TurnStatus(str, Enum):
    """Lifecycle of a turn: pending until the player submits or skips."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


MINI_GAME_TYPES = frozenset(m.value for m in MiniGameType)

# Acts split the game into thirds of total rounds
ACT_COUNT = 3
ROUNDS_PER_PLAYER = 4

MIN_PLAYERS = 2
MAX_PLAYERS = 10

# Minimum act per mini-game (act gating)
MIN_ACT: dict[MiniGameType, int] = {
    MiniGameType.TRIVIA_CHALLENGE: 2,
    MiniGameType.PERSONALITY_MATCH: 2,
    MiniGameType.HARD_TRIVIA: 2,
    MiniGameType.THE_FILTER: 2,
    MiniGameType.MADLIBS_CHALLENGE: 3,
    MiniGameType.CRYPTIC_CONNECTION: 3,
    MiniGameType.LIGHTING_ROUND: 3,
}

# Trivia and personality triggers are only offered once the pool has some variety
MIN_TRIVIA_POOL = 3

# Turn selection weights for reusing a turn as trivia source material
RICH_ANSWER_BONUS = 50
FREE_TEXT_BONUS = 30
SELECTION_JITTER = 40

# Keywords that mark a turn as revealing a player's interests (hard trivia topics)
INTEREST_KEYWORDS = ("interest", "hobby", "hobbies", "love", "favorite")
# Act-transition answers in this category count as interest turns too
INTEREST_CATEGORY = "interests"
