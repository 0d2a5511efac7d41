"""
Question and mini-game trigger tools.

Each question tool maps to one input template and returns the configuration the
UI needs to render it. Trigger tools only announce a mini-game; the puzzle
itself is generated later by the mini-game module.
"""

from typing import Literal

from pydantic import Field, model_validator

from agents.models import TemplateResult, ToolArgs
from agents.tools import Tool, ToolRegistry, register_all
from game.rules import MiniGameType, TemplateType


# --- Question tools -------------------------------------------------------


class AskForTextArgs(ToolArgs):
    prompt: str = Field(description="The question to display. Clear and specific.")
    subtitle: str | None = Field(default=None, description="Optional secondary text for context or humor")
    max_length: int = Field(default=500, ge=1, description="Maximum character limit for the response")
    min_length: int = Field(default=1, ge=0, description="Minimum character requirement")
    placeholder: str = Field(default="Type your answer...", description="Placeholder shown in the empty text area")


async def ask_for_text(args: AskForTextArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.TEXT_AREA.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "maxLength": args.max_length,
            "minLength": args.min_length,
            "placeholder": args.placeholder,
        },
    ).to_wire()


class AskForListArgs(ToolArgs):
    prompt: str = Field(description='The question, e.g. "Name 3 things in your backpack right now"')
    subtitle: str | None = Field(default=None, description="Optional additional context")
    field_count: int = Field(ge=1, le=5, description="Number of input fields to show (1-5)")
    field_labels: list[str] | None = Field(default=None, description="Optional label per field; length must match fieldCount")
    field_placeholders: list[str] | None = Field(
        default=None, description="Optional placeholder per field; length must match fieldCount"
    )
    require_all: bool = Field(default=True, description="Whether all fields must be filled before submission")

    @model_validator(mode="after")
    def lists_match_field_count(self) -> "AskForListArgs":
        for name in ("field_labels", "field_placeholders"):
            values = getattr(self, name)
            if values is not None and len(values) != self.field_count:
                raise ValueError(f"{name} must have fieldCount entries")
        return self


async def ask_for_list(args: AskForListArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.TEXT_INPUT.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "fieldCount": args.field_count,
            "fieldLabels": args.field_labels,
            "fieldPlaceholders": args.field_placeholders,
            "requireAll": args.require_all,
        },
    ).to_wire()


class AskBinaryChoiceArgs(ToolArgs):
    prompt: str = Field(description='The question, e.g. "Quick! Choose one!"')
    subtitle: str | None = Field(default=None, description="Optional context")
    left_text: str = Field(description="Text for the left/top option; emojis welcome")
    right_text: str = Field(description="Text for the right/bottom option; emojis welcome")
    seconds: int = Field(ge=3, le=30, description="Time limit. Casual: 10-15, Spicy: 5-8, Savage: 3-5")
    orientation: Literal["horizontal", "vertical"] = Field(default="vertical", description="Layout direction")


async def ask_binary_choice(args: AskBinaryChoiceArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.TIMED_BINARY.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "leftText": args.left_text,
            "rightText": args.right_text,
            "seconds": args.seconds,
            "orientation": args.orientation,
        },
    ).to_wire()


class AskWordSelectionArgs(ToolArgs):
    prompt: str = Field(description='The question, e.g. "Select 3 words that best describe Dad"')
    subtitle: str | None = Field(default=None, description="Optional additional context")
    words: list[str] = Field(min_length=4, max_length=25, description="Exactly gridSize words")
    grid_size: Literal[4, 9, 16, 25] = Field(description="Grid layout: 4 (2x2), 9 (3x3), 16 (4x4) or 25 (5x5)")
    selection_mode: Literal["single", "multiple"] = Field(description="One word or several")
    min_selections: int | None = Field(default=None, ge=1, description="Minimum selections (multiple mode)")
    max_selections: int | None = Field(default=None, ge=1, description="Maximum selections (multiple mode)")
    instructions: str | None = Field(default=None, description='Custom instruction text, e.g. "Choose exactly 3"')

    @model_validator(mode="after")
    def words_fill_grid(self) -> "AskWordSelectionArgs":
        if len(self.words) != self.grid_size:
            raise ValueError(f"words has {len(self.words)} entries but gridSize is {self.grid_size}")
        if self.min_selections and self.max_selections and self.min_selections > self.max_selections:
            raise ValueError("minSelections cannot exceed maxSelections")
        return self


async def ask_word_selection(args: AskWordSelectionArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.WORD_GRID.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "words": args.words,
            "gridSize": args.grid_size,
            "selectionMode": args.selection_mode,
            "minSelections": args.min_selections,
            "maxSelections": args.max_selections,
            "instructions": args.instructions,
        },
    ).to_wire()


class AskRatingArgs(ToolArgs):
    prompt: str = Field(description='The question, e.g. "How hungry are you RIGHT NOW?"')
    subtitle: str | None = Field(default=None, description="Optional additional context")
    min: float = Field(description="Minimum value on the scale")
    max: float = Field(description="Maximum value on the scale")
    step: float = Field(default=1, gt=0, description="Increment value")
    default_value: float | None = Field(default=None, description="Starting position (defaults to middle)")
    min_label: str | None = Field(default=None, description='Label for the minimum end, e.g. "Not hungry"')
    max_label: str | None = Field(default=None, description='Label for the maximum end, e.g. "STARVING"')
    show_value: bool = Field(default=True, description="Display the numeric value above the slider")

    @model_validator(mode="after")
    def range_is_ordered(self) -> "AskRatingArgs":
        if self.min >= self.max:
            raise ValueError("min must be below max")
        if self.default_value is not None and not self.min <= self.default_value <= self.max:
            raise ValueError("defaultValue must lie within [min, max]")
        return self


async def ask_rating(args: AskRatingArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.SLIDER.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "min": args.min,
            "max": args.max,
            "step": args.step,
            "defaultValue": args.default_value,
            "minLabel": args.min_label,
            "maxLabel": args.max_label,
            "showValue": args.show_value,
        },
    ).to_wire()


class AskPlayerVoteArgs(ToolArgs):
    prompt: str = Field(description='The voting question, e.g. "Who is most likely to forget a birthday?"')
    subtitle: str | None = Field(default=None, description="Optional additional context or humor")
    allow_multiple: bool = Field(default=False, description="Whether several players can be selected")
    max_selections: int = Field(default=1, ge=1, description="Maximum players selectable when allowMultiple")
    instructions: str | None = Field(default=None, description='Custom instruction text, e.g. "Choose wisely..."')


async def ask_player_vote(args: AskPlayerVoteArgs) -> dict:
    return TemplateResult(
        template_type=TemplateType.PLAYER_SELECTOR.value,
        prompt=args.prompt,
        subtitle=args.subtitle,
        params={
            "allowMultiple": args.allow_multiple,
            "maxSelections": args.max_selections,
            "instructions": args.instructions,
        },
    ).to_wire()


# --- Mini-game triggers ---------------------------------------------------


class TriviaTriggerArgs(ToolArgs):
    source_player_id: str = Field(description="ID of the player whose earlier answer will be quizzed")
    source_player_name: str = Field(description="Name of that player, for display")
    intro: str = Field(description='A short dramatic intro, e.g. "How well do you REALLY know your sister..."')


async def trigger_trivia_challenge(args: TriviaTriggerArgs) -> dict:
    return TemplateResult(
        template_type=MiniGameType.TRIVIA_CHALLENGE.value,
        params={
            "sourcePlayerId": args.source_player_id,
            "sourcePlayerName": args.source_player_name,
            "intro": args.intro,
        },
    ).to_wire()


class PersonalityTriggerArgs(ToolArgs):
    subject_player_id: str = Field(description="ID of the player being described (NOT the current player)")
    subject_player_name: str = Field(description="Name of the player being described")
    intro: str = Field(description='A short intro, e.g. "Time to describe your mom in words..."')


async def trigger_personality_match(args: PersonalityTriggerArgs) -> dict:
    return TemplateResult(
        template_type=MiniGameType.PERSONALITY_MATCH.value,
        params={
            "subjectPlayerId": args.subject_player_id,
            "subjectPlayerName": args.subject_player_name,
            "intro": args.intro,
        },
    ).to_wire()


class IntroArgs(ToolArgs):
    intro: str | None = Field(default=None, description="Optional intro text for the challenge")


def _intro_trigger(game_type: MiniGameType, default_intro: str):
    async def execute(args: IntroArgs) -> dict:
        return TemplateResult(
            template_type=game_type.value,
            params={"intro": args.intro or default_intro},
        ).to_wire()

    execute.__name__ = f"trigger_{game_type.value}"
    return execute


QUESTION_TOOLS = [
    Tool(
        name="ask_for_text",
        description=(
            "Ask the current player for a detailed, paragraph-length text response. Use for questions "
            "that need explanation or storytelling, e.g. \"What's Dad's 'tell' when he's lying?\"."
        ),
        args_model=AskForTextArgs,
        executor=ask_for_text,
    ),
    Tool(
        name="ask_for_list",
        description=(
            "Ask the current player for 1-5 short text items. Rapid-fire, e.g. "
            "\"Name 3 things in your pocket\"."
        ),
        args_model=AskForListArgs,
        executor=ask_for_list,
    ),
    Tool(
        name="ask_binary_choice",
        description=(
            "Ask the current player for a quick 'this or that' decision under a countdown, "
            "e.g. \"Pizza or Tacos?\"."
        ),
        args_model=AskBinaryChoiceArgs,
        executor=ask_binary_choice,
    ),
    Tool(
        name="ask_word_selection",
        description=(
            "Ask the current player to select word(s) from a 2x2 to 5x5 grid, "
            "e.g. \"Select 3 words that describe Mom\"."
        ),
        args_model=AskWordSelectionArgs,
        executor=ask_word_selection,
    ),
    Tool(
        name="ask_rating",
        description="Ask the current player to rate something on a numeric slider, e.g. \"Rate Dad's driving (1-5)\".",
        args_model=AskRatingArgs,
        executor=ask_rating,
    ),
    Tool(
        name="ask_player_vote",
        description=(
            "Ask the current player to vote for another player (the current player is excluded), "
            "e.g. \"Who's most likely to survive a zombie apocalypse?\"."
        ),
        args_model=AskPlayerVoteArgs,
        executor=ask_player_vote,
    ),
]

MINI_GAME_TOOLS = [
    Tool(
        name="trigger_trivia_challenge",
        description=(
            "Start a TRIVIA CHALLENGE: quiz the current player on something another player said earlier. "
            "Act 2 or later, only when other players have completed turns."
        ),
        args_model=TriviaTriggerArgs,
        executor=trigger_trivia_challenge,
    ),
    Tool(
        name="trigger_personality_match",
        description=(
            "Start a PERSONALITY MATCH: the current player selects every word that describes another player. "
            "Act 2 or later."
        ),
        args_model=PersonalityTriggerArgs,
        executor=trigger_personality_match,
    ),
    Tool(
        name="trigger_madlibs_challenge",
        description="Start a MAD LIBS challenge: fill in the blanks with words starting with given letters. Act 3.",
        args_model=IntroArgs,
        executor=_intro_trigger(MiniGameType.MADLIBS_CHALLENGE, "Mad Libs time!"),
    ),
    Tool(
        name="trigger_cryptic_connection",
        description=(
            "Start a CRYPTIC CONNECTION puzzle: an enigmatic clue and a 5x5 word grid; "
            "find the words that secretly connect. Act 3."
        ),
        args_model=IntroArgs,
        executor=_intro_trigger(MiniGameType.CRYPTIC_CONNECTION, "A riddle awaits..."),
    ),
    Tool(
        name="trigger_hard_trivia",
        description=(
            "Start HARD TRIVIA: a challenging multiple-choice question on a topic the family cares about. Act 2+."
        ),
        args_model=IntroArgs,
        executor=_intro_trigger(MiniGameType.HARD_TRIVIA, "Time to test your knowledge!"),
    ),
    Tool(
        name="trigger_the_filter",
        description="Start THE FILTER: select every item that matches a hidden rule. Act 2+.",
        args_model=IntroArgs,
        executor=_intro_trigger(MiniGameType.THE_FILTER, "Time to filter the truth!"),
    ),
    Tool(
        name="trigger_lighting_round",
        description="Start a LIGHTING ROUND: five rapid-fire binary questions about family members. Act 3.",
        args_model=IntroArgs,
        executor=_intro_trigger(MiniGameType.LIGHTING_ROUND, "Lighting Round incoming!"),
    ),
]

QUESTION_TOOL_NAMES = [t.name for t in QUESTION_TOOLS]

MINI_GAME_TOOL_NAMES: dict[MiniGameType, str] = {
    MiniGameType.TRIVIA_CHALLENGE: "trigger_trivia_challenge",
    MiniGameType.PERSONALITY_MATCH: "trigger_personality_match",
    MiniGameType.MADLIBS_CHALLENGE: "trigger_madlibs_challenge",
    MiniGameType.CRYPTIC_CONNECTION: "trigger_cryptic_connection",
    MiniGameType.HARD_TRIVIA: "trigger_hard_trivia",
    MiniGameType.THE_FILTER: "trigger_the_filter",
    MiniGameType.LIGHTING_ROUND: "trigger_lighting_round",
}


def build_default_registry() -> ToolRegistry:
    """Registry with every question tool and mini-game trigger."""
    return register_all(ToolRegistry(), QUESTION_TOOLS + MINI_GAME_TOOLS)
