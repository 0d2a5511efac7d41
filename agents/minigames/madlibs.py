"""
Mad Libs Challenge: fill the blanks of a generated sentence with words that
start with assigned letters. The Wordsmith scores the result for humor.
"""

from pydantic import Field

from agents.minigames.base import (
    TECHNICAL_DIFFICULTIES_SCORE,
    MiniGameContext,
    MiniGameModule,
    clamp,
    extract_json_object,
    format_players,
)
from agents.models import MiniGameResult, WireModel
from game.rules import MiniGameType

BLANK = "___"

# Letters that are easy to find words for
COMMON_LETTERS = ["S", "R", "A", "T", "P", "D", "C", "M", "B", "L", "F", "G", "H", "N", "W"]

FALLBACK_TEMPLATE = "The best thing about ___ is that it makes me feel ___."


class MadLibsTemplate(WireModel):
    template: str = Field(min_length=1)
    blank_count: int = Field(ge=1)
    hint: str | None = None
    letters: list[str] = Field(default_factory=list)


class MadLibsScore(WireModel):
    score: float
    commentary: str = Field(min_length=1)
    best_word: str | None = None
    worst_word: str | None = None
    filled_sentence: str = ""


class MadLibsSubmission(WireModel):
    words: list[str] = Field(min_length=1)


def count_blanks(template: str) -> int:
    return template.count(BLANK)


def select_random_letters(count: int, rng) -> list[str]:
    """Distinct letters while the pool lasts."""
    if count <= len(COMMON_LETTERS):
        return rng.sample(COMMON_LETTERS, count)
    return [rng.choice(COMMON_LETTERS) for _ in range(count)]


def fill_template(template: str, words: list[str]) -> str:
    """Replace each blank, in order, with the next word."""
    result = template
    for word in words:
        result = result.replace(BLANK, word, 1)
    return result


class MadLibs(MiniGameModule):
    type = MiniGameType.MADLIBS_CHALLENGE
    name = "Mad Libs Challenge"
    puzzle_model = MadLibsTemplate
    score_model = MadLibsScore
    submission_model = MadLibsSubmission
    generate_instruction = "Generate a Mad Libs template now."
    score_instruction = "Score this Mad Libs response now."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        return f"""You are THE WORDSMITH - a witty, playful word game host for Family Glitch.

## MISSION
Generate one Mad Libs-style sentence for {ctx.target_player.name} to complete.
Players at the table: {format_players(ctx.players)}

## SENTENCE RULES
1. 8-14 words total
2. Include 1-3 blanks marked as ___
3. The reveal should be funny or oddly revealing when filled in
4. Family-safe but edgy humor (no explicit content)
5. Avoid proper names and real people
6. The system assigns starting letters later

## RESPONSE FORMAT
Respond with valid JSON:
{{"template": "The sentence with ___ for each blank", "blankCount": 1-3, "hint": "Optional playful hint about the theme"}}

## STRONG TEMPLATE SHAPES
- "The last time I ___ at dinner, everyone ___."
- "My secret talent is ___ while pretending to be ___."
- "Everyone thinks I'm ___, but I'm actually ___."

Generate ONE creative template."""

    def parse_puzzle(self, text: str) -> MadLibsTemplate | None:
        data = extract_json_object(text)
        if not data or not isinstance(data.get("template"), str) or not isinstance(data.get("blankCount"), (int, float)):
            return None
        blanks = count_blanks(data["template"])
        if blanks == 0:
            return None
        return MadLibsTemplate(template=data["template"], blank_count=blanks, hint=data.get("hint"))

    def fallback_puzzle(self, ctx: MiniGameContext) -> MadLibsTemplate:
        return MadLibsTemplate(template=FALLBACK_TEMPLATE, blank_count=count_blanks(FALLBACK_TEMPLATE))

    def prepare_puzzle(self, puzzle: MadLibsTemplate, ctx: MiniGameContext) -> MadLibsTemplate:
        return puzzle.model_copy(update={"letters": select_random_letters(puzzle.blank_count, ctx.rng)})

    def check_submission(self, puzzle: MadLibsTemplate, submission: MadLibsSubmission) -> None:
        if len(submission.words) != puzzle.blank_count:
            raise ValueError(f"expected {puzzle.blank_count} word(s), got {len(submission.words)}")
        for i, (word, letter) in enumerate(zip(submission.words, puzzle.letters), start=1):
            if not word.strip().upper().startswith(letter.upper()):
                raise ValueError(f"blank {i} must start with {letter}")

    def build_scorer_prompt(self, ctx: MiniGameContext, puzzle: MadLibsTemplate, submission: MadLibsSubmission) -> str:
        words = "\n".join(f'Blank {i}: "{w}"' for i, w in enumerate(submission.words, start=1))
        return f"""You are THE WORDSMITH - a witty judge of creativity and humor for Family Glitch.

## MISSION
Score {ctx.target_player.name}'s Mad Libs response for creativity and humor.

## TEMPLATE
"{puzzle.template}"

## THEIR WORDS
{words}

## RESULT
"{fill_template(puzzle.template, submission.words)}"

## SCORING RULES (0-5)
5 = hilarious and clever
4 = very funny
3 = decent
2 = safe
1 = lazy
0 = no effort

## TONE
- Reward unexpected combinations
- Call out lazy choices
- Max 10 words for commentary

## RESPONSE FORMAT
Respond with valid JSON:
{{"score": 0-5, "commentary": "<max 10 words>", "bestWord": "<funniest word>", "worstWord": "<weakest word, if any>", "filledSentence": "<the complete filled sentence>"}}"""

    def to_result(self, score: MadLibsScore, puzzle: MadLibsTemplate, submission: MadLibsSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=clamp(score.score, 0, self.max_score),
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=f"Best word: {score.best_word}" if score.best_word else None,
            bonus_info=f"Weakest: {score.worst_word}" if score.worst_word else None,
        )

    def fallback_result(self, ctx: MiniGameContext, puzzle: MadLibsTemplate, submission: MadLibsSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=TECHNICAL_DIFFICULTIES_SCORE,
            max_score=self.max_score,
            commentary="Technical difficulties! Points for creativity.",
            correct_answer=fill_template(puzzle.template, submission.words),
        )
