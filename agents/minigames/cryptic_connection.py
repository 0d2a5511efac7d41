"""
Cryptic Connection: a 5x5 grid of words, some of which secretly connect to a
hidden mystery word. The Fuzzy Judge scores each selected word 0-5; the final
score is the mean of those per-word points.
"""

from pydantic import Field

from agents.minigames.base import (
    MiniGameContext,
    MiniGameModule,
    clamp,
    extract_json_object,
)
from agents.models import MiniGameResult, WireModel
from game.rules import MiniGameType

GRID_SIZE = 25
ANSWER_COUNT = 8
TRICK_COUNT = 5
PAD_WORD = "mystery"
HIGH_SCORE_POINTS = 4


class CrypticPuzzle(WireModel):
    mystery_word: str = Field(min_length=1)
    words: list[str] = Field(min_length=GRID_SIZE, max_length=GRID_SIZE)
    hint: str | None = None
    answer_key: list[str] = Field(min_length=ANSWER_COUNT, max_length=ANSWER_COUNT)
    trick_key: list[str] = Field(min_length=TRICK_COUNT, max_length=TRICK_COUNT)


class WordScore(WireModel):
    word: str
    points: float
    reason: str = ""


class CrypticScore(WireModel):
    breakdown: list[WordScore]
    total_score: float
    commentary: str = Field(min_length=1)


class CrypticSubmission(WireModel):
    selected_words: list[str] = Field(min_length=1)


FALLBACK_PUZZLE = CrypticPuzzle(
    mystery_word="BAR",
    words=[
        "soap", "tender", "mars", "exam", "stool",
        "none", "raiser", "code", "bell", "space",
        "alcohol", "cloud", "puppy", "tuesday", "garden",
        "mitzvah", "graph", "music", "harbor", "iron",
        "gold", "silver", "steel", "top", "crow",
    ],
    answer_key=["mars", "exam", "stool", "code", "space", "alcohol", "gold", "raiser"],
    trick_key=["iron", "silver", "steel", "harbor", "bell"],
)


def _unique(items) -> list[str]:
    seen = []
    for item in items:
        if isinstance(item, str) and item not in seen:
            seen.append(item)
    return seen


def fit_grid(words: list) -> list[str]:
    """Pad with a filler word or truncate to exactly GRID_SIZE entries."""
    words = [str(w) for w in words][:GRID_SIZE]
    return words + [PAD_WORD] * (GRID_SIZE - len(words))


class CrypticConnection(MiniGameModule):
    type = MiniGameType.CRYPTIC_CONNECTION
    name = "Cryptic Connection"
    puzzle_model = CrypticPuzzle
    score_model = CrypticScore
    submission_model = CrypticSubmission
    generate_instruction = "Generate a brain teaser puzzle now."
    score_instruction = "Score this brain teaser attempt now."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        return f"""You are THE SEMANTIC ARCHITECT - creating word association puzzles for Family Glitch.

## MISSION
Generate a JSON object for a word association game for {ctx.target_player.name}.

## STEP 1: Choose a "Mystery Word"
Pick a polysemous word with multiple meanings (e.g. "BAR", "POUND", "BANK", "SPRING", "PITCH").

## STEP 2: Generate {GRID_SIZE} Grid Words
Exactly {GRID_SIZE} UNIQUE single words with intentional layers:
- LITERAL associations (obvious direct connections)
- IDIOMATIC or METAPHORICAL associations
- PUNS or COMPOUND words with the mystery word
- Completely UNRELATED distractors

## STEP 3: Keys
- answerKey: exactly {ANSWER_COUNT} grid words that genuinely connect
- trickKey: exactly {TRICK_COUNT} grid words that look connected but are not

## QUALITY RULES
- Single words only (no spaces or hyphens)
- Mix nouns, verbs, adjectives
- Make distractors convincing but clearly wrong

## RESPONSE FORMAT
Respond with valid JSON only:
{{"mysteryWord": "WORD", "words": [... exactly {GRID_SIZE} words], "hint": "Optional cryptic hint (max 10 words)", "answerKey": [... {ANSWER_COUNT} words], "trickKey": [... {TRICK_COUNT} words]}}

Generate ONE puzzle now."""

    def parse_puzzle(self, text: str) -> CrypticPuzzle | None:
        data = extract_json_object(text)
        if not data or not data.get("mysteryWord") or not isinstance(data.get("words"), list):
            return None
        words = fit_grid(data["words"])
        answers = [w for w in _unique(data.get("answerKey") or []) if w in words]
        tricks = [w for w in _unique(data.get("trickKey") or []) if w in words and w not in answers]
        if len(answers) != ANSWER_COUNT or len(tricks) != TRICK_COUNT:
            return None
        return CrypticPuzzle(
            mystery_word=str(data["mysteryWord"]),
            words=words,
            hint=data.get("hint"),
            answer_key=answers,
            trick_key=tricks,
        )

    def fallback_puzzle(self, ctx: MiniGameContext) -> CrypticPuzzle:
        return FALLBACK_PUZZLE.model_copy(deep=True)

    def public_view(self, puzzle: CrypticPuzzle) -> dict:
        view = {"words": list(puzzle.words)}
        if puzzle.hint:
            view["hint"] = puzzle.hint
        return view

    def check_submission(self, puzzle: CrypticPuzzle, submission: CrypticSubmission) -> None:
        unknown = [w for w in submission.selected_words if w not in puzzle.words]
        if unknown:
            raise ValueError(f"not in the grid: {', '.join(unknown)}")

    def build_scorer_prompt(self, ctx: MiniGameContext, puzzle: CrypticPuzzle, submission: CrypticSubmission) -> str:
        return f"""You are THE FUZZY JUDGE - evaluating {ctx.target_player.name}'s word association attempt.

## THE MYSTERY WORD
{puzzle.mystery_word.upper()}

## THE GRID (all {GRID_SIZE} words)
{", ".join(puzzle.words)}

## INTENDED CONNECTIONS
{", ".join(puzzle.answer_key)}

## TRICK WORDS (look connected, are not)
{", ".join(puzzle.trick_key)}

## PLAYER SELECTED ({len(submission.selected_words)} words)
{", ".join(submission.selected_words)}

## SCORING RULES (per word, 0-5 points)
- 0: No logical connection
- 1-2: Obvious/literal connection (e.g. "Tender" for "BAR")
- 3-4: Clever metaphor, idiom, or compound (e.g. "Exam" for "BAR")
- 5: Brilliant lateral thinking (e.g. "Mars" for "BAR")

## FUZZY LOGIC
If a player finds a valid connection you didn't think of, REWARD IT.

## RESPONSE FORMAT
Return JSON only:
{{"breakdown": [{{"word": "WORD", "points": 0-5, "reason": "max 10 words"}}, ...], "totalScore": 0-5, "commentary": "One witty line (max 15 words)"}}

totalScore is the average quality of the selections on a 0-5 scale, not the sum."""

    def parse_score(self, text: str) -> CrypticScore | None:
        data = extract_json_object(text)
        if (
            not data
            or not isinstance(data.get("breakdown"), list)
            or not isinstance(data.get("totalScore"), (int, float))
            or not data.get("commentary")
        ):
            return None
        breakdown = []
        for item in data["breakdown"]:
            if not isinstance(item, dict):
                continue
            points = item.get("points") if isinstance(item.get("points"), (int, float)) else 0
            breakdown.append(
                WordScore(
                    word=str(item.get("word") or ""),
                    points=clamp(points, 0, self.max_score),
                    reason=str(item.get("reason") or ""),
                )
            )
        return CrypticScore(
            breakdown=breakdown,
            total_score=clamp(data["totalScore"], 0, self.max_score),
            commentary=str(data["commentary"]),
        )

    def total_from_breakdown(self, score: CrypticScore, submission: CrypticSubmission) -> float:
        """Mean per-word points over the player's selections; the model's stated total only when there is no breakdown."""
        selected = {w.lower() for w in submission.selected_words}
        items = [b for b in score.breakdown if b.word.lower() in selected] or score.breakdown
        if not items:
            return score.total_score
        return round(clamp(sum(b.points for b in items) / len(items), 0, self.max_score), 1)

    def to_result(self, score: CrypticScore, puzzle: CrypticPuzzle, submission: CrypticSubmission) -> MiniGameResult:
        high = [b for b in score.breakdown if b.points >= HIGH_SCORE_POINTS]
        if high:
            bonus = "Best picks: " + ", ".join(f"{b.word} ({b.points:g}pts)" for b in high)
        else:
            total = sum(b.points for b in score.breakdown)
            bonus = f"Total points: {total:g} across {len(score.breakdown)} selections"
        return MiniGameResult(
            score=self.total_from_breakdown(score, submission),
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=f"Mystery word: {puzzle.mystery_word.upper()}",
            bonus_info=bonus,
        )

    def fallback_result(self, ctx: MiniGameContext, puzzle: CrypticPuzzle, submission: CrypticSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=clamp(len(submission.selected_words) / 2, 1, self.max_score),
            max_score=self.max_score,
            commentary="The Fuzzy Judge considers your choices...",
            correct_answer=f"Mystery word: {puzzle.mystery_word.upper()}",
        )
