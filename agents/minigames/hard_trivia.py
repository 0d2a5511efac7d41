"""Hard Trivia: a challenging multiple-choice question drawn from the family's interests."""

import json

from pydantic import Field, model_validator

from agents.minigames.base import MiniGameContext, MiniGameModule
from agents.models import MiniGameResult, WireModel
from game.eligibility import get_interest_turns
from game.rules import MiniGameType

CORRECT_POINTS = 10
OPTION_COUNT = 4


class HardTriviaQuestion(WireModel):
    category: str = Field(min_length=1)
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    correct_answer: str = Field(min_length=1, alias="correct_answer")

    @model_validator(mode="after")
    def answer_among_options(self) -> "HardTriviaQuestion":
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must match one of the options")
        return self


class HardTriviaScore(WireModel):
    correct: bool
    points: float
    commentary: str = Field(min_length=1)


class HardTriviaSubmission(WireModel):
    answer: str = Field(min_length=1)


FALLBACK_QUESTIONS = [
    HardTriviaQuestion(
        category="Science",
        question="Which planet has the shortest day in our solar system?",
        options=["Mercury", "Jupiter", "Earth", "Venus"],
        correct_answer="Jupiter",
    ),
    HardTriviaQuestion(
        category="Music",
        question="In what year did the Beatles release Abbey Road?",
        options=["1967", "1968", "1969", "1970"],
        correct_answer="1969",
    ),
    HardTriviaQuestion(
        category="Food",
        question="Which country produces the most coffee in the world?",
        options=["Colombia", "Vietnam", "Ethiopia", "Brazil"],
        correct_answer="Brazil",
    ),
]


def _is_correct(puzzle: HardTriviaQuestion, submission: HardTriviaSubmission) -> bool:
    return submission.answer.strip() == puzzle.correct_answer.strip()


class HardTrivia(MiniGameModule):
    type = MiniGameType.HARD_TRIVIA
    name = "Hard Trivia"
    max_score = CORRECT_POINTS
    puzzle_model = HardTriviaQuestion
    score_model = HardTriviaScore
    submission_model = HardTriviaSubmission
    generate_instruction = "Generate the trivia question now as JSON."
    score_instruction = "Score the answer now as JSON."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        interests = get_interest_turns(ctx.turns)[-10:]
        if interests:
            summary = "\n".join(f"{t.player_name}: {json.dumps(t.response, default=str)}" for t in interests)
        else:
            summary = "No specific interests identified yet - use general pop culture topics"
        return f"""You are THE QUIZMASTER for Family Glitch's Hard Trivia Challenge.

## YOUR MISSION
Generate a challenging trivia question for {ctx.target_player.name} based on topics this family is interested in.

## FAMILY INTERESTS & HOBBIES
{summary}

## TRIVIA QUESTION RULES
1. Pick a topic from the family's interests above (movies, sports, music, games, cooking, etc.)
2. Make it HARD - not trivial, but not impossible
3. Create 4 multiple choice options - one correct, three plausible wrong answers
4. Shuffle the options - the correct answer should not always be in the same position

## OUTPUT FORMAT
Respond with ONLY valid JSON in this exact format:
{{
  "category": "Movies",
  "question": "Which actor played Jack Dawson in Titanic?",
  "options": ["Leonardo DiCaprio", "Brad Pitt", "Tom Cruise", "Matt Damon"],
  "correct_answer": "Leonardo DiCaprio"
}}

CRITICAL: "correct_answer" must be an EXACT MATCH to one of the options."""

    def fallback_puzzle(self, ctx: MiniGameContext) -> HardTriviaQuestion:
        return ctx.rng.choice(FALLBACK_QUESTIONS).model_copy()

    def public_view(self, puzzle: HardTriviaQuestion) -> dict:
        return {"category": puzzle.category, "question": puzzle.question, "options": list(puzzle.options)}

    def check_submission(self, puzzle: HardTriviaQuestion, submission: HardTriviaSubmission) -> None:
        if submission.answer not in puzzle.options:
            raise ValueError("answer must be one of the options")

    def build_scorer_prompt(
        self, ctx: MiniGameContext, puzzle: HardTriviaQuestion, submission: HardTriviaSubmission
    ) -> str:
        options = "\n".join(f"{i}. {opt}" for i, opt in enumerate(puzzle.options, start=1))
        return f"""You are scoring {ctx.target_player.name}'s answer to a Hard Trivia question.

## THE QUESTION
{puzzle.question}

## THE OPTIONS
{options}

## CORRECT ANSWER
{puzzle.correct_answer}

## PLAYER'S ANSWER
{submission.answer}

## SCORING RULES
- Matches the correct answer: RIGHT, {CORRECT_POINTS} points
- Anything else: WRONG, 0 points

## OUTPUT FORMAT
Respond with ONLY valid JSON:
{{"correct": true, "points": {CORRECT_POINTS}, "commentary": "Nice! You nailed it."}}
or
{{"correct": false, "points": 0, "commentary": "Ouch, it was actually [correct answer]."}}

Keep commentary to ONE SHORT SENTENCE (max 12 words)."""

    def to_result(
        self, score: HardTriviaScore, puzzle: HardTriviaQuestion, submission: HardTriviaSubmission
    ) -> MiniGameResult:
        # Correctness is a string comparison; the model only supplies commentary
        correct = _is_correct(puzzle, submission)
        if correct != score.correct:
            return self._canned_result(puzzle, correct)
        return MiniGameResult(
            score=CORRECT_POINTS if correct else 0,
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=puzzle.correct_answer,
        )

    def fallback_result(
        self, ctx: MiniGameContext, puzzle: HardTriviaQuestion, submission: HardTriviaSubmission
    ) -> MiniGameResult:
        return self._canned_result(puzzle, _is_correct(puzzle, submission))

    def _canned_result(self, puzzle: HardTriviaQuestion, correct: bool) -> MiniGameResult:
        return MiniGameResult(
            score=CORRECT_POINTS if correct else 0,
            max_score=self.max_score,
            commentary="Nice! You nailed it." if correct else f"Ouch, it was actually {puzzle.correct_answer}.",
            correct_answer=puzzle.correct_answer,
        )
