"""
Trivia Challenge: quiz the current player on something another player said earlier.

The Quizmaster writes one question about a source turn, then grades the
player's answer 0-5 against what the source player actually said.
"""

import json
from typing import Literal

from pydantic import Field

from agents.minigames.base import (
    TECHNICAL_DIFFICULTIES_SCORE,
    MiniGameContext,
    MiniGameModule,
    format_players,
    format_scores,
    response_text,
)
from agents.models import MiniGameResult, WireModel
from game.rules import MiniGameType
from game.state import Turn


class TriviaQuestion(WireModel):
    phase: Literal["question"]
    question: str = Field(min_length=1)
    hint: str | None = None


class TriviaScore(WireModel):
    phase: Literal["score"]
    score: float = Field(ge=0, le=5)
    commentary: str
    correct_answer: str | None = None
    bonus_info: str | None = None


class TriviaSubmission(WireModel):
    answer: str = Field(min_length=1, max_length=500)


def _source_answer(turn: Turn | None) -> str:
    if turn is None:
        return ""
    if isinstance(turn.response, str):
        return turn.response
    return json.dumps(turn.response, default=str)


class TriviaChallenge(MiniGameModule):
    type = MiniGameType.TRIVIA_CHALLENGE
    name = "Trivia Challenge"
    puzzle_model = TriviaQuestion
    score_model = TriviaScore
    submission_model = TriviaSubmission
    generate_instruction = "Generate the trivia question now."
    score_instruction = "Score the answer now."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        target = ctx.target_player.name
        source = ctx.source_turn
        source_name = source.player_name if source else "another player"
        source_prompt = source.prompt if source else "a question"
        answer = response_text(source.response) if source else "(unknown)"
        return f"""You are THE QUIZMASTER - a sharp, witty trivia host for Family Glitch.

## YOUR MISSION
Challenge {target} with a question based on something {source_name} said earlier.

## THE SOURCE MATERIAL
- {source_name} was asked: "{source_prompt}"
- {source_name} answered: {answer}
- NOW you must quiz {target} to see if they know what {source_name} said

## SCORING RULES (0-5 points)
- 5: Exact match or impressively close
- 4: Got the essence right, minor details off
- 3: Partially correct, showed they know the person
- 2: In the ballpark but missing key elements
- 1: Showed effort, but way off
- 0: Completely wrong, wild guess, or didn't try

## YOUR PERSONALITY
- Sharp and quick-witted; mock low scores playfully, never meanly
- Celebrate high scores with genuine surprise
- Keep commentary to MAX 10 WORDS

## CURRENT GAME STATE
Players: {format_players(ctx.players)}
Scores: {format_scores(ctx.players, ctx.scores)}

## RESPONSE FORMAT
For asking the question, respond with JSON:
{{"phase": "question", "question": "Your cleverly worded question", "hint": "Optional subtle hint"}}

For scoring an answer, respond with JSON:
{{"phase": "score", "score": 0-5, "commentary": "Your witty reaction", "correctAnswer": "What {source_name} actually said", "bonusInfo": "Optional fun reveal"}}

## IMPORTANT RULES
1. NEVER reveal the answer in the question
2. Make the question about {source_name}, not {target}
3. Frame it as "What did {source_name} say when asked about..." or "According to {source_name}..."
4. Be fair in scoring - partial credit is okay
5. Your commentary should match the score"""

    def fallback_puzzle(self, ctx: MiniGameContext) -> TriviaQuestion:
        source = ctx.source_turn
        if source is None:
            return TriviaQuestion(phase="question", question="What did another player say earlier in this game?")
        return TriviaQuestion(
            phase="question",
            question=f'What did {source.player_name} say when asked "{source.prompt}"?',
        )

    def public_view(self, puzzle: TriviaQuestion) -> dict:
        return {"question": puzzle.question, "hint": puzzle.hint} if puzzle.hint else {"question": puzzle.question}

    def build_scorer_prompt(self, ctx: MiniGameContext, puzzle: TriviaQuestion, submission: TriviaSubmission) -> str:
        source = ctx.source_turn
        source_name = source.player_name if source else "the other player"
        return f"""{self.build_generator_prompt(ctx)}

## THE QUESTION YOU ASKED
{puzzle.question}

{ctx.target_player.name} answered: "{submission.answer}"

The correct answer (what {source_name} said): {_source_answer(source)}

Now score this answer 0-5. Match your tone to the score. MAX 10 WORDS of commentary.
Respond with JSON:
{{"phase": "score", "score": <0-5>, "commentary": "<your reaction>", "correctAnswer": "<the actual answer>", "bonusInfo": "<optional fun reveal>"}}"""

    def to_result(self, score: TriviaScore, puzzle: TriviaQuestion, submission: TriviaSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=score.score,
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=score.correct_answer,
            bonus_info=score.bonus_info,
        )

    def fallback_result(self, ctx: MiniGameContext, puzzle: TriviaQuestion, submission: TriviaSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=TECHNICAL_DIFFICULTIES_SCORE,
            max_score=self.max_score,
            commentary="Technical difficulties! Have some points anyway.",
            correct_answer=_source_answer(ctx.source_turn) or None,
        )
