"""
Lighting Round: five rapid-fire binary questions about family members.

The model writes every question with its correct side and all commentary up
front; answers are then scored locally, +5 right, -5 wrong, 0 for a pass.
"""

from typing import Literal

from pydantic import Field

from agents.minigames.base import MiniGameContext, MiniGameModule, extract_json_object
from agents.models import MiniGameResult, WireModel
from agents.sanitize import sanitize_for_ai
from game.eligibility import get_eligible_turns_for_player
from game.rules import MiniGameType

QUESTION_COUNT = 5
SECONDS_PER_QUESTION = 7
POINTS_RIGHT = 5
POINTS_WRONG = -5


class LightingQuestion(WireModel):
    question: str = Field(min_length=1)
    left_text: str = Field(min_length=1)
    right_text: str = Field(min_length=1)
    correct_choice: Literal["left", "right"]
    subject_player_id: str | None = None
    subject_player_name: str | None = None
    evidence: str | None = None
    commentary_correct: str = "Nailed it."
    commentary_wrong: str = "Oof. Not quite."
    commentary_pass: str = "Pass logged."

    def answer_text(self) -> str:
        return self.left_text if self.correct_choice == "left" else self.right_text


class LightingPuzzle(WireModel):
    questions: list[LightingQuestion] = Field(min_length=1, max_length=QUESTION_COUNT)
    seconds: int = SECONDS_PER_QUESTION


class LightingSubmission(WireModel):
    choices: list[Literal["left", "right", "pass"]]


def parse_question(data) -> LightingQuestion | None:
    """One question from model JSON; correctChoice must be left or right."""
    if not isinstance(data, dict):
        return None
    choice = str(data.get("correctChoice") or "").lower()
    question = str(data.get("question") or "").strip()
    left = str(data.get("leftText") or "").strip()
    right = str(data.get("rightText") or "").strip()
    if choice not in ("left", "right") or not question or not left or not right:
        return None
    return LightingQuestion(
        question=question,
        left_text=left,
        right_text=right,
        correct_choice=choice,
        subject_player_id=data.get("subjectPlayerId"),
        subject_player_name=data.get("subjectPlayerName"),
        evidence=data.get("evidence"),
        commentary_correct=data.get("commentaryCorrect") or "Nailed it.",
        commentary_wrong=data.get("commentaryWrong") or "Oof. Not quite.",
        commentary_pass=data.get("commentaryPass") or "Pass logged.",
    )


def get_prior_lighting_questions(turns) -> list[str]:
    questions = []
    for t in turns or []:
        if t.template_type != MiniGameType.LIGHTING_ROUND.value:
            continue
        puzzle = (t.template_params or {}).get("puzzle") or {}
        questions.extend(q.get("question", "") for q in puzzle.get("questions", []) if isinstance(q, dict))
    return [q for q in questions if q]


def _short(response) -> str:
    if isinstance(response, str):
        text = response
    elif isinstance(response, dict) and len(response) == 1:
        text = str(next(iter(response.values())))
    else:
        text = sanitize_for_ai(response)
    return text if len(text) <= 60 else text[:57] + "..."


def fallback_questions(ctx: MiniGameContext, count: int) -> list[LightingQuestion]:
    """'Who said it?' questions built from other players' answers."""
    turns = get_eligible_turns_for_player(ctx.turns, ctx.target_player.id)
    ctx.rng.shuffle(turns)
    out = []
    for turn in turns:
        if len(out) >= count:
            break
        others = [p for p in ctx.players if p.id != turn.player_id and p.id != ctx.target_player.id]
        others = others or [p for p in ctx.players if p.id != turn.player_id]
        if not others:
            continue
        decoy = ctx.rng.choice(others)
        correct_left = ctx.rng.random() < 0.5
        left, right = (turn.player_name, decoy.name) if correct_left else (decoy.name, turn.player_name)
        out.append(
            LightingQuestion(
                question=f'Who answered "{_short(turn.response)}"?',
                left_text=left,
                right_text=right,
                correct_choice="left" if correct_left else "right",
                subject_player_id=turn.player_id,
                subject_player_name=turn.player_name,
                evidence=f'{turn.player_name} was asked: "{turn.prompt}"',
            )
        )
    while len(out) < count and len(ctx.players) >= 2:
        a, b = ctx.rng.sample(ctx.players, 2)
        first = min(a.name, b.name)
        out.append(
            LightingQuestion(
                question="Whose name comes first in the alphabet?",
                left_text=a.name,
                right_text=b.name,
                correct_choice="left" if a.name == first else "right",
            )
        )
    return out


class LightingRound(MiniGameModule):
    type = MiniGameType.LIGHTING_ROUND
    name = "Lighting Round"
    max_score = QUESTION_COUNT * POINTS_RIGHT
    puzzle_model = LightingPuzzle
    submission_model = LightingSubmission
    generate_instruction = "Generate the Lighting Round questions as JSON."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        target = ctx.target_player
        roster = "\n".join(
            f'- {p.name} (id: "{p.id}", role: {p.role or "player"}, age: {p.age or "unknown"})' for p in ctx.players
        )
        prior = get_prior_lighting_questions(ctx.turns)
        prior_block = "\n".join(f"- {q}" for q in prior) or "None"
        age = f" (age {target.age})" if target.age else ""
        return f"""You are THE LIGHTING ROUND HOST for Family Glitch.

{QUESTION_COUNT} questions, {SECONDS_PER_QUESTION} seconds each.
Current player: {target.name}{age}, role: {target.role or "player"}

Your job: write {QUESTION_COUNT} timed binary questions, each about a specific family member.
Use the game data to choose questions with a CLEAR correct answer.
Make them "how well do you know them?" guesses, not memory tests.

Players (use these exact IDs when referencing people):
{roster or "No players listed."}

Scores:
{sanitize_for_ai(ctx.scores)}

Full turn history:
{sanitize_for_ai(ctx.turns)}

Prior Lighting Round questions (do NOT repeat or rephrase):
{prior_block}

Rules:
- Each question is binary: two options (left/right). No "neither".
- correctChoice MUST be "left" or "right".
- Options are short (1-3 words); questions under ~12 words.
- Use data from turns to justify each correct answer.
- Avoid asking about {target.name}'s own answers unless needed.

Return ONLY valid JSON:
{{"questions": [{{"question": "Who is most likely to binge true crime?", "leftText": "Mom", "rightText": "Dad", "correctChoice": "left", "subjectPlayerId": "player-id", "subjectPlayerName": "Mom", "evidence": "Mom said she loves true crime podcasts.", "commentaryCorrect": "Nailed it. You know your people.", "commentaryWrong": "Nope. Mom is the true crime fiend.", "commentaryPass": "Strategic pass."}}, ... {QUESTION_COUNT} questions]}}"""

    def parse_puzzle(self, text: str) -> LightingPuzzle | None:
        data = extract_json_object(text)
        if not data:
            return None
        raw = data.get("questions")
        if not isinstance(raw, list):
            # A single question object is still usable
            raw = [data]
        questions, seen = [], set()
        for item in raw:
            q = parse_question(item)
            if q and q.question.lower() not in seen:
                seen.add(q.question.lower())
                questions.append(q)
        if not questions:
            return None
        return LightingPuzzle(questions=questions[:QUESTION_COUNT])

    def fallback_puzzle(self, ctx: MiniGameContext) -> LightingPuzzle:
        return LightingPuzzle(questions=fallback_questions(ctx, QUESTION_COUNT))

    def prepare_puzzle(self, puzzle: LightingPuzzle, ctx: MiniGameContext) -> LightingPuzzle:
        missing = QUESTION_COUNT - len(puzzle.questions)
        if missing <= 0:
            return puzzle
        return LightingPuzzle(
            questions=puzzle.questions + fallback_questions(ctx, missing),
            seconds=puzzle.seconds,
        )

    def public_view(self, puzzle: LightingPuzzle) -> dict:
        return {
            "seconds": puzzle.seconds,
            "questions": [
                {"question": q.question, "leftText": q.left_text, "rightText": q.right_text}
                for q in puzzle.questions
            ],
        }

    def check_submission(self, puzzle: LightingPuzzle, submission: LightingSubmission) -> None:
        if len(submission.choices) != len(puzzle.questions):
            raise ValueError(f"expected {len(puzzle.questions)} choices, got {len(submission.choices)}")

    def score_locally(self, puzzle: LightingPuzzle, submission: LightingSubmission) -> MiniGameResult:
        right = wrong = passed = 0
        for q, choice in zip(puzzle.questions, submission.choices):
            if choice == "pass":
                passed += 1
            elif choice == q.correct_choice:
                right += 1
            else:
                wrong += 1
        net = right * POINTS_RIGHT + wrong * POINTS_WRONG
        max_score = len(puzzle.questions) * POINTS_RIGHT
        if right and not wrong:
            commentary = puzzle.questions[-1].commentary_correct
        elif wrong > right:
            commentary = puzzle.questions[-1].commentary_wrong
        else:
            commentary = f"{right} right, {wrong} wrong, {passed} passed."
        return MiniGameResult(
            score=max(0, net),
            max_score=max_score,
            commentary=commentary,
            correct_answer="Answers: " + ", ".join(q.answer_text() for q in puzzle.questions),
            bonus_info=f"Net {net:+d} ({right} right, {wrong} wrong, {passed} passed)",
        )

    def fallback_result(self, ctx: MiniGameContext, puzzle: LightingPuzzle, submission: LightingSubmission) -> MiniGameResult:
        return self.score_locally(puzzle, submission)
