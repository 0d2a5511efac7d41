"""
Personality Match: pick every word in a 4x4 grid that describes another player.

The Analyst writes the grid from what the game has learned about the subject,
then scores the selection 0-5 against that evidence.
"""

import json

from pydantic import Field

from agents.minigames.base import (
    TECHNICAL_DIFFICULTIES_SCORE,
    MiniGameContext,
    MiniGameModule,
    clamp,
    extract_json_object,
    format_turn_summary,
)
from agents.models import MiniGameResult, WireModel
from game.rules import MiniGameType, TurnStatus
from game.state import Turn

GRID_WORDS = 16

DEFAULT_WORDS = [
    "Funny", "Stubborn", "Generous", "Dramatic",
    "Curious", "Lazy", "Loyal", "Competitive",
    "Calm", "Messy", "Creative", "Bossy",
    "Patient", "Sneaky", "Brave", "Forgetful",
]


class PersonalityWords(WireModel):
    words: list[str] = Field(min_length=GRID_WORDS, max_length=GRID_WORDS)


class PersonalityScore(WireModel):
    score: float
    commentary: str = Field(min_length=1)
    best_pick: str | None = None
    worst_pick: str | None = None
    insight: str | None = None


class PersonalitySubmission(WireModel):
    selected_words: list[str] = Field(min_length=1)


def get_turns_about_player(turns: list[Turn], player_id: str, player_name: str) -> list[Turn]:
    """Turns the player answered, plus any turn whose response mentions them."""
    out = []
    for t in turns or []:
        if t.player_id == player_id and t.status == TurnStatus.COMPLETED:
            out.append(t)
            continue
        if t.response:
            text = json.dumps(t.response, default=str).lower()
            if player_name.lower() in text or player_id in text:
                out.append(t)
    return out


class PersonalityMatch(MiniGameModule):
    type = MiniGameType.PERSONALITY_MATCH
    name = "Personality Match"
    puzzle_model = PersonalityWords
    score_model = PersonalityScore
    submission_model = PersonalitySubmission
    generate_instruction = "Generate the personality words now."
    score_instruction = "Score these personality word selections now."

    def _subject(self, ctx: MiniGameContext):
        subject = ctx.subject_player
        name = subject.name if subject else ctx.params.get("subjectPlayerName") or "Player"
        turns = get_turns_about_player(ctx.turns, subject.id, subject.name) if subject else []
        return subject, name, turns

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        subject, name, turns = self._subject(ctx)
        details = []
        if subject and subject.role:
            details.append(subject.role)
        if subject and subject.age:
            details.append(f"age {subject.age}")
        who = f"{name} ({', '.join(details)})" if details else name
        return f"""You are THE ANALYST - generating personality words for a Family Glitch challenge.

## MISSION
Generate exactly {GRID_WORDS} personality words for a 4x4 grid about {who}.

## WHAT WE KNOW ABOUT {name.upper()}
{format_turn_summary(turns) or "No specific game data yet - use general personality words."}

## WORD RULES
1. EXACTLY {GRID_WORDS} words, single-word traits only
2. Mix positive, negative, and neutral
3. Include at least 4 strong fits based on evidence above
4. Include 4 clear decoys that do NOT fit
5. The rest should be plausible but debatable
6. Keep it family-friendly and understandable to all ages
7. No names, no phrases, no repeats

## RESPONSE FORMAT
Respond with valid JSON:
{{"words": ["word1", "word2", ... exactly {GRID_WORDS} words]}}"""

    def parse_puzzle(self, text: str) -> PersonalityWords | None:
        data = extract_json_object(text)
        if not data or not isinstance(data.get("words"), list) or len(data["words"]) < GRID_WORDS:
            return None
        return PersonalityWords(words=[str(w).strip() for w in data["words"][:GRID_WORDS]])

    def fallback_puzzle(self, ctx: MiniGameContext) -> PersonalityWords:
        words = list(DEFAULT_WORDS)
        ctx.rng.shuffle(words)
        return PersonalityWords(words=words)

    def check_submission(self, puzzle: PersonalityWords, submission: PersonalitySubmission) -> None:
        unknown = [w for w in submission.selected_words if w not in puzzle.words]
        if unknown:
            raise ValueError(f"not in the grid: {', '.join(unknown)}")

    def build_scorer_prompt(
        self, ctx: MiniGameContext, puzzle: PersonalityWords, submission: PersonalitySubmission
    ) -> str:
        _, name, turns = self._subject(ctx)
        selected = "\n".join(f"- {w}" for w in submission.selected_words)
        return f"""You are THE ANALYST - a perceptive, witty personality judge for Family Glitch.

## MISSION
Score how well the selected words match {name} based on game evidence.

## THE GRID
{", ".join(puzzle.words)}

## WHAT WAS SELECTED
{selected}

## EVIDENCE
{format_turn_summary(turns) or "No specific data yet - use a cautious, general read."}

## SCORING RULES (0-5)
5 = nails it
4 = strong
3 = mixed
2 = weak
1 = mostly wrong
0 = random

## TONE
- Insightful and witty
- Call out obvious misses
- Max 10 words for commentary

## RESPONSE FORMAT
Respond with valid JSON:
{{"score": <0-5>, "commentary": "<max 10 words>", "bestPick": "<most accurate word>", "worstPick": "<least accurate word, if any>", "insight": "<optional one-line insight>"}}"""

    def to_result(
        self, score: PersonalityScore, puzzle: PersonalityWords, submission: PersonalitySubmission
    ) -> MiniGameResult:
        correct_answer = None
        if score.best_pick:
            correct_answer = f"Best pick: {score.best_pick}"
            if score.worst_pick:
                correct_answer += f", Worst: {score.worst_pick}"
        return MiniGameResult(
            score=clamp(score.score, 0, self.max_score),
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=correct_answer,
            bonus_info=score.insight,
        )

    def fallback_result(
        self, ctx: MiniGameContext, puzzle: PersonalityWords, submission: PersonalitySubmission
    ) -> MiniGameResult:
        return MiniGameResult(
            score=TECHNICAL_DIFFICULTIES_SCORE,
            max_score=self.max_score,
            commentary="Technical difficulties! Points for trying.",
        )
