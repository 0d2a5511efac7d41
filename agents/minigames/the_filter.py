"""
The Filter: select every item in a grid that passes a hidden rule.

The Logic Master invents the rule and 9-12 items (some of them tricks), then
scores the player's selection 0-5.
"""

import math

from pydantic import Field

from agents.minigames.base import (
    MiniGameContext,
    MiniGameModule,
    clamp,
    extract_json_object,
    get_all_mini_games_played,
)
from agents.models import MiniGameResult, WireModel
from agents.sanitize import sanitize_for_ai
from game.rules import MiniGameType
from game.state import Turn

MIN_ITEMS = 9
MAX_ITEMS = 12


class FilterItem(WireModel):
    label: str
    is_correct: bool
    is_trick: bool = False
    reason: str = ""


class FilterPuzzle(WireModel):
    rule: str = Field(min_length=1)
    hint: str | None = None
    grid_items: list[FilterItem] = Field(min_length=MIN_ITEMS, max_length=MAX_ITEMS)

    def correct_labels(self) -> list[str]:
        return [item.label for item in self.grid_items if item.is_correct]


class FilterScore(WireModel):
    score: float
    commentary: str = Field(min_length=1)


class FilterSubmission(WireModel):
    selected_items: list[str] = Field(default_factory=list)


FALLBACK_PUZZLE = FilterPuzzle(
    rule="Invented before 1900",
    hint="Think twice about the modern stuff",
    grid_items=[
        FilterItem(label="Bicycle", is_correct=True, reason="1817"),
        FilterItem(label="Lightbulb", is_correct=True, reason="1879"),
        FilterItem(label="Stapler", is_correct=True, reason="1866"),
        FilterItem(label="Matches", is_correct=True, reason="1826"),
        FilterItem(label="Paperclip", is_correct=True, reason="1899 (edge case)"),
        FilterItem(label="Toilet Paper", is_correct=True, reason="1857"),
        FilterItem(label="Sliced Bread", is_correct=False, is_trick=True, reason="1928"),
        FilterItem(label="Oreo Cookies", is_correct=False, is_trick=True, reason="1912"),
        FilterItem(label="Zipper", is_correct=False, reason="1913"),
    ],
)


def get_prior_filter_games(turns: list[Turn]) -> list[dict[str, str]]:
    """Rules already used in earlier Filter turns, so they are not repeated."""
    games = []
    for t in turns or []:
        if t.template_type != MiniGameType.THE_FILTER.value or not t.response:
            continue
        response = t.response if isinstance(t.response, dict) else {}
        params = t.template_params or {}
        puzzle = params.get("puzzle") or {}
        rule = response.get("rule") or params.get("rule") or puzzle.get("rule") or ""
        if rule:
            games.append({"rule": rule, "playerId": t.player_id, "playerName": t.player_name})
    return games


class TheFilter(MiniGameModule):
    type = MiniGameType.THE_FILTER
    name = "The Filter"
    puzzle_model = FilterPuzzle
    score_model = FilterScore
    submission_model = FilterSubmission
    generate_instruction = "Generate a Filter puzzle now."
    score_instruction = "Score this filter attempt now."

    def build_generator_prompt(self, ctx: MiniGameContext) -> str:
        target = ctx.target_player
        who = target.name
        if target.role:
            who += f" ({target.role})"
        if target.age:
            who += f", age {target.age}"

        prior = get_prior_filter_games(ctx.turns)
        if prior:
            prior_block = "RULES ALREADY USED (DO NOT REPEAT OR USE SIMILAR):\n" + "\n".join(
                f'{i}. "{g["rule"]}" (played by {g["playerName"]})' for i, g in enumerate(prior, start=1)
            )
        else:
            prior_block = "No prior Filter games yet."
        played = get_all_mini_games_played(ctx.turns)
        played_block = (
            "Mini-games played this session:\n" + "\n".join(f"- {g['type']} ({g['playerName']})" for g in played)
            if played
            else ""
        )
        history = f"Full game turn history:\n{sanitize_for_ai(ctx.turns)}" if ctx.turns else ""

        return f"""You are THE LOGIC MASTER - creating binary classification puzzles for Family Glitch.

## MISSION
Generate a JSON object for "The Filter" game for {who}.

## PLAYER CONTEXT
- Match difficulty to a {target.age or "typical"}-year-old's knowledge
- Younger players (under 12) need familiar items; teens and adults can handle edge cases

## STEP 1: Create The Rule
Pick a CLEVER, testable constraint that sparks "Wait, really?" moments, e.g.
"Is technically a fruit", "Invented before the telephone (1876)", "Is a palindrome", "Is heavier than water".

## FULL GAME DATA (use for personalization)
{history}

## CRITICAL: NO REPEATS
{prior_block}

{played_block}

## STEP 2: Generate {MIN_ITEMS}-{MAX_ITEMS} Items
- 3-4 obviously TRUE
- 3-4 obviously FALSE
- 2-3 TRICK items (common misconceptions)
- 1-2 EDGE cases

## RESPONSE FORMAT
Respond with valid JSON only:
{{"rule": "The constraint in natural language", "hint": "Optional nudge", "gridItems": [{{"label": "Item name", "isCorrect": true, "isTrick": false, "reason": "Why it passes or fails"}}, ... {MIN_ITEMS}-{MAX_ITEMS} items]}}

Generate ONE UNIQUE puzzle now."""

    def parse_puzzle(self, text: str) -> FilterPuzzle | None:
        data = extract_json_object(text)
        if not data or not data.get("rule") or not isinstance(data.get("gridItems"), list):
            return None
        items = []
        for raw in data["gridItems"][:MAX_ITEMS]:
            raw = raw if isinstance(raw, dict) else {}
            items.append(
                FilterItem(
                    label=str(raw.get("label") or "Item"),
                    is_correct=bool(raw.get("isCorrect")),
                    is_trick=bool(raw.get("isTrick")),
                    reason=str(raw.get("reason") or ""),
                )
            )
        while len(items) < MIN_ITEMS:
            items.append(FilterItem(label="Mystery", is_correct=False, reason="Unknown"))
        return FilterPuzzle(rule=str(data["rule"]), hint=data.get("hint"), grid_items=items)

    def fallback_puzzle(self, ctx: MiniGameContext) -> FilterPuzzle:
        return FALLBACK_PUZZLE.model_copy(deep=True)

    def public_view(self, puzzle: FilterPuzzle) -> dict:
        view = {"items": [item.label for item in puzzle.grid_items]}
        if puzzle.hint:
            view["hint"] = puzzle.hint
        return view

    def check_submission(self, puzzle: FilterPuzzle, submission: FilterSubmission) -> None:
        labels = {item.label for item in puzzle.grid_items}
        unknown = [s for s in submission.selected_items if s not in labels]
        if unknown:
            raise ValueError(f"not in the grid: {', '.join(unknown)}")

    def build_scorer_prompt(self, ctx: MiniGameContext, puzzle: FilterPuzzle, submission: FilterSubmission) -> str:
        return f"""You are THE LOGIC MASTER - scoring {ctx.target_player.name}'s filter attempt.

## THE RULE
"{puzzle.rule}"

## CORRECT ITEMS (that pass the filter)
{", ".join(puzzle.correct_labels())}

## TRICK ITEMS
{", ".join(i.label for i in puzzle.grid_items if i.is_trick) or "None"}

## PLAYER SELECTED
{", ".join(submission.selected_items) or "Nothing"}

## SCORING RUBRIC (0-5 points)
- 5: Perfect or nearly perfect (90-100% accuracy)
- 4: Strong (75-89%)
- 3: Decent (50-74%)
- 2: Struggled but showed some logic (25-49%)
- 1: Got a few right, mostly wrong (10-24%)
- 0: Completely missed the pattern (0-9%)
Weight trick items favorably if the player caught them.

## RESPONSE FORMAT
Return JSON only:
{{"score": 0-5, "commentary": "One witty line about their logic (max 15 words)"}}"""

    def to_result(self, score: FilterScore, puzzle: FilterPuzzle, submission: FilterSubmission) -> MiniGameResult:
        return MiniGameResult(
            score=clamp(score.score, 0, self.max_score),
            max_score=self.max_score,
            commentary=score.commentary,
            correct_answer=f'Rule: "{puzzle.rule}"',
            bonus_info=f"Correct items: {', '.join(puzzle.correct_labels())}",
        )

    def fallback_result(self, ctx: MiniGameContext, puzzle: FilterPuzzle, submission: FilterSubmission) -> MiniGameResult:
        correct = set(puzzle.correct_labels())
        right = sum(1 for s in submission.selected_items if s in correct)
        wrong = len(submission.selected_items) - right
        score = clamp(math.floor((right * 2 - wrong) / len(puzzle.grid_items) * 5 + 0.5), 0, self.max_score)
        return MiniGameResult(
            score=score,
            max_score=self.max_score,
            commentary="The Logic Master nods thoughtfully...",
            correct_answer=f'Rule: "{puzzle.rule}"',
            bonus_info=f"Correct items: {', '.join(puzzle.correct_labels())}",
        )
