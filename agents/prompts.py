"""Prompt and context building for the Family Glitch game master."""

from game.engine import current_act, current_round, total_rounds
from game.rules import MiniGameType
from game.state import GameSession, Player
from game.transitions import format_transition_responses

from agents.announcer import calculate_player_stats, format_turn_history, ranked_players
from agents.minigames.base import format_turn_summary
from agents.template_tools import MINI_GAME_TOOL_NAMES


RECENT_TURN_WINDOW = 3

DEFAULT_QUESTION = "What's one thing about this family that would surprise a stranger?"

GAME_MASTER_ROLE = """
You are the Game Master for FAMILY GLITCH, a 15-minute pass-and-play party game where you analyze group dynamics in real time with a snarky, witty personality.
Think game show host meets a therapist who has lost their filter. You ask probing questions that reveal group dynamics, notice patterns and contradictions, and roast the players gently.
"""

QUESTION_RULES = """
## Your Instructions
1. Ask ONE clear question using the best tool for the job. Never combine questions.
2. VARY YOUR TOOLS. If the last question used ask_for_text, pick something different.
3. Keep any commentary to MAX 10 words.
4. Build on previous answers: reference earlier responses, catch contradictions.
5. Write questions directly, under 20 words, without the player's name.

## Question Tools
- ask_for_text: detailed paragraph responses (slow, use sparingly)
- ask_for_list: multiple short answers (fast and fun)
- ask_binary_choice: timed "this or that" decisions (creates pressure)
- ask_word_selection: select words from a grid (quick insights)
- ask_rating: numeric scale ratings (easy comparisons)
- ask_player_vote: vote for another player (reveals group dynamics)
"""

MINI_GAME_GUIDE = {
    MiniGameType.TRIVIA_CHALLENGE: "quiz the current player about something another player said earlier",
    MiniGameType.PERSONALITY_MATCH: "the current player selects every personality word that describes another player",
    MiniGameType.MADLIBS_CHALLENGE: "fill in a silly sentence with words starting with given letters",
    MiniGameType.CRYPTIC_CONNECTION: "find the grid words secretly connected to a hidden mystery word",
    MiniGameType.HARD_TRIVIA: "a tough multiple-choice question on a topic the family cares about",
    MiniGameType.THE_FILTER: "select every item that passes a hidden rule",
    MiniGameType.LIGHTING_ROUND: "five rapid-fire binary questions about family members",
}

ANNOUNCER_ROLE = """
You are THE ANNOUNCER, a dramatic sports commentator and awards show host for Family Glitch.
Deliver the FINAL RESULTS with maximum entertainment value: crown the winner, tease the loser gently,
and give every player a memorable title.
"""

ANNOUNCER_FORMAT = """
## Response Format
Respond with valid JSON only, in this exact shape:
{
  "rankings": [
    {
      "playerId": "<player id>",
      "playerName": "<name>",
      "finalScore": <number>,
      "rank": <1 for the winner>,
      "title": "<fun title like 'The Family Encyclopedia' or 'The Wildcard'>",
      "blurb": "<2-3 sentences about their play style, referencing actual answers>",
      "highlightMoment": "<their funniest or best moment from the game>"
    }
  ],
  "gameSummary": "<1-2 sentences summarizing the whole game vibe>"
}

## Rules
1. Include ALL players, sorted by finalScore (highest first, rank 1).
2. Every title must be unique.
3. Blurbs must reference SPECIFIC answers from the turn history. Be playful, not mean.
4. The winner deserves extra praise; last place gets gentle teasing, never cruelty.
"""


def _describe(player: Player) -> str:
    details = [d for d in (player.role, f"age {player.age}" if player.age else None) if d]
    return f"{player.name} ({', '.join(details)})" if details else player.name


def build_game_context(state: GameSession) -> str:
    """Players, scores and the most recent turns."""
    lines = [
        f"Round {current_round(state) + 1} of {total_rounds(state)}. Act {current_act(state)}.",
        "## Players",
    ]
    lines.extend(f"{i}. {_describe(p)}" for i, p in enumerate(state.players, start=1))
    if any(state.scores.values()):
        lines.append("## Current Scores")
        lines.extend(f"{p.name}: {state.scores.get(p.id, 0):g} points" for p in state.players)
    recent = state.completed_turns()
    if recent:
        count = min(RECENT_TURN_WINDOW, len(recent))
        lines.append(f"## Recent Turns\nLast {count} turn(s):")
        lines.append(format_turn_summary(recent, limit=RECENT_TURN_WINDOW))
    else:
        lines.append("This is a NEW GAME - no previous turns yet.")
    return "\n".join(lines)


def mini_game_section(
    offered: list[MiniGameType],
    subjects: list[Player],
) -> str:
    """Which triggers the host may use this turn and who they may target."""
    if not offered:
        return ""
    lines = [
        "## MINI-GAMES UNLOCKED",
        "Use them to break up the regular flow (maybe once every 4-5 turns). Never the same one twice in a row.",
    ]
    for game_type in offered:
        lines.append(f"- {MINI_GAME_TOOL_NAMES[game_type]}: {MINI_GAME_GUIDE[game_type]}")
    if subjects and (MiniGameType.TRIVIA_CHALLENGE in offered or MiniGameType.PERSONALITY_MATCH in offered):
        lines.append("Available players for trivia and personality match:")
        lines.extend(f"- {p.name} (ID: {p.id})" for p in subjects)
    return "\n".join(lines)


def build_game_master_prompt(
    state: GameSession,
    offered: list[MiniGameType] | None = None,
    subjects: list[Player] | None = None,
) -> str:
    """System prompt for the host: role, game context, tool rules and any unlocked mini-games."""
    parts = [GAME_MASTER_ROLE.strip(), build_game_context(state)]
    insights = format_transition_responses(state)
    if insights:
        parts.append(insights)
    parts.append(QUESTION_RULES.strip())
    section = mini_game_section(offered or [], subjects or [])
    if section:
        parts.append(section)
    return "\n\n".join(parts)


def turn_instructions(player: Player) -> str:
    return (
        f"It is {_describe(player)}'s turn. "
        "Choose exactly one tool to ask them your next question, then reply with one short line of commentary."
    )


def _standing(index: int, player: Player, state: GameSession) -> str:
    stats = calculate_player_stats(player.id, state.turns)
    return (
        f"{index}. {_describe(player)} (ID: {player.id})\n"
        f"   - Final Score: {state.scores.get(player.id, 0):g} points\n"
        f"   - Turns: {stats.total_turns} ({stats.turns_skipped} skipped)\n"
        f"   - Avg Response Time: {stats.avg_response_time:g}s\n"
        f"   - Mini-Games Played: {stats.mini_games_played}"
    )


def build_end_game_prompt(state: GameSession) -> str:
    """Announcer system prompt: ranked players with their stats and the full turn history."""
    standings = "\n\n".join(_standing(i, p, state) for i, p in enumerate(ranked_players(state), start=1))
    history = format_turn_history(state) or "No turns recorded"
    return "\n\n".join([
        ANNOUNCER_ROLE.strip(),
        f"## Players (Ranked by Score)\n{standings}",
        f"## Game\n- Total Rounds: {total_rounds(state)}\n- Players: {len(state.players)}",
        f"## Complete Turn History\n{history}",
        ANNOUNCER_FORMAT.strip(),
    ])
