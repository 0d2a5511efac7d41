"""Tests for the game-master prompt builders."""

from agents.prompts import build_end_game_prompt, build_game_context, build_game_master_prompt
from game.engine import add_turn, complete_turn, skip_turn, start_game, update_player_score
from game.rules import MiniGameType
from game.state import Player
from game.transitions import ACT1_INSIGHTS, add_transition_turn

PLAYERS = [Player(id="p1", name="Mom", role="Mom", age=45), Player(id="p2", name="Dad")]


def test_new_game_context():
    context = build_game_context(start_game("g1", PLAYERS))
    assert "Round 1 of 8. Act 1." in context
    assert "1. Mom (Mom, age 45)" in context
    assert "2. Dad" in context
    assert "NEW GAME" in context
    assert "Current Scores" not in context


def test_context_shows_only_last_three_turns():
    state = start_game("g1", PLAYERS)
    for i in range(5):
        state, turn_id = add_turn(state, "p1", "tpl_text_area", f"Question {i}?")
        state = complete_turn(state, turn_id, f"answer {i}")
    state = update_player_score(state, "p2", 4)
    context = build_game_context(state)
    assert "Question 1?" not in context
    assert "Question 2?" in context
    assert "Question 4?" in context
    assert "Dad: 4 points" in context


def test_mini_game_section_only_when_offered():
    state = start_game("g1", PLAYERS)
    assert "MINI-GAMES UNLOCKED" not in build_game_master_prompt(state)
    prompt = build_game_master_prompt(state, [MiniGameType.TRIVIA_CHALLENGE], [PLAYERS[1]])
    assert "trigger_trivia_challenge" in prompt
    assert "Dad (ID: p2)" in prompt


def test_end_game_prompt_has_stats_and_history():
    state = start_game("g1", PLAYERS)
    state, turn_id = add_turn(state, "p1", "tpl_text_area", "Weirdest thing you ate?")
    state = complete_turn(state, turn_id, "I once ate 40 tacos", duration=7.5)
    state, turn_id = add_turn(state, "p2", "tpl_text_area", "Favorite chore?")
    state = skip_turn(state, turn_id)
    state = update_player_score(state, "p2", 10)

    prompt = build_end_game_prompt(state)
    assert prompt.index("1. Dad (ID: p2)") < prompt.index("2. Mom (Mom, age 45) (ID: p1)")
    assert "- Final Score: 10 points" in prompt
    assert "- Turns: 1 (1 skipped)" in prompt
    assert "- Avg Response Time: 7.5s" in prompt
    assert '1. [tpl_text_area] Mom: "Weirdest thing you ate?" -> I once ate 40 tacos (7.5s)' in prompt
    assert "Favorite chore?" not in prompt
    assert '"rankings"' in prompt


def test_insights_section_once_every_player_answered():
    state = start_game("g1", PLAYERS)
    state, turn_id = add_transition_turn(state, ACT1_INSIGHTS, "p1")
    state = complete_turn(state, turn_id, "Birds, baking, bridges")
    assert "Player Insights" not in build_game_master_prompt(state)

    state, turn_id = add_transition_turn(state, ACT1_INSIGHTS, "p2")
    state = skip_turn(state, turn_id)
    prompt = build_game_master_prompt(state)
    assert "**Mom:**\n- [INTERESTS] Birds, baking, bridges" in prompt
    assert "**Dad:**" not in prompt
