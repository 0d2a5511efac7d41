"""Orchestrator tests: game turns driven through the chat loop with scripted models."""

import asyncio
import json
import random

import pytest
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from agents.chat_loop import ChatLoop
from agents.announcer import DEFAULT_CLOSING
from agents.orchestrator import (
    generate_mini_game,
    run_next_question,
    score_mini_game,
    summarize_game,
)
from agents.prompts import DEFAULT_QUESTION
from agents.template_tools import build_default_registry
from game.engine import add_turn, complete_turn, current_round, skip_turn, start_game, update_player_score
from game.rules import MiniGameType, TemplateType, TurnStatus
from game.state import GameSession, Player
from game.transitions import ACT1_INSIGHTS, add_transition_turn

FILTER_PUZZLE = {
    "rule": "Is technically a fruit",
    "hint": "Botany, not cooking",
    "gridItems": [
        {"label": "Tomato", "isCorrect": True, "isTrick": True, "reason": "Has seeds"},
        {"label": "Cucumber", "isCorrect": True, "reason": "Seeds again"},
        {"label": "Pumpkin", "isCorrect": True},
        {"label": "Avocado", "isCorrect": True},
        {"label": "Carrot", "isCorrect": False},
        {"label": "Potato", "isCorrect": False},
        {"label": "Rhubarb", "isCorrect": False, "isTrick": True},
        {"label": "Celery", "isCorrect": False},
        {"label": "Onion", "isCorrect": False},
    ],
}


def _make_game() -> GameSession:
    return start_game("g1", [
        Player(id="p1", name="Mom", role="Mom", age=45),
        Player(id="p2", name="Dad", role="Dad", age=47),
        Player(id="p3", name="Sam", role="Brother", age=14),
    ])


def _play(state: GameSession, player_id: str, response, prompt="Question?") -> GameSession:
    state, turn_id = add_turn(state, player_id, TemplateType.TEXT_AREA.value, prompt)
    return complete_turn(state, turn_id, response)


def _end_of_act_one() -> GameSession:
    state = _make_game()
    state = _play(state, "p1", "Gardening", "What's your favorite hobby?")
    state = _play(state, "p2", "Fishing", "What's your favorite hobby?")
    state = _play(state, "p3", "Minecraft speedruns", "Favorite game?")
    return _play(state, "p1", "Tacos", "Pizza or tacos?")


def _act_two_game() -> GameSession:
    """Act II with the closing questions of Act I skipped by everyone."""
    state = _end_of_act_one()
    for player in state.players:
        state, turn_id = add_transition_turn(state, ACT1_INSIGHTS, player.id)
        state = skip_turn(state, turn_id)
    return state


class Host:
    """Scripted model: calls the given tool when tools are offered, otherwise answers with text."""

    def __init__(self, tool_name=None, tool_args=None, text="", fail=False):
        self.tool_name = tool_name
        self.tool_args = tool_args or {}
        self.text = text
        self.fail = fail
        self.calls = 0
        self.offered = []
        self.system_prompts = []

    def __call__(self, messages, info: AgentInfo) -> ModelResponse:
        self.calls += 1
        if self.fail:
            raise ConnectionError("upstream unavailable")
        self.offered.append([t.name for t in info.function_tools])
        self.system_prompts.append(messages[0].parts[0].content)
        already_called = any(
            isinstance(p, ToolCallPart) for m in messages if isinstance(m, ModelResponse) for p in m.parts
        )
        if self.tool_name and info.function_tools and not already_called:
            return ModelResponse(parts=[
                ToolCallPart(tool_name=self.tool_name, args=json.dumps(self.tool_args), tool_call_id="call_1")
            ])
        return ModelResponse(parts=[TextPart(content=self.text)])

    def loop(self) -> ChatLoop:
        return ChatLoop(build_default_registry(), FunctionModel(self))


def test_next_question_records_pending_turn():
    host = Host(
        "ask_binary_choice",
        {"prompt": "Beach or mountains?", "leftText": "Beach", "rightText": "Mountains", "seconds": 8},
        text="Choose fast.",
    )
    state, turn = asyncio.run(run_next_question(_make_game(), host.loop()))
    assert turn.player_id == "p1"
    assert turn.status == TurnStatus.PENDING
    assert turn.template_type == "tpl_timed_binary"
    assert turn.prompt == "Beach or mountains?"
    assert turn.template_params["leftText"] == "Beach"
    assert turn.template_params["hostLine"] == "Choose fast."
    assert state.get_turn(turn.turn_id) is not None


def test_act_one_offers_only_question_tools():
    host = Host(text="Hmm.")
    asyncio.run(run_next_question(_make_game(), host.loop()))
    assert not any(name.startswith("trigger_") for name in host.offered[0])
    assert len(host.offered[0]) == 6


def test_default_question_without_tool_call():
    host = Host(text="Let's keep it simple.")
    state, turn = asyncio.run(run_next_question(_make_game(), host.loop()))
    assert turn.template_type == TemplateType.TEXT_AREA.value
    assert turn.prompt == DEFAULT_QUESTION
    assert turn.template_params["maxLength"] == 500


def test_pending_turn_is_returned_again():
    host = Host(text="Hi")
    state, first = asyncio.run(run_next_question(_make_game(), host.loop()))
    calls = host.calls
    state2, second = asyncio.run(run_next_question(state, host.loop(), player_id="p1"))
    assert second.turn_id == first.turn_id
    assert host.calls == calls
    assert len(state2.turns) == 1


def test_unknown_player_rejected():
    with pytest.raises(ValueError):
        asyncio.run(run_next_question(_make_game(), Host().loop(), player_id="nobody"))


def test_upstream_failure_propagates_for_questions():
    with pytest.raises(ConnectionError):
        asyncio.run(run_next_question(_make_game(), Host(fail=True).loop()))


def test_trivia_trigger_picks_source_turn():
    state = _act_two_game()
    host = Host(
        "trigger_trivia_challenge",
        {"sourcePlayerId": "p3", "sourcePlayerName": "Sam", "intro": "How well do you know Sam?"},
    )
    state, turn = asyncio.run(run_next_question(state, host.loop(), rng=random.Random(3)))
    assert turn.player_id == "p2"
    assert "trigger_trivia_challenge" in host.offered[0]
    assert turn.template_type == MiniGameType.TRIVIA_CHALLENGE.value
    source = state.get_turn(turn.template_params["sourceTurnId"])
    assert source.player_id == "p3"
    assert source.response == "Minecraft speedruns"
    assert turn.prompt == "How well do you know Sam?"


def test_personality_trigger_about_self_falls_back():
    state = _act_two_game()
    host = Host(
        "trigger_personality_match",
        {"subjectPlayerId": "p2", "subjectPlayerName": "Dad", "intro": "Describe yourself"},
    )
    state, turn = asyncio.run(run_next_question(state, host.loop()))
    assert turn.player_id == "p2"
    assert turn.template_type == TemplateType.TEXT_AREA.value
    assert turn.prompt == DEFAULT_QUESTION


def test_filter_generate_and_score():
    state, turn_id = add_turn(_make_game(), "p2", MiniGameType.THE_FILTER.value, "Filter time")

    generator = Host(text=f"Here it is:\n```json\n{json.dumps(FILTER_PUZZLE)}\n```")
    state, public = asyncio.run(generate_mini_game(state, turn_id, generator.loop()))
    assert public["items"][0] == "Tomato"
    assert "rule" not in public
    assert state.get_turn(turn_id).template_params["puzzle"]["rule"] == "Is technically a fruit"
    # Tools are never offered to the generator
    assert generator.offered == [[]]

    # A second request returns the stored puzzle without another model call
    state, again = asyncio.run(generate_mini_game(state, turn_id, generator.loop()))
    assert again == public
    assert generator.calls == 1

    scorer = Host(text='{"score": 4, "commentary": "Sharp botanist."}')
    state, result = asyncio.run(
        score_mini_game(state, turn_id, {"selectedItems": ["Tomato", "Cucumber", "Carrot"]}, scorer.loop(), duration=12)
    )
    assert result.score == 4
    assert result.max_score == 5
    assert result.correct_answer == 'Rule: "Is technically a fruit"'
    turn = state.get_turn(turn_id)
    assert turn.status == TurnStatus.COMPLETED
    assert turn.score == 4
    assert turn.ai_commentary == "Sharp botanist."
    assert turn.response == {"selectedItems": ["Tomato", "Cucumber", "Carrot"]}
    assert state.scores["p2"] == 4


def test_generator_failure_uses_fallback_puzzle():
    state, turn_id = add_turn(_make_game(), "p1", MiniGameType.CRYPTIC_CONNECTION.value, "Riddle")
    state, public = asyncio.run(generate_mini_game(state, turn_id, Host(fail=True).loop()))
    assert len(public["words"]) == 25
    assert state.get_turn(turn_id).template_params["puzzle"]["mysteryWord"] == "BAR"


def test_scorer_failure_uses_fallback_result():
    state, turn_id = add_turn(_make_game(), "p1", MiniGameType.CRYPTIC_CONNECTION.value, "Riddle")
    state, _ = asyncio.run(generate_mini_game(state, turn_id, Host(text="not json").loop()))
    state, result = asyncio.run(
        score_mini_game(state, turn_id, {"selectedWords": ["mars", "exam", "gold", "code"]}, Host(fail=True).loop())
    )
    assert result.score == 2
    assert result.commentary == "The Fuzzy Judge considers your choices..."
    assert state.scores["p1"] == 2


def test_lighting_round_scored_without_model():
    state = _play(_play(_make_game(), "p2", "Fishing"), "p3", "Minecraft")
    state, turn_id = add_turn(state, "p1", MiniGameType.LIGHTING_ROUND.value, "Lighting Round incoming!")
    state, public = asyncio.run(generate_mini_game(state, turn_id, Host(text="{}").loop(), rng=random.Random(5)))
    assert len(public["questions"]) == 5

    scorer = Host(text="should not be called")
    state, result = asyncio.run(score_mini_game(state, turn_id, {"choices": ["pass"] * 5}, scorer.loop()))
    assert scorer.calls == 0
    assert result.score == 0
    assert result.max_score == 25
    assert result.bonus_info == "Net +0 (0 right, 0 wrong, 5 passed)"


def test_bad_submission_rejected():
    state, turn_id = add_turn(_make_game(), "p1", MiniGameType.THE_FILTER.value, "Filter time")
    state, _ = asyncio.run(generate_mini_game(state, turn_id, Host(text=json.dumps(FILTER_PUZZLE)).loop()))
    with pytest.raises(ValueError):
        asyncio.run(score_mini_game(state, turn_id, {"selectedItems": ["Banana"]}, Host().loop()))
    with pytest.raises(ValueError):
        asyncio.run(score_mini_game(state, turn_id, {"selectedItems": "Tomato"}, Host().loop()))


def test_score_before_generate_rejected():
    state, turn_id = add_turn(_make_game(), "p1", MiniGameType.THE_FILTER.value, "Filter time")
    with pytest.raises(ValueError):
        asyncio.run(score_mini_game(state, turn_id, {"selectedItems": []}, Host().loop()))


def test_regular_turn_is_not_a_mini_game():
    state, turn_id = add_turn(_make_game(), "p1", TemplateType.TEXT_AREA.value, "Q?")
    with pytest.raises(ValueError):
        asyncio.run(generate_mini_game(state, turn_id, Host().loop()))


def test_locked_mini_game_trigger_is_refused():
    host = Host("trigger_madlibs_challenge", {"intro": "Mad Libs!"}, text="Fine, a normal one.")
    state, turn = asyncio.run(run_next_question(_make_game(), host.loop()))
    assert host.calls == 2
    assert turn.template_type == TemplateType.TEXT_AREA.value
    assert turn.prompt == DEFAULT_QUESTION
    assert [t.template_type for t in state.turns] == [TemplateType.TEXT_AREA.value]


def test_act_one_closing_questions_for_every_player():
    state = _end_of_act_one()
    host = Host(text="should not be asked")

    state, first = asyncio.run(run_next_question(state, host.loop()))
    assert first.player_id == "p1"
    assert first.transition_event == "act1_insights"
    assert first.prompt == "What 3 subjects could you discuss endlessly and never tire of?"
    assert first.template_params["category"] == "interests"
    assert first.template_params["banner"] == "Act 1 Complete"
    assert first.template_params["hostLine"].endswith("2 people to go.")
    state = complete_turn(state, first.turn_id, "Gardening, jazz and rockets")

    with pytest.raises(ValueError):
        asyncio.run(run_next_question(state, host.loop(), player_id="p1"))

    state, second = asyncio.run(run_next_question(state, host.loop()))
    assert second.player_id == "p2"
    assert second.template_params["category"] == "learning"
    state = complete_turn(state, second.turn_id, "Octopuses have three hearts")

    state, third = asyncio.run(run_next_question(state, host.loop()))
    assert third.player_id == "p3"
    # Sam is 14, so the teen wording is used
    assert third.prompt == "What's a fun fact about a family member that always makes you smile?"
    assert third.template_params["hostLine"] == "Time to unlock the real games..."
    state = complete_turn(state, third.turn_id, "Dad sings to the dog")
    assert host.calls == 0
    assert current_round(state) == 4

    host = Host(text="Back to it.")
    state, turn = asyncio.run(run_next_question(state, host.loop()))
    assert turn.player_id == "p2"
    assert turn.transition_event is None
    system = host.system_prompts[0]
    assert "Player Insights (Collected at End of Act 1)" in system
    assert "- [INTERESTS] Gardening, jazz and rockets" in system
    assert "- [FAMILY_FACT] Dad sings to the dog" in system


def test_scoring_a_finished_mini_game_skips_the_model():
    state, turn_id = add_turn(_make_game(), "p2", MiniGameType.THE_FILTER.value, "Filter time")
    state, _ = asyncio.run(generate_mini_game(state, turn_id, Host(text=json.dumps(FILTER_PUZZLE)).loop()))
    state, _ = asyncio.run(
        score_mini_game(state, turn_id, {"selectedItems": ["Tomato"]}, Host(text='{"score": 1, "commentary": "Meh."}').loop())
    )
    scorer = Host(text='{"score": 5, "commentary": "Again?"}')
    with pytest.raises(ValueError):
        asyncio.run(score_mini_game(state, turn_id, {"selectedItems": ["Tomato"]}, scorer.loop()))
    assert scorer.calls == 0
    assert state.scores["p2"] == 1


def test_summarize_game_parses_rankings():
    state = _act_two_game()
    reply = {
        "rankings": [
            {"playerId": "p3", "playerName": "Sam", "finalScore": 99, "rank": 1, "title": "The Speedrunner",
             "blurb": "Minecraft all the way down.", "highlightMoment": "Minecraft speedruns"},
            {"playerId": "p1", "playerName": "Mom", "finalScore": 0, "rank": 2, "title": "The Gardener",
             "blurb": "Grew on everyone."},
            {"playerId": "ghost", "playerName": "Nobody", "finalScore": 0, "rank": 3, "title": "Who?", "blurb": "?"},
        ],
        "gameSummary": "  Chaos, tacos and fish.  ",
    }
    result = asyncio.run(summarize_game(state, Host(text=f"```json\n{json.dumps(reply)}\n```").loop()))
    assert [r.player_id for r in result.rankings] == ["p1", "p2", "p3"]
    assert [r.rank for r in result.rankings] == [1, 2, 3]
    assert result.rankings[0].title == "The Gardener"
    # Dad was left out by the model and gets a stats-based entry
    assert result.rankings[1].title == "The Dark Horse"
    # Scores come from the game, not the model
    assert result.rankings[2].final_score == 0
    assert result.rankings[2].stats.total_turns == 2
    assert result.game_summary == "Chaos, tacos and fish."


def test_summarize_game_falls_back_to_scores():
    state = _act_two_game()
    state, turn_id = add_turn(state, "p3", MiniGameType.LIGHTING_ROUND.value, "Go!")
    state = complete_turn(state, turn_id, {"choices": []}, duration=4, score=10)
    state = update_player_score(state, "p3", 10)

    result = asyncio.run(summarize_game(state, Host(fail=True).loop()))
    assert result.game_summary == DEFAULT_CLOSING
    winner, middle, last = result.rankings
    assert (winner.player_name, winner.rank, winner.title) == ("Sam", 1, "The Family Champion")
    assert winner.stats.mini_games_played == 1
    assert winner.stats.avg_response_time == 4
    assert winner.highlight_moment == '"Favorite game?" -> Minecraft speedruns'
    assert middle.title == "The Dark Horse"
    assert last.title == "The Participation Trophy"
    assert last.player_name == "Dad"
    assert last.stats.turns_skipped == 1
    assert asyncio.run(summarize_game(state, Host(text="Sam wins!").loop())).rankings[0].title == "The Family Champion"
