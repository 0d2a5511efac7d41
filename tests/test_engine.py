"""Unit tests for the game engine."""

import pytest

from game.engine import (
    start_game,
    add_turn,
    complete_turn,
    skip_turn,
    update_turn_params,
    update_player_score,
    total_rounds,
    current_round,
    current_act,
    is_game_complete,
    next_player,
    pending_turn_for,
    eligibility_context,
)
from game.rules import TemplateType, TurnStatus
from game.state import GameSession, Player


def _make_game() -> GameSession:
    """3 players, no turns yet."""
    players = [
        Player(id="p1", name="Mom", role="Mom", age=45),
        Player(id="p2", name="Dad", role="Dad", age=47),
        Player(id="p3", name="Sam", role="Brother", age=14),
    ]
    return start_game("g1", players)


def _answer(state: GameSession, player_id: str, response="an answer") -> GameSession:
    state, turn_id = add_turn(state, player_id, TemplateType.TEXT_AREA.value, "Question?")
    return complete_turn(state, turn_id, response)


def test_start_game():
    state = _make_game()
    assert state.game_id == "g1"
    assert len(state.players) == 3
    assert state.scores == {"p1": 0, "p2": 0, "p3": 0}
    assert state.turns == []
    assert state.started_at


def test_start_game_duplicate_ids_raises():
    with pytest.raises(ValueError):
        start_game("g1", [Player(id="p1", name="A"), Player(id="p1", name="B")])


def test_add_turn_is_pending_and_pure():
    state = _make_game()
    state2, turn_id = add_turn(state, "p1", TemplateType.TIMED_BINARY.value, "Pizza or Tacos?", {"seconds": 10})
    assert state.turns == []
    turn = state2.get_turn(turn_id)
    assert turn.status == TurnStatus.PENDING
    assert turn.player_name == "Mom"
    assert turn.template_params == {"seconds": 10}
    assert turn.response is None


def test_add_turn_unknown_player_raises():
    with pytest.raises(ValueError):
        add_turn(_make_game(), "nobody", TemplateType.TEXT_AREA.value, "Q?")


def test_complete_turn_only_once():
    state = _make_game()
    state, turn_id = add_turn(state, "p1", TemplateType.TEXT_AREA.value, "Q?")
    state = complete_turn(state, turn_id, "yes", duration=3.5, score=2)
    turn = state.get_turn(turn_id)
    assert turn.status == TurnStatus.COMPLETED
    assert turn.response == "yes"
    assert turn.duration == 3.5
    assert turn.score == 2
    with pytest.raises(ValueError):
        complete_turn(state, turn_id, "again")


def test_complete_unknown_turn_raises():
    with pytest.raises(ValueError):
        complete_turn(_make_game(), "missing", "x")


def test_skip_turn():
    state = _make_game()
    state, turn_id = add_turn(state, "p1", TemplateType.TEXT_AREA.value, "Q?")
    state = skip_turn(state, turn_id)
    assert state.get_turn(turn_id).status == TurnStatus.SKIPPED
    with pytest.raises(ValueError):
        skip_turn(state, turn_id)


def test_update_turn_params_merges():
    state = _make_game()
    state, turn_id = add_turn(state, "p1", "the_filter", "Filter time", {"intro": "Go"})
    state2 = update_turn_params(state, turn_id, puzzle={"rule": "x"})
    assert state2.get_turn(turn_id).template_params == {"intro": "Go", "puzzle": {"rule": "x"}}
    assert state.get_turn(turn_id).template_params == {"intro": "Go"}


def test_update_player_score_is_additive():
    state = _make_game()
    state = update_player_score(state, "p2", 3)
    state = update_player_score(state, "p2", 2.5)
    assert state.scores["p2"] == 5.5
    with pytest.raises(ValueError):
        update_player_score(state, "nobody", 1)


def test_rounds_and_acts():
    state = _make_game()
    assert total_rounds(state) == 12
    assert current_act(state) == 1
    for i in range(4):
        state = _answer(state, ["p1", "p2", "p3"][i % 3])
    assert current_round(state) == 4
    assert current_act(state) == 2
    for i in range(4):
        state = _answer(state, ["p1", "p2", "p3"][i % 3])
    assert current_act(state) == 3
    assert not is_game_complete(state)
    for i in range(4):
        state = _answer(state, ["p1", "p2", "p3"][i % 3])
    assert current_act(state) == 3
    assert is_game_complete(state)


def test_skipped_turns_do_not_advance_act():
    state = _make_game()
    for pid in ["p1", "p2", "p3", "p1", "p2"]:
        state, turn_id = add_turn(state, pid, TemplateType.TEXT_AREA.value, "Q?")
        state = skip_turn(state, turn_id)
    assert current_round(state) == 0
    assert current_act(state) == 1


def test_next_player_rotates():
    state = _make_game()
    assert next_player(state).id == "p1"
    state = _answer(state, "p1")
    assert next_player(state).id == "p2"
    state, turn_id = add_turn(state, "p2", TemplateType.TEXT_AREA.value, "Q?")
    # Still p2 while their turn is open
    assert next_player(state).id == "p2"
    state = skip_turn(state, turn_id)
    assert next_player(state).id == "p3"


def test_pending_turn_for():
    state = _make_game()
    assert pending_turn_for(state, "p1") is None
    state, turn_id = add_turn(state, "p1", TemplateType.TEXT_AREA.value, "Q?")
    assert pending_turn_for(state, "p1").turn_id == turn_id
    assert pending_turn_for(state, "p2") is None


def test_eligibility_context():
    state = _answer(_make_game(), "p2")
    ctx = eligibility_context(state, "p1")
    assert ctx.current_act == 1
    assert ctx.current_player_id == "p1"
    assert ctx.player_ids == ["p1", "p2", "p3"]
    assert len(ctx.turns) == 1
