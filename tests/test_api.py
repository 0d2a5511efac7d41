"""API route tests."""

import json
from unittest.mock import patch

from fastapi.testclient import TestClient
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.function import FunctionModel

from agents.chat_loop import ChatLoop
from api.game_store import create as store_create, get_state as store_get_state, update as store_update
from api.main import app, get_chat_loop, registry
from game.engine import add_turn, complete_turn, start_game, update_player_score
from game.rules import MiniGameType
from game.state import Player

client = TestClient(app)

PLAYERS = [
    {"name": "Mom", "role": "Mom", "age": 45},
    {"name": "Dad", "role": "Dad", "age": 47},
    {"name": "Sam", "role": "Brother", "age": 14},
]

BINARY_CALL = ToolCallPart(
    tool_name="ask_binary_choice",
    args=json.dumps({"prompt": "Beach or mountains?", "leftText": "Beach", "rightText": "Mountains", "seconds": 8}),
    tool_call_id="call_1",
)

FILTER_PUZZLE = {
    "rule": "Is technically a fruit",
    "gridItems": [{"label": label, "isCorrect": label in ("Tomato", "Pumpkin", "Avocado")} for label in
                  ["Tomato", "Pumpkin", "Avocado", "Carrot", "Potato", "Celery", "Onion", "Leek", "Kale"]],
}


def _loop(*responses: ModelResponse) -> ChatLoop:
    """Chat loop over a model that replays responses, repeating the last one."""
    seen = []

    def fn(messages, info):
        seen.append(1)
        return responses[min(len(seen), len(responses)) - 1]

    return ChatLoop(registry, FunctionModel(fn))


def _with_loop(loop):
    return patch.dict(app.dependency_overrides, {get_chat_loop: lambda: loop})


def _text(content: str) -> ModelResponse:
    return ModelResponse(parts=[TextPart(content=content)])


def _create_game(players=PLAYERS) -> str:
    r = client.post("/games", json={"players": players})
    assert r.status_code == 200
    return r.json()["game_id"]


def _seed_mini_game(game_type: MiniGameType) -> tuple[str, str]:
    """A stored game whose first player has a pending mini-game turn."""
    game_id = f"seeded-{game_type.value}"
    state = start_game(game_id, [Player(id="a", name="Ana"), Player(id="b", name="Ben")])
    state, turn_id = add_turn(state, "a", game_type.value, "Mini-game!")
    store_create(game_id, state)
    return game_id, turn_id


def test_health(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-1234567890")
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["timestamp"]
    assert data["environment"] == {"has_api_key": True, "api_key_prefix": "sk-test"}
    assert len(data["tools"]) == 13
    assert "ask_binary_choice" in data["tools"]
    assert "sk-test-1234567890" not in r.text


def test_health_without_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    data = client.get("/health").json()
    assert data["environment"] == {"has_api_key": False, "api_key_prefix": "not set"}


def test_chat_requires_messages():
    r = client.post("/chat", json={"messages": []})
    assert r.status_code == 400
    assert r.json() == {"error": "Messages array is required"}
    r = client.post("/chat", json={})
    assert r.status_code == 400


def test_chat_without_client():
    r = client.post("/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "Chat client not initialized"}


def test_chat_text_answer():
    with _with_loop(_loop(_text("Hello, family."))):
        r = client.post("/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert r.status_code == 200
    data = r.json()
    assert data["text"] == "Hello, family."
    assert data["template"] is None
    assert data["tool_results"] == []


def test_chat_tool_call_returns_template():
    with _with_loop(_loop(ModelResponse(parts=[BINARY_CALL]), _text("Pick one."))):
        r = client.post("/chat", json={
            "messages": [{"role": "system", "content": "Host"}, {"role": "user", "content": "Next question"}],
            "config": {"temperature": 0.2, "tools": ["ask_binary_choice"]},
        })
    assert r.status_code == 200
    data = r.json()
    assert data["template"]["templateType"] == "tpl_timed_binary"
    assert data["template"]["params"]["leftText"] == "Beach"
    assert data["tool_results"][0]["name"] == "ask_binary_choice"
    assert data["tool_results"][0]["error"] is None


def test_chat_max_iterations():
    with _with_loop(_loop(ModelResponse(parts=[BINARY_CALL]))):
        r = client.post("/chat", json={"messages": [{"role": "user", "content": "Loop forever"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "Max tool execution iterations reached"}


def test_chat_rejects_broken_transcript():
    messages = [
        {"role": "user", "content": "Go"},
        {"role": "tool", "tool_call_id": "call_9", "content": "{}"},
    ]
    with _with_loop(_loop(_text("unused"))):
        r = client.post("/chat", json={"messages": messages})
    assert r.status_code == 400
    assert "error" in r.json()


def test_chat_upstream_failure():
    def fn(messages, info):
        raise ConnectionError("rate limited")

    with _with_loop(ChatLoop(registry, FunctionModel(fn))):
        r = client.post("/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "rate limited"}


def test_create_and_get_game():
    gid = _create_game()
    r = client.get(f"/games/{gid}")
    assert r.status_code == 200
    state = r.json()
    assert state["game_id"] == gid
    assert [p["name"] for p in state["players"]] == ["Mom", "Dad", "Sam"]
    assert all(p["score"] == 0 for p in state["players"])
    assert state["total_rounds"] == 12
    assert state["current_round"] == 0
    assert state["current_act"] == 1
    assert state["is_complete"] is False
    assert state["next_player_id"] == state["players"][0]["id"]
    assert gid in client.get("/games").json()


def test_create_game_validation():
    assert client.post("/games", json={"players": PLAYERS[:1]}).status_code == 422
    assert client.post("/games", json={"players": [{"name": f"P{i}"} for i in range(11)]}).status_code == 422
    assert client.post("/games", json={"players": [{"name": "   "}, {"name": "Dad"}]}).status_code == 422
    assert client.post("/games", json={"players": [{"name": "Mom", "age": 0}, {"name": "Dad"}]}).status_code == 422


def test_get_game_404():
    r = client.get("/games/nonexistent-id")
    assert r.status_code == 404
    assert r.json()["detail"] == "Game not found"


def test_eligibility_act_one():
    gid = _create_game()
    player_id = client.get(f"/games/{gid}").json()["players"][0]["id"]
    r = client.get(f"/games/{gid}/eligibility", params={"player_id": player_id})
    assert r.status_code == 200
    data = r.json()
    assert data["current_act"] == 1
    assert data["offered"] == []
    assert set(data["games"]) == {t.value for t in MiniGameType}
    assert data["games"]["trivia_challenge"]["eligible"] is False
    assert data["games"]["trivia_challenge"]["reason"] == "Trivia challenges unlock in Act II"
    assert client.get(f"/games/{gid}/eligibility", params={"player_id": "nobody"}).status_code == 404


def test_next_turn_without_client():
    gid = _create_game()
    r = client.post(f"/games/{gid}/turns/next", json={})
    assert r.status_code == 500
    assert r.json()["detail"] == "Chat client not initialized"


def test_next_then_complete():
    gid = _create_game()
    with _with_loop(_loop(ModelResponse(parts=[BINARY_CALL]), _text("Quick!"))):
        r = client.post(f"/games/{gid}/turns/next", json={})
    assert r.status_code == 200
    turn = r.json()
    assert turn["template_type"] == "tpl_timed_binary"
    assert turn["status"] == "pending"
    assert turn["template_params"]["hostLine"] == "Quick!"

    r = client.post(f"/games/{gid}/turns/{turn['turn_id']}/complete", json={"response": "Beach", "duration": 2.5})
    assert r.status_code == 200
    state = r.json()
    assert state["turns"][0]["status"] == "completed"
    assert state["turns"][0]["response"] == "Beach"
    assert state["current_round"] == 1
    assert state["next_player_id"] == state["players"][1]["id"]

    again = client.post(f"/games/{gid}/turns/{turn['turn_id']}/complete", json={"response": "Mountains"})
    assert again.status_code == 400


def test_next_turn_for_unknown_player():
    gid = _create_game()
    with _with_loop(_loop(_text("hi"))):
        r = client.post(f"/games/{gid}/turns/next", json={"player_id": "nobody"})
    assert r.status_code == 404


def test_complete_with_score_updates_scoreboard():
    gid = _create_game()
    with _with_loop(_loop(_text("Simple one."))):
        turn = client.post(f"/games/{gid}/turns/next").json()
    r = client.post(f"/games/{gid}/turns/{turn['turn_id']}/complete", json={"response": "Pretzels", "score": 3})
    assert r.json()["players"][0]["score"] == 3


def test_skip_turn():
    gid = _create_game()
    with _with_loop(_loop(_text("Simple one."))):
        turn = client.post(f"/games/{gid}/turns/next").json()
    r = client.post(f"/games/{gid}/turns/{turn['turn_id']}/skip")
    assert r.status_code == 200
    state = r.json()
    assert state["turns"][0]["status"] == "skipped"
    assert state["current_round"] == 0
    assert state["next_player_id"] == state["players"][1]["id"]
    assert client.post(f"/games/{gid}/turns/missing/skip").status_code == 404


def test_mini_game_generate_and_score():
    game_id, turn_id = _seed_mini_game(MiniGameType.THE_FILTER)
    with _with_loop(_loop(_text(json.dumps(FILTER_PUZZLE)))):
        r = client.post(f"/games/{game_id}/turns/{turn_id}/minigame/generate")
    assert r.status_code == 200
    data = r.json()
    assert data["game_type"] == "the_filter"
    assert data["puzzle"]["items"][0] == "Tomato"
    assert "rule" not in data["puzzle"]

    # Pending turns never expose the answers
    turn = client.get(f"/games/{game_id}").json()["turns"][0]
    assert "gridItems" not in turn["template_params"]["puzzle"]

    blocked = client.post(f"/games/{game_id}/turns/{turn_id}/complete", json={"response": "Tomato"})
    assert blocked.status_code == 400

    with _with_loop(_loop(_text("unused"))):
        bad = client.post(
            f"/games/{game_id}/turns/{turn_id}/minigame/score",
            json={"submission": {"selectedItems": ["Banana"]}},
        )
    assert bad.status_code == 400

    with _with_loop(_loop(_text('{"score": 3, "commentary": "Decent botany."}'))):
        r = client.post(
            f"/games/{game_id}/turns/{turn_id}/minigame/score",
            json={"submission": {"selectedItems": ["Tomato", "Carrot"]}, "duration": 9},
        )
    assert r.status_code == 200
    data = r.json()
    assert data["result"]["score"] == 3
    assert data["result"]["maxScore"] == 5
    assert data["result"]["commentary"] == "Decent botany."
    assert data["total_score"] == 3
    assert store_get_state(game_id).get_turn(turn_id).status.value == "completed"


def test_generate_on_regular_turn():
    game_id, _ = _seed_mini_game(MiniGameType.HARD_TRIVIA)
    state = store_get_state(game_id)
    state, turn_id = add_turn(state, "b", "tpl_text_area", "Favorite snack?")
    store_update(game_id, state)
    with _with_loop(_loop(_text("unused"))):
        r = client.post(f"/games/{game_id}/turns/{turn_id}/minigame/generate")
    assert r.status_code == 400
    assert r.json()["detail"] == "Turn is not a mini-game"


def test_summary_requires_finished_game():
    gid = _create_game()
    r = client.post(f"/games/{gid}/summary")
    assert r.status_code == 400
    assert r.json()["detail"] == "Game is not complete yet"


def test_summary_is_cached():
    state = start_game("finished", [Player(id="a", name="Ana"), Player(id="b", name="Ben")])
    for i in range(8):
        state, turn_id = add_turn(state, "ab"[i % 2], "tpl_text_area", "Q?")
        state = complete_turn(state, turn_id, "answer")
    state = update_player_score(state, "b", 3)
    store_create("finished", state)

    announcement = {
        "rankings": [
            {"playerId": "b", "playerName": "Ben", "finalScore": 3, "rank": 1, "title": "The Closer", "blurb": "Steady."},
            {"playerId": "a", "playerName": "Ana", "finalScore": 0, "rank": 2, "title": "The Wildcard", "blurb": "Bold."},
        ],
        "gameSummary": "Ben takes the crown of chaos.",
    }
    with _with_loop(_loop(_text(json.dumps(announcement)))):
        r = client.post("/games/finished/summary")
    assert r.status_code == 200
    data = r.json()
    assert data["summary"] == "Ben takes the crown of chaos."
    assert [(p["playerName"], p["rank"], p["title"]) for p in data["rankings"]] == [
        ("Ben", 1, "The Closer"),
        ("Ana", 2, "The Wildcard"),
    ]
    assert data["rankings"][0]["stats"]["totalTurns"] == 4

    with _with_loop(_loop(_text("A different closing."))):
        again = client.post("/games/finished/summary")
    assert again.json() == data
    state_view = client.get("/games/finished").json()
    assert state_view["is_complete"] is True
    assert state_view["summary"] == "Ben takes the crown of chaos."
    assert state_view["rankings"][0]["playerName"] == "Ben"
    assert client.post("/games/finished/turns/next", json={}).status_code == 400


def test_act_transition_questions_skip_the_host():
    game_id = "transition"
    state = start_game(game_id, [Player(id="a", name="Ana", age=30), Player(id="b", name="Ben", age=10)])
    for i in range(3):
        state, turn_id = add_turn(state, "ab"[i % 2], "tpl_text_area", "Q?")
        state = complete_turn(state, turn_id, "answer")
    store_create(game_id, state)

    view = client.get(f"/games/{game_id}").json()
    assert view["current_act"] == 2
    assert view["transition_event"] == "act1_insights"
    assert view["next_player_id"] == "a"

    with _with_loop(_loop(_text("unused"))):
        turn = client.post(f"/games/{game_id}/turns/next", json={}).json()
    assert turn["player_id"] == "a"
    assert turn["template_params"]["transitionEvent"] == "act1_insights"
    view = client.post(f"/games/{game_id}/turns/{turn['turn_id']}/complete", json={"response": "Kites"}).json()
    assert view["current_round"] == 3
    assert view["next_player_id"] == "b"

    with _with_loop(_loop(_text("unused"))):
        repeat = client.post(f"/games/{game_id}/turns/next", json={"player_id": "a"})
    assert repeat.status_code == 400
