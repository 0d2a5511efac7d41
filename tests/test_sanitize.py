"""Tests for prompt-data sanitization."""

import json

from agents.sanitize import compress_ids, sanitize_for_ai, strip_timestamps, turn_to_wire
from game.rules import TurnStatus
from game.state import Turn

PLAYER_UUID = "3f2b9c1e-8d7a-4b6c-9e1f-0a2b3c4d5e6f"


def _turn() -> Turn:
    return Turn(
        turn_id="9a8b7c6d-1111-2222-3333-444455556666",
        player_id=PLAYER_UUID,
        player_name="Dad",
        template_type="tpl_text_area",
        prompt="Favorite snack?",
        timestamp="2026-01-01T12:00:00+00:00",
        response="Pretzels",
        status=TurnStatus.COMPLETED,
        score=3,
    )


def test_compress_ids():
    assert compress_ids(f"player {PLAYER_UUID} said hi") == "player 3f2b said hi"
    assert compress_ids("no ids here") == "no ids here"


def test_strip_timestamps_keeps_json_valid():
    text = json.dumps({"a": 1, "timestamp": "2026-01-01", "b": [{"timestamp": "x"}, {"c": 2, "timestamp": "y"}]})
    assert json.loads(strip_timestamps(text)) == {"a": 1, "b": [{}, {"c": 2}]}


def test_turn_to_wire_is_camel_case():
    wire = turn_to_wire(_turn())
    assert wire["turnId"].startswith("9a8b")
    assert wire["status"] == "completed"
    assert wire["score"] == 3
    assert "aiCommentary" not in wire


def test_sanitize_turn_list():
    text = sanitize_for_ai([_turn()])
    data = json.loads(text)
    assert data[0]["playerId"] == "3f2b"
    assert data[0]["turnId"] == "9a8b"
    assert "timestamp" not in data[0]
    assert data[0]["response"] == "Pretzels"


def test_sanitize_plain_data():
    assert json.loads(sanitize_for_ai({PLAYER_UUID: 5})) == {"3f2b": 5}
