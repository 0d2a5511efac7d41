"""Tests for transcript conversion and tool-call pairing."""

import pytest
from pydantic_ai.messages import ModelRequest, ModelResponse, ToolCallPart, ToolReturnPart

from agents.errors import TranscriptError
from agents.messages import ChatMessage, ToolCall, to_model_messages


def _assistant_calling(*ids: str) -> ChatMessage:
    return ChatMessage(
        role="assistant",
        tool_calls=[ToolCall(id=i, name="ask_for_text", arguments='{"prompt": "Q?"}') for i in ids],
    )


def test_system_and_user_grouped_into_one_request():
    history = to_model_messages([
        ChatMessage(role="system", content="You are the host."),
        ChatMessage(role="user", content="Ask a question"),
    ])
    assert len(history) == 1
    assert isinstance(history[0], ModelRequest)
    assert [p.part_kind for p in history[0].parts] == ["system-prompt", "user-prompt"]


def test_tool_round_trip():
    history = to_model_messages([
        ChatMessage(role="user", content="Go"),
        _assistant_calling("c1", "c2"),
        ChatMessage(role="tool", tool_call_id="c1", content='{"ok": true}'),
        ChatMessage(role="tool", tool_call_id="c2", content='{"ok": true}'),
        ChatMessage(role="assistant", content="Done"),
    ])
    assert [type(m) for m in history] == [ModelRequest, ModelResponse, ModelRequest, ModelResponse]
    calls = [p for p in history[1].parts if isinstance(p, ToolCallPart)]
    assert [c.tool_call_id for c in calls] == ["c1", "c2"]
    returns = history[2].parts
    assert all(isinstance(p, ToolReturnPart) for p in returns)
    assert [p.tool_name for p in returns] == ["ask_for_text", "ask_for_text"]


def test_tool_message_without_open_call():
    with pytest.raises(TranscriptError):
        to_model_messages([
            ChatMessage(role="user", content="Go"),
            ChatMessage(role="tool", tool_call_id="c9", content="{}"),
        ])


def test_tool_message_without_call_id():
    with pytest.raises(TranscriptError):
        to_model_messages([_assistant_calling("c1"), ChatMessage(role="tool", content="{}")])


def test_call_answered_twice():
    with pytest.raises(TranscriptError, match="answered twice"):
        to_model_messages([
            _assistant_calling("c1"),
            ChatMessage(role="tool", tool_call_id="c1", content="{}"),
            ChatMessage(role="tool", tool_call_id="c1", content="{}"),
        ])


def test_user_message_while_calls_pending():
    with pytest.raises(TranscriptError, match="unanswered"):
        to_model_messages([
            _assistant_calling("c1"),
            ChatMessage(role="user", content="Hello?"),
        ])


def test_unanswered_calls_at_end():
    with pytest.raises(TranscriptError):
        to_model_messages([ChatMessage(role="user", content="Go"), _assistant_calling("c1")])


def test_tool_calls_only_on_assistant_messages():
    with pytest.raises(TranscriptError):
        to_model_messages([
            ChatMessage(role="user", content="Go", tool_calls=[ToolCall(id="c1", name="ask_for_text")]),
        ])


def test_duplicate_call_id():
    with pytest.raises(TranscriptError, match="duplicate"):
        to_model_messages([_assistant_calling("c1", "c1")])
