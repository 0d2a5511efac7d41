"""Conversation messages as sent by clients, and their conversion to pydantic-ai messages."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from agents.errors import TranscriptError


class ToolCall(BaseModel):
    """One tool invocation requested by the assistant."""

    id: str
    name: str
    arguments: str = Field(default="{}", description="JSON-encoded argument object")


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    content: str = ""
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] | None = None


def to_model_messages(messages: list[ChatMessage]) -> list[ModelMessage]:
    """
    Convert a client transcript into pydantic-ai request/response messages.
    Consecutive system/user/tool messages are grouped into one request.
    Raises TranscriptError when a tool result does not answer an open call,
    answers a call twice, or the conversation moves on with calls unanswered.
    """
    history: list[ModelMessage] = []
    parts: list[ModelRequestPart] = []
    pending: dict[str, str] = {}  # call id -> tool name
    answered: set[str] = set()

    def flush() -> None:
        if parts:
            history.append(ModelRequest(parts=list(parts)))
            parts.clear()

    for i, msg in enumerate(messages):
        if msg.tool_calls and msg.role != "assistant":
            raise TranscriptError(f"Message {i}: only assistant messages may request tools")

        if msg.role == "tool":
            call_id = msg.tool_call_id
            if not call_id:
                raise TranscriptError(f"Message {i}: tool message without tool_call_id")
            if call_id in answered:
                raise TranscriptError(f"Message {i}: tool call {call_id} answered twice")
            if call_id not in pending:
                raise TranscriptError(f"Message {i}: no open tool call {call_id}")
            parts.append(
                ToolReturnPart(tool_name=pending.pop(call_id), content=msg.content, tool_call_id=call_id)
            )
            answered.add(call_id)
            continue

        if pending:
            raise TranscriptError(
                f"Message {i}: tool calls still unanswered: {', '.join(sorted(pending))}"
            )

        if msg.role == "system":
            parts.append(SystemPromptPart(content=msg.content))
        elif msg.role == "user":
            parts.append(UserPromptPart(content=msg.content))
        else:
            flush()
            response_parts = []
            if msg.content:
                response_parts.append(TextPart(content=msg.content))
            for call in msg.tool_calls or []:
                if call.id in pending or call.id in answered:
                    raise TranscriptError(f"Message {i}: duplicate tool call id {call.id}")
                pending[call.id] = call.name
                response_parts.append(
                    ToolCallPart(tool_name=call.name, args=call.arguments, tool_call_id=call.id)
                )
            history.append(ModelResponse(parts=response_parts))

    if pending:
        raise TranscriptError(f"Tool calls still unanswered: {', '.join(sorted(pending))}")
    flush()
    return history
