"""
Chat orchestration loop: call the model, run the tools it asks for, feed the
results back, and repeat until it answers in plain text.

Tool calls from one model turn run sequentially in the order proposed. Bad
arguments, calls to tools that were not offered and executor failures
become {"error": ...} tool results so the model can react; only the iteration
cap and upstream API errors end a run.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
)
from pydantic_ai.models import ModelRequestParameters

from agents.errors import MaxIterationsError, ToolArgumentError, ToolNotAvailableError
from agents.llm_config import MAX_TOOL_ITERATIONS, ModelT
from agents.tools import ToolRegistry

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ToolOutcome:
    """One executed tool call: either output or error is set."""

    name: str
    call_id: str
    args: dict[str, Any] | None
    output: Any = None
    error: str | None = None


@dataclass
class ChatResult:
    text: str
    iterations: int
    state: LoopState = LoopState.DONE
    usage: dict[str, int] | None = None
    tool_results: list[ToolOutcome] = field(default_factory=list)
    messages: list[ModelMessage] = field(default_factory=list)

    @property
    def template(self) -> dict[str, Any] | None:
        """Last successful tool output that names a template for the UI."""
        for outcome in reversed(self.tool_results):
            if outcome.error is None and isinstance(outcome.output, dict) and outcome.output.get("templateType"):
                return outcome.output
        return None


def parse_tool_arguments(name: str, raw: str | dict[str, Any] | None) -> dict[str, Any]:
    """Tool arguments as a dict. Empty means no arguments; anything else must be a JSON object."""
    if isinstance(raw, dict):
        return raw
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ToolArgumentError(name, f"invalid JSON ({e.msg})") from e
    if not isinstance(parsed, dict):
        raise ToolArgumentError(name, "arguments must be a JSON object")
    return parsed


def _usage_dict(response: ModelResponse) -> dict[str, int] | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    prompt = getattr(usage, "input_tokens", None)
    if prompt is None:
        prompt = getattr(usage, "request_tokens", None)
    completion = getattr(usage, "output_tokens", None)
    if completion is None:
        completion = getattr(usage, "response_tokens", None)
    prompt, completion = prompt or 0, completion or 0
    return {
        "prompt_tokens": prompt,
        "completion_tokens": completion,
        "total_tokens": prompt + completion,
    }


def _add_usage(total: dict[str, int] | None, more: dict[str, int] | None) -> dict[str, int] | None:
    if more is None:
        return total
    if total is None:
        return dict(more)
    return {k: total.get(k, 0) + v for k, v in more.items()}


class ChatLoop:
    """Bounded request/execute/respond cycle against one model and one tool registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        model: ModelT,
        model_settings: dict[str, Any] | None = None,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ):
        self.registry = registry
        self.model = model
        self.model_settings = model_settings
        self.max_iterations = max_iterations

    async def run(
        self,
        messages: list[ModelMessage],
        tool_names: Iterable[str] | None = None,
        model_settings: dict[str, Any] | None = None,
    ) -> ChatResult:
        """
        Drive the conversation to a final text answer.
        tool_names=None offers every registered tool; an empty list offers none.
        Raises MaxIterationsError when the model is still calling tools after
        max_iterations round-trips. Model/API errors propagate unchanged.
        """
        history = list(messages)
        params = ModelRequestParameters(
            function_tools=self.registry.get_definitions(tool_names),
            allow_text_output=True,
        )
        offered = {d.name for d in params.function_tools}
        settings = model_settings if model_settings is not None else self.model_settings
        usage: dict[str, int] | None = None
        outcomes: list[ToolOutcome] = []
        state = LoopState.AWAITING_MODEL

        for iteration in range(1, self.max_iterations + 1):
            response = await model_request(
                self.model,
                history,
                model_settings=settings,
                model_request_parameters=params,
            )
            history.append(response)
            usage = _add_usage(usage, _usage_dict(response))

            calls = [p for p in response.parts if isinstance(p, ToolCallPart)]
            if not calls:
                state = LoopState.DONE
                text = "".join(p.content for p in response.parts if isinstance(p, TextPart))
                logger.info("Chat loop done after %d round-trip(s), %d tool call(s)", iteration, len(outcomes))
                return ChatResult(
                    text=text,
                    iterations=iteration,
                    state=state,
                    usage=usage,
                    tool_results=outcomes,
                    messages=history,
                )

            state = LoopState.EXECUTING_TOOLS
            returns = []
            for call in calls:
                outcome = await self._execute(call, offered)
                outcomes.append(outcome)
                content = {"error": outcome.error} if outcome.error is not None else outcome.output
                returns.append(
                    ToolReturnPart(
                        tool_name=call.tool_name,
                        content=json.dumps(content, default=str),
                        tool_call_id=call.tool_call_id,
                    )
                )
            history.append(ModelRequest(parts=returns))
            state = LoopState.AWAITING_MODEL

        state = LoopState.FAILED
        logger.warning("Chat loop %s: still calling tools after %d round-trips", state.value, self.max_iterations)
        raise MaxIterationsError(self.max_iterations)

    async def _execute(self, call: ToolCallPart, offered: set[str]) -> ToolOutcome:
        """Run one tool call; argument and executor failures are captured, never raised."""
        args: dict[str, Any] | None = None
        try:
            if call.tool_name not in offered and call.tool_name in self.registry.names():
                raise ToolNotAvailableError(call.tool_name)
            args = parse_tool_arguments(call.tool_name, call.args)
            output = await self.registry.execute(call.tool_name, args)
            logger.info("Executed tool %s (%s)", call.tool_name, call.tool_call_id)
            return ToolOutcome(name=call.tool_name, call_id=call.tool_call_id, args=args, output=output)
        except Exception as e:
            logger.warning("Tool %s failed: %s", call.tool_name, e)
            return ToolOutcome(name=call.tool_name, call_id=call.tool_call_id, args=args, error=str(e))
