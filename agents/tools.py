"""Tool registry: tool schemas for the model and executors for the chat loop."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from pydantic import BaseModel, ValidationError
from pydantic_ai.tools import ToolDefinition

from agents.errors import ToolArgumentError, ToolNotFoundError

logger = logging.getLogger(__name__)

Executor = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class Tool:
    """A named tool. The parameter schema is derived from args_model, so it always matches what the executor receives."""

    name: str
    description: str
    args_model: type[BaseModel]
    executor: Executor

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.args_model.model_json_schema(by_alias=True),
        )


class ToolRegistry:
    """Maps tool names to definitions and executors. Built once at startup, then read-only."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        executor: Executor,
    ) -> None:
        if name in self._tools:
            logger.warning("Tool %s already registered; overwriting", name)
        self._tools[name] = Tool(name=name, description=description, args_model=args_model, executor=executor)

    def add(self, tool: Tool) -> None:
        self.register(tool.name, tool.description, tool.args_model, tool.executor)

    def has(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def get_definitions(self, names: Iterable[str] | None = None) -> list[ToolDefinition]:
        """Definitions for the requested tools (all when names is None). Unknown names are skipped."""
        if names is None:
            return [t.definition() for t in self._tools.values()]
        out = []
        for name in names:
            tool = self._tools.get(name)
            if tool is None:
                logger.warning("Requested unknown tool %s", name)
                continue
            out.append(tool.definition())
        return out

    def validate(self, name: str, args: dict[str, Any]) -> BaseModel:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        try:
            return tool.args_model.model_validate(args)
        except ValidationError as e:
            raise ToolArgumentError(name, _validation_summary(e)) from e

    async def execute(self, name: str, args: dict[str, Any]) -> Any:
        """Validate args against the tool's schema, then run its executor."""
        validated = self.validate(name, args)
        return await self._tools[name].executor(validated)


def register_all(registry: ToolRegistry, tools: Iterable[Tool]) -> ToolRegistry:
    """Register an explicit list of tools, in order."""
    for tool in tools:
        registry.add(tool)
    return registry


def _validation_summary(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "(root)"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)
