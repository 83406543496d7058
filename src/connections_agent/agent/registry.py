"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from connections_agent.types import ToolCall

logger = logging.getLogger(__name__)

_TOOL_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ToolImplementation = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Read-only handles injected into every tool handler."""

    platform: Any | None = None
    requester_is_admin: bool = False


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[Any, ToolContext], Any | Awaitable[Any]]
    describe: Callable[[Any], str]
    admin_only: bool = False

    def validate_args(self, payload: dict[str, Any]) -> BaseModel:
        return self.args_schema.model_validate(payload)

    def definition(self) -> dict[str, Any]:
        """OpenAI-style function tool definition for the model."""
        parameters = self.args_schema.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ToolRegistry:
    """Stores tool specs and builds per-requester views of them.

    A registry is created once at startup and handed to the conversation
    driver; tests build their own registries with fake tools.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, spec: ToolSpec) -> None:
        if not _TOOL_NAME_PATTERN.match(spec.name):
            raise ValueError(f"Invalid tool name: {spec.name!r}")
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        if not issubclass(spec.args_schema, BaseModel):
            raise ValueError(f"Tool {spec.name} args_schema must be a pydantic model")
        self._tools[spec.name] = spec
        logger.debug("Registered tool %s (admin_only=%s)", spec.name, spec.admin_only)

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return spec

    def specs(self, *, is_admin: bool = False) -> list[ToolSpec]:
        return [spec for spec in self._tools.values() if is_admin or not spec.admin_only]

    def tool_definitions(self, *, is_admin: bool = False) -> list[dict[str, Any]]:
        return [spec.definition() for spec in self.specs(is_admin=is_admin)]

    def implementations(
        self,
        context: ToolContext,
        *,
        is_admin: bool = False,
    ) -> dict[str, ToolImplementation]:
        """Map visible tool names to callables taking the raw argument dict."""
        return {
            spec.name: self._build_function(spec, context)
            for spec in self.specs(is_admin=is_admin)
        }

    def describe_call(self, tool_call: ToolCall) -> str:
        """Short human-readable description of a tool call.

        Falls back to a generic description when the tool is unknown or its
        arguments do not validate; such calls still reach the dispatcher,
        which reports the problem to the model.
        """
        fallback = f"Calling `{tool_call.name}`"
        spec = self._tools.get(tool_call.name)
        if spec is None:
            return fallback
        try:
            payload = json.loads(tool_call.arguments_text or "{}")
            return spec.describe(spec.validate_args(payload))
        except Exception:
            logger.debug("Could not describe tool call %s", tool_call.id, exc_info=True)
            return fallback

    @staticmethod
    def _build_function(spec: ToolSpec, context: ToolContext) -> ToolImplementation:
        if inspect.iscoroutinefunction(spec.handler):

            async def _async_callable(payload: dict[str, Any]) -> Any:
                return await spec.handler(spec.validate_args(payload), context)

            return _async_callable

        async def _callable(payload: dict[str, Any]) -> Any:
            # Blocking handlers (store lookups, embedding calls) run off the loop.
            return await asyncio.to_thread(spec.handler, spec.validate_args(payload), context)

        return _callable
