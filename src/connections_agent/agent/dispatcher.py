"""Execution of a batch of model-requested tool calls."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Callable, Mapping
from time import perf_counter
from typing import Any

from connections_agent.agent.markup import object_to_xml, to_plain
from connections_agent.types import AssistantMessage, Message, ToolCall, ToolMessage, ToolTrace

logger = logging.getLogger(__name__)

ToolObserver = Callable[[ToolTrace], None]


async def execute_tool_calls(
    tool_calls: list[ToolCall],
    implementations: Mapping[str, Callable[[dict[str, Any]], Any]],
    *,
    observer: ToolObserver | None = None,
) -> list[Message]:
    """Run tool calls and build the messages that record them.

    Returns the assistant message echoing `tool_calls` followed by one tool
    message per call, in input order. Calls run concurrently and fail
    independently: bad arguments, unknown tools and implementation errors
    become error payloads in that call's tool message.
    """

    contents = await asyncio.gather(
        *(_execute_one(call, implementations, observer) for call in tool_calls)
    )

    messages: list[Message] = [AssistantMessage(tool_calls=list(tool_calls))]
    for call, content in zip(tool_calls, contents, strict=True):
        messages.append(ToolMessage(tool_call_id=call.id, content=content))
    return messages


async def _execute_one(
    tool_call: ToolCall,
    implementations: Mapping[str, Callable[[dict[str, Any]], Any]],
    observer: ToolObserver | None,
) -> str:
    start = perf_counter()
    args: Any = None
    try:
        args = json.loads(tool_call.arguments_text) if tool_call.arguments_text.strip() else {}
    except (ValueError, RecursionError):
        # JSONDecodeError is a ValueError; deeply nested text exhausts the recursion limit.
        logger.error("Failed to parse arguments for tool call %s (%s)", tool_call.id, tool_call.name)
        result: Any = {
            "error": "Failed to parse arguments JSON",
            "args": tool_call.arguments_text,
        }
    else:
        result = await _invoke(tool_call, args, implementations)

    content = object_to_xml(result)
    if observer is not None:
        trace = ToolTrace(
            name=tool_call.name,
            input_payload=args if isinstance(args, dict) else {"raw": tool_call.arguments_text},
            output_preview=content[:320],
            latency_ms=(perf_counter() - start) * 1000.0,
        )
        try:
            observer(trace)
        except Exception:
            logger.error("Tool observer failed for tool call %s", tool_call.id, exc_info=True)
    return content


async def _invoke(
    tool_call: ToolCall,
    args: Any,
    implementations: Mapping[str, Callable[[dict[str, Any]], Any]],
) -> Any:
    implementation = implementations.get(tool_call.name)
    if implementation is None:
        logger.error("Unknown tool called: %s", tool_call.name)
        return {"error": f"Unknown tool: {tool_call.name}"}

    try:
        result = implementation(args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        logger.error("Error executing tool %s", tool_call.name, exc_info=True)
        return {"error": f"Error executing tool {tool_call.name}: {exc}"}

    logger.info("Tool call executed: %s(%s)", tool_call.name, tool_call.arguments_text)
    return to_plain(result)
