"""Streaming chat completion endpoint contract and LangChain adapter."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Literal, Protocol

from langchain_core import messages as lc_messages
from langchain_core.language_models import BaseChatModel

from connections_agent.config import Settings
from connections_agent.types import (
    AssistantMessage,
    Message,
    StreamChunk,
    SystemMessage,
    ToolCallFragment,
    ToolMessage,
    UserMessage,
)

logger = logging.getLogger(__name__)

ToolChoice = Literal["auto", "none"]


class ChatCompletionEndpoint(Protocol):
    """A model that streams text and indexed tool-call fragments."""

    def stream(
        self,
        transcript: list[Message],
        tools: list[dict[str, Any]],
        tool_choice: ToolChoice,
    ) -> AsyncIterator[StreamChunk]:
        """Start a streamed completion over the transcript."""


class LangChainChatEndpoint:
    """Adapts a LangChain chat model to `ChatCompletionEndpoint`.

    Stream failures from the provider are not retried here; they propagate to
    the conversation driver's caller.
    """

    def __init__(self, llm: BaseChatModel) -> None:
        self.llm = llm

    async def stream(
        self,
        transcript: list[Message],
        tools: list[dict[str, Any]],
        tool_choice: ToolChoice,
    ) -> AsyncIterator[StreamChunk]:
        logger.debug(
            "Requesting completion: %d messages, %d tools, tool_choice=%s",
            len(transcript),
            len(tools),
            tool_choice,
        )
        model: Any = self.llm.bind_tools(tools, tool_choice=tool_choice) if tools else self.llm
        async for chunk in model.astream(to_langchain_messages(transcript)):
            yield to_stream_chunk(chunk)


def build_chat_endpoint(settings: Settings) -> LangChainChatEndpoint | None:
    """Create the OpenRouter-backed endpoint, or `None` without an API key."""

    if not settings.llm_configured:
        return None

    from langchain_openai import ChatOpenAI

    llm = ChatOpenAI(
        model=settings.model_name,
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        streaming=True,
    )
    return LangChainChatEndpoint(llm)


def to_langchain_messages(transcript: list[Message]) -> list[lc_messages.BaseMessage]:
    converted: list[lc_messages.BaseMessage] = []
    for message in transcript:
        if isinstance(message, SystemMessage):
            converted.append(lc_messages.SystemMessage(content=message.content))
        elif isinstance(message, UserMessage):
            converted.append(lc_messages.HumanMessage(content=message.content))
        elif isinstance(message, ToolMessage):
            converted.append(
                lc_messages.ToolMessage(
                    content=message.content,
                    tool_call_id=message.tool_call_id,
                )
            )
        elif isinstance(message, AssistantMessage):
            converted.append(_assistant_to_langchain(message))
        else:
            raise TypeError(f"Unsupported transcript message: {message!r}")
    return converted


def to_stream_chunk(chunk: Any) -> StreamChunk:
    """Translate an `AIMessageChunk` into a `StreamChunk`."""

    fragments = [
        ToolCallFragment(
            index=fragment.get("index"),
            id=fragment.get("id"),
            name=fragment.get("name"),
            arguments=fragment.get("args"),
        )
        for fragment in getattr(chunk, "tool_call_chunks", None) or []
    ]
    return StreamChunk(text=_chunk_text(getattr(chunk, "content", None)), tool_call_fragments=fragments)


def _assistant_to_langchain(message: AssistantMessage) -> lc_messages.AIMessage:
    tool_calls: list[dict[str, Any]] = []
    invalid_tool_calls: list[dict[str, Any]] = []
    for call in message.tool_calls or []:
        try:
            args = json.loads(call.arguments_text) if call.arguments_text.strip() else {}
        except json.JSONDecodeError:
            args = None
        if isinstance(args, dict):
            tool_calls.append(
                {"name": call.name, "args": args, "id": call.id, "type": "tool_call"}
            )
        else:
            # Keeps the raw text so the model sees exactly what it sent.
            invalid_tool_calls.append(
                {
                    "name": call.name,
                    "args": call.arguments_text,
                    "id": call.id,
                    "error": "Failed to parse arguments JSON",
                    "type": "invalid_tool_call",
                }
            )
    return lc_messages.AIMessage(
        content=message.content or "",
        tool_calls=tool_calls,
        invalid_tool_calls=invalid_tool_calls,
    )


def _chunk_text(content: Any) -> str | None:
    if not content:
        return None
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for item in content:
        if isinstance(item, dict):
            if item.get("type", "text") == "text" and "text" in item:
                parts.append(str(item["text"]))
        else:
            parts.append(str(item))
    return "".join(parts) or None
