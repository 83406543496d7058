"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(slots=True)
class ToolCall:
    """A tool invocation requested by the model.

    Arguments stay as raw text; parsing is the dispatcher's job.
    """

    id: str
    name: str
    arguments_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments_text},
        }


@dataclass(slots=True)
class SystemMessage:
    content: str
    role: str = field(default="system", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class UserMessage:
    content: str
    role: str = field(default="user", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class AssistantMessage:
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    role: str = field(default="assistant", init=False)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role}
        if self.content is not None:
            payload["content"] = self.content
        if self.tool_calls is not None:
            payload["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return payload


@dataclass(slots=True)
class ToolMessage:
    tool_call_id: str
    content: str
    role: str = field(default="tool", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "tool_call_id": self.tool_call_id,
            "content": self.content,
        }


Message = Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage]


@dataclass(slots=True)
class ToolCallFragment:
    """A partial tool call delivered at one stream position."""

    index: int | None
    id: str | None = None
    name: str | None = None
    arguments: str | None = None


@dataclass(slots=True)
class StreamChunk:
    """One increment of a streamed completion."""

    text: str | None = None
    tool_call_fragments: list[ToolCallFragment] = field(default_factory=list)


@dataclass(slots=True)
class FinalizedMessage:
    """Text of a finished response message and its stable identifier."""

    text: str
    message_id: str | None = None


@dataclass(slots=True)
class ContentItem:
    """An embedded content row held by a vector store."""

    identity: str
    content: str
    embedding: list[float]
    source_type: str = "document"
    entity_id: str | None = None
    entity_attributes: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SearchHit:
    """A raw similarity match produced by one query."""

    identity: str
    content: str
    similarity: float
    query: str
    entity_id: str | None = None
    entity_attributes: dict[str, Any] = field(default_factory=dict)
    source_type: str = "document"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class FusedResult:
    """Hits for one content item merged across queries."""

    identity: str
    content: str
    combined_score: float
    per_query_score: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "content": self.content,
            "combined_score": self.combined_score,
            "per_query_score": [
                {"query": query, "score": score}
                for query, score in self.per_query_score.items()
            ],
        }


@dataclass(slots=True)
class EntityGroup:
    """Fused results about one subject, such as a member."""

    entity_id: str | None
    entity_attributes: dict[str, Any]
    matched_queries: list[str]
    relevant_documents: list[FusedResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entity_attributes,
            "entity_id": self.entity_id,
            "matched_queries": list(self.matched_queries),
            "relevant_documents": [doc.to_dict() for doc in self.relevant_documents],
        }


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
