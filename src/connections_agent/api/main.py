"""FastAPI entrypoint for conversation and search endpoints."""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from connections_agent.agent.driver import ConversationDriver
from connections_agent.agent.endpoint import ChatCompletionEndpoint, build_chat_endpoint
from connections_agent.agent.prompts import build_initial_transcript
from connections_agent.agent.registry import ToolContext, ToolRegistry
from connections_agent.agent.surface import InMemoryMessageSink, StreamingResponseSurface
from connections_agent.agent.tools import register_builtin_tools
from connections_agent.config import SearchConfig, Settings, configure_logging
from connections_agent.retrieval.embedder import Embedder, HashingEmbedder
from connections_agent.retrieval.searcher import MultiQuerySearcher
from connections_agent.retrieval.vector_store import InMemoryVectorStore, VectorStore
from connections_agent.types import AssistantMessage, ContentItem, Message, UserMessage

logger = logging.getLogger(__name__)


class DocumentIn(BaseModel):
    identity: str = Field(min_length=1)
    content: str = Field(min_length=1)
    source_type: str = "document"
    entity_id: str | None = None
    entity_attributes: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpsertDocumentsRequest(BaseModel):
    items: list[DocumentIn] = Field(min_length=1)


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class QueryRequest(BaseModel):
    question: str = Field(min_length=1)
    requester: dict[str, Any] = Field(default_factory=dict)
    is_admin: bool = False
    history: list[HistoryMessage] = Field(default_factory=list)


class SourceSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=20, ge=1, le=100)


class MemberSearchRequest(BaseModel):
    queries: list[str] = Field(min_length=1)
    location: str | None = None
    checked_in_only: bool = False
    limit: int = Field(default=20, ge=1, le=100)


def create_app(
    settings: Settings | None = None,
    *,
    endpoint: ChatCompletionEndpoint | None = None,
    vector_store: VectorStore | None = None,
    embedder: Embedder | None = None,
) -> FastAPI:
    """Wire the store, tools and conversation driver into an HTTP app.

    Without an explicit `endpoint`, one is built from `settings`; when no API
    key is configured the app still serves searches but `/query` returns 503.
    """

    settings = settings or Settings()
    configure_logging(settings.log_level)

    store = vector_store if vector_store is not None else InMemoryVectorStore()
    embedder = embedder or HashingEmbedder()
    searcher = MultiQuerySearcher(store, embedder, SearchConfig())
    registry = ToolRegistry()
    register_builtin_tools(registry, searcher)

    chat_endpoint = endpoint if endpoint is not None else build_chat_endpoint(settings)
    driver = (
        ConversationDriver(
            endpoint=chat_endpoint,
            tool_registry=registry,
            config=settings.agent_config(),
        )
        if chat_endpoint is not None
        else None
    )

    app = FastAPI(title="Member Connections Agent", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": driver is not None,
            "tools": [spec.name for spec in registry.specs(is_admin=True)],
        }

    @app.post("/documents")
    def upsert_documents(request: UpsertDocumentsRequest) -> dict[str, Any]:
        embeddings = embedder.embed_queries([item.content for item in request.items])
        store.upsert(
            [
                ContentItem(
                    identity=item.identity,
                    content=item.content,
                    embedding=embedding,
                    source_type=item.source_type,
                    entity_id=item.entity_id,
                    entity_attributes=item.entity_attributes,
                    metadata=item.metadata,
                )
                for item, embedding in zip(request.items, embeddings, strict=True)
            ]
        )
        return {"upserted": len(request.items)}

    @app.post("/query")
    async def query(request: QueryRequest) -> dict[str, Any]:
        if driver is None:
            raise HTTPException(status_code=503, detail="No language model is configured")

        history: list[Message] = [
            UserMessage(content=item.content)
            if item.role == "user"
            else AssistantMessage(content=item.content)
            for item in request.history
        ]
        transcript = build_initial_transcript(
            request.question,
            requester=request.requester,
            history=history,
        )
        sink = InMemoryMessageSink()
        surface = StreamingResponseSurface(
            sink,
            placeholder=driver.config.placeholder_text,
            edit_interval_ms=settings.chat_edit_interval_ms,
        )
        try:
            message_id = await driver.run(
                transcript,
                surface,
                is_admin=request.is_admin,
                context=ToolContext(requester_is_admin=request.is_admin),
            )
        except Exception as exc:
            logger.error("Error in conversation turn", exc_info=True)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        answer = sink.messages[message_id].text if message_id in sink.messages else None
        return {
            "answer": answer,
            "message_id": message_id,
            "messages": sink.texts(),
            "transcript_length": len(transcript),
        }

    @app.post("/sources/search")
    def source_search(request: SourceSearchRequest) -> dict[str, Any]:
        hits = searcher.search(request.query, limit=request.top_k)
        return {
            "items": [
                {
                    "identity": hit.identity,
                    "content": hit.content,
                    "similarity": hit.similarity,
                    "source_type": hit.source_type,
                    "entity_id": hit.entity_id,
                    "metadata": hit.metadata,
                }
                for hit in hits
            ]
        }

    @app.post("/members/search")
    def member_search(request: MemberSearchRequest) -> dict[str, Any]:
        entity_filter: dict[str, Any] = {}
        if request.location:
            entity_filter["location"] = request.location
        if request.checked_in_only:
            entity_filter["is_checked_in_today"] = True
        groups = searcher.search_members(
            request.queries,
            limit=request.limit,
            entity_filter=entity_filter or None,
        )
        return {"members": [group.to_dict() for group in groups]}

    return app


app = create_app()
