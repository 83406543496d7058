"""Multi-query semantic searcher feeding the fusion engine."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from connections_agent.config import SearchConfig
from connections_agent.retrieval.embedder import Embedder
from connections_agent.retrieval.fusion import expand_queries, group_by_entity
from connections_agent.retrieval.vector_store import VectorStore
from connections_agent.types import EntityGroup, SearchHit


class MultiQuerySearcher:
    """Runs one similarity query per search term and pools the hits.

    Every query is embedded in a single batch and all of them are answered
    before any fusion happens, so callers always fuse the complete pool.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        config: SearchConfig | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or SearchConfig()

    def search(self, query: str, *, limit: int | None = None) -> list[SearchHit]:
        return self.search_many([query], limit=limit)

    def search_many(
        self,
        queries: list[str],
        *,
        limit: int | None = None,
        entity_filter: dict[str, Any] | None = None,
    ) -> list[SearchHit]:
        if not queries:
            return []
        per_query_limit = self._clamp(limit)
        embeddings = self.embedder.embed_queries(queries)

        pooled: list[SearchHit] = []
        for query, embedding in zip(queries, embeddings, strict=True):
            hits = self.vector_store.find_similar(
                embedding,
                limit=per_query_limit,
                entity_filter=entity_filter,
            )
            pooled.extend(replace(hit, query=query) for hit in hits)
        return pooled

    def search_members(
        self,
        terms: list[str],
        *,
        limit: int | None = None,
        entity_filter: dict[str, Any] | None = None,
    ) -> list[EntityGroup]:
        hits = self.search_many(
            expand_queries(terms),
            limit=limit,
            entity_filter=entity_filter,
        )
        # Content not attributed to any member cannot be grouped into a result.
        return group_by_entity(hit for hit in hits if hit.entity_id is not None)

    def _clamp(self, limit: int | None) -> int:
        if limit is None:
            return self.config.default_limit
        return max(1, min(limit, self.config.max_limit))
