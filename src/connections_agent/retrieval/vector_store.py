"""Vector store contract and an in-memory adapter."""

from __future__ import annotations

from collections.abc import Callable
from math import sqrt
from typing import Any, Protocol

from connections_agent.types import ContentItem, SearchHit


class VectorStore(Protocol):
    """Minimal similarity datastore contract used by the search tools."""

    def upsert(self, items: list[ContentItem]) -> None:
        """Insert or replace items keyed by identity."""

    def find_similar(
        self,
        embedding: list[float],
        *,
        limit: int,
        entity_filter: dict[str, Any] | None = None,
    ) -> list[SearchHit]:
        """Return the closest items, most similar first, with an empty query tag."""

    def documents_for_entity(
        self,
        matches: Callable[[ContentItem], bool],
        *,
        source_type: str | None = None,
    ) -> list[ContentItem]:
        """Return stored items accepted by `matches`."""


class InMemoryVectorStore:
    """Brute-force cosine store used for tests and local runs."""

    def __init__(self) -> None:
        self._items: dict[str, ContentItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def upsert(self, items: list[ContentItem]) -> None:
        for item in items:
            if not item.identity:
                raise ValueError("content items require a non-empty identity")
            self._items[item.identity] = item

    def find_similar(
        self,
        embedding: list[float],
        *,
        limit: int,
        entity_filter: dict[str, Any] | None = None,
    ) -> list[SearchHit]:
        candidates = [
            item
            for item in self._items.values()
            if _attributes_match(item.entity_attributes, entity_filter)
        ]
        ranked = sorted(
            (
                (item, _cosine_similarity(embedding, item.embedding))
                for item in candidates
            ),
            key=lambda pair: pair[1],
            reverse=True,
        )
        return [
            SearchHit(
                identity=item.identity,
                content=item.content,
                similarity=similarity,
                query="",
                entity_id=item.entity_id,
                entity_attributes=dict(item.entity_attributes),
                source_type=item.source_type,
                metadata=dict(item.metadata),
            )
            for item, similarity in ranked[:limit]
        ]

    def documents_for_entity(
        self,
        matches: Callable[[ContentItem], bool],
        *,
        source_type: str | None = None,
    ) -> list[ContentItem]:
        return [
            item
            for item in self._items.values()
            if (source_type is None or item.source_type == source_type) and matches(item)
        ]


def _attributes_match(
    attributes: dict[str, Any], entity_filter: dict[str, Any] | None
) -> bool:
    if not entity_filter:
        return True
    for key, value in entity_filter.items():
        if attributes.get(key) != value:
            return False
    return True


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
