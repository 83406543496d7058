"""Fusion of hits gathered from several similarity queries."""

from __future__ import annotations

from collections.abc import Iterable

from connections_agent.types import EntityGroup, FusedResult, SearchHit


def expand_queries(terms: Iterable[str]) -> list[str]:
    """Return the queries to issue for a multi-term search.

    The joined query comes first so documents matching several terms at once
    are retrieved too; each individual term follows. Blank terms are dropped.
    Repeated queries are kept, so a single term is issued twice and its hits
    accumulate under that query.
    """

    cleaned = [term.strip() for term in terms if term and term.strip()]
    if not cleaned:
        return []
    return [" ".join(cleaned), *cleaned]


def combine_by_identity(hits: Iterable[SearchHit]) -> list[FusedResult]:
    """Deduplicate hits by identity and sum their similarity per query.

    A content item retrieved several times under the same query accumulates
    every similarity rather than keeping one. `combined_score` is the sum over
    all queries. Output is sorted by `combined_score` descending; ties keep
    first-seen order.
    """

    merged: dict[str, FusedResult] = {}
    for hit in hits:
        current = merged.get(hit.identity)
        if current is None:
            current = FusedResult(
                identity=hit.identity,
                content=hit.content,
                combined_score=0.0,
                per_query_score={},
            )
            merged[hit.identity] = current
        current.per_query_score[hit.query] = (
            current.per_query_score.get(hit.query, 0.0) + hit.similarity
        )

    for result in merged.values():
        result.combined_score = sum(result.per_query_score.values())

    return sorted(merged.values(), key=lambda item: item.combined_score, reverse=True)


def group_by_entity(hits: Iterable[SearchHit]) -> list[EntityGroup]:
    """Group hits by the entity they are about.

    Entities are returned in first-occurrence order. An entity's attributes are
    taken from its first hit; attributes on later hits are ignored even when
    they differ.
    """

    hits_by_entity: dict[str | None, list[SearchHit]] = {}
    for hit in hits:
        hits_by_entity.setdefault(hit.entity_id, []).append(hit)

    groups: list[EntityGroup] = []
    for entity_id, entity_hits in hits_by_entity.items():
        matched_queries = list(dict.fromkeys(hit.query for hit in entity_hits))
        groups.append(
            EntityGroup(
                entity_id=entity_id,
                entity_attributes=dict(entity_hits[0].entity_attributes),
                matched_queries=matched_queries,
                relevant_documents=combine_by_identity(entity_hits),
            )
        )
    return groups
