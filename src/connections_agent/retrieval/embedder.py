"""Embedding interface and a deterministic local implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt


class Embedder(ABC):
    """Turns query and content text into vectors for similarity search."""

    @abstractmethod
    def embed_queries(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts in one batch, preserving order."""

    def embed_query(self, text: str) -> list[float]:
        return self.embed_queries([text])[0]


class HashingEmbedder(Embedder):
    """Token-hashing embedder with no external model calls.

    Used for local runs and tests in place of the hosted embedding service.
    Texts sharing tokens land close together, which is enough to exercise
    ranking and fusion deterministically.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    def embed_queries(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in text.lower().split():
            digest = blake2b(token.strip(".,!?;:\"'()").encode("utf-8"), digest_size=8).digest()
            slot = int.from_bytes(digest[:4], "little") % self.dimension
            vector[slot] += -1.0 if digest[4] % 2 else 1.0

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]
