"""Embedding adapter contracts.

Defines the abstract interface for embedding generation backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingAdapter(ABC):
    """Abstract base class for embedding generation backends."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts."""
        ...

    @abstractmethod
    def model_name(self) -> str:
        """Return the name of the embedding model."""
        ...

    async def embed_one(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed([text])
        if not vectors:
            raise RuntimeError(f"Embedding model {self.model_name()} returned no vector")
        return vectors[0]
