"""Vector database adapter contracts.

Defines the abstract interface for vector database backends and the
shared data models for documents and search results.  Documents are
never updated or deleted once added.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


# ── Data models ──────────────────────────────────────────────────────


class Document(BaseModel):
    """A document to store in a vector collection."""

    id: str
    text: str
    metadata: dict[str, Any] = {}
    embedding: list[float]


class StoredDocument(BaseModel):
    """A document as returned by a keyed lookup."""

    id: str
    text: str = ""
    metadata: dict[str, Any] = {}


class SearchResult(BaseModel):
    """A single result from a similarity search."""

    id: str
    text: str
    metadata: dict[str, Any] = {}
    score: float


# ── Abstract adapter ─────────────────────────────────────────────────


class VectorDBAdapter(ABC):
    """Abstract base class for vector database backends."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """Return the document stored under *doc_id*, or ``None``."""
        ...

    @abstractmethod
    async def add(self, collection: str, document: Document) -> bool:
        """Insert *document* unless its id is already present.

        The existence check and the write happen atomically.  Returns
        ``True`` when the document was written and ``False`` when the id
        already existed (the stored document is left untouched).
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
    ) -> list[SearchResult]:
        """Search a collection by vector similarity, best match first."""
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Return the number of documents in a collection."""
        ...
