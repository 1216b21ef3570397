"""In-process vector adapter.

Keeps collections in dictionaries and ranks by cosine similarity.  Nothing
survives a restart; used for tests and throwaway worlds.
"""

from __future__ import annotations

import math
import threading

from contracts.vector_db import Document, SearchResult, StoredDocument, VectorDBAdapter


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class MemoryVectorAdapter(VectorDBAdapter):
    """Vector adapter backed by plain dictionaries."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        with self._lock:
            doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return StoredDocument(id=doc.id, text=doc.text, metadata=dict(doc.metadata))

    async def add(self, collection: str, document: Document) -> bool:
        with self._lock:
            docs = self._collection(collection)
            if document.id in docs:
                return False
            docs[document.id] = document.model_copy(deep=True)
            return True

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
    ) -> list[SearchResult]:
        if top_k <= 0:
            return []
        with self._lock:
            docs = list(self._collection(collection).values())
        # sorted() is stable, so equal scores keep insertion order
        ranked = sorted(
            docs,
            key=lambda d: cosine_similarity(query_vector, d.embedding),
            reverse=True,
        )
        return [
            SearchResult(
                id=doc.id,
                text=doc.text,
                metadata=dict(doc.metadata),
                score=cosine_similarity(query_vector, doc.embedding),
            )
            for doc in ranked[:top_k]
        ]

    async def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))
