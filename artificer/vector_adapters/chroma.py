"""ChromaDB vector adapter.

Wraps a chromadb client (on-disk ``PersistentClient`` or remote
``HttpClient``) for tool storage.  Embeddings are always supplied by the
caller; the collection never computes its own.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any
from urllib.parse import urlparse

import chromadb

from contracts.vector_db import Document, SearchResult, StoredDocument, VectorDBAdapter


class ChromaVectorAdapter(VectorDBAdapter):
    """Vector adapter backed by ChromaDB."""

    def __init__(
        self,
        persist_path: str | None = None,
        url: str | None = None,
        client: Any = None,
    ) -> None:
        if client is not None:
            self._client = client
        elif url:
            self._client = chromadb.HttpClient(**_parse_url(url))
        else:
            self._client = chromadb.PersistentClient(path=persist_path or ".artificer/vector_db")
        # Serialises compare-and-insert within this process.
        self._write_lock = threading.Lock()

    def _get_or_create_collection(self, name: str) -> Any:
        return self._client.get_or_create_collection(
            name=name,
            embedding_function=None,
            metadata={"hnsw:space": "cosine"},
        )

    # ── get ───────────────────────────────────────────────────────────

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        def _get() -> StoredDocument | None:
            col = self._get_or_create_collection(collection)
            result = col.get(ids=[doc_id], include=["metadatas", "documents"])
            ids = result.get("ids") or []
            if not ids:
                return None
            metadatas = result.get("metadatas") or [{}]
            documents = result.get("documents") or [""]
            return StoredDocument(
                id=ids[0],
                text=documents[0] or "",
                metadata=metadatas[0] or {},
            )

        return await asyncio.to_thread(_get)

    # ── add ───────────────────────────────────────────────────────────

    async def add(self, collection: str, document: Document) -> bool:
        def _add() -> bool:
            with self._write_lock:
                col = self._get_or_create_collection(collection)
                existing = col.get(ids=[document.id], include=[])
                if existing.get("ids"):
                    return False
                col.add(
                    ids=[document.id],
                    documents=[document.text],
                    embeddings=[document.embedding],
                    metadatas=[document.metadata],
                )
                return True

        return await asyncio.to_thread(_add)

    # ── search ────────────────────────────────────────────────────────

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
    ) -> list[SearchResult]:
        def _search() -> list[SearchResult]:
            col = self._get_or_create_collection(collection)
            n_results = min(top_k, col.count())
            if n_results <= 0:
                return []
            result = col.query(
                query_embeddings=[query_vector],
                n_results=n_results,
                include=["metadatas", "documents", "distances"],
            )
            results: list[SearchResult] = []
            ids = (result.get("ids") or [[]])[0]
            documents = (result.get("documents") or [[]])[0]
            metadatas = (result.get("metadatas") or [[]])[0]
            distances = (result.get("distances") or [[]])[0]
            for i, doc_id in enumerate(ids):
                distance = distances[i] if i < len(distances) else 0.0
                results.append(
                    SearchResult(
                        id=doc_id,
                        text=(documents[i] if i < len(documents) else "") or "",
                        metadata=(metadatas[i] if i < len(metadatas) else {}) or {},
                        score=1.0 / (1.0 + distance),
                    )
                )
            return results

        return await asyncio.to_thread(_search)

    # ── count ─────────────────────────────────────────────────────────

    async def count(self, collection: str) -> int:
        def _count() -> int:
            return self._get_or_create_collection(collection).count()

        return await asyncio.to_thread(_count)


def _parse_url(url: str) -> dict[str, Any]:
    """Split ``http(s)://host:port`` into chromadb.HttpClient kwargs."""
    parsed = urlparse(url)
    ssl = parsed.scheme == "https"
    return {
        "host": parsed.hostname or "localhost",
        "port": parsed.port or (443 if ssl else 8000),
        "ssl": ssl,
    }
