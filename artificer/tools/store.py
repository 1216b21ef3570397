"""Maps ToolRecords onto a vector collection.

One document per tool, keyed by tool name.  The record lives in the
document metadata (see ``ToolRecord.to_metadata``); the vector is the
embedding of ``"{name}: {description}"`` supplied by the caller.
"""

from __future__ import annotations

import logging

from contracts.tool import ToolRecord
from contracts.vector_db import Document, VectorDBAdapter

from artificer.errors import StoreError

log = logging.getLogger(__name__)

DEFAULT_COLLECTION = "llm_tools"


class ToolStore:
    """Keyed and similarity access to stored tools.

    Backend failures are re-raised as ``StoreError``.  Records whose
    metadata cannot be parsed are treated as absent and logged.
    """

    def __init__(
        self,
        vector_adapter: VectorDBAdapter,
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        self._vector = vector_adapter
        self._collection = collection

    @property
    def collection(self) -> str:
        return self._collection

    async def exists(self, name: str) -> bool:
        """True when any document is stored under *name*, corrupt or not."""
        try:
            doc = await self._vector.get(self._collection, name)
        except Exception as exc:
            raise StoreError(f"lookup of '{name}' failed: {exc}") from exc
        return doc is not None

    async def get_tool(self, name: str) -> ToolRecord | None:
        try:
            doc = await self._vector.get(self._collection, name)
        except Exception as exc:
            raise StoreError(f"lookup of '{name}' failed: {exc}") from exc
        if doc is None:
            return None
        try:
            return ToolRecord.from_metadata(doc.metadata)
        except ValueError as exc:
            log.error("tool %s has unusable metadata: %s", name, exc)
            return None

    async def add_tool(self, record: ToolRecord, embedding: list[float]) -> bool:
        """Compare-and-insert *record*; ``False`` if the name is taken."""
        document = Document(
            id=record.name,
            text=record.document_text(),
            metadata=record.to_metadata(),
            embedding=embedding,
        )
        try:
            return await self._vector.add(self._collection, document)
        except Exception as exc:
            raise StoreError(str(exc)) from exc

    async def search_tools(self, query_vector: list[float], top_k: int) -> list[ToolRecord]:
        """Return up to *top_k* records nearest to *query_vector*, in store order."""
        if top_k <= 0:
            return []
        try:
            results = await self._vector.search(self._collection, query_vector, top_k=top_k)
        except Exception as exc:
            raise StoreError(f"similarity search failed: {exc}") from exc

        records: list[ToolRecord] = []
        for result in results:
            try:
                records.append(ToolRecord.from_metadata(result.metadata))
            except ValueError as exc:
                log.warning("skipping tool %s from search results: %s", result.id, exc)
        return records

    async def count(self) -> int:
        try:
            return await self._vector.count(self._collection)
        except Exception as exc:
            raise StoreError(f"count failed: {exc}") from exc
