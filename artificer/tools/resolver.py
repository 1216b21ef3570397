"""Contextual retrieval of stored tools.

The reserved tool is always offered first, even when the store is down.
"""

from __future__ import annotations

import logging
import uuid

from contracts.audit import AuditEvent, AuditLogger
from contracts.embedding import EmbeddingAdapter
from contracts.tool import ToolDescriptor

from artificer.audit.logger import record
from artificer.tools.reserved import RESERVED_TOOL, RESERVED_TOOL_NAME
from artificer.tools.store import ToolStore

log = logging.getLogger(__name__)


class ToolResolver:
    """Ranks stored tools by similarity to a context string."""

    def __init__(
        self,
        store: ToolStore,
        embedding_adapter: EmbeddingAdapter,
        default_top_k: int = 5,
        audit: AuditLogger | None = None,
    ) -> None:
        self._store = store
        self._embedding = embedding_adapter
        self._default_top_k = default_top_k
        self._audit = audit

    async def get_available_tools(
        self, context: str, k: int | None = None
    ) -> list[ToolDescriptor]:
        """Return the reserved tool followed by the *k* nearest stored tools.

        Results keep the store's rank order; equal scores fall in whatever
        order the store returns them.  Never raises: on any embedding or
        store failure only the reserved tool is returned.
        """
        top_k = self._default_top_k if k is None else k
        tools = [RESERVED_TOOL.model_copy(deep=True)]
        if top_k <= 0:
            return tools

        request_id = str(uuid.uuid4())
        try:
            vector = await self._embedding.embed_one(context)
            records = await self._store.search_tools(vector, top_k)
        except Exception as exc:
            log.error("tool lookup for context %.80r failed: %s", context, exc)
            record(self._audit, request_id, AuditEvent.TOOL_RESOLVE_FALLBACK,
                   error=str(exc))
            return tools

        for tool in records:
            if tool.name == RESERVED_TOOL_NAME:
                continue
            tools.append(tool.descriptor())

        log.debug("resolved %d tools for context %.80r", len(tools), context)
        record(self._audit, request_id, AuditEvent.TOOL_RESOLVE,
               k=top_k, tools=[t.name for t in tools])
        return tools
