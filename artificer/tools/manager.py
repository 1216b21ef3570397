"""Single entry point to tool creation, lookup and execution.

Bundles registrar, resolver and executor over one store.  Call
``initialize()`` once before serving; it seeds the reserved tool.
"""

from __future__ import annotations

import logging
from typing import Any

from contracts.audit import AuditEvent, AuditLogger
from contracts.embedding import EmbeddingAdapter
from contracts.generation import CodeGenerator
from contracts.tool import ToolDescriptor, ToolRecord
from contracts.vector_db import VectorDBAdapter

from artificer.audit.logger import record
from artificer.errors import StoreError
from artificer.tools.executor import ToolExecutor
from artificer.tools.registrar import ToolRegistrar
from artificer.tools.reserved import RESERVED_TOOL_NAME, ensure_reserved_tool
from artificer.tools.resolver import ToolResolver
from artificer.tools.sandbox import DEFAULT_MAX_THREADS, DEFAULT_TIMEOUT_SECONDS
from artificer.tools.store import DEFAULT_COLLECTION, ToolStore

log = logging.getLogger(__name__)


class ToolManager:
    def __init__(
        self,
        vector_adapter: VectorDBAdapter,
        embedding_adapter: EmbeddingAdapter,
        generator: CodeGenerator,
        collection: str = DEFAULT_COLLECTION,
        default_top_k: int = 5,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        allowed_modules: list[str] | None = None,
        audit: AuditLogger | None = None,
        max_threads: int = DEFAULT_MAX_THREADS,
    ) -> None:
        self.store = ToolStore(vector_adapter, collection=collection)
        self._embedding = embedding_adapter
        self._audit = audit
        self.registrar = ToolRegistrar(
            self.store,
            embedding_adapter,
            generator,
            allowed_modules=allowed_modules,
            audit=audit,
        )
        self.resolver = ToolResolver(
            self.store,
            embedding_adapter,
            default_top_k=default_top_k,
            audit=audit,
        )
        self.executor = ToolExecutor(
            self.store,
            self.registrar,
            timeout=timeout,
            allowed_modules=allowed_modules,
            audit=audit,
            max_threads=max_threads,
        )

    async def initialize(self) -> None:
        """Make sure the reserved tool is stored.

        Raises ``StoreError`` when it cannot be seeded.
        """
        try:
            seeded = await ensure_reserved_tool(self.store, self._embedding)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"could not seed '{RESERVED_TOOL_NAME}': {exc}") from exc
        if seeded:
            record(self._audit, "init", AuditEvent.TOOL_SEED, tool=RESERVED_TOOL_NAME)
        log.info("tool manager ready (collection %s)", self.store.collection)

    async def create_tool(self, name: Any, description: Any, parameters: Any) -> str:
        return await self.registrar.create_tool(name, description, parameters)

    async def execute_tool(self, name: Any, args: Any = None) -> str:
        return await self.executor.execute_tool(name, args)

    async def get_available_tools(self, context: str, k: int | None = None) -> list[ToolDescriptor]:
        return await self.resolver.get_available_tools(context, k)

    async def get_tool_definition(self, name: str) -> ToolRecord | None:
        """Return the stored record for *name*, or ``None`` if absent or unreadable."""
        try:
            return await self.store.get_tool(name)
        except StoreError as exc:
            log.error("could not read tool %s: %s", name, exc)
            return None
