"""Shared initialisation logic for the Artificer HTTP server and CLI."""

from __future__ import annotations

import logging

from contracts.config import ArtificerConfig
from contracts.embedding import EmbeddingAdapter
from contracts.generation import CodeGenerator
from contracts.vector_db import VectorDBAdapter
from artificer.audit.logger import JsonlAuditLogger
from artificer.config_loader import load_config, resolve_config_path
from artificer.tools.manager import ToolManager


def create_embedding_adapter(config: ArtificerConfig) -> EmbeddingAdapter:
    """Create an embedding adapter from config."""
    backend = config.embedding.backend
    if backend == "ollama":
        from artificer.embedding_adapters.ollama import OllamaEmbeddingAdapter
        return OllamaEmbeddingAdapter(
            base_url=config.embedding.base_url,
            model=config.embedding.model,
        )
    raise ValueError(f"Unknown embedding backend: {backend}")


def create_code_generator(config: ArtificerConfig) -> CodeGenerator:
    """Create a code generator from config."""
    backend = config.models.backend
    if backend == "ollama":
        from artificer.model_adapters.ollama import OllamaCodeGenerator
        return OllamaCodeGenerator(
            base_url=config.models.base_url,
            model=config.models.model,
            temperature=config.models.temperature,
            timeout=config.models.timeout_seconds,
        )
    raise ValueError(f"Unknown model backend: {backend}")


def create_vector_adapter(config: ArtificerConfig) -> VectorDBAdapter:
    """Create a vector DB adapter from config."""
    backend = config.vector_db.backend
    if backend == "chroma":
        from artificer.vector_adapters.chroma import ChromaVectorAdapter
        return ChromaVectorAdapter(
            persist_path=config.vector_db.path,
            url=config.vector_db.url,
        )
    if backend == "memory":
        from artificer.vector_adapters.memory import MemoryVectorAdapter
        return MemoryVectorAdapter()
    raise ValueError(f"Unknown vector_db backend: {backend}")


def configure_logging(config: ArtificerConfig) -> None:
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class ArtificerComponents:
    """Container for initialised Artificer components."""

    def __init__(
        self,
        config: ArtificerConfig,
        manager: ToolManager,
        audit: JsonlAuditLogger | None,
    ) -> None:
        self.config = config
        self.manager = manager
        self.audit = audit


def build_components(config: ArtificerConfig) -> ArtificerComponents:
    """Create adapters, audit logger and tool manager for *config*.

    The manager still needs ``await manager.initialize()``.
    """
    audit = JsonlAuditLogger(config.audit.path) if config.audit.enabled else None
    manager = ToolManager(
        vector_adapter=create_vector_adapter(config),
        embedding_adapter=create_embedding_adapter(config),
        generator=create_code_generator(config),
        collection=config.vector_db.collection,
        default_top_k=config.vector_db.default_top_k,
        timeout=config.sandbox.timeout_seconds,
        allowed_modules=config.sandbox.allowed_modules,
        audit=audit,
        max_threads=config.sandbox.max_threads,
    )
    return ArtificerComponents(config=config, manager=manager, audit=audit)


def init_artificer(config_path: str | None = None) -> ArtificerComponents:
    """Load config and build components.

    Uses ``ARTIFICER_CONFIG`` env var if *config_path* is not provided.
    """
    config = load_config(resolve_config_path(config_path))
    return build_components(config)
