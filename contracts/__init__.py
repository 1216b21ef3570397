"""Shared contracts — source of truth for all Artificer interfaces."""

from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.config import ArtificerConfig, ModelsConfig, SandboxConfig, VectorConfig
from contracts.embedding import EmbeddingAdapter
from contracts.generation import CodeGenerator
from contracts.tool import Provenance, ToolDescriptor, ToolRecord
from contracts.vector_db import Document, SearchResult, StoredDocument, VectorDBAdapter

__all__ = [
    # audit
    "AuditEntry",
    "AuditEvent",
    "AuditLogger",
    # config
    "ArtificerConfig",
    "ModelsConfig",
    "SandboxConfig",
    "VectorConfig",
    # providers
    "EmbeddingAdapter",
    "CodeGenerator",
    # tools
    "Provenance",
    "ToolDescriptor",
    "ToolRecord",
    # vector db
    "Document",
    "SearchResult",
    "StoredDocument",
    "VectorDBAdapter",
]
