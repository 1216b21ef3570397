"""Configuration (artificer.yaml) schema — Pydantic models.

Every section has defaults, so an empty ``app`` block is a usable config.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_OLLAMA_URL = "http://localhost:11434"

# Standard-library modules generated tools may import.
DEFAULT_ALLOWED_MODULES = [
    "collections",
    "datetime",
    "itertools",
    "json",
    "math",
    "random",
    "re",
    "statistics",
    "string",
    "textwrap",
]


# ── Top-level sections ──────────────────────────────────────────────


class AppInfo(BaseModel):
    name: str = "artificer"
    version: str = "0.0.1"


# ── Models ───────────────────────────────────────────────────────────


class ModelsConfig(BaseModel):
    backend: str = "ollama"
    base_url: str = DEFAULT_OLLAMA_URL
    model: str = "qwen2.5-coder:7b-instruct-q8_0"
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=300.0, gt=0)


# ── Embedding + Vector DB config ─────────────────────────────────────


class EmbeddingConfig(BaseModel):
    backend: str = "ollama"
    base_url: str = DEFAULT_OLLAMA_URL
    model: str = "nomic-embed-text"


class VectorConfig(BaseModel):
    backend: str = "chroma"        # "chroma" or "memory"
    path: str = ".artificer/vector_db"
    url: str | None = None         # remote chroma server; overrides path
    collection: str = "llm_tools"
    default_top_k: int = Field(default=5, ge=0)


# ── Sandbox ──────────────────────────────────────────────────────────


class SandboxConfig(BaseModel):
    timeout_seconds: float = Field(default=5.0, gt=0)
    allowed_modules: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_MODULES))
    max_threads: int = Field(default=8, ge=1)


# ── Audit + logging ──────────────────────────────────────────────────


class AuditConfig(BaseModel):
    enabled: bool = True
    path: str = ".artificer/audit.jsonl"


class LoggingConfig(BaseModel):
    level: str = "INFO"


# ── Root config ──────────────────────────────────────────────────────


class ArtificerConfig(BaseModel):
    app: AppInfo = AppInfo()
    models: ModelsConfig = ModelsConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    vector_db: VectorConfig = VectorConfig()
    sandbox: SandboxConfig = SandboxConfig()
    audit: AuditConfig = AuditConfig()
    logging: LoggingConfig = LoggingConfig()
