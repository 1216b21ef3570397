"""Config loader — parse and validate artificer.yaml."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from contracts.config import ArtificerConfig

DEFAULT_CONFIG_PATH = "./artificer.yaml"
CONFIG_ENV_VAR = "ARTIFICER_CONFIG"


def load_config(path: str) -> ArtificerConfig:
    """Load an artificer.yaml file and return a validated config."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    raw = p.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a YAML mapping, got {type(data).__name__}")

    return apply_env_overrides(ArtificerConfig(**data))


def apply_env_overrides(config: ArtificerConfig) -> ArtificerConfig:
    """Apply the OLLAMA_* and CHROMA_URL environment overrides."""
    base_url = os.environ.get("OLLAMA_BASE_URL")
    if base_url:
        config.models.base_url = base_url
        config.embedding.base_url = base_url

    model = os.environ.get("OLLAMA_MODEL")
    if model:
        config.models.model = model

    embedding_model = os.environ.get("OLLAMA_EMBEDDING_MODEL")
    if embedding_model:
        config.embedding.model = embedding_model

    chroma_url = os.environ.get("CHROMA_URL")
    if chroma_url:
        config.vector_db.url = chroma_url

    return config


def resolve_config_path(path: str | None = None) -> str:
    """Return *path*, else ``ARTIFICER_CONFIG``, else ./artificer.yaml."""
    if path:
        return path
    return os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
