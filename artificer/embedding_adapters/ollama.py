"""Ollama embedding adapter.

Proxies embedding requests to a local Ollama instance via httpx.
"""

from __future__ import annotations

import httpx

from contracts.config import DEFAULT_OLLAMA_URL
from contracts.embedding import EmbeddingAdapter


class OllamaEmbeddingAdapter(EmbeddingAdapter):
    """Async adapter for the Ollama /api/embed endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts via Ollama."""
        payload = {"model": self._model, "input": texts}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._base_url}/api/embed", json=payload
                )
        except httpx.HTTPError as exc:
            raise RuntimeError(
                f"Cannot connect to Ollama at {self._base_url}: {exc}"
            ) from exc

        if resp.status_code != 200:
            raise RuntimeError(
                f"Ollama embed request failed ({resp.status_code}): {resp.text}"
            )

        embeddings = resp.json().get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise RuntimeError(
                f"Ollama returned {len(embeddings or [])} embeddings for {len(texts)} texts"
            )
        return embeddings

    def model_name(self) -> str:
        """Return the name of the embedding model."""
        return self._model
