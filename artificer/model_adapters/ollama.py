"""Ollama code generation adapter.

Sends a single-turn, low-temperature chat request to a local Ollama
instance and returns the assistant text untouched.  Cleaning the text up
is the registrar's job.
"""

from __future__ import annotations

from typing import Any

import httpx

from contracts.config import DEFAULT_OLLAMA_URL
from contracts.generation import CodeGenerator

SYSTEM_PROMPT = (
    "You write Python functions. Reply with the function source only."
)


class OllamaCodeGenerator(CodeGenerator):
    """Async adapter for the Ollama /api/chat endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model: str = "qwen2.5-coder:7b-instruct-q8_0",
        temperature: float = 0.2,
        timeout: float = 300.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._timeout = timeout

    async def complete(self, prompt: str) -> str:
        """Return the model's completion for *prompt*."""
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": self._temperature},
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(f"{self._base_url}/api/chat", json=payload)
        except httpx.HTTPError as exc:
            raise RuntimeError(
                f"Cannot connect to Ollama at {self._base_url}: {exc}"
            ) from exc

        if resp.status_code != 200:
            raise RuntimeError(
                f"Ollama chat request failed ({resp.status_code}): {resp.text}"
            )

        data = resp.json()
        return (data.get("message") or {}).get("content") or ""

    def model_name(self) -> str:
        return self._model
