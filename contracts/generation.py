"""Code generation contracts.

A code generator turns a prompt into candidate source text.  It is called
once per tool creation; retries are the caller's business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CodeGenerator(ABC):
    """Abstract base class for generative code backends."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the model's raw completion for *prompt*."""
        ...

    @abstractmethod
    def model_name(self) -> str:
        """Return the name of the generation model."""
        ...
