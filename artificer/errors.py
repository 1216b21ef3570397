"""Error taxonomy and the ``Error:`` string protocol.

Exceptions below are raised between internal helpers only.  Every public
operation catches them at its boundary and answers with a string that
starts with ``ERROR_PREFIX``; callers never see a raised error.
"""

from __future__ import annotations

from typing import Any

ERROR_PREFIX = "Error:"


class ArtificerError(Exception):
    """Base class for tool subsystem failures."""

    kind = "error"


class ToolValidationError(ArtificerError):
    """Malformed tool name, schema or call arguments."""

    kind = "validation"


class GenerationError(ArtificerError):
    """The code generator was unreachable or returned nothing."""

    kind = "generation"


class SanitizationError(ArtificerError):
    """Generated text could not be turned into valid tool source."""

    kind = "sanitization"


class StoreError(ArtificerError):
    """The vector store failed to read or write."""

    kind = "store"


class ExecutionError(ArtificerError):
    """Stored tool source failed to load or raised while running."""

    kind = "execution"


def format_error(message: str) -> str:
    """Prefix *message* with ``Error:`` unless it already carries it."""
    message = message.strip()
    if message.startswith(ERROR_PREFIX):
        return message
    return f"{ERROR_PREFIX} {message}"


def is_error(result: Any) -> bool:
    """True when *result* is an ``Error:`` string."""
    return isinstance(result, str) and result.startswith(ERROR_PREFIX)
