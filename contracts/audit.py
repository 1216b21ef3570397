"""Audit logging contracts.

Append-only JSONL — one record per tool lifecycle event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditEvent(str, Enum):
    TOOL_SEED = "tool.seed"
    TOOL_CREATE = "tool.create"
    TOOL_CREATE_FAILED = "tool.create_failed"
    TOOL_CALL = "tool.call"
    TOOL_RESULT = "tool.result"
    TOOL_ERROR = "tool.error"
    TOOL_RESOLVE = "tool.resolve"
    TOOL_RESOLVE_FALLBACK = "tool.resolve_fallback"


class AuditEntry(BaseModel):
    """A single audit log record."""

    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str
    event: AuditEvent
    tool: str = ""
    detail: dict[str, Any] = {}  # outcome, arguments, error text, etc.


class AuditLogger(ABC):
    """Interface for the append-only audit logger."""

    @abstractmethod
    def log(self, entry: AuditEntry) -> None:
        """Append an entry to the audit log."""
        ...

    @abstractmethod
    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        """Return all entries for a given request_id."""
        ...

    @abstractmethod
    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        """Return recent entries of a given event type."""
        ...

    @abstractmethod
    def query_by_tool(self, tool: str, limit: int = 100) -> list[AuditEntry]:
        """Return recent entries that concern a given tool."""
        ...

    @abstractmethod
    def tail(self, n: int = 20) -> list[AuditEntry]:
        """Return the last N entries."""
        ...
