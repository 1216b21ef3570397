"""Tool record contracts.

A tool is a named capability: a description, a JSON parameter schema and
the Python source of exactly one function.  Records are persisted as
vector-store metadata and rebuilt from it on read.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Metadata keys a stored tool cannot be rebuilt without.
REQUIRED_METADATA_KEYS = ("name", "description", "parameters_json", "code")


class Provenance(str, Enum):
    RESERVED = "reserved"
    GENERATED = "generated"


# ── Data models ──────────────────────────────────────────────────────


class ToolDescriptor(BaseModel):
    """What a caller needs to decide on and invoke a tool."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_openai(self) -> dict[str, Any]:
        """Export in OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRecord(BaseModel):
    """A stored tool, including its source."""

    name: str
    description: str
    parameters: dict[str, Any]
    code: str
    provenance: Provenance = Provenance.GENERATED

    @property
    def is_internal(self) -> bool:
        return self.provenance != Provenance.GENERATED

    @property
    def required(self) -> list[str]:
        return list(self.parameters.get("required") or [])

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def embedding_text(self) -> str:
        """Text the record's embedding is computed from."""
        return f"{self.name}: {self.description}"

    def document_text(self) -> str:
        return f"Tool definition for {self.name}: {self.description}"

    # ── metadata (de)serialisation ──────────────────────────────────

    def to_metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters_json": json.dumps(self.parameters),
            "code": self.code,
            "is_internal": self.is_internal,
        }

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> ToolRecord:
        """Rebuild a record from stored metadata.

        Raises ``ValueError`` when required keys are missing or the schema
        does not parse.
        """
        missing = [k for k in REQUIRED_METADATA_KEYS if not metadata.get(k)]
        if missing:
            raise ValueError(f"incomplete tool metadata, missing: {', '.join(missing)}")

        try:
            parameters = json.loads(metadata["parameters_json"])
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValueError(f"corrupted parameters_json: {exc}") from exc
        if not isinstance(parameters, dict):
            raise ValueError("parameters_json must decode to an object")

        provenance = (
            Provenance.RESERVED if metadata.get("is_internal") else Provenance.GENERATED
        )
        return cls(
            name=metadata["name"],
            description=metadata["description"],
            parameters=parameters,
            code=metadata["code"],
            provenance=provenance,
        )


def is_valid_tool_name(name: Any) -> bool:
    return isinstance(name, str) and bool(TOOL_NAME_PATTERN.match(name))
