"""Turns a capability request into a stored, validated tool.

prompt -> generate -> sanitize -> validate -> duplicate check -> embed ->
compare-and-insert.  Every outcome is a string; failures start with
``Error:`` and leave the store untouched.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import jsonschema

from contracts.audit import AuditEvent, AuditLogger
from contracts.embedding import EmbeddingAdapter
from contracts.generation import CodeGenerator
from contracts.tool import Provenance, ToolRecord, is_valid_tool_name

from artificer.audit.logger import record
from artificer.errors import (
    ArtificerError,
    GenerationError,
    SanitizationError,
    StoreError,
    ToolValidationError,
    format_error,
)
from artificer.tools.prompts import build_generation_prompt
from artificer.tools.reserved import RESERVED_TOOL_NAME
from artificer.tools.sanitize import sanitize_generated_code, validate_tool_source
from artificer.tools.store import ToolStore

log = logging.getLogger(__name__)


def success_message(name: str) -> str:
    return f"Successfully created tool: {name}"


def duplicate_message(name: str) -> str:
    return f"Warning: Tool '{name}' already existed. Creation skipped."


def validate_parameters_schema(name: str, parameters: dict[str, Any]) -> None:
    """Reject parameter schemas the executor could not honour.

    Raises ``ToolValidationError``.
    """
    if parameters.get("type") != "object":
        raise ToolValidationError(
            f"Invalid parameters schema for tool '{name}': type must be 'object'."
        )
    properties = parameters.get("properties")
    if not isinstance(properties, dict):
        raise ToolValidationError(
            f"Invalid parameters schema for tool '{name}': properties must be an object."
        )
    required = parameters.get("required", [])
    if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
        raise ToolValidationError(
            f"Invalid parameters schema for tool '{name}': required must be a list of names."
        )
    undeclared = [r for r in required if r not in properties]
    if undeclared:
        raise ToolValidationError(
            f"Invalid parameters schema for tool '{name}': required names "
            f"{', '.join(undeclared)} are not declared in properties."
        )
    try:
        jsonschema.Draft202012Validator.check_schema(parameters)
    except jsonschema.SchemaError as exc:
        raise ToolValidationError(
            f"Invalid parameters schema for tool '{name}': {exc.message}"
        ) from exc


class ToolRegistrar:
    """Creates tools from a name, a description and a parameter schema."""

    def __init__(
        self,
        store: ToolStore,
        embedding_adapter: EmbeddingAdapter,
        generator: CodeGenerator,
        allowed_modules: list[str] | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self._store = store
        self._embedding = embedding_adapter
        self._generator = generator
        self._allowed_modules = list(allowed_modules or [])
        self._audit = audit

    async def create_tool(self, name: Any, description: Any, parameters: Any) -> str:
        """Create and store tool *name*; return the outcome string."""
        request_id = str(uuid.uuid4())
        try:
            self._check_arguments(name, description, parameters)
        except ToolValidationError as exc:
            return self._failed(request_id, str(name), exc)

        log.debug("creating tool %s", name)
        try:
            if await self._store.exists(name):
                log.info("tool %s already exists; skipping generation", name)
                return duplicate_message(name)

            code = await self._generate(name, description, parameters)

            # Another creation may have committed while we were generating.
            if await self._store.exists(name):
                log.info("tool %s was created concurrently; skipping", name)
                return duplicate_message(name)

            tool = ToolRecord(
                name=name,
                description=description,
                parameters=parameters,
                code=code,
                provenance=Provenance.GENERATED,
            )
            try:
                vector = await self._embedding.embed_one(tool.embedding_text())
            except Exception as exc:
                raise StoreError(f"embedding failed: {exc}") from exc

            added = await self._store.add_tool(tool, vector)
        except (GenerationError, SanitizationError) as exc:
            return self._failed(
                request_id,
                name,
                exc,
                f"Failed to generate or validate code for tool {name}. {exc}",
            )
        except StoreError as exc:
            return self._failed(
                request_id,
                name,
                exc,
                f"Failed to store tool {name} in database. {exc}",
            )
        except Exception as exc:
            log.exception("unexpected failure creating tool %s", name)
            return self._failed(
                request_id,
                name,
                ArtificerError(str(exc)),
                f"Failed to create tool {name}. {exc}",
            )

        if not added:
            log.info("tool %s lost the insert race; keeping the stored entry", name)
            return duplicate_message(name)

        log.info("created tool %s", name)
        record(self._audit, request_id, AuditEvent.TOOL_CREATE, tool=name,
               description=description, code_length=len(code))
        return success_message(name)

    # ── steps ────────────────────────────────────────────────────────

    @staticmethod
    def _check_arguments(name: Any, description: Any, parameters: Any) -> None:
        if not name or not description or not parameters:
            raise ToolValidationError(
                "Missing required arguments for tool creation (name, description, parameters)."
            )
        if not isinstance(name, str) or not isinstance(description, str) or not isinstance(parameters, dict):
            raise ToolValidationError("Invalid argument types for tool creation.")
        if not description.strip():
            raise ToolValidationError("Tool description must not be blank.")
        if not is_valid_tool_name(name):
            raise ToolValidationError(
                f"Invalid tool name '{name}'. Use snake_case with letters, numbers, "
                "and underscores, starting with a letter or underscore."
            )
        if name == RESERVED_TOOL_NAME:
            raise ToolValidationError(f"Tool name '{name}' is reserved.")
        validate_parameters_schema(name, parameters)

    async def _generate(self, name: str, description: str, parameters: dict[str, Any]) -> str:
        prompt = build_generation_prompt(name, description, parameters, self._allowed_modules)
        try:
            raw = await self._generator.complete(prompt)
        except Exception as exc:
            raise GenerationError(f"Code generation request failed: {exc}") from exc

        raw = (raw or "").strip()
        if not raw:
            raise GenerationError("Model returned empty code.")
        log.debug("received %d characters of generated code for %s", len(raw), name)

        code = sanitize_generated_code(raw, name)
        validate_tool_source(code, name)
        return code

    def _failed(
        self,
        request_id: str,
        name: str,
        exc: ArtificerError,
        message: str | None = None,
    ) -> str:
        text = format_error(message or str(exc))
        log.warning("tool creation for %s failed (%s): %s", name, exc.kind, exc)
        record(self._audit, request_id, AuditEvent.TOOL_CREATE_FAILED, tool=name,
               kind=exc.kind, error=text)
        return text
