"""Runs stored tools and answers with strings.

received -> validated -> compiled -> invoked -> success | caught error.
``execute_tool`` never raises; every failure path returns an ``Error:``
string.  Calls to the reserved tool are routed to the registrar.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import jsonschema

from contracts.audit import AuditEvent, AuditLogger

from artificer.audit.logger import record
from artificer.errors import ExecutionError, StoreError, ToolValidationError, format_error, is_error
from artificer.tools.registrar import ToolRegistrar
from artificer.tools.reserved import RESERVED_TOOL, RESERVED_TOOL_NAME
from artificer.tools.sandbox import DEFAULT_MAX_THREADS, DEFAULT_TIMEOUT_SECONDS, ToolThreads, run_tool_source
from artificer.tools.store import ToolStore

log = logging.getLogger(__name__)


def check_required(name: str, required: list[str], args: dict[str, Any]) -> None:
    """Raise ``ToolValidationError`` for the first missing or null argument."""
    for param in required:
        if args.get(param) is None:
            raise ToolValidationError(f"Missing required parameter '{param}' for tool {name}.")


class ToolExecutor:
    """Executes stored tools by name."""

    def __init__(
        self,
        store: ToolStore,
        registrar: ToolRegistrar,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        allowed_modules: list[str] | None = None,
        audit: AuditLogger | None = None,
        max_threads: int = DEFAULT_MAX_THREADS,
    ) -> None:
        self._store = store
        self._registrar = registrar
        self._timeout = timeout
        self._allowed_modules = list(allowed_modules or [])
        self._threads = ToolThreads(max_threads)
        self._audit = audit

    async def execute_tool(self, name: Any, args: Any = None) -> str:
        """Run tool *name* with *args* and return its string result."""
        request_id = str(uuid.uuid4())
        args = {} if args is None else args
        log.debug("executing tool %s", name)

        if not isinstance(args, dict):
            return self._failed(request_id, str(name), f"Arguments for tool {name} must be an object.")

        if name == RESERVED_TOOL_NAME:
            return await self._run_reserved(request_id, args)

        try:
            tool = await self._store.get_tool(name) if isinstance(name, str) else None
        except StoreError as exc:
            return self._failed(request_id, str(name), f"Failed to load tool '{name}'. {exc}")

        if tool is None:
            return self._failed(request_id, str(name), f"Tool '{name}' not found or definition is corrupted.")
        if tool.is_internal:
            log.error("refusing to execute internal tool %s", name)
            return self._failed(request_id, name, f"Cannot execute internal tool '{name}' directly.")

        try:
            check_required(name, tool.required, args)
        except ToolValidationError as exc:
            return self._failed(request_id, name, str(exc))

        record(self._audit, request_id, AuditEvent.TOOL_CALL, tool=name, arguments=_printable(args))
        try:
            result = await run_tool_source(
                tool.code,
                name,
                dict(args),
                timeout=self._timeout,
                allowed_modules=self._allowed_modules,
                threads=self._threads,
            )
        except ExecutionError as exc:
            return self._failed(request_id, name, f"execution failed for {name}: {exc}")
        except Exception as exc:
            return self._failed(request_id, name, f"execution failed for {name}: {_describe(exc)}")

        if not isinstance(result, str):
            log.warning("tool %s returned %s; converting to text", name, type(result).__name__)
            try:
                result = str(result)
            except Exception as exc:
                return self._failed(request_id, name, f"execution failed for {name}: {_describe(exc)}")

        if is_error(result):
            log.warning("tool %s reported an error: %s", name, result)
        record(self._audit, request_id, AuditEvent.TOOL_RESULT, tool=name,
               error=is_error(result), length=len(result))
        return result

    async def _run_reserved(self, request_id: str, args: dict[str, Any]) -> str:
        try:
            check_required(RESERVED_TOOL_NAME, RESERVED_TOOL.parameters["required"], args)
            jsonschema.validate(instance=args, schema=RESERVED_TOOL.parameters)
        except ToolValidationError as exc:
            return self._failed(request_id, RESERVED_TOOL_NAME, str(exc))
        except jsonschema.ValidationError as exc:
            return self._failed(
                request_id,
                RESERVED_TOOL_NAME,
                f"Failed to execute {RESERVED_TOOL_NAME}. Invalid parameter types: {exc.message}",
            )

        record(self._audit, request_id, AuditEvent.TOOL_CALL, tool=RESERVED_TOOL_NAME,
               new_tool_name=args["new_tool_name"])
        return await self._registrar.create_tool(
            args["new_tool_name"],
            args["new_tool_description"],
            args["new_tool_parameters"],
        )

    def _failed(self, request_id: str, name: str, message: str) -> str:
        text = format_error(message)
        log.warning("tool %s: %s", name, text)
        record(self._audit, request_id, AuditEvent.TOOL_ERROR, tool=name, error=text)
        return text


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__


def _printable(args: dict[str, Any]) -> dict[str, Any]:
    """Arguments as they can be written to the JSON audit log."""
    return {key: value if isinstance(value, (str, int, float, bool, type(None))) else repr(value)
            for key, value in args.items()}
