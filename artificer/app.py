"""Artificer FastAPI server.

A thin HTTP face over the tool manager.  Tool outcomes are returned as
``{"result": "<string>"}`` exactly as the manager produced them; an
``Error:`` result is still a 200 response.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from contracts.tool import ToolDescriptor, ToolRecord

from artificer import __version__
from artificer.components import ArtificerComponents, configure_logging, init_artificer

# ── Module-level state (set during lifespan) ─────────────────────────

_components: ArtificerComponents | None = None
_start_time: float = 0.0


class CreateToolRequest(BaseModel):
    name: Any = None
    description: Any = None
    parameters: Any = None


class ExecuteToolRequest(BaseModel):
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    result: str


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise all components on startup."""
    global _components, _start_time  # noqa: PLW0603

    _start_time = time.time()
    _components = init_artificer()
    configure_logging(_components.config)
    await _components.manager.initialize()

    yield


app = FastAPI(title="Artificer", version=__version__, lifespan=lifespan)


def _require_components() -> ArtificerComponents:
    if _components is None:
        raise HTTPException(status_code=503, detail="Artificer not initialised")
    return _components


# ── Endpoints ────────────────────────────────────────────────────────


@app.get("/v1/artificer/health")
async def health() -> dict[str, Any]:
    """Health-check endpoint with store summary."""
    result: dict[str, Any] = {"status": "ok", "version": __version__}
    result["uptime_seconds"] = round(time.time() - _start_time, 1) if _start_time else 0

    if _components is not None:
        config = _components.config
        result["config"] = {
            "app": config.app.name,
            "model": config.models.model,
            "embedding_model": config.embedding.model,
            "vector_backend": config.vector_db.backend,
            "collection": config.vector_db.collection,
            "audit": _components.audit is not None,
        }
        try:
            result["tool_count"] = await _components.manager.store.count()
        except Exception as exc:
            result["status"] = "degraded"
            result["store_error"] = str(exc)

    return result


@app.get("/v1/tools")
async def list_tools(
    context: str = Query("", description="Text to rank tools against"),
    k: int | None = Query(None, ge=0, le=100),
) -> list[ToolDescriptor]:
    """Reserved tool first, then the tools nearest to *context*."""
    components = _require_components()
    return await components.manager.get_available_tools(context, k)


@app.get("/v1/tools/{name}")
async def get_tool(name: str) -> ToolRecord:
    components = _require_components()
    tool = await components.manager.get_tool_definition(name)
    if tool is None:
        raise HTTPException(status_code=404, detail=f"Tool '{name}' not found")
    return tool


@app.post("/v1/tools")
async def create_tool(request: CreateToolRequest) -> ToolResult:
    components = _require_components()
    result = await components.manager.create_tool(
        request.name, request.description, request.parameters
    )
    return ToolResult(result=result)


@app.post("/v1/tools/{name}/execute")
async def execute_tool(name: str, request: ExecuteToolRequest) -> ToolResult:
    components = _require_components()
    result = await components.manager.execute_tool(name, request.arguments)
    return ToolResult(result=result)
