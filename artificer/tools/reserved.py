"""The reserved ``tool_creation`` meta-tool.

Its descriptor is a constant so it can be offered even when the store is
unreachable.  Its stored record carries placeholder code and is never
executed; the executor routes calls to the registrar instead.
"""

from __future__ import annotations

import logging

from contracts.embedding import EmbeddingAdapter
from contracts.tool import Provenance, ToolDescriptor, ToolRecord

from artificer.tools.store import ToolStore

log = logging.getLogger(__name__)

RESERVED_TOOL_NAME = "tool_creation"

RESERVED_TOOL = ToolDescriptor(
    name=RESERVED_TOOL_NAME,
    description=(
        "Define and create a new tool (Python function) that can be used later. "
        "Takes the desired tool name, description, and parameter schema."
    ),
    parameters={
        "type": "object",
        "properties": {
            "new_tool_name": {
                "type": "string",
                "description": "The name for the new tool function (use snake_case).",
            },
            "new_tool_description": {
                "type": "string",
                "description": "A clear description of what the new tool does and when to use it.",
            },
            "new_tool_parameters": {
                "type": "object",
                "description": "A JSON schema object describing the parameters the new function will accept.",
                "properties": {
                    "type": {"type": "string", "enum": ["object"]},
                    "properties": {"type": "object"},
                    "required": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["type", "properties"],
            },
        },
        "required": ["new_tool_name", "new_tool_description", "new_tool_parameters"],
    },
)


def reserved_record() -> ToolRecord:
    return ToolRecord(
        name=RESERVED_TOOL.name,
        description=RESERVED_TOOL.description,
        parameters=RESERVED_TOOL.parameters,
        code=f"# Internal tool: {RESERVED_TOOL_NAME}",
        provenance=Provenance.RESERVED,
    )


async def ensure_reserved_tool(store: ToolStore, embedding: EmbeddingAdapter) -> bool:
    """Store the reserved tool if it is missing.

    Returns ``True`` when it had to be (re)created.  Failures propagate:
    a registry that cannot hold its bootstrap tool is not usable.
    """
    if await store.exists(RESERVED_TOOL_NAME):
        log.debug("'%s' tool found in store", RESERVED_TOOL_NAME)
        return False

    record = reserved_record()
    vector = await embedding.embed_one(record.embedding_text())
    added = await store.add_tool(record, vector)
    if added:
        log.info("seeded reserved tool '%s'", RESERVED_TOOL_NAME)
    return added
