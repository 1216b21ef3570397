"""End-to-end tests for the tool manager over the in-memory store.

Embeddings come from a tiny keyword model so similarity ranking is
deterministic; code generation is scripted per tool name.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import pytest

from contracts.audit import AuditEvent
from contracts.embedding import EmbeddingAdapter
from contracts.generation import CodeGenerator
from artificer.audit.logger import JsonlAuditLogger
from artificer.errors import StoreError
from artificer.tools.manager import ToolManager
from artificer.tools.reserved import RESERVED_TOOL_NAME
from artificer.vector_adapters.memory import MemoryVectorAdapter

VOCABULARY = ["greet", "hello", "move", "walk", "north", "sing", "song", "create", "tool"]


class KeywordEmbedding(EmbeddingAdapter):
    """Counts vocabulary words; the last dimension is a small constant."""

    async def embed(self, texts: list[str]) -> list[list[float]]:
        vectors = []
        for text in texts:
            words = re.findall(r"[a-z]+", text.lower())
            vectors.append([float(words.count(w)) for w in VOCABULARY] + [0.01])
        return vectors

    def model_name(self) -> str:
        return "keyword"


class ScriptedGenerator(CodeGenerator):
    """Answers a generation prompt with the source scripted for that tool."""

    def __init__(self, scripts: dict[str, str]) -> None:
        self.scripts = scripts
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for name, code in self.scripts.items():
            if f"def {name}(params)" in prompt:
                await asyncio.sleep(0)
                return f"```python\n{code}\n```"
        return "I cannot write that."

    def model_name(self) -> str:
        return "scripted"


SCRIPTS = {
    "greet_soul": 'def greet_soul(params):\n    return "Hello, " + params["name"]',
    "move_soul": (
        "def move_soul(params):\n"
        "    if params['direction'] not in ('north', 'south'):\n"
        "        return 'Error: cannot walk ' + params['direction']\n"
        "    return 'You walk ' + params['direction'] + '.'"
    ),
    "sing_song": (
        "async def sing_song(params):\n"
        "    import asyncio\n"
        "    await asyncio.sleep(0)\n"
        "    return 'la ' * params.get('times', 1)"
    ),
}

GREET_SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string", "description": "The soul's name"}},
    "required": ["name"],
}

MOVE_SCHEMA = {
    "type": "object",
    "properties": {
        "direction": {"type": "string", "description": "Where to walk", "enum": ["north", "south", "east"]},
    },
    "required": ["direction"],
}

SING_SCHEMA = {
    "type": "object",
    "properties": {"times": {"type": "integer", "description": "Repetitions"}},
    "required": [],
}


@pytest.fixture()
def audit(tmp_path: Path) -> JsonlAuditLogger:
    return JsonlAuditLogger(tmp_path / "audit.jsonl")


@pytest.fixture()
def manager(audit: JsonlAuditLogger) -> ToolManager:
    return ToolManager(
        vector_adapter=MemoryVectorAdapter(),
        embedding_adapter=KeywordEmbedding(),
        generator=ScriptedGenerator(dict(SCRIPTS)),
        default_top_k=5,
        timeout=2.0,
        allowed_modules=["asyncio", "math"],
        audit=audit,
    )


async def _create(manager: ToolManager, name: str, description: str, schema: dict) -> str:
    return await manager.execute_tool(
        RESERVED_TOOL_NAME,
        {
            "new_tool_name": name,
            "new_tool_description": description,
            "new_tool_parameters": schema,
        },
    )


class TestToolLifecycle:
    @pytest.mark.asyncio
    async def test_create_then_greet(self, manager: ToolManager) -> None:
        await manager.initialize()

        created = await _create(manager, "greet_soul", "Return a greeting for a soul name", GREET_SCHEMA)
        assert created == "Successfully created tool: greet_soul"

        assert await manager.execute_tool("greet_soul", {"name": "Aria"}) == "Hello, Aria"

    @pytest.mark.asyncio
    async def test_missing_argument_is_error(self, manager: ToolManager) -> None:
        await manager.initialize()
        await _create(manager, "greet_soul", "Return a greeting for a soul name", GREET_SCHEMA)

        result = await manager.execute_tool("greet_soul", {})

        assert result.startswith("Error:")
        assert "name" in result

    @pytest.mark.asyncio
    async def test_concurrent_create_keeps_one(self, manager: ToolManager) -> None:
        await manager.initialize()

        results = await asyncio.gather(
            _create(manager, "greet_soul", "Say hello", GREET_SCHEMA),
            _create(manager, "greet_soul", "Say hello", GREET_SCHEMA),
        )

        assert sorted(results) == [
            "Successfully created tool: greet_soul",
            "Warning: Tool 'greet_soul' already existed. Creation skipped.",
        ]
        # reserved + one greet_soul
        assert await manager.store.count() == 2
        assert await manager.execute_tool("greet_soul", {"name": "Io"}) == "Hello, Io"

    @pytest.mark.asyncio
    async def test_generation_refusal_is_error(self, manager: ToolManager) -> None:
        await manager.initialize()

        result = await _create(manager, "fly_away", "Fly somewhere", SING_SCHEMA)

        assert result.startswith("Error: Failed to generate or validate code for tool fly_away.")
        assert await manager.get_tool_definition("fly_away") is None

    @pytest.mark.asyncio
    async def test_tool_reported_error_and_async_tool(self, manager: ToolManager) -> None:
        await manager.initialize()
        await _create(manager, "move_soul", "Walk a soul north or south", MOVE_SCHEMA)
        await _create(manager, "sing_song", "Sing a song", SING_SCHEMA)

        assert await manager.execute_tool("move_soul", {"direction": "north"}) == "You walk north."
        assert await manager.execute_tool("move_soul", {"direction": "east"}) == "Error: cannot walk east"
        assert await manager.execute_tool("sing_song", {"times": 2}) == "la la "

    @pytest.mark.asyncio
    async def test_schema_stored_as_given(self, manager: ToolManager) -> None:
        await manager.initialize()
        await _create(manager, "move_soul", "Walk a soul north", MOVE_SCHEMA)

        stored = await manager.get_tool_definition("move_soul")
        tools = await manager.get_available_tools("walk north", 5)

        assert stored is not None
        assert stored.parameters == MOVE_SCHEMA
        listed = next(t for t in tools if t.name == "move_soul")
        assert listed.parameters == MOVE_SCHEMA

    @pytest.mark.asyncio
    async def test_audit_trail(self, manager: ToolManager, audit: JsonlAuditLogger) -> None:
        await manager.initialize()
        await _create(manager, "greet_soul", "Say hello", GREET_SCHEMA)
        await manager.execute_tool("greet_soul", {"name": "Aria"})

        events = [e.event for e in audit.query_by_tool("greet_soul")]
        assert AuditEvent.TOOL_CREATE in events
        assert AuditEvent.TOOL_CALL in events
        assert AuditEvent.TOOL_RESULT in events
        assert len(audit.query_by_event(AuditEvent.TOOL_SEED)) == 1


class TestAvailableTools:
    @pytest.mark.asyncio
    async def test_ranked_by_context(self, manager: ToolManager) -> None:
        await manager.initialize()
        await _create(manager, "greet_soul", "Say hello to a soul", GREET_SCHEMA)
        await _create(manager, "move_soul", "Walk a soul north", MOVE_SCHEMA)
        await _create(manager, "sing_song", "Sing a song", SING_SCHEMA)

        walking = await manager.get_available_tools("walk north please", 1)
        singing = await manager.get_available_tools("sing me a song", 1)

        assert [t.name for t in walking] == [RESERVED_TOOL_NAME, "move_soul"]
        assert [t.name for t in singing] == [RESERVED_TOOL_NAME, "sing_song"]

    @pytest.mark.asyncio
    async def test_reserved_listed_once_when_context_matches_it(self, manager: ToolManager) -> None:
        await manager.initialize()
        await _create(manager, "greet_soul", "Say hello", GREET_SCHEMA)

        tools = await manager.get_available_tools("create a new tool", 5)

        names = [t.name for t in tools]
        assert names[0] == RESERVED_TOOL_NAME
        assert names.count(RESERVED_TOOL_NAME) == 1
        assert "greet_soul" in names

    @pytest.mark.asyncio
    async def test_offered_before_initialize(self, manager: ToolManager) -> None:
        tools = await manager.get_available_tools("anything", 3)
        assert [t.name for t in tools] == [RESERVED_TOOL_NAME]


class TestInitialize:
    @pytest.mark.asyncio
    async def test_seeds_reserved_once(self, manager: ToolManager, audit: JsonlAuditLogger) -> None:
        await manager.initialize()
        await manager.initialize()

        assert await manager.store.count() == 1
        reserved = await manager.get_tool_definition(RESERVED_TOOL_NAME)
        assert reserved is not None
        assert reserved.is_internal
        assert len(audit.query_by_event(AuditEvent.TOOL_SEED)) == 1

    @pytest.mark.asyncio
    async def test_reserved_cannot_be_recreated(self, manager: ToolManager) -> None:
        await manager.initialize()

        result = await _create(manager, RESERVED_TOOL_NAME, "Shadow it", GREET_SCHEMA)

        assert result.startswith("Error:")
        assert "reserved" in result

    @pytest.mark.asyncio
    async def test_seed_failure_raises(self) -> None:
        class BrokenEmbedding(KeywordEmbedding):
            async def embed(self, texts: list[str]) -> list[list[float]]:
                raise RuntimeError("Cannot connect to Ollama")

        manager = ToolManager(MemoryVectorAdapter(), BrokenEmbedding(), ScriptedGenerator({}))

        with pytest.raises(StoreError, match="Cannot connect"):
            await manager.initialize()
