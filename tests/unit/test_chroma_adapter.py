"""Unit tests for the ChromaDB vector adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from contracts.vector_db import Document
from artificer.vector_adapters.chroma import ChromaVectorAdapter, _parse_url


def _adapter() -> tuple[ChromaVectorAdapter, MagicMock]:
    collection = MagicMock()
    client = MagicMock()
    client.get_or_create_collection.return_value = collection
    return ChromaVectorAdapter(client=client), collection


def _doc(doc_id: str = "greet_soul") -> Document:
    return Document(
        id=doc_id,
        text="Tool definition for greet_soul: Greets",
        metadata={"name": doc_id, "is_internal": False},
        embedding=[0.1, 0.2],
    )


class TestChromaVectorAdapter:
    @pytest.mark.asyncio
    async def test_collection_uses_cosine_without_embedding_function(self) -> None:
        adapter, collection = _adapter()
        collection.count.return_value = 0

        await adapter.count("llm_tools")

        adapter._client.get_or_create_collection.assert_called_with(
            name="llm_tools",
            embedding_function=None,
            metadata={"hnsw:space": "cosine"},
        )

    @pytest.mark.asyncio
    async def test_get_found(self) -> None:
        adapter, collection = _adapter()
        collection.get.return_value = {
            "ids": ["greet_soul"],
            "documents": ["Tool definition for greet_soul: Greets"],
            "metadatas": [{"name": "greet_soul"}],
        }

        doc = await adapter.get("llm_tools", "greet_soul")

        assert doc is not None
        assert doc.id == "greet_soul"
        assert doc.metadata == {"name": "greet_soul"}
        collection.get.assert_called_once_with(ids=["greet_soul"], include=["metadatas", "documents"])

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        adapter, collection = _adapter()
        collection.get.return_value = {"ids": [], "documents": [], "metadatas": []}

        assert await adapter.get("llm_tools", "nothing") is None

    @pytest.mark.asyncio
    async def test_add_new(self) -> None:
        adapter, collection = _adapter()
        collection.get.return_value = {"ids": []}

        assert await adapter.add("llm_tools", _doc())

        collection.add.assert_called_once_with(
            ids=["greet_soul"],
            documents=["Tool definition for greet_soul: Greets"],
            embeddings=[[0.1, 0.2]],
            metadatas=[{"name": "greet_soul", "is_internal": False}],
        )

    @pytest.mark.asyncio
    async def test_add_existing_is_refused(self) -> None:
        adapter, collection = _adapter()
        collection.get.return_value = {"ids": ["greet_soul"]}

        assert not await adapter.add("llm_tools", _doc())
        collection.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_clamps_and_scores(self) -> None:
        adapter, collection = _adapter()
        collection.count.return_value = 2
        collection.query.return_value = {
            "ids": [["a", "b"]],
            "documents": [["doc a", "doc b"]],
            "metadatas": [[{"name": "a"}, {"name": "b"}]],
            "distances": [[0.0, 1.0]],
        }

        results = await adapter.search("llm_tools", [1.0, 0.0], top_k=10)

        assert [r.id for r in results] == ["a", "b"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(0.5)
        assert collection.query.call_args.kwargs["n_results"] == 2

    @pytest.mark.asyncio
    async def test_search_empty_collection(self) -> None:
        adapter, collection = _adapter()
        collection.count.return_value = 0

        assert await adapter.search("llm_tools", [1.0], top_k=5) == []
        collection.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_errors_propagate(self) -> None:
        adapter, collection = _adapter()
        collection.get.side_effect = ConnectionError("chroma down")

        with pytest.raises(ConnectionError):
            await adapter.get("llm_tools", "x")

    def test_url_selects_http_client(self) -> None:
        with patch("artificer.vector_adapters.chroma.chromadb.HttpClient") as http_client:
            ChromaVectorAdapter(url="http://chroma:9000")

        http_client.assert_called_once_with(host="chroma", port=9000, ssl=False)

    def test_path_selects_persistent_client(self) -> None:
        with patch("artificer.vector_adapters.chroma.chromadb.PersistentClient") as persistent:
            ChromaVectorAdapter(persist_path="/tmp/tools")

        persistent.assert_called_once_with(path="/tmp/tools")


class TestParseUrl:
    def test_https_default_port(self) -> None:
        assert _parse_url("https://vectors.example.com") == {
            "host": "vectors.example.com",
            "port": 443,
            "ssl": True,
        }

    def test_http_default_port(self) -> None:
        assert _parse_url("http://localhost") == {"host": "localhost", "port": 8000, "ssl": False}
