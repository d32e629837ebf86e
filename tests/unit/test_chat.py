"""Unit tests for the chat-with-document workflow.

All tests run without OpenAI or Chroma: the chat model, the embeddings
client and the retriever are patched in :mod:`legal_doc_ai.chat.nodes`.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from conftest import FakeEmbeddings, FakeVectorStore, fake_llm

from legal_doc_ai.chat.graph import build_chat_graph, create_initial_state
from legal_doc_ai.chat.models import ChatMessage, ChatReply, Reference
from legal_doc_ai.chat.nodes import generate_answer, retrieve_context
from legal_doc_ai.chat.service import chat_with_document
from legal_doc_ai.errors import DocumentNotFoundError, DocumentNotReadyError, ResponseParseError
from legal_doc_ai.records.memory_store import InMemoryRecordStore
from legal_doc_ai.retrieval.retriever import SemanticRetriever

REPLY = {
    "content": "The lease runs for twelve months from signing.",
    "references": [{"page": 2, "text": "The term of this Lease shall be twelve (12) months."}],
}

HITS: list[dict[str, Any]] = [
    {
        "id": "doc-0",
        "content": "The term of this Lease shall be twelve (12) months.",
        "score": 0.91,
        "metadata": {"document_id": "doc", "chunk_index": 0, "page": 2, "source": "lease.pdf"},
    },
    {
        "id": "doc-1",
        "content": "Rent is payable on the first day of each month.",
        "score": 0.72,
        "metadata": {"document_id": "doc", "chunk_index": 1, "page": 3, "source": "lease.pdf"},
    },
]


def _processed(store: InMemoryRecordStore, embedding: list[float] | None = None):
    document = store.create_document(title="lease.pdf", owner_id="user-1", file_type="application/pdf", file_size=1)
    return store.update_document(
        document.id,
        content="FULL LEASE TEXT",
        embedding=[0.2, 0.4, 0.6] if embedding is None else embedding,
        status="completed",
    )


@pytest.fixture()
def patched_nodes():
    """Patch embeddings and retriever; yields the fake vector store."""
    store = FakeVectorStore(hits=HITS)
    with (
        patch("legal_doc_ai.chat.nodes.get_embedding_function", return_value=FakeEmbeddings()),
        patch("legal_doc_ai.chat.nodes._get_retriever", return_value=SemanticRetriever(store=store)),
    ):
        yield store


# ── Models ─────────────────────────────────────────────────────────────


class TestChatModels:
    def test_reference_text_truncated(self) -> None:
        assert len(Reference(page=1, text="x" * 500).text) == 200

    def test_reference_page_coerced(self) -> None:
        assert Reference(page="4", text="t").page == 4
        assert Reference(page="iv", text="t").page is None
        assert Reference(page=2.0, text="t").page == 2

    def test_reply_caps_references(self) -> None:
        reply = ChatReply(content="c", references=[Reference(page=i, text=f"line {i}") for i in range(8)])
        assert len(reply.references) == 5
        assert reply.role == "assistant"


# ── Nodes ──────────────────────────────────────────────────────────────


class TestRetrieveContext:
    def test_similarity_is_dot_product(self, record_store, patched_nodes) -> None:
        document = _processed(record_store)
        update = retrieve_context(create_initial_state(document, "How long is the lease?"))
        # FakeEmbeddings.embed_query -> [1.0, 0.5, 0.0]
        assert update["similarity"] == pytest.approx(0.2 + 0.2)
        assert update["query_embedding"] == [1.0, 0.5, 0.0]

    def test_context_filtered_to_document(self, record_store, patched_nodes) -> None:
        document = _processed(record_store)
        update = retrieve_context(create_initial_state(document, "term?"))
        assert len(update["context"]) == 2
        assert patched_nodes.last_filters[0].field == "document_id"
        assert patched_nodes.last_filters[0].value == document.id
        assert "twelve (12) months" in update["context_text"]

    def test_falls_back_to_full_content(self, record_store) -> None:
        document = _processed(record_store)
        with (
            patch("legal_doc_ai.chat.nodes.get_embedding_function", return_value=FakeEmbeddings()),
            patch("legal_doc_ai.chat.nodes._get_retriever", return_value=SemanticRetriever(store=FakeVectorStore())),
        ):
            update = retrieve_context(create_initial_state(document, "term?"))
        assert update["context"] == []
        assert update["context_text"] == "FULL LEASE TEXT"

    def test_retriever_failure_falls_back(self, record_store) -> None:
        document = _processed(record_store)
        broken = MagicMock()
        broken.search_document.side_effect = ConnectionError("chroma down")
        with (
            patch("legal_doc_ai.chat.nodes.get_embedding_function", return_value=FakeEmbeddings()),
            patch("legal_doc_ai.chat.nodes._get_retriever", return_value=broken),
        ):
            update = retrieve_context(create_initial_state(document, "term?"))
        assert update["context_text"] == "FULL LEASE TEXT"


class TestGenerateAnswer:
    def _state(self, record_store, **overrides: Any) -> dict[str, Any]:
        state = create_initial_state(_processed(record_store), "How long is the lease?")
        state.update(context_text="ctx", similarity=0.4, **overrides)
        return state

    def test_parses_reply(self, record_store) -> None:
        llm = fake_llm(json.dumps(REPLY))
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            update = generate_answer(self._state(record_store))

        reply = update["reply"]
        assert reply.content == REPLY["content"]
        assert reply.references == [Reference(page=2, text=REPLY["references"][0]["text"])]
        assert reply.similarity == 0.4

    def test_history_in_prompt(self, record_store) -> None:
        llm = fake_llm(json.dumps(REPLY))
        history = [ChatMessage(role="user", content="Who signs?"), ChatMessage(role="assistant", content="Acme.")]
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            generate_answer(self._state(record_store, history=history))

        body = llm.invoke.call_args[0][0][1].content
        assert "user: Who signs?\nassistant: Acme." in body

    def test_missing_references_ok(self, record_store) -> None:
        llm = fake_llm('{"content": "No idea."}')
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            reply = generate_answer(self._state(record_store))["reply"]
        assert reply.references == []

    def test_malformed_references_dropped(self, record_store) -> None:
        payload = {"content": "c", "references": [{"page": 1}, "loose", {"page": "ii", "text": "kept"}]}
        llm = fake_llm(json.dumps(payload))
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            reply = generate_answer(self._state(record_store))["reply"]
        assert reply.references == [Reference(page=None, text="kept")]

    def test_invalid_json_raises(self, record_store) -> None:
        llm = fake_llm("plain prose answer")
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            with pytest.raises(ResponseParseError):
                generate_answer(self._state(record_store))

    def test_missing_content_raises(self, record_store) -> None:
        llm = fake_llm('{"references": []}')
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            with pytest.raises(ResponseParseError, match="content"):
                generate_answer(self._state(record_store))


# ── Graph & service ────────────────────────────────────────────────────


class TestChatGraph:
    def test_graph_compiles(self) -> None:
        graph = build_chat_graph()
        assert graph is not None

    def test_initial_state_keys(self, record_store) -> None:
        state = create_initial_state(_processed(record_store), "q")
        assert set(state) == {
            "document",
            "message",
            "history",
            "query_embedding",
            "similarity",
            "context",
            "context_text",
            "reply",
        }


class TestChatWithDocument:
    def test_end_to_end(self, record_store, patched_nodes) -> None:
        document = _processed(record_store)
        llm = fake_llm(json.dumps(REPLY))
        with patch("legal_doc_ai.chat.nodes.get_llm", return_value=llm):
            reply = chat_with_document(document.id, "How long is the lease?", [], store=record_store)

        assert isinstance(reply, ChatReply)
        assert reply.role == "assistant"
        assert reply.content == REPLY["content"]
        assert reply.similarity == pytest.approx(0.4)
        prompt_body = llm.invoke.call_args[0][0][1].content
        assert "Rent is payable" in prompt_body
        assert "FULL LEASE TEXT" not in prompt_body

    def test_unprocessed_document_rejected(self, record_store) -> None:
        document = record_store.create_document(title="t", owner_id="u", file_type="text/plain", file_size=1)
        with pytest.raises(DocumentNotReadyError):
            chat_with_document(document.id, "hi", store=record_store)

    def test_empty_embedding_rejected(self, record_store) -> None:
        document = _processed(record_store, embedding=[])
        with pytest.raises(DocumentNotReadyError):
            chat_with_document(document.id, "hi", store=record_store)

    def test_unknown_document(self, record_store) -> None:
        with pytest.raises(DocumentNotFoundError):
            chat_with_document("missing", "hi", store=record_store)
