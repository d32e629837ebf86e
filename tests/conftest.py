"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import Embeddings

from legal_doc_ai.records.memory_store import InMemoryRecordStore
from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.retrieval.models import MetadataFilter


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeVectorStore(VectorStoreBase):
    """In-memory fake that records upserts and returns canned hits."""

    def __init__(self, hits: list[dict[str, Any]] | None = None) -> None:
        super().__init__("test-collection")
        self._hits: list[dict[str, Any]] = hits or []
        self.added: list[dict[str, Any]] = []
        self.deleted_filters: list[list[MetadataFilter]] = []
        self.last_filters: list[MetadataFilter] | None = None
        self.last_query: list[float] | None = None

    def add_chunks(
        self,
        ids: list[str],
        texts: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict[str, Any]],
    ) -> None:
        for chunk_id, text, vector, meta in zip(ids, texts, embeddings, metadatas):
            self.added.append({"id": chunk_id, "content": text, "embedding": vector, "metadata": meta})

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        self.last_filters = filters
        self.last_query = query_embedding
        return self._hits[:k]

    def health_check(self) -> bool:
        return True

    def delete_where(self, filters: list[MetadataFilter]) -> None:
        self.deleted_filters.append(filters)


class FakeEmbeddings(Embeddings):
    """Deterministic 3-d embeddings derived from text length."""

    def __init__(self) -> None:
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    @staticmethod
    def _vector(text: str) -> list[float]:
        n = float(len(text))
        return [1.0, n, n % 7]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return [1.0, 0.5, 0.0]


class RateLimitError(Exception):
    """Mimics an SDK error carrying an HTTP status and error details."""

    def __init__(self, details: list[dict[str, Any]] | None = None, status_code: int = 429) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.error_details = details or []


def fake_llm_response(content: str) -> MagicMock:
    """Create a mock chat-model response with the given content."""
    resp = MagicMock()
    resp.content = content
    return resp


def fake_llm(*contents: str) -> MagicMock:
    """Mock chat model whose ``invoke`` returns *contents* in order."""
    llm = MagicMock()
    llm.invoke.side_effect = [fake_llm_response(c) for c in contents]
    return llm


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Capture backoff sleeps instead of waiting."""
    delays: list[float] = []
    monkeypatch.setattr("legal_doc_ai.llm.retry.time.sleep", delays.append)
    return delays
