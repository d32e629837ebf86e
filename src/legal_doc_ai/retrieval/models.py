"""Chunk hits returned by the vector store, with their provenance."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

FILTER_OPERATORS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "nin")


class MetadataFilter(BaseModel):
    """One condition on chunk metadata, e.g. ``document_id == "abc"``.

    ``operator`` is one of :data:`FILTER_OPERATORS`; ``in`` / ``nin`` take a
    list ``value``.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def for_document(cls, document_id: str) -> MetadataFilter:
        """Restrict a search to the chunks of one uploaded document."""
        return cls.equals("document_id", document_id)


class Citation(BaseModel):
    """Where a retrieved chunk sits in its document.

    Attributes
    ----------
    chunk_id:
        Vector-store id of the chunk (``<document_id>-<chunk_index>``).
    document_id:
        Record id of the uploaded document.
    source:
        Document title.
    chunk_index:
        Position of the chunk in the document, 0-based.
    page:
        1-based page number; PDFs only.
    score:
        Similarity to the query as reported by the store.
    """

    chunk_id: str | None = None
    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    page: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    """A chunk of document text and its citation."""

    content: str
    citation: Citation
