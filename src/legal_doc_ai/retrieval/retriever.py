"""Document-scoped chunk retrieval for the chat workflow.

Usage::

    from legal_doc_ai.retrieval import SemanticRetriever

    retriever = SemanticRetriever()
    hits = retriever.search_document(doc.id, question_vector)
    prompt_context = SemanticRetriever.build_context(hits)
"""

from __future__ import annotations

import logging
from typing import Any

from legal_doc_ai.config import settings
from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.retrieval.models import Citation, MetadataFilter, RetrievalResult

logger = logging.getLogger(__name__)


def _citation_for(hit: dict[str, Any]) -> Citation:
    meta = hit.get("metadata") or {}
    return Citation(
        chunk_id=hit.get("id"),
        document_id=meta.get("document_id"),
        source=meta.get("source", "unknown"),
        chunk_index=meta.get("chunk_index"),
        page=meta.get("page"),
        score=hit.get("score"),
        metadata=meta,
    )


class SemanticRetriever:
    """Turns raw vector-store hits into cited :class:`RetrievalResult` objects.

    Parameters
    ----------
    store:
        Chunk index; the process-wide Chroma store when omitted.
    default_k:
        Chunks returned when a call does not pass ``k``.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        *,
        default_k: int = settings.chat_context_chunks,
    ) -> None:
        if store is None:
            from legal_doc_ai.retrieval import get_vector_store

            store = get_vector_store()
        self._store = store
        self.default_k = default_k

    def search_document(
        self,
        document_id: str,
        query_embedding: list[float],
        *,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Chunks of *document_id* closest to *query_embedding*."""
        return self.search_by_embedding(
            query_embedding,
            k=k,
            filters=[MetadataFilter.for_document(document_id)],
        )

    def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        hits = self._store.similarity_search(embedding, k=k or self.default_k, filters=filters)
        results = [
            RetrievalResult(content=hit.get("content") or "", citation=_citation_for(hit)) for hit in hits
        ]
        logger.debug("Retrieved %d chunk(s)", len(results))
        return results

    @staticmethod
    def build_context(results: list[RetrievalResult], *, separator: str = "\n\n") -> str:
        """Join chunk texts in reading order (by ``chunk_index``) for a prompt.

        Chunks without an index keep their ranking position after the
        indexed ones.
        """
        ordered = sorted(
            results,
            key=lambda r: (r.citation.chunk_index is None, r.citation.chunk_index or 0),
        )
        return separator.join(r.content for r in ordered)
