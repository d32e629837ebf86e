"""Chunk index and similarity search over uploaded documents.

The ingestion pipeline writes embedded chunks through :class:`VectorStoreBase`;
the chat workflow reads them back with :class:`SemanticRetriever`.  Chroma is
the only backend and is imported lazily, so ``chromadb`` is not loaded until
a store is actually built.
"""

from __future__ import annotations

from functools import lru_cache

from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.retrieval.models import Citation, MetadataFilter, RetrievalResult
from legal_doc_ai.retrieval.retriever import SemanticRetriever
from legal_doc_ai.retrieval.similarity import dot_product

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "MetadataFilter",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
    "dot_product",
    "get_vector_store",
]


@lru_cache(maxsize=1)
def get_vector_store() -> VectorStoreBase:
    """Process-wide Chroma store built from settings."""
    from legal_doc_ai.retrieval.chroma_store import ChromaVectorStore

    return ChromaVectorStore()


def __getattr__(name: str):  # noqa: ANN001
    if name == "ChromaVectorStore":
        from legal_doc_ai.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
