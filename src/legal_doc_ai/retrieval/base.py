"""Interface every chunk-index backend implements.

Chunks and queries are embedded by the caller, so backends only ever see
vectors and never need an embeddings client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from legal_doc_ai.retrieval.models import MetadataFilter


class VectorStoreBase(ABC):
    """Index of embedded document chunks.

    Parameters
    ----------
    collection_name:
        Collection / index the chunks live in.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    @abstractmethod
    def add_chunks(
        self,
        ids: list[str],
        texts: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict[str, Any]],
    ) -> None:
        """Insert or replace pre-embedded chunks.  The four lists are parallel."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Return up to *k* chunks nearest to *query_embedding*, best first.

        Each hit is a dict with ``id``, ``content``, ``score`` (higher is
        closer) and ``metadata``.  *filters* are ANDed together.
        """
        ...

    @abstractmethod
    def delete_where(self, filters: list[MetadataFilter]) -> None:
        """Remove every chunk matching *filters*."""
        ...

    def health_check(self) -> bool:
        """``True`` when the backend is reachable."""
        return True
