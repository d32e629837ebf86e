"""Chunk index on a Chroma server.

One collection holds the chunks of every document; ``document_id`` in the
chunk metadata scopes queries and deletes to a single upload.
"""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from legal_doc_ai.config import settings
from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.retrieval.models import FILTER_OPERATORS, MetadataFilter

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool)


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Translate filters into a Chroma ``where`` clause (``$and`` for several)."""
    clauses = []
    for f in filters:
        if f.operator not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {f"${f.operator}": f.value}})
    if not clauses:
        return None
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


def _hits_from_query(response: dict[str, Any]) -> list[dict[str, Any]]:
    """Unpack the first query row of a Chroma ``query`` response.

    Chroma reports cosine distance; ``score`` is ``1 - distance``.
    """

    def first_row(key: str) -> list[Any]:
        rows = response.get(key) or [[]]
        return rows[0] or []

    rows = zip(first_row("ids"), first_row("documents"), first_row("metadatas"), first_row("distances"))
    return [
        {"id": chunk_id, "content": text or "", "score": 1.0 - distance, "metadata": meta or {}}
        for chunk_id, text, meta, distance in rows
    ]


class ChromaVectorStore(VectorStoreBase):
    """:class:`VectorStoreBase` backed by ``chromadb.HttpClient``.

    Metadata values that Chroma cannot store (lists, dicts, ``None``) are
    dropped on upsert.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
    ) -> None:
        super().__init__(collection_name)
        self._client = chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        logger.info("Using Chroma collection %r at %s:%d", collection_name, host, port)

    def add_chunks(
        self,
        ids: list[str],
        texts: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict[str, Any]],
    ) -> None:
        if not ids:
            return
        flat = [{key: value for key, value in meta.items() if isinstance(value, _SCALARS)} for meta in metadatas]
        self._collection.upsert(ids=ids, embeddings=embeddings, documents=texts, metadatas=flat)
        logger.info("Indexed %d chunk(s) in %r", len(ids), self.collection_name)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        response = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=k,
            where=_build_chroma_where(filters or []),
            include=["documents", "metadatas", "distances"],
        )
        return _hits_from_query(response)

    def delete_where(self, filters: list[MetadataFilter]) -> None:
        where = _build_chroma_where(filters)
        if where is None:
            raise ValueError("Refusing to delete chunks without a filter")
        self._collection.delete(where=where)
        logger.info("Deleted chunks from %r where %s", self.collection_name, where)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
        except Exception:
            logger.warning("Chroma heartbeat failed", exc_info=True)
            return False
        return True
