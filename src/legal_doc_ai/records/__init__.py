"""
Records — persistence for documents, analyses and extracted parties.

Public surface
--------------
- :class:`RecordStoreBase` — abstract backend.
- :class:`InMemoryRecordStore` — default in-process backend.
- :class:`MongoRecordStore` — MongoDB backend (imported lazily).
- :func:`get_record_store` — process-wide store chosen by settings.
"""

from __future__ import annotations

from functools import lru_cache

from legal_doc_ai.config import settings
from legal_doc_ai.records.base import RecordStoreBase
from legal_doc_ai.records.memory_store import InMemoryRecordStore
from legal_doc_ai.records.models import (
    Analysis,
    AnalysisResult,
    Document,
    ExtractedParties,
)

__all__ = [
    "Analysis",
    "AnalysisResult",
    "Document",
    "ExtractedParties",
    "InMemoryRecordStore",
    "MongoRecordStore",
    "RecordStoreBase",
    "get_record_store",
]


@lru_cache(maxsize=1)
def get_record_store() -> RecordStoreBase:
    """Return the configured record store (built once per process)."""
    backend = settings.record_store_backend.lower()
    if backend == "mongo":
        from legal_doc_ai.records.mongo_store import MongoRecordStore

        return MongoRecordStore()
    if backend == "memory":
        return InMemoryRecordStore()
    raise ValueError(f"Unknown record store backend: {settings.record_store_backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import MongoRecordStore to avoid pulling in pymongo at import time."""
    if name == "MongoRecordStore":
        from legal_doc_ai.records.mongo_store import MongoRecordStore

        return MongoRecordStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
