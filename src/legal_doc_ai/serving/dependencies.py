"""FastAPI dependencies; tests replace them through ``app.dependency_overrides``."""

from __future__ import annotations

import logging
from collections.abc import Callable

from legal_doc_ai.ingestion.pipeline import ProcessingResult, process_document
from legal_doc_ai.records import RecordStoreBase, get_record_store
from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.storage import FileStorageBase, get_file_storage

logger = logging.getLogger(__name__)

Processor = Callable[..., "ProcessingResult | None"]


def get_store() -> RecordStoreBase:
    return get_record_store()


def get_storage() -> FileStorageBase:
    return get_file_storage()


def get_chunk_store() -> VectorStoreBase | None:
    """Chroma store, or ``None`` when it cannot be reached."""
    from legal_doc_ai.retrieval import get_vector_store

    try:
        return get_vector_store()
    except Exception:
        logger.warning("Vector store unavailable", exc_info=True)
        return None


def get_processor() -> Processor:
    """Callable that runs the ingestion pipeline for one document."""
    return process_document
