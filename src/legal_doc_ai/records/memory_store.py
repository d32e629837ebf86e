"""In-process record store, the default for development and tests."""

from __future__ import annotations

import threading
from typing import Any

from legal_doc_ai.records.base import RecordStoreBase, merge_changes, newest_first
from legal_doc_ai.records.models import Analysis, Document, ExtractedParties


class InMemoryRecordStore(RecordStoreBase):
    """Dict-backed store guarded by a lock (background tasks write concurrently)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        self._analyses: dict[str, Analysis] = {}
        self._parties: list[ExtractedParties] = []

    def save_document(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = document

    def find_document(self, document_id: str) -> Document | None:
        with self._lock:
            return self._documents.get(document_id)

    def find_documents(self, owner_id: str | None = None) -> list[Document]:
        with self._lock:
            docs = [d for d in self._documents.values() if owner_id is None or d.owner_id == owner_id]
        return newest_first(docs)

    def patch_document(self, document_id: str, changes: dict[str, Any]) -> Document | None:
        with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                return None
            updated = self._documents[document_id] = merge_changes(current, changes)
        return updated

    def remove_document(self, document_id: str) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    def save_analysis(self, analysis: Analysis) -> None:
        with self._lock:
            self._analyses[analysis.id] = analysis

    def find_analysis(self, analysis_id: str) -> Analysis | None:
        with self._lock:
            return self._analyses.get(analysis_id)

    def patch_analysis(self, analysis_id: str, changes: dict[str, Any]) -> Analysis | None:
        with self._lock:
            current = self._analyses.get(analysis_id)
            if current is None:
                return None
            updated = self._analyses[analysis_id] = merge_changes(current, changes)
        return updated

    def find_analyses(self, document_id: str | None = None) -> list[Analysis]:
        with self._lock:
            analyses = [
                a for a in self._analyses.values() if document_id is None or a.document_id == document_id
            ]
        return newest_first(analyses)

    def save_parties(self, record: ExtractedParties) -> None:
        with self._lock:
            self._parties.append(record)

    def find_parties(self, document_id: str) -> list[ExtractedParties]:
        with self._lock:
            records = [r for r in self._parties if r.document_id == document_id]
        return newest_first(records)
