"""Abstract base class for record-store backends.

A backend only implements the storage primitives (save / find / remove per
collection).  Record lifecycle rules (creation defaults, ``updated_at``
bookkeeping, newest-first ordering, not-found errors) live here so every
backend behaves the same.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, TypeAdapter

from legal_doc_ai.errors import AnalysisNotFoundError, DocumentNotFoundError
from legal_doc_ai.records.models import (
    Analysis,
    AnalysisBias,
    AnalysisDepth,
    Document,
    ExtractedParties,
    utcnow,
)


class RecordStoreBase(ABC):
    """Backend-agnostic persistence for documents, analyses and parties."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def save_document(self, document: Document) -> None:
        """Insert or replace *document* (keyed by ``document.id``)."""
        ...

    @abstractmethod
    def find_document(self, document_id: str) -> Document | None: ...

    @abstractmethod
    def find_documents(self, owner_id: str | None = None) -> list[Document]:
        """Return documents (all, or those of *owner_id*), newest first."""
        ...

    @abstractmethod
    def patch_document(self, document_id: str, changes: dict[str, Any]) -> Document | None:
        """Set *changes* on one document in a single step; ``None`` when it is missing.

        *changes* holds already validated plain values (see :func:`validate_changes`).
        """
        ...

    @abstractmethod
    def remove_document(self, document_id: str) -> bool:
        """Delete a document; return ``False`` when it did not exist."""
        ...

    @abstractmethod
    def save_analysis(self, analysis: Analysis) -> None: ...

    @abstractmethod
    def find_analysis(self, analysis_id: str) -> Analysis | None: ...

    @abstractmethod
    def patch_analysis(self, analysis_id: str, changes: dict[str, Any]) -> Analysis | None: ...

    @abstractmethod
    def find_analyses(self, document_id: str | None = None) -> list[Analysis]:
        """Return analyses (all, or those of *document_id*), newest first."""
        ...

    @abstractmethod
    def save_parties(self, record: ExtractedParties) -> None: ...

    @abstractmethod
    def find_parties(self, document_id: str) -> list[ExtractedParties]:
        """Return party-extraction records for *document_id*, newest first."""
        ...

    # -- documents ------------------------------------------------------------

    def create_document(
        self,
        *,
        title: str,
        owner_id: str,
        file_type: str,
        file_size: int,
    ) -> Document:
        """Create the record that precedes an upload (status ``processing``)."""
        document = Document(title=title, owner_id=owner_id, file_type=file_type, file_size=file_size)
        self.save_document(document)
        return document

    def get_document(self, document_id: str) -> Document:
        document = self.find_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def list_documents(self, owner_id: str) -> list[Document]:
        return self.find_documents(owner_id)

    def all_documents(self) -> list[Document]:
        return self.find_documents()

    def update_document(self, document_id: str, **changes: Any) -> Document:
        """Apply *changes* to a document and bump ``updated_at``.

        Only the named fields are written, so concurrent updates of other
        fields (e.g. a background ingestion run and a re-upload) are kept.
        """
        updated = self.patch_document(document_id, validate_changes(Document, changes))
        if updated is None:
            raise DocumentNotFoundError(document_id)
        return updated

    def delete_document(self, document_id: str) -> None:
        if not self.remove_document(document_id):
            raise DocumentNotFoundError(document_id)

    # -- analyses -------------------------------------------------------------

    def create_analysis(
        self,
        *,
        document_id: str,
        party_perspective: str | None,
        analysis_depth: AnalysisDepth,
        analysis_bias: AnalysisBias,
    ) -> Analysis:
        """Create a ``pending`` analysis with an empty document summary."""
        analysis = Analysis(
            document_id=document_id,
            party_perspective=party_perspective,
            analysis_depth=analysis_depth,
            analysis_bias=analysis_bias,
        )
        self.save_analysis(analysis)
        return analysis

    def get_analysis(self, analysis_id: str) -> Analysis:
        analysis = self.find_analysis(analysis_id)
        if analysis is None:
            raise AnalysisNotFoundError(analysis_id)
        return analysis

    def list_analyses(self, document_id: str) -> list[Analysis]:
        return self.find_analyses(document_id)

    def all_analyses(self) -> list[Analysis]:
        return self.find_analyses()

    def latest_analysis(self, document_id: str) -> Analysis | None:
        analyses = self.find_analyses(document_id)
        return analyses[0] if analyses else None

    def update_analysis(self, analysis_id: str, **changes: Any) -> Analysis:
        updated = self.patch_analysis(analysis_id, validate_changes(Analysis, changes))
        if updated is None:
            raise AnalysisNotFoundError(analysis_id)
        return updated

    # -- parties --------------------------------------------------------------

    def store_extracted_parties(self, document_id: str, parties: list[str]) -> ExtractedParties:
        record = ExtractedParties(document_id=document_id, parties=parties)
        self.save_parties(record)
        return record

    def latest_extracted_parties(self, document_id: str) -> ExtractedParties | None:
        records = self.find_parties(document_id)
        return records[0] if records else None


def validate_changes(model: type[BaseModel], changes: dict[str, Any]) -> dict[str, Any]:
    """Validate *changes* field by field against *model* and dump them to plain values.

    Unknown fields and invalid values raise ``ValueError``.  ``updated_at`` is
    always set to now.
    """
    values: dict[str, Any] = {}
    for key, value in changes.items():
        field = model.model_fields.get(key)
        if field is None:
            raise ValueError(f"{model.__name__} has no field {key!r}")
        adapter = TypeAdapter(field.annotation)
        values[key] = adapter.dump_python(adapter.validate_python(value))
    values["updated_at"] = utcnow()
    return values


def merge_changes(record: Any, changes: dict[str, Any]) -> Any:
    """Re-validated copy of *record* with *changes* applied."""
    return type(record).model_validate({**record.model_dump(), **changes})


def newest_first(records: list[Any]) -> list[Any]:
    """Sort by ``created_at`` descending; later insertions win ties."""
    return sorted(reversed(records), key=lambda r: r.created_at, reverse=True)
