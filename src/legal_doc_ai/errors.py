"""Exceptions raised by the document, analysis and chat services."""

from __future__ import annotations


class LegalDocError(Exception):
    """Base class for all errors raised by this package."""


class DocumentNotFoundError(LegalDocError, LookupError):
    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class AnalysisNotFoundError(LegalDocError, LookupError):
    def __init__(self, analysis_id: str) -> None:
        super().__init__(f"Analysis not found: {analysis_id}")
        self.analysis_id = analysis_id


class DocumentNotReadyError(LegalDocError):
    """The document has not finished processing (no content or embedding yet)."""


class MissingFileError(LegalDocError):
    """The document record has no uploaded file to process."""


class UnsupportedFileTypeError(LegalDocError, ValueError):
    def __init__(self, file_type: str) -> None:
        super().__init__(f"Unsupported file type: {file_type}")
        self.file_type = file_type


class ResponseParseError(LegalDocError, ValueError):
    """The LLM response did not contain the expected JSON payload."""


class RateLimitExhaustedError(LegalDocError, RuntimeError):
    """The hosted API kept answering 429 after every allowed retry."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Still rate limited after {attempts} attempts")
        self.attempts = attempts


class EmptyDocumentError(LegalDocError, ValueError):
    """The uploaded file yielded no extractable text."""
