"""Legal analysis and party extraction.

Both operations run one prompt against the chat model (retrying on rate
limits), pull a JSON payload out of the reply and persist it.  They never
raise for model or parsing failures: the affected records are marked
``failed`` and the returned outcome carries the error message.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import ValidationError

from legal_doc_ai.config import settings
from legal_doc_ai.errors import EmptyDocumentError, ResponseParseError
from legal_doc_ai.llm.client import get_llm
from legal_doc_ai.llm.parsing import extract_json_array, extract_json_object, response_text
from legal_doc_ai.llm.prompts import (
    ANALYSIS_PROMPT_VERSION,
    build_analysis_prompt,
    build_party_extraction_prompt,
)
from legal_doc_ai.llm.retry import invoke_with_backoff
from legal_doc_ai.records import get_record_store
from legal_doc_ai.records.models import AnalysisMetadata, AnalysisResult

if TYPE_CHECKING:
    from legal_doc_ai.records.base import RecordStoreBase
    from legal_doc_ai.records.models import Analysis, AnalysisBias, AnalysisDepth

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    success: bool
    analysis_id: str
    error: str | None = None


@dataclass
class PartyExtractionOutcome:
    success: bool
    parties: list[str] = field(default_factory=list)
    extracted_parties_id: str | None = None
    error: str | None = None


# ── Legal analysis ────────────────────────────────────────────────────


def parse_analysis_response(text: str) -> AnalysisResult:
    """Validate the model's JSON reply into an :class:`AnalysisResult`.

    Raises
    ------
    ResponseParseError
        If the reply holds no JSON object or it does not fit the schema.
    """
    payload = extract_json_object(text)
    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        raise ResponseParseError(f"Analysis JSON does not match the expected structure: {exc}") from exc


def analyze_document(
    document_id: str,
    party_perspective: str | None = None,
    analysis_depth: AnalysisDepth = "full",
    analysis_bias: AnalysisBias = "neutral",
    *,
    store: RecordStoreBase | None = None,
) -> AnalysisOutcome:
    """Run a structured legal analysis of a processed document.

    Parameters
    ----------
    document_id:
        Document to analyse; it must exist.
    party_perspective:
        Party whose interests the analysis focuses on.
    analysis_depth:
        ``"summary"`` or ``"full"``.
    analysis_bias:
        ``"neutral"``, ``"favorable"`` or ``"risk"``.
    store:
        Record store (default: the configured one).

    Returns
    -------
    AnalysisOutcome
        ``success`` is False when the model call or parsing failed; both the
        analysis and the document are then marked ``failed``.

    Raises
    ------
    DocumentNotFoundError
        If *document_id* does not exist (no analysis record is created).
    """
    store = store or get_record_store()
    document = store.get_document(document_id)

    analysis = store.create_analysis(
        document_id=document_id,
        party_perspective=party_perspective,
        analysis_depth=analysis_depth,
        analysis_bias=analysis_bias,
    )
    logger.info("Analysis %s created for document %s", analysis.id, document_id)

    started = time.monotonic()
    try:
        store.update_document(document_id, status="processing")
        store.update_analysis(analysis.id, status="processing")

        if not document.content.strip():
            raise EmptyDocumentError(f"Document {document_id} has no extracted content")

        prompt = build_analysis_prompt(
            document.content,
            party_perspective=party_perspective or "",
            analysis_depth=analysis_depth,
            analysis_bias=analysis_bias,
        )
        llm = get_llm()
        reply = invoke_with_backoff(lambda: llm.invoke(prompt), label="legal analysis")
        result = parse_analysis_response(response_text(reply.value))

        metadata = AnalysisMetadata(
            processing_time=round(time.monotonic() - started, 3),
            prompt_version=ANALYSIS_PROMPT_VERSION,
            ai_model=settings.llm_model_name,
            retries=reply.retries,
        )
        store.update_analysis(analysis.id, status="complete", metadata=metadata, **result.model_dump())
        store.update_document(document_id, status="completed")
    except Exception as exc:
        logger.exception("Analysis %s of document %s failed", analysis.id, document_id)
        _mark_analysis_failed(store, analysis.id, document_id)
        return AnalysisOutcome(success=False, analysis_id=analysis.id, error=str(exc))

    logger.info("Analysis %s complete (risk score %s)", analysis.id, result.risk_score)
    return AnalysisOutcome(success=True, analysis_id=analysis.id)


def _mark_analysis_failed(store: RecordStoreBase, analysis_id: str, document_id: str) -> None:
    store.update_analysis(analysis_id, status="failed")
    store.update_document(document_id, status="failed")


def get_latest_analysis(document_id: str, *, store: RecordStoreBase | None = None) -> Analysis | None:
    """Most recent analysis of *document_id*, whatever its status."""
    store = store or get_record_store()
    return store.latest_analysis(document_id)


# ── Party extraction ──────────────────────────────────────────────────


def parse_parties_response(text: str) -> list[str]:
    """Decode the model's JSON array of party names.

    ``null`` entries become ``"N/A"``; anything else that is not a string
    is rejected.
    """
    payload = extract_json_array(text)
    parties: list[str] = []
    for item in payload:
        if item is None:
            parties.append("N/A")
        elif isinstance(item, str):
            parties.append(item.strip())
        else:
            raise ResponseParseError(f"Party list contains a non-string entry: {item!r}")
    return parties


def extract_parties(
    document_id: str,
    content: str | None = None,
    *,
    store: RecordStoreBase | None = None,
) -> PartyExtractionOutcome:
    """Ask the model for the parties named in a document.

    *content* defaults to the document's stored text; only the first
    ``settings.party_extraction_char_limit`` characters are sent.
    """
    store = store or get_record_store()
    document = store.get_document(document_id)
    text = document.content if content is None else content

    try:
        store.update_document(document_id, status="processing")
        if not text.strip():
            raise EmptyDocumentError(f"Document {document_id} has no content to extract parties from")

        prompt = build_party_extraction_prompt(text, settings.party_extraction_char_limit)
        llm = get_llm(temperature=0.0)
        reply = invoke_with_backoff(lambda: llm.invoke(prompt), label="party extraction")
        parties = parse_parties_response(response_text(reply.value))

        record = store.store_extracted_parties(document_id, parties)
        store.update_document(document_id, status="completed")
    except Exception as exc:
        logger.exception("Party extraction for document %s failed", document_id)
        store.update_document(document_id, status="failed")
        return PartyExtractionOutcome(success=False, error=str(exc))

    logger.info("Extracted %d part(ies) from document %s", len(parties), document_id)
    return PartyExtractionOutcome(success=True, parties=parties, extracted_parties_id=record.id)


def get_extracted_parties(document_id: str, *, store: RecordStoreBase | None = None) -> list[str]:
    """Parties from the latest extraction, or ``[]`` if none ran yet."""
    store = store or get_record_store()
    record = store.latest_extracted_parties(document_id)
    return list(record.parties) if record else []
