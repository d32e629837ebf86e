"""Domain records — documents, analyses and extracted parties.

Field names are snake_case in Python; every model also accepts (and
serialises to) camelCase so the JSON produced by the LLM, and expected by
the web client, maps directly onto these types.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DocumentStatus = Literal["processing", "completed", "failed"]
AnalysisStatus = Literal["pending", "processing", "complete", "failed"]
AnalysisDepth = Literal["summary", "full"]
AnalysisBias = Literal["neutral", "favorable", "risk"]


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base for every stored model: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _null_lists_to_empty(cls, data: Any) -> Any:
        """Model replies send ``null`` for empty lists; treat it as ``[]``."""
        if not isinstance(data, dict):
            return data
        nulled = {
            key
            for name, field in cls.model_fields.items()
            if field.default_factory is list
            for key in (name, field.alias)
            if key in data and data[key] is None
        }
        return {**data, **{key: [] for key in nulled}} if nulled else data


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class Document(Record):
    """An uploaded file together with its extracted text and processing state.

    Attributes
    ----------
    content:
        Full extracted text (chunk texts joined by blank lines); empty
        until ingestion has run.
    file_url:
        Where the ingestion pipeline downloads the original file from;
        empty until the upload finished.
    embedding:
        Document-level vector (centroid of the embedded chunk vectors),
        ``None`` until the document is processed.
    """

    id: str = Field(default_factory=new_id)
    title: str
    content: str = ""
    owner_id: str
    file_type: str
    file_size: int = 0
    file_url: str = ""
    storage_id: str | None = None
    embedding: list[float] | None = None
    status: DocumentStatus = "processing"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Analysis findings
# ---------------------------------------------------------------------------


class DocumentSummary(Record):
    """Metadata the LLM extracted about the analysed document."""

    id: str = ""
    title: str = ""
    type: str = ""
    status: str = ""
    parties: list[str] = Field(default_factory=list)
    effective_date: str | None = "unknown"
    expiration_date: str | None = "unknown"
    value: str | None = "unknown"


class KeyClause(Record):
    title: str
    section: str = ""
    text: str = ""
    importance: str = ""
    analysis: str = ""
    recommendation: str | None = None


class NegotiableTerm(Record):
    title: str
    description: str = ""
    priority: str = ""
    current_language: str = ""
    suggested_language: str = ""
    rationale: str | None = None


class RedFlag(Record):
    title: str
    description: str = ""
    severity: str = ""
    location: str | None = None
    impact: str | None = None
    mitigation: str | None = None


class Recommendation(Record):
    title: str
    description: str = ""
    priority: str | None = None
    category: str | None = None


class OverallImpression(Record):
    summary: str = ""
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    conclusion: str = ""


class AnalysisResult(Record):
    """The structured payload returned by the legal-analysis prompt."""

    document: DocumentSummary = Field(default_factory=DocumentSummary)
    risk_score: float | None = None
    key_clauses: list[KeyClause] = Field(default_factory=list)
    negotiable_terms: list[NegotiableTerm] = Field(default_factory=list)
    red_flags: list[RedFlag] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    overall_impression: OverallImpression | None = None


class AnalysisMetadata(Record):
    processing_time: float | None = None
    prompt_version: str | None = None
    ai_model: str | None = None
    retries: int | None = None


class Analysis(AnalysisResult):
    """A stored analysis run for one document."""

    id: str = Field(default_factory=new_id)
    document_id: str
    status: AnalysisStatus = "pending"
    party_perspective: str | None = None
    analysis_depth: AnalysisDepth = "full"
    analysis_bias: AnalysisBias = "neutral"
    metadata: AnalysisMetadata | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------


class ExtractedParties(Record):
    id: str = Field(default_factory=new_id)
    document_id: str
    parties: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
