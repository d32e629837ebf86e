"""Request / response schemas of the HTTP API.

Like the stored records, every schema accepts and emits camelCase keys.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from legal_doc_ai.chat.models import ChatMessage
from legal_doc_ai.records.models import AnalysisBias, AnalysisDepth


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateDocumentRequest(ApiModel):
    title: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    file_type: str = Field(min_length=1, description="MIME type of the file to be uploaded")
    file_size: int = Field(default=0, ge=0)


class UploadUrlResponse(ApiModel):
    upload_url: str


class ProcessingResponse(ApiModel):
    """``processed`` is False when the document was already processed."""

    document_id: str
    processed: bool
    total_chunks: int = 0
    embedded_chunks: int = 0
    dimension: int = 0


class AnalyzeRequest(ApiModel):
    party_perspective: str | None = None
    analysis_depth: AnalysisDepth = "full"
    analysis_bias: AnalysisBias = "neutral"


class AnalysisOutcomeResponse(ApiModel):
    success: bool
    analysis_id: str
    error: str | None = None


class ExtractPartiesRequest(ApiModel):
    content: str | None = None


class PartyExtractionResponse(ApiModel):
    success: bool
    parties: list[str] = Field(default_factory=list)
    extracted_parties_id: str | None = None
    error: str | None = None


class PartiesResponse(ApiModel):
    document_id: str
    parties: list[str]


class ChatRequest(ApiModel):
    message: str = Field(min_length=1)
    previous_messages: list[ChatMessage] = Field(default_factory=list)
