"""FastAPI application exposing documents, analyses, party extraction and chat."""

from __future__ import annotations

import logging

from fastapi import BackgroundTasks, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import JSONResponse

from legal_doc_ai.analysis import (
    analyze_document,
    document_trends,
    extract_parties,
    get_extracted_parties,
    latest_unique_analyses,
    risk_distribution,
)
from legal_doc_ai.chat import ChatReply, chat_with_document
from legal_doc_ai.config import configure_logging
from legal_doc_ai.errors import (
    DocumentNotReadyError,
    EmptyDocumentError,
    LegalDocError,
    MissingFileError,
    RateLimitExhaustedError,
    ResponseParseError,
    UnsupportedFileTypeError,
)
from legal_doc_ai.records import Analysis, Document, RecordStoreBase
from legal_doc_ai.retrieval.base import VectorStoreBase
from legal_doc_ai.retrieval.models import MetadataFilter
from legal_doc_ai.serving.dependencies import Processor, get_chunk_store, get_processor, get_storage, get_store
from legal_doc_ai.serving.schemas import (
    AnalysisOutcomeResponse,
    AnalyzeRequest,
    ChatRequest,
    CreateDocumentRequest,
    ExtractPartiesRequest,
    PartiesResponse,
    PartyExtractionResponse,
    ProcessingResponse,
    UploadUrlResponse,
)
from legal_doc_ai.storage import FileStorageBase

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(
    title="Legal Document AI API",
    version="0.1.0",
    description="Upload legal documents, analyse them with an LLM and chat about their content.",
)

# Most specific class first; LookupError covers the *NotFound errors.
_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (LookupError, 404),
    (DocumentNotReadyError, 409),
    (MissingFileError, 409),
    (UnsupportedFileTypeError, 422),
    (EmptyDocumentError, 422),
    (ResponseParseError, 502),
    (RateLimitExhaustedError, 503),
)

_DOCUMENT_EXCLUDE = {"embedding"}


@app.exception_handler(LegalDocError)
async def legal_doc_error_handler(request: Request, exc: LegalDocError) -> JSONResponse:
    status_code = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# ── Health ────────────────────────────────────────────────────────────
@app.get("/health")
def health(chunk_store: VectorStoreBase | None = Depends(get_chunk_store)) -> dict[str, str]:
    """Liveness check; also reports whether the vector store answers."""
    reachable = chunk_store is not None and chunk_store.health_check()
    return {"status": "ok", "vectorStore": "ok" if reachable else "unavailable"}


# ── Documents ─────────────────────────────────────────────────────────
@app.post("/documents", status_code=201, response_model=Document, response_model_exclude=_DOCUMENT_EXCLUDE)
def create_document(body: CreateDocumentRequest, store: RecordStoreBase = Depends(get_store)) -> Document:
    """Create the record for a file that is about to be uploaded."""
    document = store.create_document(
        title=body.title,
        owner_id=body.owner_id,
        file_type=body.file_type,
        file_size=body.file_size,
    )
    logger.info("Created document %s for owner %s", document.id, document.owner_id)
    return document


@app.get("/documents", response_model=list[Document], response_model_exclude=_DOCUMENT_EXCLUDE)
def list_documents(owner_id: str | None = None, store: RecordStoreBase = Depends(get_store)) -> list[Document]:
    return store.list_documents(owner_id) if owner_id else store.all_documents()


@app.get("/documents/{document_id}", response_model=Document, response_model_exclude=_DOCUMENT_EXCLUDE)
def get_document(document_id: str, store: RecordStoreBase = Depends(get_store)) -> Document:
    return store.get_document(document_id)


@app.delete("/documents/{document_id}", status_code=204)
def delete_document(
    document_id: str,
    store: RecordStoreBase = Depends(get_store),
    storage: FileStorageBase = Depends(get_storage),
    chunk_store: VectorStoreBase | None = Depends(get_chunk_store),
) -> Response:
    """Delete a document together with its stored file and indexed chunks."""
    document = store.get_document(document_id)
    if document.storage_id:
        storage.delete(document.storage_id)
    if chunk_store is None:
        logger.warning("Vector store unavailable; chunks of document %s left in place", document_id)
    else:
        try:
            chunk_store.delete_where([MetadataFilter.for_document(document_id)])
        except Exception:
            logger.warning("Could not remove indexed chunks of document %s", document_id, exc_info=True)
    store.delete_document(document_id)
    logger.info("Deleted document %s", document_id)
    return Response(status_code=204)


@app.post("/documents/{document_id}/upload-url", response_model=UploadUrlResponse)
def generate_upload_url(
    document_id: str,
    store: RecordStoreBase = Depends(get_store),
    storage: FileStorageBase = Depends(get_storage),
) -> UploadUrlResponse:
    store.get_document(document_id)
    return UploadUrlResponse(upload_url=storage.generate_upload_url(document_id))


@app.post("/documents/{document_id}/file", response_model=Document, response_model_exclude=_DOCUMENT_EXCLUDE)
def upload_file(
    document_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    store: RecordStoreBase = Depends(get_store),
    storage: FileStorageBase = Depends(get_storage),
    processor: Processor = Depends(get_processor),
) -> Document:
    """Store the uploaded file and schedule its processing."""
    document = store.get_document(document_id)
    data = file.file.read()
    storage_id = storage.store(data, file.content_type or document.file_type)
    if document.storage_id:
        storage.delete(document.storage_id)

    document = store.update_document(
        document_id,
        storage_id=storage_id,
        file_url=storage.get_url(storage_id),
        file_size=len(data),
        status="processing",
        embedding=None,
    )
    background_tasks.add_task(_run_processing, processor, document_id, store)
    logger.info("Received %d bytes for document %s; processing scheduled", len(data), document_id)
    return document


def _run_processing(processor: Processor, document_id: str, store: RecordStoreBase) -> None:
    # The pipeline marks the record failed before re-raising.
    try:
        processor(document_id, store=store)
    except Exception:
        logger.exception("Background processing of document %s failed", document_id)


@app.post("/documents/{document_id}/process", response_model=ProcessingResponse)
def process(
    document_id: str,
    store: RecordStoreBase = Depends(get_store),
    processor: Processor = Depends(get_processor),
) -> ProcessingResponse:
    """Run the ingestion pipeline synchronously."""
    result = processor(document_id, store=store)
    if result is None:
        return ProcessingResponse(document_id=document_id, processed=False)
    return ProcessingResponse(
        document_id=document_id,
        processed=True,
        total_chunks=result.total_chunks,
        embedded_chunks=result.embedded_chunks,
        dimension=result.dimension,
    )


@app.get("/files/{storage_id}")
def download(storage_id: str, storage: FileStorageBase = Depends(get_storage)) -> Response:
    try:
        data, content_type = storage.open(storage_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"File not found: {storage_id}") from None
    return Response(content=data, media_type=content_type)


# ── Analyses ──────────────────────────────────────────────────────────
@app.post("/documents/{document_id}/analyses", response_model=AnalysisOutcomeResponse)
def create_analysis(
    document_id: str,
    body: AnalyzeRequest,
    store: RecordStoreBase = Depends(get_store),
) -> AnalysisOutcomeResponse:
    outcome = analyze_document(
        document_id,
        body.party_perspective,
        body.analysis_depth,
        body.analysis_bias,
        store=store,
    )
    return AnalysisOutcomeResponse.model_validate(outcome, from_attributes=True)


@app.get("/documents/{document_id}/analyses/latest", response_model=Analysis)
def latest_analysis(document_id: str, store: RecordStoreBase = Depends(get_store)) -> Analysis:
    store.get_document(document_id)
    analysis = store.latest_analysis(document_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail=f"No analysis for document {document_id}")
    return analysis


@app.get("/analyses/{analysis_id}", response_model=Analysis)
def get_analysis(analysis_id: str, store: RecordStoreBase = Depends(get_store)) -> Analysis:
    return store.get_analysis(analysis_id)


@app.get("/owners/{owner_id}/analyses/latest", response_model=list[Analysis])
def owner_latest_analyses(owner_id: str, store: RecordStoreBase = Depends(get_store)) -> list[Analysis]:
    """Newest analysis per distinct document title for an owner."""
    return latest_unique_analyses(owner_id, store=store)


# ── Parties ───────────────────────────────────────────────────────────
@app.post("/documents/{document_id}/parties", response_model=PartyExtractionResponse)
def extract_document_parties(
    document_id: str,
    body: ExtractPartiesRequest | None = None,
    store: RecordStoreBase = Depends(get_store),
) -> PartyExtractionResponse:
    outcome = extract_parties(document_id, body.content if body else None, store=store)
    return PartyExtractionResponse.model_validate(outcome, from_attributes=True)


@app.get("/documents/{document_id}/parties", response_model=PartiesResponse)
def document_parties(document_id: str, store: RecordStoreBase = Depends(get_store)) -> PartiesResponse:
    store.get_document(document_id)
    return PartiesResponse(document_id=document_id, parties=get_extracted_parties(document_id, store=store))


# ── Chat ──────────────────────────────────────────────────────────────
@app.post("/documents/{document_id}/chat", response_model=ChatReply)
def chat(document_id: str, body: ChatRequest, store: RecordStoreBase = Depends(get_store)) -> ChatReply:
    """Answer a question about a processed document."""
    return chat_with_document(document_id, body.message, body.previous_messages, store=store)


# ── Analytics ─────────────────────────────────────────────────────────
@app.get("/analytics/risk-distribution")
def analytics_risk_distribution(
    owner_id: str | None = None,
    store: RecordStoreBase = Depends(get_store),
) -> list[dict]:
    """Analyses per risk bucket, optionally restricted to one owner."""
    if owner_id:
        analyses = [a for d in store.list_documents(owner_id) for a in store.list_analyses(d.id)]
    else:
        analyses = store.all_analyses()
    return risk_distribution(analyses)


@app.get("/analytics/document-trends")
def analytics_document_trends(
    owner_id: str | None = None,
    store: RecordStoreBase = Depends(get_store),
) -> list[dict]:
    documents = store.list_documents(owner_id) if owner_id else store.all_documents()
    return document_trends(documents)


def main() -> None:
    """Serve the API with uvicorn (``legal-doc-ai`` console script)."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
