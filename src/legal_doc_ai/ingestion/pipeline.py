"""Document processing: download → parse → chunk → embed → persist.

Run once per uploaded document.  The record starts in ``processing`` and
ends ``completed`` (content and embedding set) or ``failed``.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from legal_doc_ai.config import settings
from legal_doc_ai.errors import EmptyDocumentError, MissingFileError
from legal_doc_ai.ingestion.chunker import chunk_documents
from legal_doc_ai.ingestion.embedder import embed_texts, get_embedding_function, mean_vector
from legal_doc_ai.ingestion.loader import download_file, load_file
from legal_doc_ai.records import get_record_store
from legal_doc_ai.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from langchain_core.documents import Document as LCDocument
    from langchain_core.embeddings import Embeddings

    from legal_doc_ai.records.base import RecordStoreBase
    from legal_doc_ai.records.models import Document
    from legal_doc_ai.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path, str, str], Path]


@dataclass(frozen=True)
class ProcessingResult:
    document_id: str
    total_chunks: int
    embedded_chunks: int
    dimension: int


def chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}-{index}"


def _chunk_metadata(document: Document, chunk: LCDocument, index: int) -> dict:
    meta: dict = {
        "document_id": document.id,
        "chunk_index": index,
        "source": document.title,
    }
    # PyPDFLoader pages are 0-based.
    page = chunk.metadata.get("page")
    if isinstance(page, int):
        meta["page"] = page + 1
    return meta


def index_chunks(
    document: Document,
    chunks: list[LCDocument],
    vectors: list[list[float]],
    vector_store: VectorStoreBase,
) -> None:
    """Replace the indexed chunks of *document* with *chunks*."""
    try:
        vector_store.delete_where([MetadataFilter.for_document(document.id)])
    except NotImplementedError:
        logger.debug("Vector store %s cannot delete by filter", type(vector_store).__name__)

    vector_store.add_chunks(
        ids=[chunk_id(document.id, i) for i in range(len(chunks))],
        texts=[c.page_content for c in chunks],
        embeddings=vectors,
        metadatas=[_chunk_metadata(document, c, i) for i, c in enumerate(chunks)],
    )


def process_document(
    document_id: str,
    *,
    store: RecordStoreBase | None = None,
    vector_store: VectorStoreBase | None = None,
    embedder: Embeddings | None = None,
    downloader: Downloader = download_file,
    tmp_dir: str | Path | None = None,
) -> ProcessingResult | None:
    """Extract, chunk and embed an uploaded document.

    Parameters
    ----------
    document_id:
        Record to process.
    store, vector_store, embedder:
        Backends; default to the configured ones.
    downloader:
        ``(url, dest_dir, stem, file_type) -> path``.
    tmp_dir:
        Directory for the downloaded file (default: system temp dir).

    Returns
    -------
    ProcessingResult | None
        ``None`` when the document is not in ``processing`` state, which
        makes repeated invocations no-ops.

    Raises
    ------
    DocumentNotFoundError
        If the record does not exist.
    MissingFileError
        If the record has no file URL (the record is marked failed).
    Exception
        Any download, parse or embedding error, after the record has been
        marked failed.
    """
    store = store or get_record_store()
    document = store.get_document(document_id)

    if document.status != "processing":
        logger.info("Document %s is %s; skipping processing", document_id, document.status)
        return None

    if not document.file_url:
        store.update_document(document_id, status="failed")
        raise MissingFileError(f"Document {document_id} has no file URL")

    logger.info("Processing document %s (%s)", document_id, document.file_type)
    tmp_path: Path | None = None
    try:
        tmp_path = downloader(
            document.file_url,
            Path(tmp_dir or tempfile.gettempdir()),
            f"{document_id}-{document.created_at.strftime('%Y%m%d%H%M%S')}",
            document.file_type,
        )
        pages = load_file(tmp_path, document.file_type)
        chunks = chunk_documents(pages)
        if not chunks:
            raise EmptyDocumentError(f"No text could be extracted from document {document_id}")

        content = "\n\n".join(c.page_content for c in chunks)
        store.update_document(document_id, content=content)
        logger.info("Split document %s into %d chunk(s)", document_id, len(chunks))

        embedded = chunks[: settings.max_embedded_chunks]
        vectors = embed_texts([c.page_content for c in embedded], embedder or get_embedding_function())

        if vector_store is None:
            from legal_doc_ai.retrieval import get_vector_store

            vector_store = get_vector_store()
        index_chunks(document, embedded, vectors, vector_store)

        embedding = mean_vector(vectors)
        store.update_document(document_id, embedding=embedding, status="completed")
    except Exception:
        logger.exception("Processing failed for document %s", document_id)
        store.update_document(document_id, status="failed")
        raise
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)

    logger.info("Document %s processed: %d/%d chunk(s) embedded", document_id, len(embedded), len(chunks))
    return ProcessingResult(
        document_id=document_id,
        total_chunks=len(chunks),
        embedded_chunks=len(embedded),
        dimension=len(embedding),
    )
