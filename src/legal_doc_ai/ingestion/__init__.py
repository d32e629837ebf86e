"""
Ingestion: turns an uploaded file into extracted text and embeddings.

The pipeline downloads the stored file, parses it (PDF or plain text),
splits it into chunks, embeds the leading chunks and indexes them in the
vector store.  See :func:`process_document`.
"""

from legal_doc_ai.ingestion.pipeline import ProcessingResult, process_document

__all__ = ["ProcessingResult", "process_document"]
