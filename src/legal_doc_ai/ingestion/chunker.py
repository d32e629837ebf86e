"""Splitting extracted legal text into embeddable chunks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from legal_doc_ai.config import settings

if TYPE_CHECKING:
    from langchain_core.documents import Document

# paragraph, line, sentence, clause, word
CONTRACT_SEPARATORS = ["\n\n", "\n", ". ", "; ", " ", ""]


def chunk_documents(
    documents: list[Document],
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> list[Document]:
    """Split loader output into chunks of at most *chunk_size* characters.

    Pages with no extractable text (common in scanned PDFs) are skipped and
    whitespace-only chunks are dropped, so an unreadable file yields ``[]``.
    Loader metadata such as ``page`` is copied onto every chunk.
    """
    pages = [d for d in documents if d.page_content.strip()]
    if not pages:
        return []

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size or settings.chunk_size,
        chunk_overlap=settings.chunk_overlap if chunk_overlap is None else chunk_overlap,
        separators=CONTRACT_SEPARATORS,
        strip_whitespace=True,
    )
    return [c for c in splitter.split_documents(pages) if c.page_content.strip()]
