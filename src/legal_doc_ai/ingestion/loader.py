"""Document download and loading: thin wrappers around LangChain loaders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import requests
from langchain_community.document_loaders import PyPDFLoader, TextLoader

from legal_doc_ai.config import settings
from legal_doc_ai.errors import UnsupportedFileTypeError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def media_type(file_type: str) -> str:
    """``"Text/Plain; charset=latin-1"`` -> ``"text/plain"``."""
    return file_type.partition(";")[0].strip().lower()


def extension_for(file_type: str) -> str:
    """File extension for a MIME type: its subtype, or ``"bin"``."""
    _, _, subtype = media_type(file_type).partition("/")
    return subtype or "bin"


def download_file(
    url: str,
    dest_dir: str | Path,
    stem: str,
    file_type: str,
    *,
    timeout: float | None = None,
) -> Path:
    """Download *url* to ``dest_dir/stem.<ext>`` and return the path.

    The extension comes from the MIME subtype of *file_type*.  Raises
    ``requests.HTTPError`` for non-2xx responses.
    """
    resp = requests.get(url, timeout=timeout or settings.download_timeout)
    resp.raise_for_status()
    dest = Path(dest_dir) / f"{stem}.{extension_for(file_type)}"
    dest.write_bytes(resp.content)
    logger.info("Downloaded %d bytes from %s to %s", len(resp.content), url, dest)
    return dest


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file (one ``Document`` per page)."""
    return PyPDFLoader(str(path)).load()


def load_text(path: str | Path) -> list[Document]:
    """Load a plain-text file; non-UTF-8 files fall back to chardet detection."""
    return TextLoader(str(path), encoding="utf-8", autodetect_encoding=True).load()


def load_file(path: str | Path, file_type: str) -> list[Document]:
    """Parse *path* according to its MIME *file_type*.

    Parameters
    ----------
    path:
        Local file to parse.
    file_type:
        ``application/pdf`` or any ``text/*`` type.

    Returns
    -------
    list[Document]
        LangChain documents; PDFs yield one per page.

    Raises
    ------
    UnsupportedFileTypeError
        For every other MIME type.
    """
    kind = media_type(file_type)
    if kind == PDF_MIME_TYPE:
        documents = load_pdf(path)
        logger.info("Loaded %d PDF page(s) from %s", len(documents), path)
    elif kind.startswith("text/"):
        documents = load_text(path)
        logger.info("Loaded text document %s", path)
    else:
        raise UnsupportedFileTypeError(file_type)
    return documents
