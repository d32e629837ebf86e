"""File storage for uploaded originals.

The ingestion pipeline only ever sees a URL; :class:`LocalFileStorage`
keeps blobs on disk and hands out URLs served by the HTTP layer under
``/files/{storage_id}``.  Swap in an object-store backend by subclassing
:class:`FileStorageBase`.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from uuid import uuid4

from legal_doc_ai.config import settings

logger = logging.getLogger(__name__)


class FileStorageBase(ABC):
    """Backend-agnostic blob storage."""

    @abstractmethod
    def store(self, data: bytes, content_type: str) -> str:
        """Persist *data* and return its storage id."""
        ...

    @abstractmethod
    def get_url(self, storage_id: str) -> str: ...

    @abstractmethod
    def open(self, storage_id: str) -> tuple[bytes, str]:
        """Return ``(data, content_type)``; raises ``FileNotFoundError``."""
        ...

    @abstractmethod
    def delete(self, storage_id: str) -> None: ...

    def generate_upload_url(self, document_id: str) -> str:
        """URL a client posts the file to for *document_id*."""
        return f"{settings.public_base_url.rstrip('/')}/documents/{document_id}/file"


class LocalFileStorage(FileStorageBase):
    """Stores each blob as ``<root>/<id>`` with a ``<id>.json`` sidecar."""

    def __init__(self, root: str | Path = settings.storage_dir, *, base_url: str = settings.public_base_url) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _path(self, storage_id: str) -> Path:
        # ids are uuid hex; reject anything that could escape the root
        if not storage_id.isalnum():
            raise FileNotFoundError(storage_id)
        return self.root / storage_id

    def store(self, data: bytes, content_type: str) -> str:
        storage_id = uuid4().hex
        self._path(storage_id).write_bytes(data)
        self._path(storage_id).with_suffix(".json").write_text(json.dumps({"content_type": content_type}))
        logger.info("Stored %d bytes as %s (%s)", len(data), storage_id, content_type)
        return storage_id

    def get_url(self, storage_id: str) -> str:
        return f"{self.base_url}/files/{storage_id}"

    def open(self, storage_id: str) -> tuple[bytes, str]:
        path = self._path(storage_id)
        if not path.exists():
            raise FileNotFoundError(storage_id)
        meta_path = path.with_suffix(".json")
        content_type = "application/octet-stream"
        if meta_path.exists():
            content_type = json.loads(meta_path.read_text()).get("content_type", content_type)
        return path.read_bytes(), content_type

    def delete(self, storage_id: str) -> None:
        path = self._path(storage_id)
        path.unlink(missing_ok=True)
        path.with_suffix(".json").unlink(missing_ok=True)


@lru_cache(maxsize=1)
def get_file_storage() -> FileStorageBase:
    return LocalFileStorage()
