"""MongoDB implementation of the record-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument

from legal_doc_ai.config import settings
from legal_doc_ai.records.base import RecordStoreBase
from legal_doc_ai.records.models import Analysis, Document, ExtractedParties

logger = logging.getLogger(__name__)


def _to_mongo(record: Any) -> dict[str, Any]:
    data = record.model_dump()
    data["_id"] = data.pop("id")
    return data


def _from_mongo(raw: dict[str, Any]) -> dict[str, Any]:
    raw = dict(raw)
    raw["id"] = raw.pop("_id")
    return raw


class MongoRecordStore(RecordStoreBase):
    """Document-database backend.

    Parameters
    ----------
    uri:
        MongoDB connection string.
    database:
        Database name; collections are ``documents``, ``analyses`` and
        ``extracted_parties``.
    client:
        Pre-built client; when omitted one is created from *uri*.
    """

    def __init__(
        self,
        uri: str = settings.mongodb_uri,
        database: str = settings.mongodb_database,
        *,
        client: MongoClient | None = None,
    ) -> None:
        self._client = client or MongoClient(uri, tz_aware=True)
        self._db = self._client[database]
        self._documents = self._db.documents
        self._analyses = self._db.analyses
        self._parties = self._db.extracted_parties

        self._documents.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
        self._documents.create_index("status")
        self._analyses.create_index([("document_id", ASCENDING), ("created_at", DESCENDING)])
        self._parties.create_index([("document_id", ASCENDING), ("created_at", DESCENDING)])
        logger.info("Connected record store to MongoDB database %r", database)

    # -- documents ------------------------------------------------------------

    def save_document(self, document: Document) -> None:
        self._documents.replace_one({"_id": document.id}, _to_mongo(document), upsert=True)

    def find_document(self, document_id: str) -> Document | None:
        raw = self._documents.find_one({"_id": document_id})
        return Document.model_validate(_from_mongo(raw)) if raw else None

    def find_documents(self, owner_id: str | None = None) -> list[Document]:
        query = {"owner_id": owner_id} if owner_id is not None else {}
        cursor = self._documents.find(query).sort("created_at", DESCENDING)
        return [Document.model_validate(_from_mongo(raw)) for raw in cursor]

    def patch_document(self, document_id: str, changes: dict[str, Any]) -> Document | None:
        raw = self._documents.find_one_and_update(
            {"_id": document_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        return Document.model_validate(_from_mongo(raw)) if raw else None

    def remove_document(self, document_id: str) -> bool:
        return self._documents.delete_one({"_id": document_id}).deleted_count > 0

    # -- analyses -------------------------------------------------------------

    def save_analysis(self, analysis: Analysis) -> None:
        self._analyses.replace_one({"_id": analysis.id}, _to_mongo(analysis), upsert=True)

    def find_analysis(self, analysis_id: str) -> Analysis | None:
        raw = self._analyses.find_one({"_id": analysis_id})
        return Analysis.model_validate(_from_mongo(raw)) if raw else None

    def patch_analysis(self, analysis_id: str, changes: dict[str, Any]) -> Analysis | None:
        raw = self._analyses.find_one_and_update(
            {"_id": analysis_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        return Analysis.model_validate(_from_mongo(raw)) if raw else None

    def find_analyses(self, document_id: str | None = None) -> list[Analysis]:
        query = {"document_id": document_id} if document_id is not None else {}
        cursor = self._analyses.find(query).sort("created_at", DESCENDING)
        return [Analysis.model_validate(_from_mongo(raw)) for raw in cursor]

    # -- parties --------------------------------------------------------------

    def save_parties(self, record: ExtractedParties) -> None:
        self._parties.insert_one(_to_mongo(record))

    def find_parties(self, document_id: str) -> list[ExtractedParties]:
        cursor = self._parties.find({"document_id": document_id}).sort("created_at", DESCENDING)
        return [ExtractedParties.model_validate(_from_mongo(raw)) for raw in cursor]

    def close(self) -> None:
        self._client.close()
