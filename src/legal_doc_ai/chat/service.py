"""Entry point for chatting with a processed document."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from legal_doc_ai.chat.graph import build_chat_graph, create_initial_state
from legal_doc_ai.errors import DocumentNotReadyError
from legal_doc_ai.records import get_record_store

if TYPE_CHECKING:
    from legal_doc_ai.chat.models import ChatMessage, ChatReply
    from legal_doc_ai.records.base import RecordStoreBase

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_chat_graph():  # noqa: ANN201
    return build_chat_graph()


def chat_with_document(
    document_id: str,
    message: str,
    previous_messages: list[ChatMessage] | None = None,
    *,
    store: RecordStoreBase | None = None,
) -> ChatReply:
    """Answer *message* about a document, given the earlier conversation.

    Raises
    ------
    DocumentNotFoundError
        If the document does not exist.
    DocumentNotReadyError
        If the document has not been embedded yet.
    ResponseParseError
        If the model reply is not the expected JSON object.
    """
    store = store or get_record_store()
    document = store.get_document(document_id)
    if not document.embedding:
        raise DocumentNotReadyError(f"Document {document_id} has not been processed yet")

    logger.info("Chat on document %s (%d previous message(s))", document_id, len(previous_messages or []))
    result = get_chat_graph().invoke(create_initial_state(document, message, previous_messages))
    return result["reply"]
