"""Chat state, shared by the nodes of the chat graph."""

from __future__ import annotations

from typing import TypedDict

from legal_doc_ai.chat.models import ChatMessage, ChatReply
from legal_doc_ai.records.models import Document
from legal_doc_ai.retrieval.models import RetrievalResult


class ChatState(TypedDict):
    """Typed state that flows through the chat graph.

    Attributes
    ----------
    document:
        The processed document being discussed (carries its embedding).
    message:
        The user's current question.
    history:
        Previous turns of the conversation, oldest first.
    query_embedding:
        Embedding of *message* (set by ``retrieve_context``).
    similarity:
        Dot product of the query embedding and the document embedding.
    context:
        Document chunks closest to the question.
    context_text:
        Text placed in the prompt: the joined chunks, or the whole
        document content when nothing was retrieved.
    reply:
        The parsed assistant answer (set by ``generate_answer``).
    """

    document: Document
    message: str
    history: list[ChatMessage]
    query_embedding: list[float]
    similarity: float | None
    context: list[RetrievalResult]
    context_text: str
    reply: ChatReply | None
