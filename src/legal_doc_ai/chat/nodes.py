"""Graph nodes of the chat workflow.

Node contract
-------------
* Accepts the full :class:`ChatState` dict.
* Returns a *partial* dict with **only the keys that changed**.
"""

from __future__ import annotations

import logging
from typing import Any

from legal_doc_ai.chat.models import ChatReply, Reference
from legal_doc_ai.chat.state import ChatState
from legal_doc_ai.errors import ResponseParseError
from legal_doc_ai.ingestion.embedder import embed_query, get_embedding_function
from legal_doc_ai.llm.client import get_llm
from legal_doc_ai.llm.parsing import extract_json_object, response_text
from legal_doc_ai.llm.prompts import build_chat_prompt
from legal_doc_ai.llm.retry import invoke_with_backoff
from legal_doc_ai.retrieval.retriever import SemanticRetriever
from legal_doc_ai.retrieval.similarity import dot_product

logger = logging.getLogger(__name__)


def _get_retriever() -> SemanticRetriever:
    return SemanticRetriever()


# ── 1. RETRIEVE CONTEXT ───────────────────────────────────────────────


def retrieve_context(state: ChatState) -> dict[str, Any]:
    """Embed the question, score it against the document, fetch chunks.

    Falls back to the full document content when the vector store has no
    chunks for this document or cannot be reached.
    """
    document = state["document"]
    query_embedding = embed_query(state["message"], get_embedding_function())
    similarity = dot_product(query_embedding, document.embedding or [])

    try:
        context = _get_retriever().search_document(document.id, query_embedding)
    except Exception:
        logger.warning("Chunk retrieval failed for document %s; using full content", document.id, exc_info=True)
        context = []

    context_text = SemanticRetriever.build_context(context) if context else document.content

    logger.info(
        "Chat context for document %s: %d chunk(s), similarity %.4f",
        document.id,
        len(context),
        similarity,
    )
    return {
        "query_embedding": query_embedding,
        "similarity": similarity,
        "context": context,
        "context_text": context_text,
    }


# ── 2. GENERATE ANSWER ────────────────────────────────────────────────


def generate_answer(state: ChatState) -> dict[str, Any]:
    """Ask the model for a JSON answer and parse it into a :class:`ChatReply`."""
    history = [(m.role, m.content) for m in state.get("history", [])]
    prompt = build_chat_prompt(state["message"], state["context_text"], history)

    llm = get_llm()
    reply = invoke_with_backoff(lambda: llm.invoke(prompt), label="document chat")
    payload = extract_json_object(response_text(reply.value))

    content = payload.get("content")
    if not isinstance(content, str):
        raise ResponseParseError("Chat response has no 'content' string")

    return {
        "reply": ChatReply(
            content=content,
            references=_parse_references(payload.get("references")),
            similarity=state.get("similarity"),
        )
    }


def _parse_references(raw: Any) -> list[Reference]:
    """Keep well-formed ``{page, text}`` entries; drop the rest."""
    if not isinstance(raw, list):
        return []
    references: list[Reference] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str) or not item["text"].strip():
            continue
        references.append(Reference(page=item.get("page"), text=item["text"]))
    return references
