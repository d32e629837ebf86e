"""LangGraph definition of the chat-with-document workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langgraph.graph import END, StateGraph

from legal_doc_ai.chat.nodes import generate_answer, retrieve_context
from legal_doc_ai.chat.state import ChatState

if TYPE_CHECKING:
    from legal_doc_ai.chat.models import ChatMessage
    from legal_doc_ai.records.models import Document


def build_chat_graph() -> StateGraph:
    """Construct and return the compiled chat graph.

    Graph topology::

        START → retrieve_context → generate_answer → END

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """
    workflow = StateGraph(ChatState)

    workflow.add_node("retrieve_context", retrieve_context)
    workflow.add_node("generate_answer", generate_answer)

    workflow.set_entry_point("retrieve_context")
    workflow.add_edge("retrieve_context", "generate_answer")
    workflow.add_edge("generate_answer", END)

    return workflow.compile()


def create_initial_state(
    document: Document,
    message: str,
    history: list[ChatMessage] | None = None,
) -> dict[str, Any]:
    """Build the initial state dict for ``graph.invoke()``."""
    return {
        "document": document,
        "message": message,
        "history": list(history or []),
        "query_embedding": [],
        "similarity": None,
        "context": [],
        "context_text": "",
        "reply": None,
    }
