"""
Chat: question answering over one processed document, built with LangGraph.

Public API
----------
- :func:`chat_with_document` — answer a question with references.
- :func:`build_chat_graph` / :func:`create_initial_state` — the underlying graph.
- :class:`ChatMessage`, :class:`ChatReply`, :class:`Reference` — message types.
"""

from legal_doc_ai.chat.graph import build_chat_graph, create_initial_state
from legal_doc_ai.chat.models import ChatMessage, ChatReply, Reference
from legal_doc_ai.chat.service import chat_with_document
from legal_doc_ai.chat.state import ChatState

__all__ = [
    "ChatMessage",
    "ChatReply",
    "ChatState",
    "Reference",
    "build_chat_graph",
    "chat_with_document",
    "create_initial_state",
]
