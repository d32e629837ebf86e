"""
LLM — chat-model client, rate-limit retry, prompt templates and response parsing.

Public API
----------
- :func:`get_llm` — configured chat model.
- :func:`invoke_with_backoff` — retry a hosted-API call on HTTP 429.
- :func:`extract_json_object`, :func:`extract_json_array` — pull JSON out of replies.
"""

from legal_doc_ai.llm.client import get_llm
from legal_doc_ai.llm.parsing import extract_json_array, extract_json_object, response_text
from legal_doc_ai.llm.retry import BackoffResult, invoke_with_backoff, is_rate_limit_error

__all__ = [
    "BackoffResult",
    "extract_json_array",
    "extract_json_object",
    "get_llm",
    "invoke_with_backoff",
    "is_rate_limit_error",
    "response_text",
]
