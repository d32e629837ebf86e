"""Embedding client construction and batched embedding calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from legal_doc_ai.config import settings
from legal_doc_ai.llm.retry import invoke_with_backoff

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function() -> Embeddings:
    """Return the configured embeddings client.

    ``openai`` (default) calls the hosted embeddings API;
    ``huggingface`` runs a sentence-transformer model locally.
    """
    provider = settings.embedding_provider.lower()
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {"model": settings.embedding_model, "max_retries": 0}
        if settings.openai_api_key:
            kwargs["api_key"] = settings.openai_api_key
        if settings.llm_base_url:
            kwargs["base_url"] = settings.llm_base_url
        return OpenAIEmbeddings(**kwargs)
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(
            model_name=settings.embedding_model,
            encode_kwargs={"normalize_embeddings": True},
        )
    raise ValueError(f"Unknown embedding provider: {settings.embedding_provider!r}")


def embed_texts(
    texts: list[str],
    embedder: Embeddings,
    *,
    batch_size: int | None = None,
) -> list[list[float]]:
    """Embed *texts* in batches, retrying each batch on rate limits.

    Returns one vector per input text, in order.
    """
    batch_size = batch_size or settings.embedding_batch_size
    vectors: list[list[float]] = []
    for start in range(0, len(texts), batch_size):
        batch = texts[start : start + batch_size]
        result = invoke_with_backoff(lambda: embedder.embed_documents(batch), label="embed_documents")
        vectors.extend(result.value)
        logger.info("  embedded %d / %d", len(vectors), len(texts))
    return vectors


def embed_query(text: str, embedder: Embeddings) -> list[float]:
    """Embed a single query string, retrying on rate limits."""
    return invoke_with_backoff(lambda: embedder.embed_query(text), label="embed_query").value


def mean_vector(vectors: list[list[float]]) -> list[float]:
    """Element-wise mean of equal-length *vectors*."""
    if not vectors:
        raise ValueError("Cannot average an empty list of vectors")
    dim = len(vectors[0])
    if any(len(v) != dim for v in vectors):
        raise ValueError("Vectors have inconsistent dimensions")
    count = len(vectors)
    return [sum(column) / count for column in zip(*vectors)]
