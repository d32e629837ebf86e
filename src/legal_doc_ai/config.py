"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for a compatible endpoint)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for the LLM API. Leave empty to use OpenAI cloud. "
            "Set to any OpenAI-compatible /v1 endpoint for self-hosted models."
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_provider: str = Field(default="openai", description="'openai' (hosted) or 'huggingface' (local)")
    embedding_model: str = "text-embedding-3-small"
    embedding_batch_size: int = 16

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "legal_documents"

    # Records
    record_store_backend: str = Field(default="memory", description="'memory' or 'mongo'")
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "legal_doc_ai"

    # File storage
    storage_dir: str = ".storage"
    public_base_url: str = "http://localhost:8080"

    # Ingestion
    chunk_size: int = 6000
    chunk_overlap: int = 200
    max_embedded_chunks: int = 10
    download_timeout: float = 60.0

    # Rate-limit retry
    retry_max_attempts: int = 10
    retry_base_delay: float = 1.0
    retry_default_delay: float = 10.0
    retry_max_delay: float = 300.0

    # Analysis / chat
    party_extraction_char_limit: int = 10_000
    chat_context_chunks: int = 5

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Process-wide settings; import `settings`, never instantiate Settings again.
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler at *level* (defaults to ``settings.log_level``)."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
