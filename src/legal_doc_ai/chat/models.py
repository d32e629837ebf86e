"""Chat message types exchanged with the web client."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

MAX_REFERENCES = 5
MAX_REFERENCE_CHARS = 200


class Reference(BaseModel):
    """A line of the document backing part of an answer."""

    page: int | None = None
    text: str

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    @field_validator("text")
    @classmethod
    def _truncate(cls, value: str) -> str:
        return value.strip()[:MAX_REFERENCE_CHARS]


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    references: list[Reference] = Field(default_factory=list)


class ChatReply(ChatMessage):
    """The assistant's answer plus the query/document similarity score."""

    role: Literal["assistant"] = "assistant"
    similarity: float | None = None

    @field_validator("references")
    @classmethod
    def _cap_references(cls, value: list[Reference]) -> list[Reference]:
        return value[:MAX_REFERENCES]
