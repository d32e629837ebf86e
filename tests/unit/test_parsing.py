"""Unit tests for LLM response parsing and prompt construction."""

from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from legal_doc_ai.errors import ResponseParseError
from legal_doc_ai.llm.parsing import (
    clean_response_text,
    extract_json_array,
    extract_json_object,
    response_text,
)
from legal_doc_ai.llm.prompts import (
    build_analysis_prompt,
    build_chat_prompt,
    build_party_extraction_prompt,
    render_analysis_prompt,
)


class TestCleanResponseText:
    def test_strips_json_fence(self) -> None:
        assert clean_response_text('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self) -> None:
        assert clean_response_text("```\n[1, 2]\n```") == "[1, 2]"

    def test_plain_text_untouched(self) -> None:
        assert clean_response_text('  {"a": 1} ') == '{"a": 1}'


class TestExtractJson:
    def test_object_with_surrounding_prose(self) -> None:
        text = 'Here is the analysis:\n{"riskScore": 42, "nested": {"x": [1]}}\nThanks!'
        assert extract_json_object(text) == {"riskScore": 42, "nested": {"x": [1]}}

    def test_object_in_fence(self) -> None:
        assert extract_json_object('```json\n{"content": "hi"}\n```') == {"content": "hi"}

    def test_no_object_raises(self) -> None:
        with pytest.raises(ResponseParseError, match="No JSON object"):
            extract_json_object("I cannot help with that.")

    def test_invalid_object_raises(self) -> None:
        with pytest.raises(ResponseParseError, match="Invalid JSON object"):
            extract_json_object("{not: json}")

    def test_array(self) -> None:
        assert extract_json_array('Parties: ["Acme Corp", "Jane Doe"]') == ["Acme Corp", "Jane Doe"]

    def test_no_array_raises(self) -> None:
        with pytest.raises(ResponseParseError):
            extract_json_array("Acme Corp and Jane Doe")


class TestResponseText:
    def test_ai_message(self) -> None:
        assert response_text(AIMessage(content="hello")) == "hello"

    def test_plain_string(self) -> None:
        assert response_text("raw") == "raw"

    def test_content_parts(self) -> None:
        msg = AIMessage(content=[{"type": "text", "text": "part one "}, "part two"])
        assert response_text(msg) == "part one part two"


class TestAnalysisPrompt:
    def test_placeholders_filled(self) -> None:
        text = render_analysis_prompt(
            "THE CONTRACT",
            party_perspective="Tenant",
            analysis_depth="summary",
            analysis_bias="risk",
        )
        assert "{{" not in text
        assert "perspective of Tenant with a risk bias and summary depth" in text
        assert "THE CONTRACT" in text

    def test_content_with_placeholder_text_kept_verbatim(self) -> None:
        text = render_analysis_prompt(
            "Clause {{PARTY_PERSPECTIVE}} stays",
            party_perspective="Landlord",
            analysis_depth="full",
            analysis_bias="neutral",
        )
        assert "Clause {{PARTY_PERSPECTIVE}} stays" in text

    def test_single_human_message(self) -> None:
        messages = build_analysis_prompt(
            "text", party_perspective="Buyer", analysis_depth="full", analysis_bias="favorable"
        )
        assert len(messages) == 1
        assert isinstance(messages[0], HumanMessage)


class TestPartyExtractionPrompt:
    def test_content_truncated(self) -> None:
        messages = build_party_extraction_prompt("x" * 20_000, char_limit=10_000)
        assert isinstance(messages[0], SystemMessage)
        assert messages[1].content.count("x") == 10_000


class TestChatPrompt:
    def test_fresh_conversation(self) -> None:
        messages = build_chat_prompt("What is the term?", "The term is 12 months.", [])
        body = messages[1].content
        assert "Context from the document:\nThe term is 12 months." in body
        assert "User's question: What is the term?" in body
        assert "Previous conversation" not in body
        assert "6. Treat this as a fresh conversation" in body

    def test_history_included(self) -> None:
        history = [("user", "Who are the parties?"), ("assistant", "Acme and Jane.")]
        body = build_chat_prompt("And the term?", "ctx", history)[1].content
        assert "Previous conversation:\nuser: Who are the parties?\nassistant: Acme and Jane." in body
        assert "fresh conversation" not in body

    def test_system_rules(self) -> None:
        system = build_chat_prompt("q", "ctx", [])[0].content
        assert "Do NOT provide more than 5 references" in system
