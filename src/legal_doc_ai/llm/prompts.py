"""Prompt templates for analysis, party extraction and document chat.

Every service that calls the LLM uses a dedicated prompt from this module.
Keeping prompts in one place makes them easy to audit, version, and A/B
test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from legal_doc_ai.records.models import AnalysisBias, AnalysisDepth

# ── 1. Legal analysis ─────────────────────────────────────────────────

ANALYSIS_PROMPT_VERSION = "legal-analysis-v1"

LEGAL_ANALYSIS_TEMPLATE = """\
You are a legal document analysis assistant. Analyze the provided legal \
document from the perspective of {{PARTY_PERSPECTIVE}} with a \
{{ANALYSIS_BIAS}} bias and {{ANALYSIS_DEPTH}} depth.

Generate a comprehensive analysis with the following structure in JSON format:

{
  "document": {
    "id": "string",
    "title": "string",
    "type": "string",
    "status": "string",
    "parties": ["string"],
    "effectiveDate": "string (write 'not mentioned' if absent)",
    "expirationDate": "string (write 'not mentioned' if absent)",
    "value": "string (optional)"
  },
  "riskScore": number,
  "keyClauses": [
    {"title": "string", "section": "string", "text": "string",
     "importance": "string", "analysis": "string",
     "recommendation": "string (optional)"}
  ],
  "negotiableTerms": [
    {"title": "string", "description": "string", "priority": "string",
     "currentLanguage": "string", "suggestedLanguage": "string",
     "rationale": "string (optional)"}
  ],
  "redFlags": [
    {"title": "string", "description": "string", "severity": "string",
     "location": "string (optional)"}
  ],
  "recommendations": [
    {"title": "string", "description": "string"}
  ],
  "overallImpression": {
    "summary": "string",
    "pros": ["string"],
    "cons": ["string"],
    "conclusion": "string"
  }
}

Important Guidelines:
1. If analyzing from a specific party's perspective ({{PARTY_PERSPECTIVE}}), focus on their interests.
2. For {{ANALYSIS_BIAS}} bias:
   - "neutral": Provide balanced analysis without bias
   - "favorable": Highlight advantages for the selected party
   - "risk": Focus on potential risks and issues
3. For {{ANALYSIS_DEPTH}} depth:
   - "summary": Provide a concise overview with fewer details
   - "full": Provide comprehensive analysis with all details
4. Format the response as a valid JSON object with the structure shown above.
5. Extract accurate document metadata including title, type, status, parties, dates, and value.
6. Calculate a risk score from 0-100 based on the overall risk assessment.
7. Identify 3-5 key clauses with their section references, text, importance, analysis, and recommendations.
8. Identify 2-4 negotiable terms with current language, suggested alternatives, and rationale.
9. Highlight 2-4 red flags with severity ratings and specific locations.
10. Provide 3-5 actionable recommendations.
11. Include an overall impression with a summary, 3-5 pros, 3-5 cons, and a conclusion.

Document to analyze:
{{DOCUMENT_CONTENT}}

Return ONLY the JSON object with no additional text, explanations, or markdown formatting.
"""


def render_analysis_prompt(
    content: str,
    *,
    party_perspective: str,
    analysis_depth: AnalysisDepth,
    analysis_bias: AnalysisBias,
) -> str:
    """Fill the ``{{...}}`` placeholders of :data:`LEGAL_ANALYSIS_TEMPLATE`.

    Placeholders are filled with ``str.replace`` (contract text contains
    braces).  The document content goes in last, so placeholder-like text
    inside it is left alone.
    """
    return (
        LEGAL_ANALYSIS_TEMPLATE.replace("{{PARTY_PERSPECTIVE}}", party_perspective or "a neutral reviewer")
        .replace("{{ANALYSIS_DEPTH}}", analysis_depth)
        .replace("{{ANALYSIS_BIAS}}", analysis_bias)
        .replace("{{DOCUMENT_CONTENT}}", content)
    )


def build_analysis_prompt(
    content: str,
    *,
    party_perspective: str,
    analysis_depth: AnalysisDepth,
    analysis_bias: AnalysisBias,
) -> list[BaseMessage]:
    """Build the prompt for :func:`legal_doc_ai.analysis.service.analyze_document`."""
    return [
        HumanMessage(
            content=render_analysis_prompt(
                content,
                party_perspective=party_perspective,
                analysis_depth=analysis_depth,
                analysis_bias=analysis_bias,
            )
        )
    ]


# ── 2. Party extraction ───────────────────────────────────────────────

PARTY_EXTRACTION_SYSTEM = """\
You are a legal document analyzer. Extract all parties mentioned in this legal document.
Return ONLY an array of party names in JSON format like ["Party Name 1", "Party Name 2"].
Do not include any explanations or additional text.
Replace any null values with "N/A".
"""


def build_party_extraction_prompt(content: str, char_limit: int) -> list[BaseMessage]:
    """Build the party-extraction prompt from the first *char_limit* characters."""
    return [
        SystemMessage(content=PARTY_EXTRACTION_SYSTEM),
        HumanMessage(content=f"Document:\n{content[:char_limit]}"),
    ]


# ── 3. Chat with document ─────────────────────────────────────────────

CHAT_SYSTEM = """\
You are a helpful AI assistant analyzing a document. Answer the user's \
question by returning a single JSON object in the following format:
{
  "content": string,
  "references"?: [
    {
      "page": number,
      "text": string
    }
  ]
}
You may add other relevant fields if useful, but you must always include \
'content' and, if possible, 'references' as described above.

STRICT RULES:
- Do NOT use the exact same wording from the document. Paraphrase and synthesize the information to create a new paragraph.
- Do NOT mention page numbers or roman numerals in the content.
- In the 'references' array, the 'text' field must be a single, meaningful line (up to 200 characters) from the relevant section of the document. Do NOT use just one or two words; provide a full line that best represents the referenced information.
- Do NOT provide more than 5 references in the 'references' array.
"""


def build_chat_prompt(
    message: str,
    context: str,
    history: list[tuple[str, str]],
) -> list[BaseMessage]:
    """Build the chat prompt.

    Parameters
    ----------
    message:
        The user's current question.
    context:
        Document excerpts (or the whole document) the answer must use.
    history:
        ``(role, content)`` pairs of the previous conversation, oldest first.
    """
    parts = [f"Context from the document:\n{context}\n"]
    if history:
        conversation = "\n".join(f"{role}: {content}" for role, content in history)
        parts.append(f"Previous conversation:\n{conversation}\n")
    parts.append(f"User's question: {message}\n")

    instructions = [
        "Directly answer the user's question using the most relevant information from the document.",
        "Use specific information from the document context to support your answer.",
        "Be clear, concise, and easy to understand.",
        "When citing information from the document, include only the 'text' field in references "
        "as a single, meaningful line (up to 200 characters).",
        "Output ONLY a valid JSON object as described above, nothing else. "
        "Do NOT wrap your response in Markdown or any code block.",
    ]
    if not history:
        instructions.append("Treat this as a fresh conversation without any prior context.")
    parts.append("Instructions:\n" + "\n".join(f"{i}. {line}" for i, line in enumerate(instructions, 1)))

    return [
        SystemMessage(content=CHAT_SYSTEM),
        HumanMessage(content="\n".join(parts)),
    ]
