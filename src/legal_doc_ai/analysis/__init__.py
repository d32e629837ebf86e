"""
Analysis: structured legal review, party extraction and dashboard aggregates.

Public API
----------
- :func:`analyze_document` / :func:`get_latest_analysis`
- :func:`extract_parties` / :func:`get_extracted_parties`
- :func:`risk_distribution`, :func:`document_trends`, :func:`latest_unique_analyses`
"""

from legal_doc_ai.analysis.analytics import document_trends, latest_unique_analyses, risk_distribution
from legal_doc_ai.analysis.service import (
    AnalysisOutcome,
    PartyExtractionOutcome,
    analyze_document,
    extract_parties,
    get_extracted_parties,
    get_latest_analysis,
)

__all__ = [
    "AnalysisOutcome",
    "PartyExtractionOutcome",
    "analyze_document",
    "document_trends",
    "extract_parties",
    "get_extracted_parties",
    "get_latest_analysis",
    "latest_unique_analyses",
    "risk_distribution",
]
