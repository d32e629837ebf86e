"""Dashboard aggregates over stored documents and analyses."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from legal_doc_ai.records import get_record_store

if TYPE_CHECKING:
    from collections.abc import Iterable

    from legal_doc_ai.records.base import RecordStoreBase
    from legal_doc_ai.records.models import Analysis, Document

_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Upper bounds (inclusive) on the 0-100 risk scale.
RISK_BUCKETS: tuple[tuple[str, float], ...] = (
    ("Low", 30.0),
    ("Medium", 70.0),
    ("High", float("inf")),
)


def risk_bucket(score: float) -> str:
    for name, upper in RISK_BUCKETS:
        if score <= upper:
            return name
    return RISK_BUCKETS[-1][0]


def risk_distribution(analyses: Iterable[Analysis]) -> list[dict[str, Any]]:
    """Count analyses per risk bucket.

    Analyses without a score are skipped.  Every bucket is present, in
    Low / Medium / High order, even when its count is zero.
    """
    counts = Counter(risk_bucket(a.risk_score) for a in analyses if a.risk_score is not None)
    return [{"name": name, "value": counts.get(name, 0)} for name, _ in RISK_BUCKETS]


def document_trends(documents: Iterable[Document]) -> list[dict[str, Any]]:
    """Documents created per calendar month, oldest month first.

    Months are labelled like ``"Jan 2026"``; months with no documents are
    not listed.
    """
    counts = Counter((d.created_at.year, d.created_at.month) for d in documents)
    trends = []
    for year, month in sorted(counts):
        label = f"{_MONTH_NAMES[month - 1]} {year}"
        trends.append({"month": label, "documents": counts[(year, month)]})
    return trends



def latest_unique_analyses(owner_id: str, *, store: RecordStoreBase | None = None) -> list[Analysis]:
    """Newest analysis per document title for an owner's documents.

    Each of the owner's documents contributes its latest analysis.  When
    several analyses report the same document title only the most recent
    one is kept; analyses whose summary carries no title are dropped.
    Result is ordered newest first.
    """
    store = store or get_record_store()
    latest = [store.latest_analysis(d.id) for d in store.list_documents(owner_id)]

    by_title: dict[str, Analysis] = {}
    for analysis in latest:
        if analysis is None or not analysis.document.title:
            continue
        current = by_title.get(analysis.document.title)
        if current is None or analysis.created_at > current.created_at:
            by_title[analysis.document.title] = analysis

    return sorted(by_title.values(), key=lambda a: a.created_at, reverse=True)
