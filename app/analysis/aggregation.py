"""Aggregation & Record Builder: folds findings into a persistable record."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from app.analysis.types import AnalysisRecord, BiasFinding, DocumentMeta


def average_confidence(findings: Sequence[BiasFinding]) -> float:
    """Arithmetic mean of finding confidences; 0.0 when there are none.

    Not rounded: display code decides on precision.
    """
    if not findings:
        return 0.0
    return sum(f.confidence for f in findings) / len(findings)


def word_count(text: str | None) -> int:
    """Number of whitespace-separated words; empty text counts as 0."""
    if not text:
        return 0
    return len(text.split())


def total_word_count(texts: Iterable[str | None]) -> int:
    return sum(word_count(t) for t in texts)


def build_record(
    findings: Sequence[BiasFinding],
    summary_text: str,
    bias_report_text: str,
    meta: DocumentMeta,
    owner_id: str,
) -> AnalysisRecord:
    """Assemble the analysis record for one run.

    ``created_at`` is stamped here, when the record is built, rather than
    when the document was selected.
    """
    return AnalysisRecord(
        owner_id=owner_id,
        file_name=meta.file_name,
        file_type=meta.file_type,
        file_size=meta.file_size,
        last_modified=meta.last_modified,
        summary_text=summary_text,
        bias_report_text=bias_report_text,
        bias_count=len(findings),
        bias_confidence=average_confidence(findings),
        created_at=datetime.now(timezone.utc),
    )
