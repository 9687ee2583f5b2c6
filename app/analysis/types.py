"""Core types and DTOs for the document analysis core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class BiasCategory(str, Enum):
    """Bias categories the detection prompt asks the model to recognise."""

    GENDER = "Gender Bias"
    RACIAL = "Racial Bias"
    AGE = "Age Discrimination"
    SOCIOECONOMIC = "Socioeconomic Bias"
    LANGUAGE = "Language Bias"


# Category assigned when a block has a "Type:" marker but no value
UNRECOGNIZED_CATEGORY = "alert-circle"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnalysisState(str, Enum):
    """Lifecycle of a single analysis run."""

    IDLE = "idle"
    REQUESTING = "requesting"  # both generation calls in flight
    PROCESSING = "processing"  # normalize -> parse -> aggregate
    PERSISTED = "persisted"  # terminal success
    FAILED = "failed"  # terminal: generation or storage failed
    REJECTED = "rejected"  # terminal: precondition failed, no network call made


# ---------------------------------------------------------------------------
# Category catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CategoryInfo:
    severity: Severity
    icon: str
    examples: tuple[str, ...] = ()


CATEGORY_CATALOGUE: dict[BiasCategory, CategoryInfo] = {
    BiasCategory.GENDER: CategoryInfo(Severity.HIGH, "gender-male-female", ("he/she only", "mankind", "chairman")),
    BiasCategory.RACIAL: CategoryInfo(Severity.HIGH, "account-group", ("minority groups", "ethnic background")),
    BiasCategory.AGE: CategoryInfo(Severity.MEDIUM, "account-clock", ("young", "old", "senior")),
    BiasCategory.SOCIOECONOMIC: CategoryInfo(Severity.MEDIUM, "cash", ("poor", "wealthy", "privileged")),
    BiasCategory.LANGUAGE: CategoryInfo(Severity.MEDIUM, "text", ("native speaker", "fluent only")),
}

SEVERITY_COLORS: dict[str, str] = {
    Severity.HIGH.value: "#FF4444",
    Severity.MEDIUM.value: "#FFBB33",
    Severity.LOW.value: "#00C851",
}
DEFAULT_SEVERITY_COLOR = "#4A90E2"


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated caller as seen by the analysis core."""

    user_id: str
    email: str = ""


@dataclass(frozen=True)
class DocumentMeta:
    """Document metadata captured at upload time."""

    file_name: str
    file_type: str
    file_size: int = 0
    last_modified: datetime | None = None


@dataclass(frozen=True)
class BiasFinding:
    """One detected bias instance parsed from the model's report."""

    category: str
    quoted_text: str = ""
    confidence: int = 0  # 0..100
    alternative: str = ""

    @property
    def is_recognized(self) -> bool:
        return self.category in {c.value for c in BiasCategory}

    @property
    def details(self) -> str:
        """Human-readable block shown under the category heading."""
        lines = []
        if self.quoted_text:
            lines.append(f'Text: "{self.quoted_text}"')
        lines.append(f"Confidence: {self.confidence}%")
        if self.alternative:
            lines.append(f"Alternative: {self.alternative}")
        return "\n".join(lines)


@dataclass
class BiasReport:
    """Output of the bias response parser."""

    findings: list[BiasFinding] = field(default_factory=list)
    display_text: str = ""
    anomalies: list[str] = field(default_factory=list)  # recovered parse problems

    @property
    def is_structured(self) -> bool:
        return bool(self.findings)

    def by_category(self) -> dict[str, list[str]]:
        """Map each category to the details of its findings, in report order."""
        grouped: dict[str, list[str]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.category, []).append(finding.details)
        return grouped


@dataclass(frozen=True)
class AnalysisRecord:
    """One analysis of one uploaded document, ready for persistence.

    Immutable once built; the store returns a copy carrying the assigned id.
    """

    owner_id: str
    file_name: str
    file_type: str
    file_size: int
    last_modified: datetime | None
    summary_text: str
    bias_report_text: str
    bias_count: int
    bias_confidence: float
    created_at: datetime
    id: int | None = None

    def to_document(self) -> dict:
        """Serialize with the persisted field names of stored records."""
        doc = {
            "ownerId": self.owner_id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "lastModified": self.last_modified.isoformat() if self.last_modified else None,
            "summaryText": self.summary_text,
            "biasReportText": self.bias_report_text,
            "biasCount": self.bias_count,
            "biasConfidence": self.bias_confidence,
            "createdAt": self.created_at.isoformat(),
        }
        if self.id is not None:
            doc["id"] = self.id
        return doc
