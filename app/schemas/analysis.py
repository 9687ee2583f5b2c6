"""Analysis schemas.

Records serialize with the camelCase field names they are stored under
(``fileName``, ``biasCount`` ...); attribute names stay snake_case.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AnalysisRecordResponse(CamelModel):
    id: int | None = None
    owner_id: UUID | str
    file_name: str
    file_type: str
    file_size: int
    last_modified: datetime | None = None
    summary_text: str
    bias_report_text: str
    bias_count: int
    bias_confidence: float
    created_at: datetime


class AnalysisStats(CamelModel):
    bias_count: int
    word_count: int


class AnalysisHistoryItem(CamelModel):
    id: int
    file_name: str
    file_type: str
    file_size: int
    bias_count: int
    bias_confidence: float
    created_at: datetime
    stats: AnalysisStats


class BiasFindingResponse(CamelModel):
    category: str
    quoted_text: str
    confidence: int
    alternative: str
    details: str


class BiasCategoryGroup(CamelModel):
    category: str
    severity: str | None = None
    color: str
    icon: str
    findings: list[BiasFindingResponse]


class BiasReportResponse(CamelModel):
    analysis_id: int
    display_text: str
    bias_count: int
    bias_confidence: float
    categories: list[BiasCategoryGroup]
    anomalies: list[str] = []


class DashboardResponse(CamelModel):
    total_analyses: int
    total_biases: int
    total_words: int
