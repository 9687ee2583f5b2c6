"""Analyses API: upload a document for analysis, browse history, view bias findings."""

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.aggregation import word_count
from app.analysis.bias_parser import icon_for, parse_bias_report, severity_color, severity_for
from app.analysis.errors import (
    AuthRequired,
    DocumentTooLarge,
    EmptyDocument,
    GenerationFailure,
    GenerationTimeout,
    PersistenceFailure,
)
from app.analysis.orchestrator import AnalysisOrchestrator
from app.analysis.types import AnalysisRecord, DocumentMeta
from app.core.config import settings
from app.core.dependencies import RequestIdentity, get_current_user, get_optional_user
from app.core.exceptions import (
    BadGatewayError,
    GatewayTimeoutError,
    NotFoundError,
    PayloadTooLargeError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnprocessableError,
    UnsupportedMediaTypeError,
)
from app.core.rate_limit import ANALYSIS_RATE_LIMIT, limiter
from app.db.postgres import get_db
from app.llm import BaseLlmClient, LlmConfigurationError, get_llm_client
from app.models.user import User
from app.schemas.analysis import (
    AnalysisHistoryItem,
    AnalysisRecordResponse,
    AnalysisStats,
    BiasCategoryGroup,
    BiasFindingResponse,
    BiasReportResponse,
)
from app.services.analysis_store import SqlAnalysisStore
from app.services.document_text import (
    DocumentExtractionError,
    UnsupportedDocumentType,
    extract_text,
    file_type_from_name,
)
from app.services.pending_records import PendingRecords, get_pending_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyses", tags=["analyses"])


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
    generator: BaseLlmClient = Depends(get_llm_client),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(
        generator=generator,
        store=SqlAnalysisStore(db),
        identity=RequestIdentity(user),
        timeout=settings.analysis_timeout,
        max_chars=settings.max_document_chars,
    )


def _record_response(record: AnalysisRecord) -> AnalysisRecordResponse:
    return AnalysisRecordResponse.model_validate(record)


def _pending_detail(pending_id: str, exc: PersistenceFailure) -> dict:
    return {
        "message": exc.message,
        "pending_id": pending_id,
        "record": _record_response(exc.record).model_dump(mode="json", by_alias=True),
    }


@router.post("", response_model=AnalysisRecordResponse, status_code=201)
@limiter.limit(ANALYSIS_RATE_LIMIT)
async def create_analysis(
    request: Request,
    file: UploadFile = File(...),
    last_modified: datetime | None = Form(None),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    pending: PendingRecords = Depends(get_pending_records),
):
    """Extract the uploaded document's text, analyze it and store the result.

    A storage failure answers 503 with a ``pending_id``; the generated
    record can then be saved through the retry endpoint.
    """
    file_name = file.filename or "document"
    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise PayloadTooLargeError(f"File exceeds {settings.max_upload_bytes} bytes")

    try:
        # pypdf and python-docx parse synchronously
        text = await asyncio.to_thread(extract_text, file_name, data)
    except UnsupportedDocumentType as exc:
        raise UnsupportedMediaTypeError(str(exc))
    except DocumentExtractionError as exc:
        raise UnprocessableError(str(exc))

    meta = DocumentMeta(
        file_name=file_name,
        file_type=file_type_from_name(file_name),
        file_size=len(data),
        last_modified=last_modified,
    )

    try:
        record = await orchestrator.analyze(text, meta)
    except AuthRequired as exc:
        raise UnauthorizedError(exc.message)
    except EmptyDocument as exc:
        raise UnprocessableError(exc.message)
    except DocumentTooLarge as exc:
        raise PayloadTooLargeError(exc.message)
    except GenerationTimeout as exc:
        raise GatewayTimeoutError(exc.message)
    except GenerationFailure as exc:
        if isinstance(exc.__cause__, LlmConfigurationError):
            raise ServiceUnavailableError("Text generation is not configured")
        raise BadGatewayError(exc.message)
    except PersistenceFailure as exc:
        pending_id = pending.add(exc.record)
        logger.warning("Analysis kept pending as %s: %s", pending_id, exc.message)
        raise ServiceUnavailableError(_pending_detail(pending_id, exc))

    return _record_response(record)


@router.post("/pending/{pending_id}/retry", response_model=AnalysisRecordResponse, status_code=201)
async def retry_pending(
    pending_id: str,
    user: User = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    pending: PendingRecords = Depends(get_pending_records),
):
    """Save a generated record whose first save failed; nothing is regenerated."""
    record = pending.claim(pending_id, str(user.id))
    if record is None:
        raise NotFoundError("Pending analysis not found or expired")

    try:
        stored = await orchestrator.persist(record)
    except PersistenceFailure as exc:
        pending.restore(pending_id, record)
        raise ServiceUnavailableError(_pending_detail(pending_id, exc))

    return _record_response(stored)


@router.get("", response_model=list[AnalysisHistoryItem])
async def list_analyses(
    limit: int | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The user's analyses, newest first."""
    rows = await SqlAnalysisStore(db).list_for_owner(user.id, limit=limit)
    return [
        AnalysisHistoryItem(
            id=row.id,
            file_name=row.file_name,
            file_type=row.file_type,
            file_size=row.file_size,
            bias_count=row.bias_count,
            bias_confidence=row.bias_confidence,
            created_at=row.created_at,
            stats=AnalysisStats(bias_count=row.bias_count, word_count=word_count(row.summary_text)),
        )
        for row in rows
    ]


@router.get("/{analysis_id}", response_model=AnalysisRecordResponse)
async def get_analysis(
    analysis_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await SqlAnalysisStore(db).get(user.id, analysis_id)
    if row is None:
        raise NotFoundError("Analysis not found")
    return AnalysisRecordResponse.model_validate(row)


@router.get("/{analysis_id}/bias", response_model=BiasReportResponse)
async def get_analysis_bias(
    analysis_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stored bias report parsed into findings grouped by category."""
    row = await SqlAnalysisStore(db).get(user.id, analysis_id)
    if row is None:
        raise NotFoundError("Analysis not found")

    report = parse_bias_report(row.bias_report_text)
    groups: dict[str, list[BiasFindingResponse]] = {}
    for finding in report.findings:
        groups.setdefault(finding.category, []).append(
            BiasFindingResponse(
                category=finding.category,
                quoted_text=finding.quoted_text,
                confidence=finding.confidence,
                alternative=finding.alternative,
                details=finding.details,
            )
        )

    categories = []
    for category, findings in groups.items():
        severity = severity_for(category)
        categories.append(
            BiasCategoryGroup(
                category=category,
                severity=severity.value if severity else None,
                color=severity_color(severity),
                icon=icon_for(category),
                findings=findings,
            )
        )

    return BiasReportResponse(
        analysis_id=row.id,
        display_text=report.display_text,
        bias_count=row.bias_count,
        bias_confidence=row.bias_confidence,
        categories=categories,
        anomalies=report.anomalies,
    )
