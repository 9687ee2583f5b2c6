"""SQLAlchemy-backed store for analysis records."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.types import AnalysisRecord
from app.models.analysis import Analysis

logger = logging.getLogger(__name__)


def record_from_row(row: Analysis) -> AnalysisRecord:
    return AnalysisRecord(
        id=row.id,
        owner_id=str(row.owner_id),
        file_name=row.file_name,
        file_type=row.file_type,
        file_size=row.file_size,
        last_modified=row.last_modified,
        summary_text=row.summary_text,
        bias_report_text=row.bias_report_text,
        bias_count=row.bias_count,
        bias_confidence=row.bias_confidence,
        created_at=row.created_at,
    )


class SqlAnalysisStore:
    """Persists AnalysisRecord values in the ``analyses`` table.

    ``insert`` commits on its own so a storage failure is observed by the
    orchestrator rather than at the end of the request.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, record: AnalysisRecord) -> int:
        row = Analysis(
            owner_id=uuid.UUID(record.owner_id),
            file_name=record.file_name,
            file_type=record.file_type,
            file_size=record.file_size,
            last_modified=record.last_modified,
            summary_text=record.summary_text,
            bias_report_text=record.bias_report_text,
            bias_count=record.bias_count,
            bias_confidence=record.bias_confidence,
            created_at=record.created_at,
        )
        self.db.add(row)
        try:
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        logger.debug("Inserted analysis id=%s for owner=%s", row.id, record.owner_id)
        return row.id

    async def list_for_owner(self, owner_id: uuid.UUID, limit: int | None = None) -> list[Analysis]:
        """Owner's analyses, newest first."""
        stmt = select(Analysis).where(Analysis.owner_id == owner_id).order_by(Analysis.created_at.desc(), Analysis.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, owner_id: uuid.UUID, analysis_id: int) -> Analysis | None:
        result = await self.db.execute(
            select(Analysis).where(Analysis.id == analysis_id, Analysis.owner_id == owner_id)
        )
        return result.scalar_one_or_none()
