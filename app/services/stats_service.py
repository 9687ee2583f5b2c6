"""Per-user totals for the dashboard and profile screens."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.aggregation import total_word_count
from app.models.analysis import Analysis

logger = logging.getLogger(__name__)


async def get_dashboard_totals(db: AsyncSession, owner_id: UUID) -> dict:
    """Totals across every analysis the user owns.

    ``totalBiases`` sums the stored ``bias_count`` column, the same number
    the parser produced when the record was built. ``totalWords`` counts
    words in the stored summaries.
    """
    result = await db.execute(
        select(
            func.count(Analysis.id),
            func.coalesce(func.sum(Analysis.bias_count), 0),
        ).where(Analysis.owner_id == owner_id)
    )
    total_analyses, total_biases = result.one()

    summaries = await db.execute(select(Analysis.summary_text).where(Analysis.owner_id == owner_id))
    total_words = total_word_count(summaries.scalars())

    return {
        "totalAnalyses": int(total_analyses),
        "totalBiases": int(total_biases),
        "totalWords": total_words,
    }


async def get_profile_stats(db: AsyncSession, owner_id: UUID) -> dict:
    result = await db.execute(
        select(
            func.count(Analysis.id),
            func.coalesce(func.sum(Analysis.bias_count), 0),
            func.max(Analysis.created_at),
        ).where(Analysis.owner_id == owner_id)
    )
    documents, biases, last_analysis = result.one()
    return {
        "documents_analyzed": int(documents),
        "biases_detected": int(biases),
        "last_analysis_at": last_analysis,
    }
