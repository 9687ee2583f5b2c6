"""Dashboard API endpoint: totals across the user's analyses."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user
from app.db.postgres import get_db
from app.models.user import User
from app.schemas.analysis import DashboardResponse
from app.services.stats_service import get_dashboard_totals

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Return totalAnalyses, totalBiases and totalWords for the current user."""
    return await get_dashboard_totals(db, user.id)
