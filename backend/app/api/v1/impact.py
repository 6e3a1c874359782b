from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.api.deps import get_current_user, get_request_timeout
from app.core.timeouts import with_timeout
from app.models.user import User
from app.schemas.impact import ImpactListResponse, ImpactMetricResponse, ImpactSummaryResponse
from app.services.impact_service import ImpactService

router = APIRouter(prefix="/impact", tags=["الأثر - Impact"])


@router.get("", response_model=ImpactListResponse)
async def list_impact(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """الأثر اليومي: وجبات، كيلوغرامات، ثاني أكسيد الكربون، مستفيدون."""
    service = ImpactService(db)
    metrics = await with_timeout(service.list_metrics(start=start, end=end), timeout)
    return ImpactListResponse(items=[ImpactMetricResponse.model_validate(m) for m in metrics])


@router.get("/summary", response_model=ImpactSummaryResponse)
async def get_impact_summary(
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إجمالي الأثر منذ البداية."""
    service = ImpactService(db)
    return ImpactSummaryResponse(**await with_timeout(service.summary(), timeout))
