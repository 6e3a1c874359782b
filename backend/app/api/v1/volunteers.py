"""
واجهة المتطوعين
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.api.deps import get_current_user, get_request_timeout
from app.core.timeouts import with_timeout
from app.models.user import User
from app.models.volunteer import Volunteer
from app.schemas.organization import (
    VolunteerCreate,
    VolunteerListResponse,
    VolunteerLocationUpdate,
    VolunteerResponse,
)
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/volunteers", tags=["المتطوعون - Volunteers"])


@router.post("", response_model=VolunteerResponse, status_code=201)
async def create_volunteer(
    body: VolunteerCreate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إنشاء ملف المتطوع للمستخدم الحالي."""
    service = ProfileService(db)
    volunteer = await with_timeout(
        service.create_profile(current_user, Volunteer, **body.model_dump()),
        timeout,
    )
    return VolunteerResponse.model_validate(volunteer)


@router.get("", response_model=VolunteerListResponse)
async def list_volunteers(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    items, total = await with_timeout(
        service.list_profiles(Volunteer, page=page, limit=limit),
        timeout,
    )
    return VolunteerListResponse(
        items=[VolunteerResponse.model_validate(v) for v in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{volunteer_id}", response_model=VolunteerResponse)
async def get_volunteer(
    volunteer_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    volunteer = await with_timeout(
        service.get_profile(Volunteer, volunteer_id, current_user),
        timeout,
    )
    return VolunteerResponse.model_validate(volunteer)


@router.put("/{volunteer_id}/location", response_model=VolunteerResponse)
async def update_volunteer_location(
    volunteer_id: UUID,
    body: VolunteerLocationUpdate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """تحديث آخر موقع معروف. موقع فارغ يخرج المتطوع من المطابقة."""
    service = ProfileService(db)
    volunteer = await with_timeout(
        service.update_volunteer_location(
            volunteer_id, current_user, body.latitude, body.longitude
        ),
        timeout,
    )
    return VolunteerResponse.model_validate(volunteer)
