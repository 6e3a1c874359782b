"""
واجهة الجهات المتبرعة والجمعيات
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.api.deps import get_current_user, get_request_timeout
from app.core.timeouts import with_timeout
from app.models.charity import Charity
from app.models.organization import Organization
from app.models.user import User
from app.schemas.organization import (
    CharityCreate,
    CharityListResponse,
    CharityResponse,
    CharityUpdate,
    OrganizationCreate,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdate,
    VerifyRequest,
)
from app.services.audit_service import AuditService
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/organizations", tags=["الجهات المتبرعة - Organizations"])
charity_router = APIRouter(prefix="/charities", tags=["الجمعيات - Charities"])


# === الجهات المتبرعة ===

@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    body: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إنشاء ملف الجهة المتبرعة للمستخدم الحالي."""
    service = ProfileService(db)
    org = await with_timeout(
        service.create_profile(current_user, Organization, **body.model_dump()),
        timeout,
    )
    return OrganizationResponse.model_validate(org)


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(
    verified: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    items, total = await with_timeout(
        service.list_profiles(Organization, verified=verified, page=page, limit=limit),
        timeout,
    )
    return OrganizationListResponse(
        items=[OrganizationResponse.model_validate(o) for o in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    org = await with_timeout(
        service.get_profile(Organization, organization_id, current_user),
        timeout,
    )
    return OrganizationResponse.model_validate(org)


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: UUID,
    body: OrganizationUpdate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    org = await with_timeout(
        service.update_profile(
            Organization, organization_id, current_user, **body.model_dump(exclude_unset=True)
        ),
        timeout,
    )
    return OrganizationResponse.model_validate(org)


@router.patch("/{organization_id}/verify", response_model=OrganizationResponse)
async def verify_organization(
    organization_id: UUID,
    body: VerifyRequest,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """توثيق الجهة (الإدارة فقط)."""
    service = ProfileService(db)
    org = await with_timeout(
        service.set_verified(Organization, organization_id, current_user, body.verified),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "verify",
        org,
        after_state={"verified": org.verified},
    )
    return OrganizationResponse.model_validate(org)


# === الجمعيات ===

@charity_router.post("", response_model=CharityResponse, status_code=201)
async def create_charity(
    body: CharityCreate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إنشاء ملف الجمعية للمستخدم الحالي."""
    service = ProfileService(db)
    charity = await with_timeout(
        service.create_profile(current_user, Charity, **body.model_dump()),
        timeout,
    )
    return CharityResponse.model_validate(charity)


@charity_router.get("", response_model=CharityListResponse)
async def list_charities(
    verified: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    items, total = await with_timeout(
        service.list_profiles(Charity, verified=verified, page=page, limit=limit),
        timeout,
    )
    return CharityListResponse(
        items=[CharityResponse.model_validate(c) for c in items],
        total=total,
        page=page,
        limit=limit,
    )


@charity_router.get("/{charity_id}", response_model=CharityResponse)
async def get_charity(
    charity_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    charity = await with_timeout(
        service.get_profile(Charity, charity_id, current_user),
        timeout,
    )
    return CharityResponse.model_validate(charity)


@charity_router.patch("/{charity_id}", response_model=CharityResponse)
async def update_charity(
    charity_id: UUID,
    body: CharityUpdate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = ProfileService(db)
    charity = await with_timeout(
        service.update_profile(
            Charity, charity_id, current_user, **body.model_dump(exclude_unset=True)
        ),
        timeout,
    )
    return CharityResponse.model_validate(charity)


@charity_router.patch("/{charity_id}/verify", response_model=CharityResponse)
async def verify_charity(
    charity_id: UUID,
    body: VerifyRequest,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """توثيق الجمعية (الإدارة فقط) - شرط لتلقي التبرعات."""
    service = ProfileService(db)
    charity = await with_timeout(
        service.set_verified(Charity, charity_id, current_user, body.verified),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "verify",
        charity,
        after_state={"verified": charity.verified},
    )
    return CharityResponse.model_validate(charity)
