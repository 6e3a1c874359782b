"""
واجهة التبرعات - النشر والإلغاء والمطابقة
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.api.deps import get_current_admin, get_current_user, get_request_timeout
from app.core.constants import DonationStatus, FoodType
from app.core.timeouts import with_timeout
from app.models.user import User
from app.schemas.donation import (
    DonationCreate,
    DonationResponse,
    DonationUpdate,
    PaginatedDonations,
)
from app.schemas.pickup import PickupResponse
from app.services.audit_service import AuditService
from app.services.donation_service import DonationService
from app.services.matching_service import MatchingService

router = APIRouter(prefix="/donations", tags=["التبرعات - Donations"])


@router.post("", response_model=DonationResponse, status_code=201)
async def create_donation(
    body: DonationCreate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """نشر تبرع جديد (الجهة المالكة أو الإدارة)."""
    service = DonationService(db)
    donation = await with_timeout(
        service.create_donation(current_user, **body.model_dump()),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "create",
        donation,
        after_state={"status": donation.status.value, "quantity": donation.quantity},
    )
    return DonationResponse.model_validate(donation)


@router.get("/pending", response_model=PaginatedDonations)
async def list_pending_donations(
    food_type: Optional[FoodType] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """التبرعات المعلقة غير المنتهية الصلاحية."""
    service = DonationService(db)
    items, total = await with_timeout(
        service.list_pending(food_type=food_type, page=page, limit=limit),
        timeout,
    )
    return PaginatedDonations(
        items=[DonationResponse.model_validate(d) for d in items],
        total=total,
        page=page,
        limit=limit,
        has_more=(page * limit) < total,
    )


@router.get("/mine", response_model=PaginatedDonations)
async def list_my_donations(
    status: Optional[DonationStatus] = Query(default=None),
    organization_id: Optional[UUID] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """تبرعات جهتي."""
    service = DonationService(db)
    items, total = await with_timeout(
        service.list_organization_donations(
            current_user,
            organization_id=organization_id,
            status=status,
            page=page,
            limit=limit,
        ),
        timeout,
    )
    return PaginatedDonations(
        items=[DonationResponse.model_validate(d) for d in items],
        total=total,
        page=page,
        limit=limit,
        has_more=(page * limit) < total,
    )


@router.post("/match-pending", response_model=List[PickupResponse])
async def match_pending_donations(
    limit: int = Query(default=20, ge=1, le=200),
    current_user: User = Depends(get_current_admin),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """دورة مطابقة للتبرعات المعلقة (يستدعيها المجدول الخارجي بحساب إداري)."""
    service = MatchingService(db)
    pickups = await with_timeout(service.match_pending(limit=limit), timeout)
    return [PickupResponse.from_pickup(p) for p in pickups]


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = DonationService(db)
    donation = await with_timeout(service.read_donation(donation_id, current_user), timeout)
    return DonationResponse.model_validate(donation)


@router.patch("/{donation_id}", response_model=DonationResponse)
async def update_donation(
    donation_id: UUID,
    body: DonationUpdate,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """تعديل تبرع معلق."""
    service = DonationService(db)
    donation = await with_timeout(
        service.update_donation(donation_id, current_user, **body.model_dump(exclude_unset=True)),
        timeout,
    )
    return DonationResponse.model_validate(donation)


@router.post("/{donation_id}/cancel", response_model=DonationResponse)
async def cancel_donation(
    donation_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إلغاء تبرع معلق أو مخصص."""
    service = DonationService(db)
    donation = await with_timeout(service.cancel_donation(donation_id, current_user), timeout)

    audit = AuditService(db)
    await audit.log(
        current_user,
        "cancel",
        donation,
        after_state={"status": donation.status.value},
    )
    return DonationResponse.model_validate(donation)


@router.post("/{donation_id}/match", response_model=PickupResponse, status_code=201)
async def match_donation(
    donation_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """مطابقة التبرع مع أقرب متطوع متاح وجمعية موثقة."""
    service = MatchingService(db)
    pickup = await with_timeout(service.match(donation_id, current_user), timeout)

    audit = AuditService(db)
    await audit.log(
        current_user,
        "match",
        pickup,
        after_state={
            "donation_id": str(pickup.donation_id),
            "volunteer_id": str(pickup.volunteer_id),
            "charity_id": str(pickup.charity_id),
        },
    )
    return PickupResponse.from_pickup(pickup)
