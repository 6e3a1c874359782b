"""
واجهة مهام النقل - الاستلام والتسليم والإلغاء
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.api.deps import get_current_user, get_request_timeout
from app.core.timeouts import with_timeout
from app.models.user import User
from app.schemas.pickup import (
    CancelAssignmentRequest,
    ConfirmDeliveryRequest,
    ConfirmPickupRequest,
    PaginatedPickups,
    PickupResponse,
)
from app.services.audit_service import AuditService
from app.services.pickup_service import PickupService

router = APIRouter(prefix="/pickups", tags=["مهام النقل - Pickups"])


@router.get("/mine", response_model=PaginatedPickups)
async def get_my_pickups(
    active_only: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """المهام التي أنا طرف فيها (متطوع، جمعية، جهة متبرعة)."""
    service = PickupService(db)
    items, total = await with_timeout(
        service.list_for_actor(
            current_user,
            active_only=active_only,
            page=page,
            limit=limit,
        ),
        timeout,
    )
    return PaginatedPickups(
        items=[PickupResponse.from_pickup(p) for p in items],
        total=total,
        page=page,
        limit=limit,
        has_more=(page * limit) < total,
    )


@router.get("/{pickup_id}", response_model=PickupResponse)
async def get_pickup(
    pickup_id: UUID,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    service = PickupService(db)
    pickup = await with_timeout(service.read_pickup(pickup_id, current_user), timeout)
    return PickupResponse.from_pickup(pickup)


@router.post("/{pickup_id}/confirm-pickup", response_model=PickupResponse)
async def confirm_pickup(
    pickup_id: UUID,
    body: ConfirmPickupRequest,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """تأكيد استلام الطعام من المتبرع (المتطوع المعين فقط)."""
    service = PickupService(db)
    pickup = await with_timeout(
        service.confirm_pickup(pickup_id, current_user, body.proof_ref, notes=body.notes),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "confirm_pickup",
        pickup,
        after_state={"status": pickup.donation.status.value},
    )
    return PickupResponse.from_pickup(pickup)


@router.post("/{pickup_id}/confirm-delivery", response_model=PickupResponse)
async def confirm_delivery(
    pickup_id: UUID,
    body: ConfirmDeliveryRequest,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """تأكيد التسليم للجمعية (المتطوع أو الجمعية المستلمة)."""
    service = PickupService(db)
    pickup = await with_timeout(
        service.confirm_delivery(
            pickup_id,
            current_user,
            body.proof_ref,
            rating=body.rating,
            notes=body.notes,
        ),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "confirm_delivery",
        pickup,
        after_state={"status": pickup.donation.status.value, "rating": pickup.rating},
    )
    return PickupResponse.from_pickup(pickup)


@router.post("/{pickup_id}/cancel", response_model=PickupResponse)
async def cancel_assignment(
    pickup_id: UUID,
    body: CancelAssignmentRequest,
    current_user: User = Depends(get_current_user),
    timeout: Optional[float] = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """إلغاء التعيين قبل الاستلام - يعود التبرع إلى حالة معلق."""
    service = PickupService(db)
    pickup = await with_timeout(
        service.cancel_assignment(pickup_id, current_user, reason=body.reason),
        timeout,
    )

    audit = AuditService(db)
    await audit.log(
        current_user,
        "cancel_assignment",
        pickup,
        after_state={"reason": body.reason},
    )
    return PickupResponse.from_pickup(pickup)
