import logging
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.core.clock import ensure_utc, utcnow
from app.core.constants import DONATION_TRANSITIONS, DonationStatus, FoodType, Operation, UserRole
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from app.core.permissions import enforce, is_admin
from app.models.donation import Donation
from app.models.organization import Organization
from app.models.pickup import Pickup
from app.models.user import User
from app.models.volunteer import Volunteer

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "food_type",
    "quantity",
    "description",
    "expiry",
    "pickup_window_start",
    "pickup_window_end",
    "temperature_requirements",
    "handling_instructions",
}


def donation_options():
    return (
        selectinload(Donation.organization),
        selectinload(Donation.pickups).selectinload(Pickup.volunteer),
        selectinload(Donation.pickups).selectinload(Pickup.charity),
    )


async def transition_donation(db: AsyncSession, donation: Donation, target: DonationStatus) -> None:
    """Move ``donation`` to ``target`` if the state machine allows it.

    The write is conditional on the status we read, so a concurrent transition
    makes this one fail with ConflictError instead of overwriting it.
    """
    current = donation.status
    if target not in DONATION_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)

    now = utcnow()
    result = await db.execute(
        update(Donation)
        .where(Donation.id == donation.id, Donation.status == current)
        .values(status=target, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(details={"donation_id": str(donation.id)})

    set_committed_value(donation, "status", target)
    set_committed_value(donation, "updated_at", now)
    logger.info(f"Donation {donation.id}: {current.value} -> {target.value}")


async def release_volunteer(db: AsyncSession, volunteer: Optional[Volunteer]) -> None:
    if volunteer is None:
        return
    await db.execute(
        update(Volunteer)
        .where(Volunteer.id == volunteer.id)
        .values(available=True)
        .execution_options(synchronize_session=False)
    )
    set_committed_value(volunteer, "available", True)


def validate_window(start: datetime, end: datetime, expiry: datetime) -> None:
    start, end, expiry = ensure_utc(start), ensure_utc(end), ensure_utc(expiry)
    if end <= start:
        raise ValidationError("يجب أن تنتهي نافذة الاستلام بعد بدايتها", field="pickup_window_end")
    if expiry < end:
        logger.warning(f"Donation expires ({expiry}) before its pickup window ends ({end})")


class DonationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _resolve_organization(self, actor: User, organization_id: Optional[UUID]) -> Organization:
        if organization_id is None:
            if actor.role != UserRole.DONOR:
                raise ValidationError("يجب تحديد الجهة المتبرعة", field="organization_id")
            result = await self.db.execute(
                select(Organization).where(Organization.user_id == actor.id)
            )
            org = result.scalar_one_or_none()
            if not org:
                raise ForbiddenError("يجب إكمال ملف الجهة المتبرعة أولاً")
            return org

        org = await self.db.get(Organization, organization_id)
        if not org:
            raise NotFoundError("الجهة المتبرعة", str(organization_id))
        return org

    async def create_donation(
        self,
        actor: User,
        food_type: FoodType,
        quantity: int,
        description: str,
        expiry: datetime,
        pickup_window_start: datetime,
        pickup_window_end: datetime,
        organization_id: Optional[UUID] = None,
        temperature_requirements: Optional[str] = None,
        handling_instructions: Optional[str] = None,
    ) -> Donation:
        org = await self._resolve_organization(actor, organization_id)
        validate_window(pickup_window_start, pickup_window_end, expiry)

        donation = Donation(
            organization_id=org.id,
            food_type=food_type,
            quantity=quantity,
            description=description,
            expiry=expiry,
            pickup_window_start=pickup_window_start,
            pickup_window_end=pickup_window_end,
            status=DonationStatus.PENDING,
            temperature_requirements=temperature_requirements,
            handling_instructions=handling_instructions,
        )
        donation.organization = org
        enforce(actor, Operation.WRITE, donation, "لا يمكنك نشر تبرع باسم جهة أخرى")

        self.db.add(donation)
        await self.db.flush()
        logger.info(f"Donation {donation.id} posted by organization {org.id}")
        return await self.get_donation(donation.id)

    async def get_donation(self, donation_id: UUID, for_update: bool = False) -> Donation:
        query = (
            select(Donation)
            .options(*donation_options())
            .where(Donation.id == donation_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        donation = result.scalar_one_or_none()
        if not donation:
            raise NotFoundError("التبرع", str(donation_id))
        return donation

    async def read_donation(self, donation_id: UUID, actor: User) -> Donation:
        donation = await self.get_donation(donation_id)
        enforce(actor, Operation.READ, donation)
        return donation

    async def update_donation(self, donation_id: UUID, actor: User, **kwargs) -> Donation:
        donation = await self.get_donation(donation_id, for_update=True)
        enforce(actor, Operation.WRITE, donation, "لا يمكنك تعديل تبرع جهة أخرى")

        if donation.status != DonationStatus.PENDING:
            raise InvalidStatusTransition(donation.status.value, "edit")

        for key, value in kwargs.items():
            if value is not None and key in EDITABLE_FIELDS:
                setattr(donation, key, value)
        validate_window(donation.pickup_window_start, donation.pickup_window_end, donation.expiry)

        await self.db.flush()
        return await self.get_donation(donation.id)

    async def cancel_donation(self, donation_id: UUID, actor: User) -> Donation:
        donation = await self.get_donation(donation_id, for_update=True)
        enforce(actor, Operation.WRITE, donation, "لا يمكنك إلغاء تبرع جهة أخرى")

        if donation.status not in (DonationStatus.PENDING, DonationStatus.ASSIGNED):
            raise InvalidStatusTransition(donation.status.value, DonationStatus.CANCELLED.value)

        pickup = donation.active_pickup
        await transition_donation(self.db, donation, DonationStatus.CANCELLED)

        if pickup is not None:
            pickup.cancelled_at = utcnow()
            await release_volunteer(self.db, pickup.volunteer)
            logger.info(f"Pickup {pickup.id} cancelled with donation {donation.id}")

        await self.db.flush()
        return await self.get_donation(donation.id)

    def _pending_query(self, now: Optional[datetime] = None):
        now = now or utcnow()
        return select(Donation).where(
            Donation.status == DonationStatus.PENDING,
            Donation.expiry > now,
        )

    async def iter_pending(
        self,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> AsyncIterator[Donation]:
        """Stream matchable donations (pending and not expired), oldest window first."""
        query = self._pending_query(now).order_by(
            Donation.pickup_window_start.asc(), Donation.created_at.asc()
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.stream_scalars(query)
        async for donation in result:
            yield donation

    async def list_pending(
        self,
        food_type: Optional[FoodType] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Donation], int]:
        query = self._pending_query()
        if food_type:
            query = query.where(Donation.food_type == food_type)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar()

        query = query.order_by(Donation.pickup_window_start.asc(), Donation.created_at.asc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_organization_donations(
        self,
        actor: User,
        organization_id: Optional[UUID] = None,
        status: Optional[DonationStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Donation], int]:
        org = await self._resolve_organization(actor, organization_id)
        if not is_admin(actor) and org.user_id != actor.id:
            raise ForbiddenError("لا يمكنك عرض تبرعات جهة أخرى")

        query = select(Donation).where(Donation.organization_id == org.id)
        if status:
            query = query.where(Donation.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar()

        query = query.order_by(Donation.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total
