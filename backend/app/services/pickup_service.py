import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.core.clock import ensure_utc, utcnow
from app.core.constants import (
    DonationStatus,
    MAX_PICKUP_RATING,
    MIN_PICKUP_RATING,
    Operation,
)
from app.core.exceptions import InvalidStatusTransition, NotFoundError, ValidationError
from app.core.permissions import enforce, is_admin
from app.models.charity import Charity
from app.models.donation import Donation
from app.models.organization import Organization
from app.models.pickup import Pickup
from app.models.user import User
from app.models.volunteer import Volunteer
from app.services.donation_service import release_volunteer, transition_donation
from app.services.impact_service import ImpactService

logger = logging.getLogger(__name__)


def pickup_options():
    return (
        selectinload(Pickup.donation).selectinload(Donation.organization),
        selectinload(Pickup.volunteer),
        selectinload(Pickup.charity),
    )


def running_rating(current: float, prior_ratings: int, new_rating: int) -> float:
    """Incremental mean where the current value stands for ``prior_ratings + 1`` observations.

    The seed rating of a new volunteer counts as one observation, so a single
    rating moves it halfway instead of replacing it.
    """
    weight = prior_ratings + 1
    return round((float(current) * weight + new_rating) / (weight + 1), 2)


def not_before(moment, floor):
    """Keep lifecycle timestamps monotonic even if clocks disagree."""
    floor = ensure_utc(floor)
    return moment if floor is None or moment >= floor else floor


class PickupService:
    def __init__(self, db: AsyncSession, impact: Optional[ImpactService] = None):
        self.db = db
        self.impact = impact or ImpactService(db)

    async def get_pickup(self, pickup_id: UUID, for_update: bool = False) -> Pickup:
        query = (
            select(Pickup)
            .options(*pickup_options())
            .where(Pickup.id == pickup_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        pickup = result.scalar_one_or_none()
        if not pickup:
            raise NotFoundError("مهمة النقل", str(pickup_id))
        return pickup

    async def read_pickup(self, pickup_id: UUID, actor: User) -> Pickup:
        pickup = await self.get_pickup(pickup_id)
        enforce(actor, Operation.READ, pickup, "لا يمكنك عرض مهمة لا تخصك")
        return pickup

    async def _load_for_transition(self, pickup_id: UUID, actor: User, operation: Operation) -> Pickup:
        pickup = await self.get_pickup(pickup_id, for_update=True)
        enforce(actor, operation, pickup, "لست الطرف المعني بهذه المهمة")

        # قفل التبرع قبل تغيير حالته
        await self.db.execute(
            select(Donation.id)
            .where(Donation.id == pickup.donation_id)
            .with_for_update()
        )
        if not pickup.is_active:
            raise InvalidStatusTransition("cancelled", operation.value)
        return pickup

    async def confirm_pickup(
        self,
        pickup_id: UUID,
        actor: User,
        proof_ref: Optional[str],
        notes: Optional[str] = None,
    ) -> Pickup:
        """The assigned volunteer collected the food from the donor."""
        pickup = await self._load_for_transition(pickup_id, actor, Operation.CONFIRM_PICKUP)
        donation = pickup.donation

        if donation.status != DonationStatus.ASSIGNED:
            raise InvalidStatusTransition(donation.status.value, DonationStatus.PICKED_UP.value)

        await transition_donation(self.db, donation, DonationStatus.PICKED_UP)

        pickup.picked_up_at = not_before(utcnow(), pickup.assigned_at)
        pickup.proof_of_pickup = proof_ref
        if notes is not None:
            pickup.notes = notes

        await self.db.flush()
        logger.info(f"Pickup {pickup.id} collected by volunteer {pickup.volunteer_id}")
        return pickup

    async def confirm_delivery(
        self,
        pickup_id: UUID,
        actor: User,
        proof_ref: Optional[str],
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Pickup:
        """Volunteer or receiving charity confirms the handoff; closes the lifecycle."""
        if rating is not None and not MIN_PICKUP_RATING <= rating <= MAX_PICKUP_RATING:
            raise ValidationError("يجب أن يكون التقييم بين 1 و 5", field="rating")

        pickup = await self._load_for_transition(pickup_id, actor, Operation.CONFIRM_DELIVERY)
        donation = pickup.donation

        if donation.status != DonationStatus.PICKED_UP:
            raise InvalidStatusTransition(donation.status.value, DonationStatus.DELIVERED.value)

        await transition_donation(self.db, donation, DonationStatus.DELIVERED)

        pickup.delivered_at = not_before(utcnow(), pickup.picked_up_at)
        pickup.proof_of_delivery = proof_ref
        if notes is not None:
            pickup.notes = notes

        if pickup.volunteer_id is not None:
            await self._credit_volunteer(pickup, rating)
        if rating is not None:
            pickup.rating = rating

        await self.db.flush()
        await self.impact.record_delivery(donation)
        logger.info(f"Pickup {pickup.id} delivered to charity {pickup.charity_id}")
        return pickup

    async def _credit_volunteer(self, pickup: Pickup, rating: Optional[int]) -> None:
        result = await self.db.execute(
            select(Volunteer)
            .where(Volunteer.id == pickup.volunteer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        volunteer = result.scalar_one()

        values = {
            "total_pickups": Volunteer.total_pickups + 1,
            "available": True,
        }
        if rating is not None:
            prior = await self.db.execute(
                select(func.count(Pickup.id)).where(
                    Pickup.volunteer_id == volunteer.id,
                    Pickup.rating.is_not(None),
                    Pickup.id != pickup.id,
                )
            )
            values["rating"] = running_rating(volunteer.rating, prior.scalar() or 0, rating)

        await self.db.execute(
            update(Volunteer)
            .where(Volunteer.id == volunteer.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        set_committed_value(volunteer, "total_pickups", volunteer.total_pickups + 1)
        set_committed_value(volunteer, "available", True)
        if rating is not None:
            set_committed_value(volunteer, "rating", values["rating"])

    async def cancel_assignment(
        self,
        pickup_id: UUID,
        actor: User,
        reason: Optional[str] = None,
    ) -> Pickup:
        """Undo a match before collection: donation back to pending, volunteer freed."""
        pickup = await self._load_for_transition(pickup_id, actor, Operation.CANCEL_ASSIGNMENT)
        donation = pickup.donation

        if pickup.picked_up_at is not None or donation.status != DonationStatus.ASSIGNED:
            raise InvalidStatusTransition(donation.status.value, DonationStatus.PENDING.value)

        await transition_donation(self.db, donation, DonationStatus.PENDING)
        await release_volunteer(self.db, pickup.volunteer)

        pickup.cancelled_at = utcnow()
        if reason:
            pickup.notes = reason

        await self.db.flush()
        logger.info(f"Pickup {pickup.id} cancelled by {actor.id}; donation {donation.id} back to pending")
        return pickup

    async def list_for_actor(
        self,
        actor: User,
        active_only: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Pickup], int]:
        """Pickups the actor may read: as volunteer, charity, donor, or all for admins."""
        query = (
            select(Pickup)
            .join(Donation, Donation.id == Pickup.donation_id)
            .outerjoin(Volunteer, Volunteer.id == Pickup.volunteer_id)
            .outerjoin(Charity, Charity.id == Pickup.charity_id)
            .join(Organization, Organization.id == Donation.organization_id)
        )
        if not is_admin(actor):
            query = query.where(
                or_(
                    Volunteer.user_id == actor.id,
                    Charity.user_id == actor.id,
                    Organization.user_id == actor.id,
                )
            )
        if active_only:
            query = query.where(Pickup.cancelled_at.is_(None))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar()

        query = query.options(*pickup_options()).order_by(Pickup.assigned_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total
