"""
محرك المطابقة - اختيار متطوع وجمعية لتبرع معلق
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.config import settings
from app.core.clock import ensure_utc, utcnow
from app.core.constants import DonationStatus, Operation
from app.core.exceptions import (
    ConflictError,
    DonationExpiredError,
    InvalidStatusTransition,
    NoCandidateError,
)
from app.core.permissions import enforce
from app.models.charity import Charity
from app.models.organization import Organization
from app.models.pickup import Pickup
from app.models.user import User
from app.models.volunteer import Volunteer
from app.services.charity_policy import CharitySelectionPolicy, get_charity_policy
from app.services.donation_service import DonationService, transition_donation
from app.services.geo import distance_between, get_distance_metric
from app.services.pickup_service import pickup_options

logger = logging.getLogger(__name__)


@dataclass
class RankedVolunteer:
    volunteer: Volunteer
    distance_km: float

    @property
    def sort_key(self):
        return (self.distance_km, -float(self.volunteer.rating), str(self.volunteer.id))


def rank_volunteers(
    organization: Organization,
    volunteers: List[Volunteer],
    metric: Callable,
    max_distance_km: Optional[float] = None,
) -> List[RankedVolunteer]:
    """Nearest first, then higher rating, then volunteer id."""
    ranked = []
    for volunteer in volunteers:
        if not volunteer.available or not volunteer.has_location:
            continue
        distance = distance_between(organization, volunteer, metric)
        if max_distance_km is not None and distance > max_distance_km:
            continue
        ranked.append(RankedVolunteer(volunteer=volunteer, distance_km=distance))
    return sorted(ranked, key=lambda r: r.sort_key)


def available_volunteers_query():
    """Candidate scan without row locks; `_claim_volunteer` guards each row."""
    return (
        select(Volunteer)
        .where(
            Volunteer.available.is_(True),
            Volunteer.latitude.is_not(None),
            Volunteer.longitude.is_not(None),
        )
        .execution_options(populate_existing=True)
    )


class MatchingService:
    def __init__(
        self,
        db: AsyncSession,
        charity_policy: Optional[CharitySelectionPolicy] = None,
        metric: Optional[Callable] = None,
        max_distance_km: Optional[float] = None,
    ):
        self.db = db
        self.charity_policy = charity_policy or get_charity_policy()
        self.metric = metric or get_distance_metric(settings.MATCH_DISTANCE_METRIC)
        self.max_distance_km = (
            max_distance_km if max_distance_km is not None else settings.MATCH_MAX_DISTANCE_KM
        )

    async def _available_volunteers(self) -> List[Volunteer]:
        result = await self.db.execute(available_volunteers_query())
        return list(result.scalars().all())

    async def _verified_charities(self) -> List[Charity]:
        result = await self.db.execute(
            select(Charity).where(Charity.verified.is_(True)).order_by(Charity.id)
        )
        return list(result.scalars().all())

    async def _claim_volunteer(self, volunteer: Volunteer) -> bool:
        result = await self.db.execute(
            update(Volunteer)
            .where(Volunteer.id == volunteer.id, Volunteer.available.is_(True))
            .values(available=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        set_committed_value(volunteer, "available", False)
        return True

    async def match(self, donation_id: UUID, actor: Optional[User] = None) -> Pickup:
        """Assign the best volunteer and a charity to a pending donation.

        Everything happens in the caller's transaction: donation transition,
        volunteer claim and pickup insert are committed together or not at all.
        Raises NoCandidateError when nobody qualifies; calling again later is the
        retry path.
        """
        donations = DonationService(self.db)
        donation = await donations.get_donation(donation_id, for_update=True)
        if actor is not None:
            enforce(actor, Operation.WRITE, donation, "لا يمكنك مطابقة تبرع جهة أخرى")

        if donation.status != DonationStatus.PENDING:
            raise InvalidStatusTransition(donation.status.value, DonationStatus.ASSIGNED.value)
        if ensure_utc(donation.expiry) <= utcnow():
            raise DonationExpiredError(str(donation.id))
        if donation.active_pickup is not None:
            raise ConflictError("يوجد تعيين نشط لهذا التبرع", details={"donation_id": str(donation.id)})

        organization = donation.organization
        if not organization.has_location:
            raise NoCandidateError("organization_location_missing")

        ranked = rank_volunteers(
            organization,
            await self._available_volunteers(),
            self.metric,
            self.max_distance_km,
        )
        if not ranked:
            logger.info(f"No volunteer available for donation {donation.id}")
            raise NoCandidateError("no_volunteer")

        charity = await self.charity_policy.select(
            self.db, organization, await self._verified_charities()
        )
        if charity is None:
            logger.info(f"No verified charity for donation {donation.id}")
            raise NoCandidateError("no_charity")

        chosen = None
        for candidate in ranked:
            if await self._claim_volunteer(candidate.volunteer):
                chosen = candidate
                break
        if chosen is None:
            raise ConflictError("تم حجز المتطوعين المتاحين بالتزامن")

        await transition_donation(self.db, donation, DonationStatus.ASSIGNED)

        pickup = Pickup(
            donation_id=donation.id,
            volunteer_id=chosen.volunteer.id,
            charity_id=charity.id,
            assigned_at=utcnow(),
        )
        self.db.add(pickup)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise ConflictError("يوجد تعيين نشط لهذا التبرع", details={"donation_id": str(donation.id)}) from exc

        logger.info(
            f"Donation {donation.id} assigned to volunteer {chosen.volunteer.id} "
            f"({chosen.distance_km:.2f} km) and charity {charity.id}"
        )
        return await self._load_pickup(pickup.id)

    async def _load_pickup(self, pickup_id: UUID) -> Pickup:
        result = await self.db.execute(
            select(Pickup)
            .options(*pickup_options())
            .where(Pickup.id == pickup_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def match_pending(self, limit: Optional[int] = None) -> List[Pickup]:
        """One matching pass over pending donations, for an external scheduler.

        Donations without a candidate are skipped and stay pending.
        """
        donations = DonationService(self.db)
        pending_ids = [donation.id async for donation in donations.iter_pending(limit=limit)]

        pickups = []
        for donation_id in pending_ids:
            try:
                async with self.db.begin_nested():
                    pickups.append(await self.match(donation_id))
            except NoCandidateError as exc:
                logger.info(f"Donation {donation_id} left pending: {exc.error_details['reason']}")
        return pickups
