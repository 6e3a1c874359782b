"""
سياسات اختيار الجمعية المستفيدة عند المطابقة

The policy is a strategy selected by ``CHARITY_SELECTION_POLICY``. Each policy
receives the verified charities and returns one of them, or ``None``.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import ensure_utc
from app.models.charity import Charity
from app.models.organization import Organization
from app.models.pickup import Pickup
from app.services.geo import distance_between, get_distance_metric


class CharitySelectionPolicy(ABC):
    name: str = ""

    @abstractmethod
    async def select(
        self,
        db: AsyncSession,
        organization: Organization,
        charities: List[Charity],
    ) -> Optional[Charity]:
        ...


class NearestCharityPolicy(CharitySelectionPolicy):
    """Closest verified charity to the donor; charities without coordinates are skipped."""
    name = "nearest"

    def __init__(self, metric: Callable = None):
        self.metric = metric or get_distance_metric(settings.MATCH_DISTANCE_METRIC)

    async def select(self, db, organization, charities):
        located = [c for c in charities if c.has_location]
        if not located:
            return None
        return min(
            located,
            key=lambda c: (distance_between(organization, c, self.metric), str(c.id)),
        )


NEVER = datetime.min.replace(tzinfo=timezone.utc)


class RoundRobinCharityPolicy(CharitySelectionPolicy):
    """Least recently assigned charity first; never-assigned charities lead."""
    name = "round_robin"

    async def select(self, db, organization, charities):
        if not charities:
            return None

        result = await db.execute(
            select(Pickup.charity_id, func.max(Pickup.assigned_at))
            .where(Pickup.charity_id.in_([c.id for c in charities]))
            .group_by(Pickup.charity_id)
        )
        last_assigned = {row[0]: row[1] for row in result.all()}

        def sort_key(charity: Charity):
            last = ensure_utc(last_assigned.get(charity.id))
            return (last is not None, last or NEVER, str(charity.id))

        return min(charities, key=sort_key)


CHARITY_POLICIES: Dict[str, Type[CharitySelectionPolicy]] = {
    NearestCharityPolicy.name: NearestCharityPolicy,
    RoundRobinCharityPolicy.name: RoundRobinCharityPolicy,
}


def get_charity_policy(name: str = None) -> CharitySelectionPolicy:
    name = name or settings.CHARITY_SELECTION_POLICY
    try:
        return CHARITY_POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown charity selection policy: {name}")
