import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import utcnow
from app.models.donation import Donation
from app.models.impact import ImpactMetric

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


class ImpactService:
    """Daily impact rows fed by completed deliveries."""

    def __init__(
        self,
        db: AsyncSession,
        meals_per_kg: float = None,
        co2_per_kg: float = None,
        beneficiaries_per_donation: int = None,
    ):
        self.db = db
        self.meals_per_kg = settings.IMPACT_MEALS_PER_KG if meals_per_kg is None else meals_per_kg
        self.co2_per_kg = settings.IMPACT_CO2_KG_PER_KG if co2_per_kg is None else co2_per_kg
        self.beneficiaries_per_donation = (
            settings.IMPACT_BENEFICIARIES_PER_DONATION
            if beneficiaries_per_donation is None
            else beneficiaries_per_donation
        )

    async def _row_exists(self, on_date: date) -> bool:
        existing = await self.db.execute(
            select(ImpactMetric.id).where(ImpactMetric.date == on_date).with_for_update()
        )
        return existing.scalar_one_or_none() is not None

    async def _ensure_row(self, on_date: date) -> None:
        if await self._row_exists(on_date):
            return
        try:
            async with self.db.begin_nested():
                self.db.add(ImpactMetric(date=on_date))
        except IntegrityError:
            # another delivery created the day row first; the UPDATE adds to it
            logger.info(f"Impact row for {on_date} already inserted concurrently")

    async def record_delivery(self, donation: Donation, on_date: Optional[date] = None) -> ImpactMetric:
        on_date = on_date or utcnow().date()
        quantity = Decimal(donation.quantity)
        meals = int(round(donation.quantity * self.meals_per_kg))
        co2 = (quantity * Decimal(str(self.co2_per_kg))).quantize(TWO_PLACES)

        await self._ensure_row(on_date)
        await self.db.execute(
            update(ImpactMetric)
            .where(ImpactMetric.date == on_date)
            .values(
                meals_saved=ImpactMetric.meals_saved + meals,
                kg_food_saved=ImpactMetric.kg_food_saved + quantity,
                co2_saved=ImpactMetric.co2_saved + co2,
                beneficiaries_served=ImpactMetric.beneficiaries_served + self.beneficiaries_per_donation,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Impact {on_date}: +{donation.quantity} kg from donation {donation.id}")
        return await self.get_metric(on_date)

    async def get_metric(self, on_date: date) -> Optional[ImpactMetric]:
        result = await self.db.execute(
            select(ImpactMetric)
            .where(ImpactMetric.date == on_date)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_metrics(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[ImpactMetric]:
        query = select(ImpactMetric)
        if start:
            query = query.where(ImpactMetric.date >= start)
        if end:
            query = query.where(ImpactMetric.date <= end)
        result = await self.db.execute(query.order_by(ImpactMetric.date.asc()))
        return list(result.scalars().all())

    async def summary(self) -> dict:
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(ImpactMetric.meals_saved), 0),
                func.coalesce(func.sum(ImpactMetric.kg_food_saved), 0),
                func.coalesce(func.sum(ImpactMetric.co2_saved), 0),
                func.coalesce(func.sum(ImpactMetric.beneficiaries_served), 0),
                func.count(ImpactMetric.id),
            )
        )
        meals, kg, co2, beneficiaries, days = result.one()
        return {
            "meals_saved": int(meals),
            "kg_food_saved": float(kg),
            "co2_saved": float(co2),
            "beneficiaries_served": int(beneficiaries),
            "days": days,
        }
