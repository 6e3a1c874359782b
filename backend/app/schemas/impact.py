import datetime
from typing import List

from pydantic import BaseModel


class ImpactMetricResponse(BaseModel):
    date: datetime.date
    meals_saved: int
    kg_food_saved: float
    co2_saved: float
    beneficiaries_served: int

    model_config = {"from_attributes": True}


class ImpactListResponse(BaseModel):
    items: List[ImpactMetricResponse]


class ImpactSummaryResponse(BaseModel):
    meals_saved: int
    kg_food_saved: float
    co2_saved: float
    beneficiaries_served: int
    days: int
