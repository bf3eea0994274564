from __future__ import annotations
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from .meal import PlanMealOut


class PlanDayOut(BaseModel):
    id: str
    day_of_week: int
    is_active: bool
    notes: str | None = None
    meals: List[PlanMealOut]

    model_config = ConfigDict(from_attributes=True)


class PlanOut(BaseModel):
    id: str
    name: str
    description: str
    nutritionist_id: str
    patient_id: str | None = None
    status: str
    start_date: datetime
    end_date: datetime | None = None
    goals: List[str] = []
    notes: str | None = None
    target_kcal: int | None = None
    target_protein_gr: int | None = None
    target_carbs_gr: int | None = None
    target_fat_gr: int | None = None
    created_at: datetime
    updated_at: datetime
    days: List[PlanDayOut]

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PlanPageOut(BaseModel):
    data: List[PlanOut]
    pagination: Pagination


class PatientOut(BaseModel):
    id: str
    status: str
    nutritionist_id: str
    name: str | None = None
    email: str | None = None


class PatientOverviewOut(BaseModel):
    patient: PatientOut
    plans: List[PlanOut]
    total_plans: int
    active_plans: int


class NutritionTotalsOut(BaseModel):
    kcal: int
    protein_gr: int
    carbs_gr: int
    fat_gr: int
    fulfilled_meals: int
    total_meals: int

    model_config = ConfigDict(from_attributes=True)


class DayTotalsOut(BaseModel):
    day_id: str
    day_of_week: int
    totals: NutritionTotalsOut

    model_config = ConfigDict(from_attributes=True)


class PlanTotalsOut(BaseModel):
    plan_id: str
    totals: NutritionTotalsOut
    days: List[DayTotalsOut]

    model_config = ConfigDict(from_attributes=True)


class Ack(BaseModel):
    message: str
