"""Input shapes for the plan composition and meal fulfilment services."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class MealType(str, Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"


class PlanStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


# ───────── plan structure ────────────────────────────────────────────

class MealSpec(BaseModel):
    # type/time are checked by the composition service, not here, so a bad
    # value surfaces as InvalidInputError instead of a schema error
    type: str = Field(..., examples=["BREAKFAST"])
    time: str = Field(..., examples=["08:00"])
    is_completed: bool = False
    notes: str | None = None
    recipe_ids: List[str] = []


class DaySpec(BaseModel):
    day_of_week: int = Field(..., examples=[1], description="0 = Sunday … 6 = Saturday")
    is_active: bool = True
    notes: str | None = None
    meals: List[MealSpec] = []


class PlanSpec(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    patient_id: str | None = None        # None → unassigned template
    status: PlanStatus = PlanStatus.DRAFT
    start_date: datetime
    end_date: datetime | None = None
    goals: List[str] = []
    notes: str | None = None
    target_kcal: int | None = Field(None, ge=0)
    target_protein_gr: int | None = Field(None, ge=0)
    target_carbs_gr: int | None = Field(None, ge=0)
    target_fat_gr: int | None = Field(None, ge=0)
    days: List[DaySpec] = []


class PlanUpdate(BaseModel):
    """Partial update; a non-null `days` replaces the whole day/meal subtree."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    status: PlanStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    goals: List[str] | None = None
    notes: str | None = None
    target_kcal: int | None = Field(None, ge=0)
    target_protein_gr: int | None = Field(None, ge=0)
    target_carbs_gr: int | None = Field(None, ge=0)
    target_fat_gr: int | None = Field(None, ge=0)
    days: List[DaySpec] | None = None


class PlanFilter(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: str | None = None
    status: PlanStatus | None = None
    patient_id: str | None = None


# ───────── meal fulfilment ──────────────────────────────────────────

class RecipeFilter(BaseModel):
    search: str | None = None
    tags: List[str] = []
    difficulty: Difficulty | None = None


class CustomMealData(BaseModel):
    name: str = Field(..., min_length=1, examples=["Snack"])
    description: str = ""
    calories: float = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)
    fiber: float = Field(0, ge=0)
    sugar: float = Field(0, ge=0)
    sodium: float = Field(0, ge=0)
    cholesterol: float = Field(0, ge=0)
