from __future__ import annotations
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict


class NutritionOut(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float = 0
    sugar: float = 0
    sodium: float = 0
    cholesterol: float = 0

    model_config = ConfigDict(from_attributes=True)


class RecipeSummary(BaseModel):
    id: str
    name: str
    image: str = ""
    prep_time: int
    cook_time: int
    difficulty: str

    model_config = ConfigDict(from_attributes=True)


class RecipeOut(RecipeSummary):
    description: str = ""
    servings: int
    tags: List[str] = []
    allergens: List[str] = []
    is_active: bool
    author_id: str | None = None
    created_at: datetime
    nutrition: NutritionOut | None = None
