from __future__ import annotations
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .recipe import RecipeOut, RecipeSummary


class RecipeChoice(BaseModel):
    recipe_id: str = Field(..., min_length=1)


class PlanMealOut(BaseModel):
    id: str
    type: str                     # BREAKFAST / LUNCH / DINNER / SNACK
    time: str
    is_completed: bool
    completed_at: datetime | None = None
    notes: str | None = None
    recipes: List[RecipeSummary] = []
    selected_recipe_id: str | None = None
    selected_recipe: RecipeOut | None = None
    # nutrition snapshot, NULL while unfulfilled
    kcal: int | None = None
    protein_gr: int | None = None
    carbs_gr: int | None = None
    fat_gr: int | None = None

    model_config = ConfigDict(from_attributes=True)
