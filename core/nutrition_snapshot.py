"""
core/nutrition_snapshot.py
────────────────────────────────────────────────────────────────────────
The four nutrition fields on a meal (kcal / protein / carbs / fat) are a
copy of the selected recipe's profile taken at selection time, rounded to
whole units.  They are never re-read from the catalogue afterwards, so plan
totals are always summed from these snapshots.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from services.db import Plan, PlanMeal, Recipe


def round_half_up(value: float) -> int:
    # half-up rather than round()'s half-to-even: 44.5 -> 45, 45.5 -> 46
    return int(math.floor(value + 0.5))


def apply_snapshot(meal: PlanMeal, recipe: Recipe) -> None:
    """Make `recipe` the meal's selected recipe and copy its nutrition onto the meal."""
    n = recipe.nutrition
    meal.selected_recipe = recipe
    meal.kcal = round_half_up(n.calories)
    meal.protein_gr = round_half_up(n.protein)
    meal.carbs_gr = round_half_up(n.carbs)
    meal.fat_gr = round_half_up(n.fat)


def clear_snapshot(meal: PlanMeal) -> None:
    """Back to unfulfilled: no selected recipe, no nutrition."""
    meal.selected_recipe = None
    meal.selected_recipe_id = None
    meal.kcal = None
    meal.protein_gr = None
    meal.carbs_gr = None
    meal.fat_gr = None


# ──────────────────────────────────────────────────────────────────────
#  Totals
# ──────────────────────────────────────────────────────────────────────
@dataclass
class NutritionTotals:
    kcal: int = 0
    protein_gr: int = 0
    carbs_gr: int = 0
    fat_gr: int = 0
    fulfilled_meals: int = 0
    total_meals: int = 0

    def add(self, meal: PlanMeal) -> None:
        self.total_meals += 1
        if meal.selected_recipe_id is None or meal.kcal is None:
            return
        self.fulfilled_meals += 1
        self.kcal += meal.kcal
        self.protein_gr += meal.protein_gr or 0
        self.carbs_gr += meal.carbs_gr or 0
        self.fat_gr += meal.fat_gr or 0


@dataclass
class DayTotals:
    day_id: str
    day_of_week: int
    totals: NutritionTotals = field(default_factory=NutritionTotals)


@dataclass
class PlanTotals:
    plan_id: str
    totals: NutritionTotals
    days: list[DayTotals]


def sum_meals(meals: Iterable[PlanMeal]) -> NutritionTotals:
    totals = NutritionTotals()
    for m in meals:
        totals.add(m)
    return totals


def plan_nutrition_totals(plan: Plan) -> PlanTotals:
    """Per-day and whole-plan sums of the meal snapshots; unfulfilled meals add nothing."""
    days = [
        DayTotals(day_id=d.id, day_of_week=d.day_of_week, totals=sum_meals(d.meals))
        for d in plan.days
    ]
    return PlanTotals(
        plan_id=plan.id,
        totals=sum_meals(m for d in plan.days for m in d.meals),
        days=days,
    )
