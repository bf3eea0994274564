"""Re-export individual schema modules for easy imports."""

from .recipe import NutritionOut, RecipeOut, RecipeSummary
from .meal import PlanMealOut, RecipeChoice
from .plan import (
    Ack,
    PatientOut,
    PatientOverviewOut,
    PlanDayOut,
    PlanOut,
    PlanPageOut,
    PlanTotalsOut,
)

__all__ = [
    "NutritionOut",
    "RecipeOut",
    "RecipeSummary",
    "PlanMealOut",
    "RecipeChoice",
    "Ack",
    "PatientOut",
    "PatientOverviewOut",
    "PlanDayOut",
    "PlanOut",
    "PlanPageOut",
    "PlanTotalsOut",
]
