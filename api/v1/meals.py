# api/v1/meals.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import get_current_actor
from api.v1.schemas import PlanMealOut, RecipeChoice, RecipeOut
from core import meal_fulfillment
from core.models.actor import Actor
from core.models.plan import CustomMealData, Difficulty, RecipeFilter
from services.db import get_session

router = APIRouter()


def _meal_out(meal) -> PlanMealOut:
    return PlanMealOut.model_validate(meal, from_attributes=True)


# ───────────────────────── patient ──────────────────────────
@router.post(
    "/{meal_id}/select-recipe",
    response_model=PlanMealOut,
    summary="Patient picks a catalogue recipe for one of their meals",
)
async def select_recipe(
    meal_id: str,
    body: RecipeChoice,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanMealOut:
    meal = await meal_fulfillment.select_recipe_for_meal(db, meal_id, body.recipe_id, actor)
    return _meal_out(meal)


@router.post(
    "/{meal_id}/custom-meal",
    response_model=PlanMealOut,
    summary="Log an ad-hoc meal with its own nutrition values",
)
async def custom_meal(
    meal_id: str,
    body: CustomMealData,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanMealOut:
    meal = await meal_fulfillment.add_custom_meal(db, meal_id, body, actor)
    return _meal_out(meal)


@router.post(
    "/{meal_id}/complete",
    response_model=PlanMealOut,
    summary="Mark a meal as eaten",
)
async def complete(
    meal_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanMealOut:
    meal = await meal_fulfillment.complete_meal(db, meal_id, actor)
    return _meal_out(meal)


# ───────────────────────── professional ─────────────────────
@router.post(
    "/{meal_id}/assign-recipe",
    response_model=PlanMealOut,
    summary="Assign a recipe to a meal (professional only)",
)
async def assign_recipe(
    meal_id: str,
    body: RecipeChoice,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanMealOut:
    meal = await meal_fulfillment.assign_recipe_to_meal(db, meal_id, body.recipe_id, actor)
    return _meal_out(meal)


@router.delete(
    "/{meal_id}/recipe",
    response_model=PlanMealOut,
    summary="Remove the assigned recipe from a meal (professional only)",
)
async def remove_recipe(
    meal_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanMealOut:
    meal = await meal_fulfillment.remove_recipe_from_meal(db, meal_id, actor)
    return _meal_out(meal)


@router.get(
    "/{meal_id}/available-recipes",
    response_model=list[RecipeOut],
    summary="Active recipes that could fill this meal (professional only)",
)
async def available_recipes_for_meal(
    meal_id: str,
    search: str | None = Query(None),
    tags: list[str] = Query(default=[]),
    difficulty: Difficulty | None = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> list[RecipeOut]:
    flt = RecipeFilter(search=search, tags=tags, difficulty=difficulty)
    recipes = await meal_fulfillment.get_available_recipes_for_meal(db, meal_id, flt, actor)
    return [RecipeOut.model_validate(r, from_attributes=True) for r in recipes]
