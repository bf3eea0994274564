"""
core/meal_fulfillment.py
────────────────────────────────────────────────────────────────────────
Resolves what a single meal slot "is":

  Unfulfilled ──select / assign / custom──▶ Fulfilled
  Fulfilled   ──remove────────────────────▶ Unfulfilled
  Incomplete  ──complete──────────────────▶ Completed   (no way back)

Every operation looks the meal up first (→ NotFoundError), then asks the
access policy about the meal's plan (→ ForbiddenError), then writes.  The
nutrition snapshot is always re-derived from whichever recipe is now
selected.

Concurrent writers on the same meal are not detected: last writer wins.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core import catalog
from core.access import Operation, Ownership, authorize
from core.errors import NotFoundError
from core.models.actor import Actor
from core.models.plan import CustomMealData, RecipeFilter
from core.nutrition_snapshot import apply_snapshot, clear_snapshot
from services.db import Plan, PlanDay, PlanMeal, Recipe, utcnow

_LOG = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────
#  lookup
# ──────────────────────────────────────────────────────────────────────
async def _load_meal(db: AsyncSession, meal_id: str) -> Tuple[PlanMeal, Ownership]:
    stmt = (
        select(PlanMeal, Plan.nutritionist_id, Plan.patient_id)
        .join(PlanDay, PlanMeal.plan_day_id == PlanDay.id)
        .join(Plan, PlanDay.plan_id == Plan.id)
        .where(PlanMeal.id == meal_id)
        .execution_options(populate_existing=True)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        raise NotFoundError("Meal not found")
    meal, nutritionist_id, patient_id = row
    return meal, Ownership(nutritionist_id=nutritionist_id, patient_id=patient_id)


async def _meal_for(db: AsyncSession, meal_id: str, actor: Actor, op: Operation) -> PlanMeal:
    meal, owner = await _load_meal(db, meal_id)
    authorize(actor, op, owner)
    return meal


async def _active_recipe(db: AsyncSession, recipe_id: str) -> Recipe:
    recipe = await catalog.get_active_recipe(db, recipe_id)
    if recipe is None:
        raise NotFoundError("Recipe not found or not active")
    return recipe


async def _save(db: AsyncSession, meal: PlanMeal) -> PlanMeal:
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    fresh, _ = await _load_meal(db, meal.id)
    return fresh


# ──────────────────────────────────────────────────────────────────────
#  fulfilment
# ──────────────────────────────────────────────────────────────────────
async def select_recipe_for_meal(
    db: AsyncSession, meal_id: str, recipe_id: str, actor: Actor
) -> PlanMeal:
    """Patient self-service: pick a catalogue recipe for one of their own meals."""
    meal = await _meal_for(db, meal_id, actor, Operation.SELECT_RECIPE)
    recipe = await _active_recipe(db, recipe_id)

    apply_snapshot(meal, recipe)
    meal = await _save(db, meal)
    _LOG.info("meal %s: recipe %s selected by %s (%s kcal)", meal_id, recipe_id, actor.id, meal.kcal)
    return meal


async def assign_recipe_to_meal(
    db: AsyncSession, meal_id: str, recipe_id: str, actor: Actor
) -> PlanMeal:
    """Professional side of `select_recipe_for_meal`; same snapshot rules."""
    meal = await _meal_for(db, meal_id, actor, Operation.ASSIGN_RECIPE)
    recipe = await _active_recipe(db, recipe_id)

    apply_snapshot(meal, recipe)
    meal = await _save(db, meal)
    _LOG.info("meal %s: recipe %s assigned by %s", meal_id, recipe_id, actor.id)
    return meal


async def remove_recipe_from_meal(db: AsyncSession, meal_id: str, actor: Actor) -> PlanMeal:
    meal = await _meal_for(db, meal_id, actor, Operation.REMOVE_RECIPE)

    clear_snapshot(meal)
    meal = await _save(db, meal)
    _LOG.info("meal %s: recipe removed by %s", meal_id, actor.id)
    return meal


async def add_custom_meal(
    db: AsyncSession, meal_id: str, data: CustomMealData, actor: Actor
) -> PlanMeal:
    """
    Log an ad-hoc meal.  A one-off "custom" recipe is synthesized from
    `data` and selected, so the snapshot comes from a recipe exactly like
    the catalogue path.  Recipe insert and meal update commit together.
    """
    meal = await _meal_for(db, meal_id, actor, Operation.ADD_CUSTOM_MEAL)

    recipe = catalog.build_custom_recipe(data, author_id=actor.id)
    db.add(recipe)
    apply_snapshot(meal, recipe)
    meal = await _save(db, meal)
    _LOG.info(
        "meal %s: custom recipe %s (%r) added by %s",
        meal_id, meal.selected_recipe_id, data.name, actor.id,
    )
    return meal


async def complete_meal(db: AsyncSession, meal_id: str, actor: Actor) -> PlanMeal:
    """
    Mark the meal as eaten.  A selected recipe is not required.  Calling it
    again keeps the flag set and moves `completed_at` to now.
    """
    meal = await _meal_for(db, meal_id, actor, Operation.COMPLETE_MEAL)

    meal.is_completed = True
    meal.completed_at = utcnow()
    meal = await _save(db, meal)
    _LOG.info("meal %s completed by %s", meal_id, actor.id)
    return meal


# ──────────────────────────────────────────────────────────────────────
#  catalogue reads
# ──────────────────────────────────────────────────────────────────────
async def get_available_recipes_for_meal(
    db: AsyncSession, meal_id: str, flt: RecipeFilter, actor: Actor
) -> List[Recipe]:
    await _meal_for(db, meal_id, actor, Operation.BROWSE_MEAL_RECIPES)
    recipes = await catalog.search_active_recipes(db, flt)
    _LOG.debug("meal %s: %d candidate recipes for %s", meal_id, len(recipes), actor.id)
    return recipes


async def list_available_recipes(db: AsyncSession, actor: Actor) -> List[Recipe]:
    """The whole active catalogue; open to any authenticated caller."""
    recipes = await catalog.search_active_recipes(db)
    _LOG.debug("%d active recipes for %s", len(recipes), actor.id)
    return recipes
