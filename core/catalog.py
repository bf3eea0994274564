"""
core/catalog.py
────────────────────────────────────────────────────────────────────────
Read side of the recipe catalogue, plus the one write this core makes to
it: synthesizing a single-serving "custom" recipe to carry the nutrition of
an ad-hoc meal.
"""
from __future__ import annotations

from typing import Dict, Iterable, List

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.plan import CustomMealData, Difficulty, RecipeFilter
from services.db import Recipe, RecipeNutrition


CUSTOM_TAG = "custom"


def _active():
    # recipes without a nutrition row are never offered for a meal
    return select(Recipe).join(RecipeNutrition).where(Recipe.is_active.is_(True))


async def get_active_recipe(db: AsyncSession, recipe_id: str) -> Recipe | None:
    return (await db.execute(_active().where(Recipe.id == recipe_id))).scalar_one_or_none()


async def search_active_recipes(
    db: AsyncSession, flt: RecipeFilter | None = None
) -> List[Recipe]:
    """
    Active recipes, newest first.  `search` is a case-insensitive literal
    substring of name/description (`%` and `_` match themselves),
    `difficulty` must match exactly, and a recipe passes the `tags` filter
    when it carries at least one requested tag.  Tags compare
    case-insensitively, so "Breakfast" finds recipes tagged "breakfast".
    """
    flt = flt or RecipeFilter()
    stmt = _active()
    if flt.search:
        stmt = stmt.where(
            or_(
                Recipe.name.icontains(flt.search, autoescape=True),
                Recipe.description.icontains(flt.search, autoescape=True),
            )
        )
    if flt.difficulty:
        stmt = stmt.where(Recipe.difficulty == Difficulty(flt.difficulty).value)
    stmt = stmt.order_by(Recipe.created_at.desc(), Recipe.name)

    recipes = list((await db.execute(stmt)).scalars().all())

    # tags live in a JSON column, so the overlap test runs here
    if flt.tags:
        wanted = {t.lower() for t in flt.tags}
        recipes = [r for r in recipes if wanted & {t.lower() for t in (r.tags or [])}]
    return recipes


async def recipes_by_id(db: AsyncSession, ids: Iterable[str]) -> Dict[str, Recipe]:
    """Catalogue rows for `ids` (active or not), keyed by id; unknown ids are absent."""
    wanted = set(ids)
    if not wanted:
        return {}
    rows = await db.execute(select(Recipe).where(Recipe.id.in_(wanted)))
    return {r.id: r for r in rows.scalars().all()}


def build_custom_recipe(data: CustomMealData, author_id: str) -> Recipe:
    """An unsaved one-off recipe owned by `author_id` carrying `data`'s nutrition."""
    return Recipe(
        name=data.name,
        description=data.description,
        image="",
        prep_time=0,
        cook_time=0,
        servings=1,
        difficulty=Difficulty.EASY.value,
        tags=[CUSTOM_TAG],
        allergens=[],
        is_active=True,
        author_id=author_id,
        nutrition=RecipeNutrition(
            calories=data.calories,
            protein=data.protein,
            carbs=data.carbs,
            fat=data.fat,
            fiber=data.fiber,
            sugar=data.sugar,
            sodium=data.sodium,
            cholesterol=data.cholesterol,
        ),
    )
