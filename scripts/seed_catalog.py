"""
Seed a demo professional, patient and a small recipe catalogue, then print
bearer tokens for each demo user.

Usage
-----

    # default hard-coded catalogue
    python -m scripts.seed_catalog

    # custom recipe list (same schema) in a JSON file
    python -m scripts.seed_catalog --file path/to/recipes.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, List

from core.models.actor import Role
from services.auth import create_token
from services.db import (
    Patient,
    Recipe,
    RecipeNutrition,
    User,
    engine,
    init_models,
    session_factory,
)

# ────────────────────────────────────────────────────────────────────
_DEFAULT_RECIPES: List[dict[str, Any]] = [
    {
        "name": "Greek Yogurt Parfait",
        "description": "Yogurt layered with oats and berries",
        "prep_time": 5,
        "difficulty": "EASY",
        "tags": ["breakfast", "vegetarian", "high-protein"],
        "nutrition": {"calories": 320, "protein": 22.4, "carbs": 38.6, "fat": 8.2, "fiber": 5},
    },
    {
        "name": "Grilled Chicken & Quinoa Bowl",
        "description": "Chicken breast, quinoa, roasted vegetables",
        "prep_time": 15,
        "cook_time": 25,
        "difficulty": "MEDIUM",
        "tags": ["lunch", "high-protein", "gluten-free"],
        "nutrition": {"calories": 540, "protein": 42.3, "carbs": 48.5, "fat": 16.7, "fiber": 7},
    },
    {
        "name": "Baked Salmon with Greens",
        "description": "Oven salmon fillet, spinach and lemon",
        "prep_time": 10,
        "cook_time": 20,
        "difficulty": "MEDIUM",
        "tags": ["dinner", "omega-3", "gluten-free"],
        "nutrition": {"calories": 480, "protein": 36.0, "carbs": 12.4, "fat": 30.5, "sodium": 380},
    },
    {
        "name": "Apple & Almond Butter",
        "description": "Sliced apple with two spoons of almond butter",
        "prep_time": 3,
        "difficulty": "EASY",
        "tags": ["snack", "vegan"],
        "nutrition": {"calories": 290, "protein": 7.0, "carbs": 30.2, "fat": 17.8, "sugar": 19},
    },
]


def _recipe(raw: dict[str, Any], author_id: str) -> Recipe:
    raw = dict(raw)
    nutrition = RecipeNutrition(**raw.pop("nutrition"))
    return Recipe(author_id=author_id, nutrition=nutrition, **raw)


async def _seed(recipes: list[dict[str, Any]]) -> None:
    eng = await engine()
    await init_models(eng)
    async with session_factory(eng)() as db:
        pro = User(email="pro@example.com", name="Demo Nutritionist", role=Role.PRO.value)
        patient_user = User(email="patient@example.com", name="Demo Patient", role=Role.PATIENT.value)
        admin = User(email="admin@example.com", name="Admin", role=Role.ADMIN.value)
        db.add_all([pro, patient_user, admin])
        await db.flush()

        patient = Patient(user_id=patient_user.id, nutritionist_id=pro.id)
        db.add(patient)
        db.add_all(_recipe(r, pro.id) for r in recipes)
        await db.commit()

    print(f"✓ inserted {len(recipes)} recipes, patient {patient.id}")
    print(f"PRO      {create_token(pro.id, Role.PRO)}")
    print(f"PATIENT  {create_token(patient_user.id, Role.PATIENT, patient_id=patient.id)}")
    print(f"ADMIN    {create_token(admin.id, Role.ADMIN)}")


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--file", type=Path, help="JSON list of recipes")
    args = ap.parse_args()

    recipes = json.loads(args.file.read_text()) if args.file else _DEFAULT_RECIPES
    asyncio.run(_seed(recipes))


if __name__ == "__main__":
    main()
