"""
Shared fixtures: an in-memory SQLite database with a small cast of users,
patients and catalogue recipes.
"""
from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from core.models.actor import Actor, Role
from core.models.plan import DaySpec, MealSpec, PlanSpec
from services.db import Base, Patient, Recipe, RecipeNutrition, User, init_models, session_factory


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(eng)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture
async def db(engine):
    async with session_factory(engine)() as session:
        yield session


def _recipe(rid: str, name: str, kcal: float, p: float, c: float, f: float, **kw) -> Recipe:
    return Recipe(
        id=rid,
        name=name,
        nutrition=RecipeNutrition(calories=kcal, protein=p, carbs=c, fat=f),
        **kw,
    )


@pytest.fixture
async def world(db):
    """
    pro      owns patient P1 (logged in as `patient`)
    other    owns patient P2 (logged in as `stranger`)
    R1, R2 active catalogue recipes, R3 inactive
    """
    db.add_all(
        [
            User(id="u-pro", email="pro@example.com", role="PRO"),
            User(id="u-other", email="other@example.com", role="PRO"),
            User(id="u-admin", email="admin@example.com", role="ADMIN"),
            User(id="u-pat", email="pat@example.com", name="Pat", role="PATIENT"),
            User(id="u-pat2", email="pat2@example.com", role="PATIENT"),
        ]
    )
    db.add_all(
        [
            Patient(id="P1", user_id="u-pat", nutritionist_id="u-pro"),
            Patient(id="P2", user_id="u-pat2", nutritionist_id="u-other"),
        ]
    )
    db.add_all(
        [
            _recipe("R1", "Oatmeal Bowl", 400, 30.4, 45.6, 10.2,
                    description="Rolled oats with whey", tags=["breakfast", "high-protein"]),
            _recipe("R2", "Chicken Salad", 450, 40, 20, 18,
                    difficulty="MEDIUM", tags=["lunch", "gluten-free"]),
            _recipe("R3", "Retired Pancakes", 600, 10, 90, 20, is_active=False,
                    tags=["breakfast"]),
        ]
    )
    await db.commit()

    return SimpleNamespace(
        pro=Actor(id="u-pro", role=Role.PRO),
        other=Actor(id="u-other", role=Role.PRO),
        admin=Actor(id="u-admin", role=Role.ADMIN),
        patient=Actor(id="u-pat", role=Role.PATIENT, patient_id="P1"),
        stranger=Actor(id="u-pat2", role=Role.PATIENT, patient_id="P2"),
    )


def plan_spec(patient_id: str | None = "P1", days: list[DaySpec] | None = None, **kw) -> PlanSpec:
    """One Monday with one 08:00 breakfast unless `days` says otherwise."""
    if days is None:
        days = [DaySpec(day_of_week=1, meals=[MealSpec(type="BREAKFAST", time="08:00")])]
    return PlanSpec(
        name=kw.pop("name", "Weight Loss - Week 1"),
        description=kw.pop("description", "Balanced portions"),
        patient_id=patient_id,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        days=days,
        **kw,
    )


@pytest.fixture
def make_spec():
    return plan_spec
