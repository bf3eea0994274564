"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Models for the plan graph (Plan → PlanDay → PlanMeal → Recipe) plus the
  users / patients / recipe catalogue tables it hangs off
* Session helper used by routers and scripts
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncGenerator, List
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncAttrs,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

from config import settings

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None


async def _create_engine() -> AsyncEngine:
    # 1) plain URL (sqlite+aiosqlite / postgresql+asyncpg)
    if settings.database_url:
        return create_async_engine(
            settings.database_url, pool_pre_ping=True, echo=settings.sql_echo
        )

    # 2) Cloud SQL connector (only if URL not supplied)
    if not settings.cloud_sql_instance:
        raise RuntimeError(
            "Set either DATABASE_URL or CLOUD_SQL_CONNECTION_NAME env var"
        )

    # lazy import here
    try:
        from google.cloud.sql.connector import IPTypes, create_async_connector  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "cloud-sql-python-connector missing. Run:\n"
            "pip install 'cloud-sql-python-connector[asyncpg]>=1.4.0'"
        ) from exc

    connector = await create_async_connector()

    async def _getconn():  # type: ignore[name-defined]
        return await connector.connect_async(
            settings.cloud_sql_instance,
            "asyncpg",
            user=settings.db_user,
            password=settings.db_pass,
            db=settings.db_name,
            ip_type=IPTypes.PRIVATE,
        )

    return create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_getconn,
        pool_pre_ping=True,
    )


async def engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = await _create_engine()
    return _ENGINE


def _new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)

# ───────── people ────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String, unique=True)
    name: Mapped[str | None] = mapped_column(String)
    role: Mapped[str] = mapped_column(String, default="PATIENT")   # PRO / PATIENT / ADMIN
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Patient(Base):
    """A patient record; `nutritionist_id` is the professional that owns it."""
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), index=True)
    nutritionist_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    status: Mapped[str] = mapped_column(String, default="ACTIVE")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped[User | None] = relationship(foreign_keys=[user_id], lazy="selectin")


# ───────── recipe catalogue ─────────────────────────────────────────


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text, default="")
    image: Mapped[str] = mapped_column(String, default="")
    prep_time: Mapped[int] = mapped_column(Integer, default=0)     # minutes
    cook_time: Mapped[int] = mapped_column(Integer, default=0)     # minutes
    servings: Mapped[int] = mapped_column(Integer, default=1)
    difficulty: Mapped[str] = mapped_column(String, default="EASY")   # EASY / MEDIUM / HARD
    tags: Mapped[list] = mapped_column(JSON, default=list)
    allergens: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    author_id: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    nutrition: Mapped["RecipeNutrition"] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )


class RecipeNutrition(Base):
    __tablename__ = "recipe_nutrition"

    recipe_id: Mapped[str] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    calories: Mapped[float] = mapped_column(Float)
    protein: Mapped[float] = mapped_column(Float)
    carbs: Mapped[float] = mapped_column(Float)
    fat: Mapped[float] = mapped_column(Float)
    fiber: Mapped[float] = mapped_column(Float, default=0)
    sugar: Mapped[float] = mapped_column(Float, default=0)
    sodium: Mapped[float] = mapped_column(Float, default=0)
    cholesterol: Mapped[float] = mapped_column(Float, default=0)

    recipe: Mapped[Recipe] = relationship(back_populates="nutrition")


# ───────── plan graph ───────────────────────────────────────────────

# candidate / historical recipes linked to a meal slot
plan_meal_recipes = Table(
    "plan_meal_recipes",
    Base.metadata,
    Column("plan_meal_id", ForeignKey("plan_meals.id", ondelete="CASCADE"), primary_key=True),
    Column("recipe_id", ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
)


class Plan(Base):
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text, default="")
    nutritionist_id: Mapped[str] = mapped_column(String(36), index=True)
    patient_id: Mapped[str | None] = mapped_column(String(36), index=True)   # NULL → template
    status: Mapped[str] = mapped_column(String, default="DRAFT")
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    goals: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    target_kcal: Mapped[int | None] = mapped_column(Integer)
    target_protein_gr: Mapped[int | None] = mapped_column(Integer)
    target_carbs_gr: Mapped[int | None] = mapped_column(Integer)
    target_fat_gr: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    days: Mapped[List["PlanDay"]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanDay.position",
        lazy="selectin",
    )


class PlanDay(Base):
    __tablename__ = "plan_days"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    plan_id: Mapped[str] = mapped_column(ForeignKey("plans.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)   # order within the request
    day_of_week: Mapped[int] = mapped_column(Integer)           # 0 = Sunday … 6 = Saturday
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    notes: Mapped[str | None] = mapped_column(Text)

    plan: Mapped[Plan] = relationship(back_populates="days")
    meals: Mapped[List["PlanMeal"]] = relationship(
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="PlanMeal.position",
        lazy="selectin",
    )


class PlanMeal(Base):
    __tablename__ = "plan_meals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    plan_day_id: Mapped[str] = mapped_column(ForeignKey("plan_days.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    type: Mapped[str] = mapped_column(String)                   # BREAKFAST / LUNCH / DINNER / SNACK
    time: Mapped[str] = mapped_column(String)                   # "HH:MM"
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)
    selected_recipe_id: Mapped[str | None] = mapped_column(ForeignKey("recipes.id"))
    # nutrition snapshot of the selected recipe, NULL while unfulfilled
    kcal: Mapped[int | None] = mapped_column(Integer)
    protein_gr: Mapped[int | None] = mapped_column(Integer)
    carbs_gr: Mapped[int | None] = mapped_column(Integer)
    fat_gr: Mapped[int | None] = mapped_column(Integer)

    day: Mapped[PlanDay] = relationship(back_populates="meals")
    recipes: Mapped[List[Recipe]] = relationship(secondary=plan_meal_recipes, lazy="selectin")
    selected_recipe: Mapped[Recipe | None] = relationship(
        foreign_keys=[selected_recipe_id], lazy="selectin"
    )


# ───────── schema / session helpers ──────────────────────────────────

async def init_models(eng: AsyncEngine | None = None) -> None:
    """Create any missing tables (no migrations)."""
    eng = eng or await engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def session_factory(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    eng = await engine()
    async with session_factory(eng)() as session:
        yield session
