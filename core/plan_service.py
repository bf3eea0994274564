"""
core/plan_service.py
────────────────────────────────────────────────────────────────────────
Plan composition: create / update / remove / read whole plans together
with their nested days and meals.

Every function takes the session and the calling `Actor` explicitly and
keeps no state of its own.  Structural writes (create, and update with a
new `days` list) commit once, so a half-built plan is never visible.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List

from sqlalchemy import false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import Operation, Ownership, authorize, authorize_role, read_scope
from core.catalog import recipes_by_id
from core.errors import ForbiddenError, InvalidInputError, NotFoundError
from core.models.actor import Actor
from core.models.plan import DaySpec, MealType, PlanFilter, PlanSpec, PlanStatus, PlanUpdate
from core.nutrition_snapshot import PlanTotals, plan_nutrition_totals
from services.db import Patient, Plan, PlanDay, PlanMeal, utcnow

_LOG = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_MEAL_TYPES = {t.value for t in MealType}

# may not be cleared by an update
_REQUIRED_FIELDS = {"name", "description", "status", "start_date", "goals"}


@dataclass
class PlanPage:
    items: List[Plan]
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass
class PatientOverview:
    patient: Patient
    plans: List[Plan]
    total_plans: int
    active_plans: int


# ──────────────────────────────────────────────────────────────────────
#  helpers
# ──────────────────────────────────────────────────────────────────────
def ownership(plan: Plan) -> Ownership:
    return Ownership(nutritionist_id=plan.nutritionist_id, patient_id=plan.patient_id)


async def load_plan(db: AsyncSession, plan_id: str) -> Plan | None:
    """Fetch a plan with its whole day → meal → recipe graph, fresh from the store."""
    stmt = (
        select(Plan)
        .where(Plan.id == plan_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _get_plan(db: AsyncSession, plan_id: str) -> Plan:
    plan = await load_plan(db, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


def validate_days(days: List[DaySpec]) -> None:
    """Structural checks on a day/meal payload; raises `InvalidInputError`."""
    if not days:
        raise InvalidInputError("At least one day is required")
    for i, day in enumerate(days):
        if not 0 <= day.day_of_week <= 6:
            raise InvalidInputError(
                f"days[{i}]: day_of_week must be between 0 and 6, got {day.day_of_week}"
            )
        if not day.meals:
            raise InvalidInputError(f"days[{i}]: at least one meal is required")
        for j, meal in enumerate(day.meals):
            if meal.type.upper() not in _MEAL_TYPES:
                raise InvalidInputError(
                    f"days[{i}].meals[{j}]: type must be one of "
                    f"{', '.join(sorted(_MEAL_TYPES))}"
                )
            if not _TIME_RE.match(meal.time or ""):
                raise InvalidInputError(
                    f"days[{i}].meals[{j}]: time must be HH:MM, got {meal.time!r}"
                )


async def build_days(db: AsyncSession, days: List[DaySpec]) -> List[PlanDay]:
    """Unsaved PlanDay/PlanMeal objects for `days`, with candidate recipes linked."""
    wanted = {rid for d in days for m in d.meals for rid in m.recipe_ids}
    found = await recipes_by_id(db, wanted)
    missing = wanted - found.keys()
    if missing:
        raise InvalidInputError(f"Unknown recipe ids: {', '.join(sorted(missing))}")

    now = utcnow()
    return [
        PlanDay(
            position=i,
            day_of_week=d.day_of_week,
            is_active=d.is_active,
            notes=d.notes,
            meals=[
                PlanMeal(
                    position=j,
                    type=m.type.upper(),
                    time=m.time,
                    is_completed=m.is_completed,
                    completed_at=now if m.is_completed else None,
                    notes=m.notes,
                    recipes=[found[rid] for rid in dict.fromkeys(m.recipe_ids)],
                )
                for j, m in enumerate(d.meals)
            ],
        )
        for i, d in enumerate(days)
    ]


async def replace_plan_days(db: AsyncSession, plan: Plan, days: List[PlanDay]) -> None:
    """
    Swap the plan's whole day/meal subtree for `days`, inside the caller's
    transaction: every existing day, its meals and their recipe links are
    deleted first, then the new subtree is inserted.

    Nothing is merged.  Completion flags, selected recipes and nutrition
    snapshots on the old meals are gone once the caller commits.
    """
    plan.days.clear()
    await db.flush()          # delete phase
    plan.days.extend(days)
    await db.flush()          # insert phase


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise


# ──────────────────────────────────────────────────────────────────────
#  create / update / remove
# ──────────────────────────────────────────────────────────────────────
async def create_plan(db: AsyncSession, spec: PlanSpec, actor: Actor) -> Plan:
    authorize_role(actor, Operation.CREATE_PLAN)

    if spec.patient_id is None:
        owner_id = actor.id                   # unassigned template
    else:
        patient = await db.get(Patient, spec.patient_id)
        if patient is None:
            if actor.is_admin:
                raise NotFoundError("Patient not found")
            # a professional learns nothing about patients that are not theirs
            raise ForbiddenError("You can only create plans for your patients")
        authorize(
            actor,
            Operation.CREATE_PLAN,
            Ownership(nutritionist_id=patient.nutritionist_id, patient_id=patient.id),
        )
        owner_id = patient.nutritionist_id

    validate_days(spec.days)

    try:
        days = await build_days(db, spec.days)
        plan = Plan(
            **spec.model_dump(exclude={"days", "status"}),
            status=spec.status.value,
            nutritionist_id=owner_id,
            days=days,
        )
        db.add(plan)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    _LOG.info(
        "plan %s created by %s (%d days, %d meals)",
        plan.id, actor.id, len(days), sum(len(d.meals) for d in days),
    )
    return await load_plan(db, plan.id)  # type: ignore[return-value]


async def update_plan(db: AsyncSession, plan_id: str, body: PlanUpdate, actor: Actor) -> Plan:
    plan = await _get_plan(db, plan_id)
    authorize(actor, Operation.UPDATE_PLAN, ownership(plan))

    if body.days is not None:
        validate_days(body.days)

    changes = body.model_dump(exclude_unset=True, exclude={"days"})
    try:
        for key, value in changes.items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            if isinstance(value, PlanStatus):
                value = value.value
            setattr(plan, key, value)

        if body.days is not None:
            new_days = await build_days(db, body.days)
            await replace_plan_days(db, plan, new_days)
            _LOG.info("plan %s: day/meal subtree replaced (%d days)", plan_id, len(new_days))

        plan.updated_at = utcnow()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    _LOG.info("plan %s updated by %s", plan_id, actor.id)
    return await load_plan(db, plan.id)  # type: ignore[return-value]


async def remove_plan(db: AsyncSession, plan_id: str, actor: Actor) -> Plan:
    """Soft delete: the plan goes back to DRAFT; nothing is removed from the store."""
    plan = await _get_plan(db, plan_id)
    authorize(actor, Operation.REMOVE_PLAN, ownership(plan))

    plan.status = PlanStatus.DRAFT.value
    plan.updated_at = utcnow()
    await _commit(db)

    _LOG.info("plan %s deactivated by %s", plan_id, actor.id)
    return plan


# ──────────────────────────────────────────────────────────────────────
#  reads
# ──────────────────────────────────────────────────────────────────────
async def find_one(db: AsyncSession, plan_id: str, actor: Actor) -> Plan:
    plan = await _get_plan(db, plan_id)
    authorize(actor, Operation.READ_PLAN, ownership(plan))
    return plan


def _scope_clause(scope: Ownership):
    if scope.nutritionist_id is not None:
        return Plan.nutritionist_id == scope.nutritionist_id
    if scope.patient_id is not None:
        return Plan.patient_id == scope.patient_id
    return false()


async def find_all(db: AsyncSession, flt: PlanFilter, actor: Actor) -> PlanPage:
    """
    One page of the plans `actor` may see, newest first.

    Asking for another professional's (or another patient's) `patient_id`
    is refused with `ForbiddenError` instead of returning an empty page.
    """
    conds = []
    scope = read_scope(actor)
    if scope is not None:
        conds.append(_scope_clause(scope))

    if flt.patient_id:
        patient = await db.get(Patient, flt.patient_id)
        owner = (
            Ownership(nutritionist_id=patient.nutritionist_id, patient_id=patient.id)
            if patient is not None
            else Ownership(nutritionist_id=None, patient_id=None)
        )
        authorize(actor, Operation.READ_PLAN, owner)
        conds.append(Plan.patient_id == flt.patient_id)

    if flt.search:
        conds.append(
            or_(
                Plan.name.icontains(flt.search, autoescape=True),
                Plan.description.icontains(flt.search, autoescape=True),
            )
        )
    if flt.status:
        conds.append(Plan.status == PlanStatus(flt.status).value)

    total = (
        await db.execute(select(func.count()).select_from(Plan).where(*conds))
    ).scalar_one()
    rows = await db.execute(
        select(Plan)
        .where(*conds)
        .order_by(Plan.created_at.desc(), Plan.id)
        .offset((flt.page - 1) * flt.limit)
        .limit(flt.limit)
    )
    return PlanPage(
        items=list(rows.scalars().all()),
        page=flt.page,
        limit=flt.limit,
        total=total,
        total_pages=math.ceil(total / flt.limit),
    )


async def list_my_plans(db: AsyncSession, actor: Actor) -> List[Plan]:
    """Plans of the caller's own patient record; empty for callers without one."""
    if actor.patient_id is None:
        _LOG.debug("list_my_plans: %s has no patient record", actor.id)
        return []
    rows = await db.execute(
        select(Plan)
        .where(Plan.patient_id == actor.patient_id)
        .order_by(Plan.created_at.desc(), Plan.id)
    )
    return list(rows.scalars().all())


async def patient_overview(db: AsyncSession, actor: Actor) -> PatientOverview:
    if actor.patient_id is None:
        raise ForbiddenError("User is not a patient")
    patient = (
        await db.execute(
            select(Patient)
            .where(Patient.id == actor.patient_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if patient is None:
        raise NotFoundError("Patient not found")

    plans = await list_my_plans(db, actor)
    return PatientOverview(
        patient=patient,
        plans=plans,
        total_plans=len(plans),
        active_plans=sum(1 for p in plans if p.status == PlanStatus.ACTIVE.value),
    )


async def plan_totals(db: AsyncSession, plan_id: str, actor: Actor) -> PlanTotals:
    plan = await find_one(db, plan_id, actor)
    return plan_nutrition_totals(plan)
