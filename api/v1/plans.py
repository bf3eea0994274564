# api/v1/plans.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import get_current_actor
from api.v1.schemas import (
    Ack,
    PatientOut,
    PatientOverviewOut,
    PlanOut,
    PlanPageOut,
    PlanTotalsOut,
    RecipeOut,
)
from core import meal_fulfillment, plan_service
from core.models.actor import Actor
from core.models.plan import PlanFilter, PlanSpec, PlanStatus, PlanUpdate
from services.db import get_session

router = APIRouter()


def _plan_out(plan) -> PlanOut:
    return PlanOut.model_validate(plan, from_attributes=True)


# ───────────────────────── patient-facing reads ─────────────
# (declared before /{plan_id} so the literal paths win)
@router.get(
    "/my-plans",
    response_model=list[PlanOut],
    summary="Plans of the calling patient",
)
async def my_plans(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> list[PlanOut]:
    plans = await plan_service.list_my_plans(db, actor)
    return [_plan_out(p) for p in plans]


@router.get(
    "/patient-info",
    response_model=PatientOverviewOut,
    summary="Calling patient's record with plan counts",
)
async def patient_info(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PatientOverviewOut:
    ov = await plan_service.patient_overview(db, actor)
    user = ov.patient.user
    return PatientOverviewOut(
        patient=PatientOut(
            id=ov.patient.id,
            status=ov.patient.status,
            nutritionist_id=ov.patient.nutritionist_id,
            name=user.name if user else None,
            email=user.email if user else None,
        ),
        plans=[_plan_out(p) for p in ov.plans],
        total_plans=ov.total_plans,
        active_plans=ov.active_plans,
    )


@router.get(
    "/available-recipes",
    response_model=list[RecipeOut],
    summary="Active recipe catalogue",
)
async def available_recipes(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> list[RecipeOut]:
    recipes = await meal_fulfillment.list_available_recipes(db, actor)
    return [RecipeOut.model_validate(r, from_attributes=True) for r in recipes]


# ───────────────────────── list ─────────────────────────────
@router.get("", response_model=PlanPageOut, summary="List visible plans")
async def list_plans(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, description="substring of name or description"),
    status_: PlanStatus | None = Query(None, alias="status"),
    patient_id: str | None = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanPageOut:
    flt = PlanFilter(
        page=page, limit=limit, search=search, status=status_, patient_id=patient_id
    )
    result = await plan_service.find_all(db, flt, actor)
    return PlanPageOut(
        data=[_plan_out(p) for p in result.items],
        pagination={
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "total_pages": result.total_pages,
        },
    )


# ───────────────────────── create ───────────────────────────
@router.post("", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanSpec,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanOut:
    plan = await plan_service.create_plan(db, body, actor)
    return _plan_out(plan)


# ───────────────────────── fetch one ────────────────────────
@router.get("/{plan_id}", response_model=PlanOut)
async def get_plan(
    plan_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanOut:
    plan = await plan_service.find_one(db, plan_id, actor)
    return _plan_out(plan)


@router.get(
    "/{plan_id}/nutrition",
    response_model=PlanTotalsOut,
    summary="Plan nutrition summed from the meal snapshots",
)
async def get_plan_nutrition(
    plan_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanTotalsOut:
    totals = await plan_service.plan_totals(db, plan_id, actor)
    return PlanTotalsOut.model_validate(totals, from_attributes=True)


# ───────────────────────── update ───────────────────────────
@router.patch(
    "/{plan_id}",
    response_model=PlanOut,
    summary="Update a plan; a `days` list replaces every day and meal",
)
async def update_plan(
    plan_id: str,
    body: PlanUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> PlanOut:
    plan = await plan_service.update_plan(db, plan_id, body, actor)
    return _plan_out(plan)


# ───────────────────────── delete (soft) ────────────────────
@router.delete("/{plan_id}", response_model=Ack)
async def delete_plan(
    plan_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_session),
) -> Ack:
    await plan_service.remove_plan(db, plan_id, actor)
    return Ack(message="Plan deleted successfully")
