"""
core/access.py
────────────────────────────────────────────────────────────────────────
One decision function for every plan / meal entry point.

  • ADMIN    → always allowed
  • PRO      → allowed on resources they own (plan.nutritionist_id == actor.id)
  • PATIENT  → allowed on resources tied to their patient record
               (plan.patient_id == actor.patient_id), but only for the
               operations listed as patient-permitted below

Each operation declares the non-admin roles it accepts in `_PERMITTED`;
services never branch on role themselves.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from core.errors import ForbiddenError
from core.models.actor import Actor, Role

_LOG = logging.getLogger(__name__)


class Operation(str, Enum):
    CREATE_PLAN = "create_plan"
    UPDATE_PLAN = "update_plan"
    REMOVE_PLAN = "remove_plan"
    READ_PLAN = "read_plan"
    SELECT_RECIPE = "select_recipe"
    ADD_CUSTOM_MEAL = "add_custom_meal"
    COMPLETE_MEAL = "complete_meal"
    ASSIGN_RECIPE = "assign_recipe"
    REMOVE_RECIPE = "remove_recipe"
    BROWSE_MEAL_RECIPES = "browse_meal_recipes"


_PRO = frozenset({Role.PRO})
_PATIENT = frozenset({Role.PATIENT})

_PERMITTED: dict[Operation, frozenset[Role]] = {
    Operation.CREATE_PLAN: _PRO,
    Operation.UPDATE_PLAN: _PRO,
    Operation.REMOVE_PLAN: _PRO,
    Operation.READ_PLAN: frozenset({Role.PRO, Role.PATIENT}),
    Operation.SELECT_RECIPE: _PATIENT,
    Operation.ADD_CUSTOM_MEAL: _PATIENT,
    Operation.COMPLETE_MEAL: _PATIENT,
    Operation.ASSIGN_RECIPE: _PRO,
    Operation.REMOVE_RECIPE: _PRO,
    Operation.BROWSE_MEAL_RECIPES: _PRO,
}

_DENIED_MESSAGES: dict[Operation, str] = {
    Operation.CREATE_PLAN: "You can only create plans for your patients",
    Operation.UPDATE_PLAN: "You can only update your own plans",
    Operation.REMOVE_PLAN: "You can only delete your own plans",
    Operation.READ_PLAN: "You do not have access to this plan",
    Operation.ASSIGN_RECIPE: "Only the plan's professional can assign recipes to meals",
    Operation.REMOVE_RECIPE: "Only the plan's professional can remove recipes from meals",
    Operation.BROWSE_MEAL_RECIPES: "Only the plan's professional can list recipes for this meal",
}


@dataclass(frozen=True)
class Ownership:
    """Who a plan (or anything hanging off it) belongs to."""

    nutritionist_id: str | None
    patient_id: str | None


def role_permits(actor: Actor, op: Operation) -> bool:
    return actor.is_admin or actor.role in _PERMITTED[op]


def is_allowed(actor: Actor, op: Operation, owner: Ownership) -> bool:
    if actor.is_admin:
        return True
    if actor.role not in _PERMITTED[op]:
        return False
    if actor.role is Role.PRO:
        return owner.nutritionist_id is not None and owner.nutritionist_id == actor.id
    if actor.role is Role.PATIENT:
        return owner.patient_id is not None and owner.patient_id == actor.patient_id
    return False


def authorize(actor: Actor, op: Operation, owner: Ownership) -> None:
    """Raise `ForbiddenError` unless `actor` may perform `op` on a resource owned by `owner`."""
    if not is_allowed(actor, op, owner):
        _LOG.warning("denied %s for %s %s", op.value, actor.role.value, actor.id)
        raise ForbiddenError(_DENIED_MESSAGES.get(op, "Meal does not belong to you"))


def authorize_role(actor: Actor, op: Operation) -> None:
    """Role-only gate, for operations whose resource is not resolved yet."""
    if not role_permits(actor, op):
        _LOG.warning("denied %s for role %s (%s)", op.value, actor.role.value, actor.id)
        raise ForbiddenError(_DENIED_MESSAGES.get(op, "Operation not permitted for your role"))


def read_scope(actor: Actor) -> Ownership | None:
    """
    The ownership every plan listed for `actor` must match; `None` means
    unrestricted (admins).
    """
    if actor.is_admin:
        return None
    if actor.role is Role.PRO:
        return Ownership(nutritionist_id=actor.id, patient_id=None)
    return Ownership(nutritionist_id=None, patient_id=actor.patient_id)
