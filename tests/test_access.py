"""
Pure checks on the access policy table – no database.
"""
import pytest

from core.access import Operation, Ownership, authorize, authorize_role, is_allowed, read_scope
from core.errors import ForbiddenError
from core.models.actor import Actor, Role

PRO = Actor(id="pro-1", role=Role.PRO)
OTHER_PRO = Actor(id="pro-2", role=Role.PRO)
PATIENT = Actor(id="user-9", role=Role.PATIENT, patient_id="pat-1")
ADMIN = Actor(id="root", role=Role.ADMIN)
NO_RECORD = Actor(id="user-x", role=Role.PATIENT, patient_id=None)

OWNED = Ownership(nutritionist_id="pro-1", patient_id="pat-1")
TEMPLATE = Ownership(nutritionist_id="pro-1", patient_id=None)

PATIENT_OPS = {Operation.SELECT_RECIPE, Operation.ADD_CUSTOM_MEAL, Operation.COMPLETE_MEAL, Operation.READ_PLAN}


# ── admins bypass everything ────────────────────────────────────────
@pytest.mark.parametrize("op", list(Operation))
def test_admin_allowed_everywhere(op):
    assert is_allowed(ADMIN, op, Ownership(nutritionist_id="x", patient_id="y"))


# ── professionals ───────────────────────────────────────────────────
@pytest.mark.parametrize("op", [Operation.UPDATE_PLAN, Operation.ASSIGN_RECIPE, Operation.READ_PLAN])
def test_pro_owner_vs_stranger(op):
    assert is_allowed(PRO, op, OWNED)
    assert not is_allowed(OTHER_PRO, op, OWNED)


def test_pro_cannot_use_patient_self_service():
    for op in (Operation.SELECT_RECIPE, Operation.ADD_CUSTOM_MEAL, Operation.COMPLETE_MEAL):
        assert not is_allowed(PRO, op, OWNED)


# ── patients ────────────────────────────────────────────────────────
@pytest.mark.parametrize("op", list(Operation))
def test_patient_only_gets_patient_ops_on_own_plan(op):
    assert is_allowed(PATIENT, op, OWNED) is (op in PATIENT_OPS)


def test_patient_assign_forbidden_even_on_own_plan():
    with pytest.raises(ForbiddenError):
        authorize(PATIENT, Operation.ASSIGN_RECIPE, OWNED)


def test_patient_without_record_matches_nothing():
    assert not is_allowed(NO_RECORD, Operation.READ_PLAN, TEMPLATE)


def test_role_only_gate():
    authorize_role(PRO, Operation.CREATE_PLAN)
    authorize_role(ADMIN, Operation.CREATE_PLAN)
    with pytest.raises(ForbiddenError):
        authorize_role(PATIENT, Operation.CREATE_PLAN)


def test_read_scope():
    assert read_scope(ADMIN) is None
    assert read_scope(PRO) == Ownership(nutritionist_id="pro-1", patient_id=None)
    assert read_scope(PATIENT) == Ownership(nutritionist_id=None, patient_id="pat-1")
