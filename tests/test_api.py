"""
HTTP surface: routing, bearer auth and error → status mapping, driven
through the ASGI app against the test database.
"""
from __future__ import annotations

import httpx
import pytest

from core.models.actor import Role
from main import app
from services.auth import create_token
from services.db import get_session, session_factory


@pytest.fixture
async def client(engine, world):
    async def _session():
        async with session_factory(engine)() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _auth(user_id: str, role: Role, patient_id: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(user_id, role, patient_id=patient_id)}"}


PRO = _auth("u-pro", Role.PRO)
OTHER = _auth("u-other", Role.PRO)
PATIENT = _auth("u-pat", Role.PATIENT, patient_id="P1")

_BODY = {
    "name": "Weight Loss - Week 1",
    "description": "Balanced portions",
    "patient_id": "P1",
    "start_date": "2024-01-01T00:00:00Z",
    "days": [
        {"day_of_week": 1, "meals": [{"type": "BREAKFAST", "time": "08:00"}]},
    ],
}


async def _create(client: httpx.AsyncClient, **overrides) -> dict:
    r = await client.post("/api/v1/plans", json={**_BODY, **overrides}, headers=PRO)
    assert r.status_code == 201, r.text
    return r.json()


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


async def test_create_select_complete_and_totals(client):
    plan = await _create(client)
    assert plan["nutritionist_id"] == "u-pro"
    meal_id = plan["days"][0]["meals"][0]["id"]

    r = await client.post(
        f"/api/v1/plans/meals/{meal_id}/select-recipe",
        json={"recipe_id": "R1"},
        headers=PATIENT,
    )
    assert r.status_code == 200, r.text
    meal = r.json()
    assert meal["selected_recipe"]["name"] == "Oatmeal Bowl"
    assert (meal["kcal"], meal["protein_gr"], meal["carbs_gr"], meal["fat_gr"]) == (400, 30, 46, 10)

    r = await client.post(f"/api/v1/plans/meals/{meal_id}/complete", headers=PATIENT)
    assert r.status_code == 200
    assert r.json()["is_completed"] is True

    r = await client.get(f"/api/v1/plans/{plan['id']}/nutrition", headers=PATIENT)
    assert r.status_code == 200
    totals = r.json()["totals"]
    assert (totals["kcal"], totals["fulfilled_meals"], totals["total_meals"]) == (400, 1, 1)


async def test_custom_meal_and_remove(client):
    plan = await _create(client)
    meal_id = plan["days"][0]["meals"][0]["id"]

    r = await client.post(
        f"/api/v1/plans/meals/{meal_id}/custom-meal",
        json={"name": "Snack", "calories": 150, "protein": 5, "carbs": 20, "fat": 4},
        headers=PATIENT,
    )
    assert r.status_code == 200, r.text
    assert r.json()["selected_recipe"]["tags"] == ["custom"]
    assert r.json()["kcal"] == 150

    r = await client.delete(f"/api/v1/plans/meals/{meal_id}/recipe", headers=PRO)
    assert r.status_code == 200
    assert r.json()["selected_recipe_id"] is None
    assert r.json()["kcal"] is None


async def test_error_statuses(client):
    plan = await _create(client)
    meal_id = plan["days"][0]["meals"][0]["id"]

    r = await client.get(f"/api/v1/plans/{plan['id']}", headers=OTHER)
    assert r.status_code == 403
    assert "detail" in r.json()

    r = await client.get("/api/v1/plans/missing", headers=PRO)
    assert r.status_code == 404
    assert r.json() == {"detail": "Plan not found"}

    r = await client.post(
        f"/api/v1/plans/meals/{meal_id}/assign-recipe", json={"recipe_id": "R1"}, headers=PATIENT
    )
    assert r.status_code == 403

    r = await client.post(
        f"/api/v1/plans/meals/{meal_id}/assign-recipe", json={"recipe_id": "R3"}, headers=PRO
    )
    assert r.status_code == 404

    bad_days = [{"day_of_week": 9, "meals": [{"type": "LUNCH", "time": "12:00"}]}]
    r = await client.post("/api/v1/plans", json={**_BODY, "days": bad_days}, headers=PRO)
    assert r.status_code == 400

    r = await client.post("/api/v1/plans", json={**_BODY, "days": []}, headers=PRO)
    assert r.status_code == 400


async def test_auth_required(client):
    r = await client.get("/api/v1/plans")
    assert r.status_code in (401, 403)

    r = await client.get("/api/v1/plans", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


async def test_list_pagination_shape(client):
    for i in range(3):
        await _create(client, name=f"Plan {i}")

    r = await client.get("/api/v1/plans", params={"limit": 2, "page": 1}, headers=PRO)
    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    r = await client.get("/api/v1/plans", params={"patient_id": "P2"}, headers=PRO)
    assert r.status_code == 403


async def test_update_and_soft_delete(client):
    plan = await _create(client)

    r = await client.patch(
        f"/api/v1/plans/{plan['id']}", json={"name": "Week 2", "status": "ACTIVE"}, headers=PRO
    )
    assert r.status_code == 200
    assert (r.json()["name"], r.json()["status"]) == ("Week 2", "ACTIVE")
    assert r.json()["days"][0]["meals"][0]["id"] == plan["days"][0]["meals"][0]["id"]

    r = await client.delete(f"/api/v1/plans/{plan['id']}", headers=PRO)
    assert r.status_code == 200
    assert r.json() == {"message": "Plan deleted successfully"}

    r = await client.get(f"/api/v1/plans/{plan['id']}", headers=PRO)
    assert r.json()["status"] == "DRAFT"


async def test_patient_views(client):
    await _create(client, status="ACTIVE")

    r = await client.get("/api/v1/plans/my-plans", headers=PATIENT)
    assert r.status_code == 200
    assert len(r.json()) == 1

    r = await client.get("/api/v1/plans/patient-info", headers=PATIENT)
    assert r.status_code == 200
    info = r.json()
    assert info["patient"]["id"] == "P1"
    assert info["patient"]["name"] == "Pat"
    assert (info["total_plans"], info["active_plans"]) == (1, 1)

    r = await client.get("/api/v1/plans/patient-info", headers=PRO)
    assert r.status_code == 403

    r = await client.get("/api/v1/plans/available-recipes", headers=PATIENT)
    assert sorted(x["id"] for x in r.json()) == ["R1", "R2"]


async def test_meal_recipe_browse(client):
    plan = await _create(client)
    meal_id = plan["days"][0]["meals"][0]["id"]

    r = await client.get(
        f"/api/v1/plans/meals/{meal_id}/available-recipes",
        params=[("tags", "lunch"), ("difficulty", "MEDIUM")],
        headers=PRO,
    )
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == ["R2"]

    r = await client.get(f"/api/v1/plans/meals/{meal_id}/available-recipes", headers=PATIENT)
    assert r.status_code == 403


async def test_unpadded_meal_time_rejected(client):
    days = [{"day_of_week": 1, "meals": [{"type": "BREAKFAST", "time": "8:00"}]}]
    r = await client.post("/api/v1/plans", json={**_BODY, "days": days}, headers=PRO)
    assert r.status_code == 400
