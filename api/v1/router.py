# api/v1/router.py
from fastapi import APIRouter

from . import meals, plans

api_router = APIRouter()

# meal fulfilment lives *under* the plans resource → /plans/meals/{meal_id}/...
api_router.include_router(meals.router, prefix="/plans/meals", tags=["Meals"])
api_router.include_router(plans.router, prefix="/plans", tags=["Plans"])
