from __future__ import annotations

import logging

from fastapi import APIRouter, status

from api.responses import ErrorResponse
from app.config import settings
from app.exceptions import ServiceValidationError
from domain.schemas.meal_plan_schemas import MealGenerationResult, MealGenerationSettings
from services.planner_service import generate_meal_plan

router = APIRouter(prefix="/meal-plans", tags=["Meal Planning"])
logger = logging.getLogger("cooklet.api.plans")


@router.post(
    "/generate",
    response_model=MealGenerationResult,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def generate_plan(body: MealGenerationSettings):
    """
    Generate a meal plan from a snapshot of stock, saved recipes and
    ingredient master data.

    This endpoint:
    1. Converts stock and recipe quantity strings into numbers and units
    2. Scores every recipe per meal slot (purchase avoidance vs. expiry urgency)
    3. Places the picks on dates starting today for the enabled meal types
    4. Returns the shopping list needed to cook them

    Nothing is stored; the caller persists the plan and shopping list.
    Conditions such as "no recipes" come back as warnings with status 200.
    """
    if body.days > settings.planner_max_days:
        raise ServiceValidationError(
            f"days must be at most {settings.planner_max_days}",
            details={"field": "days", "value": body.days},
            code="DAYS_OUT_OF_RANGE",
        )

    logger.info(
        "Generating meal plan: days=%d, meal_types=%s, recipes=%d",
        body.days,
        list(body.meal_types),
        len(body.recipes),
    )
    return generate_meal_plan(body)
