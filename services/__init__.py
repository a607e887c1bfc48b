"""Services package - Business logic layer"""

from services.meal_plan_algorithm import generate_meal_plan_algorithm
from services.planner_service import (
    generate_meal_plan,
    get_generation_dates,
    get_meal_type_from_index,
)

__all__ = [
    "generate_meal_plan_algorithm",
    "generate_meal_plan",
    "get_generation_dates",
    "get_meal_type_from_index",
]
