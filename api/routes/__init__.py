"""API routes package"""

from . import health, meal_plans, units

__all__ = ["health", "meal_plans", "units"]
