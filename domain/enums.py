"""
Domain enums for Cooklet application.
Contains all enumeration types used across the domain models.
"""

import enum


class MealType(str, enum.Enum):
    """Meal slots within a day, in canonical order"""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class IngredientCategory(str, enum.Enum):
    """Ingredient master categories"""

    VEGETABLES = "vegetables"
    MEAT = "meat"
    SEASONING = "seasoning"
    OTHERS = "others"
