"""
Domain models package - plain data structures consumed by the meal plan generator.
"""

from domain.models.meal_generation import (
    InventoryEntry,
    RecipeIngredient,
    RecipeDefinition,
    PurchaseUnit,
    GeneratedMeal,
    ShoppingEntry,
)

__all__ = [
    "InventoryEntry",
    "RecipeIngredient",
    "RecipeDefinition",
    "PurchaseUnit",
    "GeneratedMeal",
    "ShoppingEntry",
]
