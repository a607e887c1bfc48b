"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.meal_plan_schemas import (
    Quantity,
    StockItem,
    SavedRecipeIngredient,
    SavedRecipe,
    IngredientMaster,
    MealGenerationSettings,
    ShoppingItem,
    PlannedMeal,
    MealGenerationResult,
)

__all__ = [
    # Caller records
    "Quantity",
    "StockItem",
    "SavedRecipeIngredient",
    "SavedRecipe",
    "IngredientMaster",
    # Generation
    "MealGenerationSettings",
    "ShoppingItem",
    "PlannedMeal",
    "MealGenerationResult",
]
