"""Schemas for meal plan generation requests and results"""

from __future__ import annotations

from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from domain.enums import IngredientCategory, MealType


class Quantity(BaseModel):
    """Amount and unit as entered by the user"""

    amount: str = ""
    unit: str = ""


class StockItem(BaseModel):
    """Stock record as held by the inventory store"""

    id: Optional[str] = None
    name: str
    quantity: Union[Quantity, str] = Field(
        ..., description="Structured quantity or raw string such as '500g'"
    )
    best_before: Optional[str] = Field(None, description="Best-before date (YYYY-MM-DD)")
    storage_location: Optional[str] = None
    is_homemade: bool = False
    memo: Optional[str] = None

    model_config = {"from_attributes": True}


class SavedRecipeIngredient(BaseModel):
    name: str
    quantity: str = Field("", description="Raw quantity string, e.g. '200g' or '適量'")


class SavedRecipe(BaseModel):
    """Recipe record as held by the recipe store"""

    id: Optional[str] = None
    title: str
    url: Optional[str] = None
    servings: int = Field(default=1, ge=1)
    ingredients: List[SavedRecipeIngredient] = Field(default_factory=list)
    memo: Optional[str] = None

    model_config = {"from_attributes": True}


class IngredientMaster(BaseModel):
    """Ingredient master data carrying purchase pack sizing"""

    id: Optional[str] = None
    name: str
    category: Optional[IngredientCategory] = None
    default_unit: str = ""
    typical_price: Optional[float] = Field(None, ge=0)
    infinity: bool = Field(
        default=False, description="Never depleted by cooking (soy sauce, salt)"
    )
    conversion_quantity: Optional[str] = Field(
        None, description="Amount contained in one purchase pack"
    )
    conversion_unit: Optional[str] = None

    model_config = {"from_attributes": True}


class MealGenerationSettings(BaseModel):
    """Input for meal plan generation"""

    stock_items: List[StockItem] = Field(default_factory=list)
    recipes: List[SavedRecipe] = Field(default_factory=list)
    ingredients: List[IngredientMaster] = Field(default_factory=list)
    days: int = Field(default=1, description="Number of days to plan, starting today")
    meal_types: Tuple[bool, bool, bool] = Field(
        default=(True, True, True), description="[breakfast, lunch, dinner] enabled flags"
    )
    alpha: Optional[float] = Field(None, ge=0, description="Purchase cost weight")
    beta: Optional[float] = Field(None, ge=0, description="Expiry urgency weight")
    temperature: Optional[float] = Field(None, ge=0, description="Randomness magnitude")


class ShoppingItem(BaseModel):
    ingredient: str
    quantity: float
    unit: str

    model_config = {"from_attributes": True}


class PlannedMeal(BaseModel):
    """A generated meal placed on a (date, meal type) slot"""

    meal_number: int
    date: str
    meal_type: MealType
    recipe: str
    ingredients: List[str] = Field(default_factory=list)
    estimated_cost: Optional[float] = None


class MealGenerationResult(BaseModel):
    meal_plan: List[PlannedMeal] = Field(default_factory=list)
    shopping_list: List[ShoppingItem] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    used_ingredients: List[str] = Field(default_factory=list)
