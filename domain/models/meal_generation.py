"""
Plain data structures for the meal plan generator.

These are built fresh for every generation run from caller snapshots
and carry no storage concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class InventoryEntry:
    """One ingredient's available stock."""

    name: str
    quantity: float
    unit: str
    expiry_date: Optional[date] = None
    # Pantry staples (soy sauce, salt) that are never depleted nor bought
    infinite: bool = False


@dataclass
class RecipeIngredient:
    name: str
    quantity: float
    unit: str


@dataclass
class RecipeDefinition:
    """A candidate recipe; one recipe fills one meal slot as a whole."""

    name: str
    servings: int
    ingredients: List[RecipeIngredient] = field(default_factory=list)


@dataclass
class PurchaseUnit:
    """Smallest purchasable pack of an ingredient."""

    ingredient_name: str
    quantity: float
    unit: str
    unit_price: Optional[float] = None


@dataclass
class GeneratedMeal:
    meal_number: int
    recipe: str
    ingredients: List[str] = field(default_factory=list)
    estimated_cost: Optional[float] = None


@dataclass
class ShoppingEntry:
    ingredient: str
    quantity: float
    unit: str
