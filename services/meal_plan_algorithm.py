from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Tuple, Union

from app.exceptions import ServiceValidationError
from domain.models import (
    GeneratedMeal,
    InventoryEntry,
    PurchaseUnit,
    RecipeDefinition,
    RecipeIngredient,
    ShoppingEntry,
)


logger = logging.getLogger("cooklet.algorithm")

Inventory = Mapping[str, InventoryEntry]
Recipes = Mapping[str, RecipeDefinition]
PurchaseUnits = Mapping[str, PurchaseUnit]


# ---------- input checks ----------

def _require_finite(value: float, field: str, name: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ServiceValidationError(
            f"Quantity for '{name}' is not a finite number",
            details={"field": field, "name": name, "value": repr(value)},
            code="NON_FINITE_QUANTITY",
        )


def _as_date(value: Union[date, str, None], name: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ServiceValidationError(
            f"Expiry date for '{name}' is not a YYYY-MM-DD date",
            details={"field": "expiry_date", "name": name, "value": value},
            code="INVALID_EXPIRY_DATE",
        )


def _working_inventory(inventory: Inventory) -> Dict[str, InventoryEntry]:
    """Clone caller stock so a run never mutates it; quantities start at >= 0."""
    stock: Dict[str, InventoryEntry] = {}
    for key, entry in inventory.items():
        _require_finite(entry.quantity, "inventory.quantity", key)
        stock[key] = replace(
            entry,
            quantity=max(0.0, float(entry.quantity)),
            expiry_date=_as_date(entry.expiry_date, key),
        )
    return stock


def _validate_recipes(recipes: Recipes) -> None:
    for recipe in recipes.values():
        for ing in recipe.ingredients:
            _require_finite(ing.quantity, "recipe.ingredients.quantity", f"{recipe.name}/{ing.name}")


# ---------- pack arithmetic ----------

def purchase_unit_for(ingredient: RecipeIngredient, purchase_units: PurchaseUnits) -> PurchaseUnit:
    """Pack used to buy an ingredient; a pack of 1 in the recipe's unit when unknown."""
    unit = purchase_units.get(ingredient.name)
    if unit is None:
        return PurchaseUnit(ingredient_name=ingredient.name, quantity=1.0, unit=ingredient.unit)
    if not math.isfinite(unit.quantity) or unit.quantity <= 0:
        return replace(unit, quantity=1.0)
    return unit


def packs_needed(shortfall: float, pack_quantity: float) -> int:
    """Whole packs covering a shortfall (ceiling division)."""
    if shortfall <= 0:
        return 0
    ratio = shortfall / pack_quantity
    # nearest whole count absorbs float noise (0.3 / 0.1) unless it falls short
    packs = round(ratio)
    if packs * pack_quantity < shortfall:
        packs = math.ceil(ratio)
    return max(1, packs)


# ---------- scoring ----------

def purchase_cost(
    recipe: RecipeDefinition,
    inventory: Inventory,
    purchase_units: PurchaseUnits,
) -> float:
    """
    Number of packs that would have to be bought to cook the recipe now.

    Ingredients missing from inventory count their full requirement as
    shortfall; infinite ingredients never cost anything.
    """
    cost = 0.0
    for ing in recipe.ingredients:
        entry = inventory.get(ing.name)
        if entry is not None and entry.infinite:
            continue
        available = entry.quantity if entry is not None else 0.0
        pack = purchase_unit_for(ing, purchase_units)
        cost += packs_needed(ing.quantity - available, pack.quantity)
    return cost


def expiry_urgency_bonus(
    recipe: RecipeDefinition,
    inventory: Inventory,
    today: date,
) -> float:
    """
    Sum of amount drawn from stock divided by days until that stock expires.

    Only dated, finite stock counts; anything already expired or expiring
    today adds nothing.
    """
    bonus = 0.0
    for ing in recipe.ingredients:
        entry = inventory.get(ing.name)
        if entry is None or entry.infinite or entry.expiry_date is None:
            continue
        days = (_as_date(entry.expiry_date, ing.name) - today).days
        if days <= 0:
            continue
        drawn = min(ing.quantity, entry.quantity)
        if drawn > 0:
            bonus += drawn / days
    return bonus


def score_recipe(
    recipe: RecipeDefinition,
    inventory: Inventory,
    purchase_units: PurchaseUnits,
    alpha: float,
    beta: float,
    today: date,
) -> float:
    """Deterministic part of a recipe's score; higher is better."""
    return (
        beta * expiry_urgency_bonus(recipe, inventory, today)
        - alpha * purchase_cost(recipe, inventory, purchase_units)
    )


# ---------- consumption ----------

def _consume_recipe(
    recipe: RecipeDefinition,
    stock: Dict[str, InventoryEntry],
    purchase_units: PurchaseUnits,
    shopping: Dict[str, ShoppingEntry],
    default_unit_price: float,
) -> float:
    """
    Buy whatever the recipe is short of, then take its ingredients out of stock.

    Pack surplus stays in stock for later meals. Returns the cost of the packs
    bought for this meal.
    """
    cost = 0.0
    for ing in recipe.ingredients:
        entry = stock.get(ing.name)
        if entry is not None and entry.infinite:
            continue

        available = entry.quantity if entry is not None else 0.0
        pack = purchase_unit_for(ing, purchase_units)
        packs = packs_needed(ing.quantity - available, pack.quantity)

        if packs:
            bought = packs * pack.quantity
            if entry is None:
                entry = InventoryEntry(name=ing.name, quantity=0.0, unit=pack.unit)
                stock[ing.name] = entry
            entry.quantity += bought

            tally = shopping.get(ing.name)
            if tally is None:
                shopping[ing.name] = ShoppingEntry(ingredient=ing.name, quantity=bought, unit=pack.unit)
            else:
                tally.quantity += bought

            price = pack.unit_price if pack.unit_price is not None else default_unit_price
            cost += packs * price

        if entry is not None:
            entry.quantity = max(0.0, entry.quantity - ing.quantity)

    return cost


# ---------- main ----------

def generate_meal_plan_algorithm(
    inventory: Inventory,
    recipes: Recipes,
    purchase_units: PurchaseUnits,
    meal_count: int,
    alpha: float = 1.0,
    beta: float = 1.0,
    temperature: float = 0.0,
    *,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
    default_unit_price: float = 100.0,
) -> Tuple[List[GeneratedMeal], List[ShoppingEntry]]:
    """
    Pick one recipe per meal slot, favouring stock that expires soon and
    avoiding purchases, and derive the shopping list those picks require.

    Each slot scores every recipe against the stock left by the previous
    slots as ``beta * expiry_bonus - alpha * purchase_cost`` plus, when
    ``temperature > 0``, ``temperature`` times uniform noise in [-1, 1].
    The best score wins; equal scores keep the first recipe in catalog order.
    Recipes are reusable, so a non-empty catalog always fills every slot.

    Args:
        inventory: ingredient name -> stock entry (never mutated)
        recipes: recipe name -> recipe definition
        purchase_units: ingredient name -> pack size; missing ingredients are
            bought in packs of 1 in the recipe's unit
        meal_count: number of slots to fill; 0 or negative yields nothing
        alpha: weight on purchase avoidance
        beta: weight on expiry urgency
        temperature: magnitude of the random perturbation
        rng: random source for the perturbation (``random.Random`` compatible)
        today: reference date for expiry distances (default: today)
        default_unit_price: price of a pack without ``unit_price``

    Returns:
        (meals, shopping_list)

    Raises:
        ServiceValidationError: a quantity is NaN/infinite or an expiry date
            string is malformed
    """
    if not recipes or meal_count <= 0:
        return [], []

    _validate_recipes(recipes)
    stock = _working_inventory(inventory)
    rng = rng or random.Random()
    today = _as_date(today, "today") or date.today()

    meals: List[GeneratedMeal] = []
    shopping: Dict[str, ShoppingEntry] = {}

    for meal_number in range(1, meal_count + 1):
        best_key: Optional[str] = None
        best_score = -math.inf

        for key, recipe in recipes.items():
            score = score_recipe(recipe, stock, purchase_units, alpha, beta, today)
            if temperature > 0:
                score += temperature * rng.uniform(-1.0, 1.0)
            if best_key is None or score > best_score:
                best_key, best_score = key, score

        if best_key is None:
            logger.warning("Meal %d: no recipe could be scored, stopping early", meal_number)
            break

        chosen = recipes[best_key]
        cost = _consume_recipe(chosen, stock, purchase_units, shopping, default_unit_price)
        meals.append(
            GeneratedMeal(
                meal_number=meal_number,
                recipe=chosen.name,
                ingredients=[ing.name for ing in chosen.ingredients],
                estimated_cost=cost,
            )
        )
        logger.debug("Meal %d: picked %s (score=%.4f, cost=%.0f)", meal_number, chosen.name, best_score, cost)

    shopping_list = list(shopping.values())
    logger.info(
        "Generated %d/%d meals from %d recipes; %d ingredients to buy",
        len(meals),
        meal_count,
        len(recipes),
        len(shopping_list),
    )
    return meals, shopping_list
