"""
Planner Service - turns stock, saved recipes and ingredient master data into
a dated meal plan and the shopping list it requires.
"""

from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from app.config import settings as app_settings
from app.exceptions import ServiceValidationError
from core.utils.units import (
    UNSPECIFIED_UNIT,
    format_quantity,
    normalize_unit,
    parse_amount,
    parse_quantity,
)
from domain.enums import MealType
from domain.models import InventoryEntry, PurchaseUnit, RecipeDefinition, RecipeIngredient
from domain.schemas.meal_plan_schemas import (
    IngredientMaster,
    MealGenerationResult,
    MealGenerationSettings,
    PlannedMeal,
    Quantity,
    SavedRecipe,
    ShoppingItem,
    StockItem,
)
from services.meal_plan_algorithm import generate_meal_plan_algorithm


logger = logging.getLogger("cooklet.planner")

NO_RECIPES_WARNING = "利用可能なレシピがありません。レシピを追加してから献立生成を実行してください。"
NO_MEAL_TYPES_WARNING = "生成する食事タイプが選択されていません"
NO_DAYS_WARNING = "生成する日数が指定されていません"
GENERATION_ERROR_WARNING = "献立生成中にエラーが発生しました"

_MEAL_TYPE_ORDER = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


def get_meal_type_from_index(index: int) -> MealType:
    """Meal type of the index-th slot of a day; anything outside 0..2 is dinner."""
    if 0 <= index < len(_MEAL_TYPE_ORDER):
        return _MEAL_TYPE_ORDER[index]
    return MealType.DINNER


def get_generation_dates(days: int, start: Optional[date] = None) -> List[str]:
    """Consecutive YYYY-MM-DD dates beginning with start (today by default)."""
    start = start or date.today()
    return [(start + timedelta(days=offset)).isoformat() for offset in range(max(0, days))]


# ---------- input conversion ----------

def _stock_quantity(item: StockItem) -> Tuple[float, str]:
    if isinstance(item.quantity, Quantity):
        amount, unit = item.quantity.amount, normalize_unit(item.quantity.unit)
    else:
        amount, unit = parse_quantity(item.quantity)
    return parse_amount(amount) or 0.0, unit


def _parse_best_before(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.warning("Ignoring unreadable best_before %r for %s", value, name)
        return None


def build_inventory(
    stock_items: Iterable[StockItem],
    ingredients: Iterable[IngredientMaster],
) -> Dict[str, InventoryEntry]:
    """
    Merge stock records into one entry per ingredient name.

    Records sharing a name are summed and keep the earliest best-before date.
    Ingredients marked ``infinity`` in the master data are flagged infinite,
    whether or not they are stocked.
    """
    inventory: Dict[str, InventoryEntry] = {}

    for item in stock_items:
        name = item.name.strip()
        quantity, unit = _stock_quantity(item)
        expiry = _parse_best_before(item.best_before, name)

        entry = inventory.get(name)
        if entry is None:
            inventory[name] = InventoryEntry(name=name, quantity=quantity, unit=unit, expiry_date=expiry)
            continue

        entry.quantity += quantity
        if expiry is not None and (entry.expiry_date is None or expiry < entry.expiry_date):
            entry.expiry_date = expiry

    for master in ingredients:
        if not master.infinity:
            continue
        name = master.name.strip()
        entry = inventory.get(name)
        if entry is None:
            inventory[name] = InventoryEntry(name=name, quantity=0.0, unit=master.default_unit, infinite=True)
        else:
            entry.infinite = True

    return inventory


def build_recipe_definitions(saved_recipes: Iterable[SavedRecipe]) -> Dict[str, RecipeDefinition]:
    """
    Convert saved recipes, parsing each ingredient's quantity string.

    Amounts that cannot be read ("少々", "大さじ1") become 1 of the unspecified
    unit. Recipes without ingredients are left out.
    """
    recipes: Dict[str, RecipeDefinition] = {}

    for recipe in saved_recipes:
        processed: List[RecipeIngredient] = []
        for ing in recipe.ingredients:
            amount, unit = parse_quantity(ing.quantity)
            value = parse_amount(amount)
            if value is not None and value > 0:
                processed.append(RecipeIngredient(name=ing.name.strip(), quantity=value, unit=unit))
            else:
                processed.append(RecipeIngredient(name=ing.name.strip(), quantity=1.0, unit=UNSPECIFIED_UNIT))

        if not processed:
            logger.debug("Skipping recipe %s without ingredients", recipe.title)
            continue

        recipes[recipe.title] = RecipeDefinition(
            name=recipe.title,
            servings=recipe.servings,
            ingredients=processed,
        )

    return recipes


def build_purchase_units(
    ingredients: Iterable[IngredientMaster],
    recipes: Dict[str, RecipeDefinition],
) -> Dict[str, PurchaseUnit]:
    """
    Pack sizes from master data, plus a pack of 1 in the recipe's own unit for
    every recipe ingredient the master data does not know.
    """
    purchase_units: Dict[str, PurchaseUnit] = {}

    for master in ingredients:
        name = master.name.strip()
        pack_quantity = parse_amount(master.conversion_quantity or "1")
        if not pack_quantity or pack_quantity <= 0:
            pack_quantity = 1.0
        purchase_units[name] = PurchaseUnit(
            ingredient_name=name,
            quantity=pack_quantity,
            unit=master.conversion_unit or master.default_unit,
            unit_price=master.typical_price,
        )

    for recipe in recipes.values():
        for ing in recipe.ingredients:
            if ing.name not in purchase_units:
                purchase_units[ing.name] = PurchaseUnit(ingredient_name=ing.name, quantity=1.0, unit=ing.unit)

    return purchase_units


def _unique_in_order(names: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


# ---------- main ----------

def generate_meal_plan(
    settings: MealGenerationSettings,
    *,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> MealGenerationResult:
    """
    Generate a dated meal plan from caller snapshots.

    Steps:
    1. Convert saved recipes; stop with a warning if none are usable
    2. Stop with a warning if no meal type is enabled or no day requested
    3. Build inventory and purchase units from stock and master data
    4. Run the generator for days x enabled meal types slots
    5. Place meals on (date, meal type) slots in breakfast, lunch, dinner order

    Business conditions come back as ``warnings``; this function does not
    raise for well-formed settings.
    """
    alpha = settings.alpha if settings.alpha is not None else app_settings.planner_default_alpha
    beta = settings.beta if settings.beta is not None else app_settings.planner_default_beta
    temperature = (
        settings.temperature
        if settings.temperature is not None
        else app_settings.planner_default_temperature
    )
    today = today or date.today()

    logger.info(
        "Meal plan requested: stock=%d recipes=%d ingredients=%d days=%d meal_types=%s "
        "alpha=%.2f beta=%.2f temperature=%.2f",
        len(settings.stock_items),
        len(settings.recipes),
        len(settings.ingredients),
        settings.days,
        list(settings.meal_types),
        alpha,
        beta,
        temperature,
    )

    try:
        recipes = build_recipe_definitions(settings.recipes)
        if not recipes:
            logger.warning("No usable recipes; skipping generation")
            return MealGenerationResult(warnings=[NO_RECIPES_WARNING])

        enabled = [index for index, on in enumerate(settings.meal_types) if on]
        if not enabled:
            logger.warning("No meal type enabled; skipping generation")
            return MealGenerationResult(warnings=[NO_MEAL_TYPES_WARNING])

        if settings.days <= 0:
            logger.warning("Requested %d days; skipping generation", settings.days)
            return MealGenerationResult(warnings=[NO_DAYS_WARNING])

        inventory = build_inventory(settings.stock_items, settings.ingredients)
        purchase_units = build_purchase_units(settings.ingredients, recipes)
        meal_count = settings.days * len(enabled)

        meals, shopping = generate_meal_plan_algorithm(
            inventory,
            recipes,
            purchase_units,
            meal_count,
            alpha,
            beta,
            temperature,
            rng=rng,
            today=today,
            default_unit_price=app_settings.planner_default_unit_price,
        )
    except ServiceValidationError as e:
        logger.warning("Meal plan generation rejected input: %s", e)
        return MealGenerationResult(warnings=[f"{GENERATION_ERROR_WARNING}: {e}"])
    except Exception as e:
        logger.exception("Unexpected error generating meal plan")
        return MealGenerationResult(warnings=[f"{GENERATION_ERROR_WARNING}: {e}"])

    dates = get_generation_dates(settings.days, start=today)
    meal_plan: List[PlannedMeal] = []
    for position, meal in enumerate(meals):
        day_index, slot = divmod(position, len(enabled))
        meal_plan.append(
            PlannedMeal(
                meal_number=meal.meal_number,
                date=dates[day_index],
                meal_type=get_meal_type_from_index(enabled[slot]),
                recipe=meal.recipe,
                ingredients=list(meal.ingredients),
                estimated_cost=meal.estimated_cost,
            )
        )

    used_ingredients = _unique_in_order(name for meal in meals for name in meal.ingredients)
    shopping_list = [
        ShoppingItem(ingredient=item.ingredient, quantity=item.quantity, unit=item.unit)
        for item in shopping
    ]

    logger.info(
        "Meal plan ready: %d meals over %d days, %d ingredients to buy",
        len(meal_plan),
        settings.days,
        len(shopping_list),
    )
    if shopping_list:
        to_buy = [
            f"{item.ingredient} {format_quantity(format(item.quantity, 'g'), item.unit)}" for item in shopping_list
        ]
        logger.debug("Shopping list: %s", ", ".join(to_buy))

    return MealGenerationResult(
        meal_plan=meal_plan,
        shopping_list=shopping_list,
        warnings=[],
        used_ingredients=used_ingredients,
    )
