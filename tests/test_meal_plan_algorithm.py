"""
Tests for the meal plan generator core.

This test suite covers:
- Slot filling and empty-input behaviour
- Expiry urgency vs. purchase avoidance weighting
- Shopping list derivation (pack rounding, default packs, infinite staples)
- Randomised perturbation through an injected random source
- Isolation of caller-owned inventory
"""

import copy
import math
import random
from datetime import datetime, time

import pytest

from app.exceptions import ServiceValidationError
from domain.models import InventoryEntry, PurchaseUnit, ShoppingEntry
from services.meal_plan_algorithm import (
    expiry_urgency_bonus,
    generate_meal_plan_algorithm,
    packs_needed,
    purchase_cost,
)
from test_fixtures import (
    TODAY,
    FixedRandom,
    days_from_today,
    make_recipe,
    sample_inventory,
    sample_purchase_units,
    sample_recipes,
)


def run(inventory, recipes, purchase_units, meal_count, alpha=1.0, beta=1.0, temperature=0.0, **kwargs):
    kwargs.setdefault("today", TODAY)
    return generate_meal_plan_algorithm(
        inventory, recipes, purchase_units, meal_count, alpha, beta, temperature, **kwargs
    )


# =============================================================================
# SLOT FILLING
# =============================================================================


def test_basic_generation_fills_every_slot():
    meals, shopping = run(sample_inventory(), sample_recipes(), sample_purchase_units(), 2)

    assert len(meals) == 2
    assert [m.meal_number for m in meals] == [1, 2]
    for meal in meals:
        assert isinstance(meal.recipe, str)
        assert isinstance(meal.ingredients, list)
        assert meal.estimated_cost is not None
    assert isinstance(shopping, list)


@pytest.mark.parametrize("meal_count", [0, 1, 3, 7, 21])
def test_meal_count_always_met_for_non_empty_catalog(meal_count):
    meals, _ = run({}, sample_recipes(), {}, meal_count)
    assert len(meals) == meal_count


@pytest.mark.parametrize("meal_count,alpha,beta,temperature", [(0, 1, 1, 0), (5, 0, 0, 0), (3, 2.5, 10, 1.0)])
def test_empty_inputs_produce_nothing(meal_count, alpha, beta, temperature):
    assert run({}, {}, {}, meal_count, alpha, beta, temperature) == ([], [])


def test_negative_meal_count_is_a_no_op():
    assert run(sample_inventory(), sample_recipes(), sample_purchase_units(), -3) == ([], [])


def test_meal_lists_recipe_ingredients_in_order():
    recipes = sample_recipes()
    meals, _ = run(sample_inventory(), recipes, sample_purchase_units(), 1)

    assert meals[0].recipe == "牛肉炒め"
    assert meals[0].ingredients == ["牛肉", "玉ねぎ", "しょうゆ"]


# =============================================================================
# SCORING
# =============================================================================


def test_expiring_in_stock_ingredient_is_used_first():
    """Beef expires tomorrow and is fully in stock; nothing has to be bought."""
    inventory = {
        "牛肉": InventoryEntry("牛肉", 500, "g", expiry_date=days_from_today(1)),
        "玉ねぎ": InventoryEntry("玉ねぎ", 2, "個", expiry_date=days_from_today(10)),
    }
    recipes = {
        "牛肉炒め": make_recipe("牛肉炒め", [("牛肉", 200, "g"), ("玉ねぎ", 1, "個")]),
        "トマトサラダ": make_recipe("トマトサラダ", [("トマト", 2, "個")]),
    }

    meals, shopping = run(inventory, recipes, {}, 1, alpha=0.1, beta=10.0)

    assert [m.recipe for m in meals] == ["牛肉炒め"]
    assert shopping == []


def test_larger_beta_switches_to_expiring_recipe():
    inventory = {
        "鶏肉": InventoryEntry("鶏肉", 300, "g", expiry_date=days_from_today(1)),
        "キャベツ": InventoryEntry("キャベツ", 1, "個"),
    }
    recipes = {
        "親子丼": make_recipe("親子丼", [("鶏肉", 200, "g"), ("卵", 2, "個")]),
        "キャベツ炒め": make_recipe("キャベツ炒め", [("キャベツ", 1, "個")]),
    }

    low, _ = run(inventory, recipes, {}, 1, alpha=1.0, beta=0.0)
    high, _ = run(inventory, recipes, {}, 1, alpha=1.0, beta=1.0)

    assert low[0].recipe == "キャベツ炒め"
    assert high[0].recipe == "親子丼"


@pytest.mark.parametrize("alpha", [0.5, 1.0, 5.0, 50.0])
def test_positive_alpha_prefers_recipe_covered_by_stock(alpha):
    inventory = {"じゃがいも": InventoryEntry("じゃがいも", 4, "個")}
    recipes = {
        "カレー": make_recipe("カレー", [("じゃがいも", 2, "個"), ("カレールー", 1, "箱")]),
        "粉ふきいも": make_recipe("粉ふきいも", [("じゃがいも", 3, "個")]),
    }

    meals, shopping = run(inventory, recipes, {}, 1, alpha=alpha, beta=1.0)

    assert meals[0].recipe == "粉ふきいも"
    assert shopping == []


def test_equal_scores_keep_catalog_order():
    inventory = {"豆腐": InventoryEntry("豆腐", 2, "丁")}
    first = make_recipe("冷奴", [("豆腐", 1, "丁")])
    second = make_recipe("湯豆腐", [("豆腐", 1, "丁")])

    meals, _ = run(inventory, {"冷奴": first, "湯豆腐": second}, {}, 1)
    assert meals[0].recipe == "冷奴"

    meals, _ = run(inventory, {"湯豆腐": second, "冷奴": first}, {}, 1)
    assert meals[0].recipe == "湯豆腐"


def test_purchase_cost_counts_packs_and_skips_infinite():
    recipe = make_recipe("すき焼き", [("牛肉", 250, "g"), ("しょうゆ", 50, "mL"), ("ねぎ", 1, "本")])
    inventory = {
        "牛肉": InventoryEntry("牛肉", 40, "g"),
        "しょうゆ": InventoryEntry("しょうゆ", 0, "mL", infinite=True),
    }
    units = {"牛肉": PurchaseUnit("牛肉", 100, "g")}

    # beef: 210g short -> 3 packs; leek absent -> 1 default pack; soy sauce free
    assert purchase_cost(recipe, inventory, units) == 4


def test_expiry_bonus_ignores_expired_undated_and_infinite_stock():
    recipe = make_recipe("炒め物", [("豚肉", 100, "g"), ("もやし", 1, "袋"), ("塩", 1, "適量"), ("ピーマン", 2, "個")])
    inventory = {
        "豚肉": InventoryEntry("豚肉", 300, "g", expiry_date=days_from_today(-1)),
        "もやし": InventoryEntry("もやし", 1, "袋", expiry_date=TODAY),
        "塩": InventoryEntry("塩", 0, "g", expiry_date=days_from_today(1), infinite=True),
        "ピーマン": InventoryEntry("ピーマン", 3, "個"),
    }

    assert expiry_urgency_bonus(recipe, inventory, TODAY) == 0


def test_expiry_bonus_uses_amount_drawn_from_stock():
    recipe = make_recipe("ポテトサラダ", [("じゃがいも", 3, "個")])
    inventory = {"じゃがいも": InventoryEntry("じゃがいも", 2, "個", expiry_date=days_from_today(4))}

    assert expiry_urgency_bonus(recipe, inventory, TODAY) == pytest.approx(0.5)


def test_expiry_date_strings_are_accepted():
    inventory = {"鮭": InventoryEntry("鮭", 2, "切れ", expiry_date=days_from_today(2).isoformat())}
    recipes = {
        "焼き鮭": make_recipe("焼き鮭", [("鮭", 1, "切れ")]),
        "白ごはん": make_recipe("白ごはん", [("ごはん", 1, "膳")]),
    }

    meals, _ = run(inventory, recipes, {}, 1, alpha=0.0)
    assert meals[0].recipe == "焼き鮭"


def test_expiry_datetimes_are_treated_as_dates():
    expires = datetime.combine(days_from_today(2), time(9, 0))
    inventory = {"鮭": InventoryEntry("鮭", 2, "切れ", expiry_date=expires)}
    recipes = {
        "焼き鮭": make_recipe("焼き鮭", [("鮭", 1, "切れ")]),
        "白ごはん": make_recipe("白ごはん", [("ごはん", 1, "膳")]),
    }

    meals, shopping = run(inventory, recipes, {}, 1, alpha=0.0)

    assert meals[0].recipe == "焼き鮭"
    assert shopping == []
    assert expiry_urgency_bonus(recipes["焼き鮭"], inventory, TODAY) == 0.5


# =============================================================================
# SHOPPING LIST
# =============================================================================


def test_missing_ingredient_uses_default_pack_in_recipe_unit():
    recipes = {"野菜スープ": make_recipe("野菜スープ", [("にんじん", 1, "個")], servings=4)}

    meals, shopping = run({}, recipes, {}, 1)

    assert [m.recipe for m in meals] == ["野菜スープ"]
    assert shopping == [ShoppingEntry(ingredient="にんじん", quantity=1, unit="個")]


def test_zero_stock_entry_is_topped_up():
    inventory = {"にんじん": InventoryEntry("にんじん", 0, "個")}
    recipes = {"野菜スープ": sample_recipes()["野菜スープ"]}

    _, shopping = run(inventory, recipes, sample_purchase_units(), 1)

    carrot = next(item for item in shopping if item.ingredient == "にんじん")
    assert carrot.quantity == 1
    assert carrot.unit == "個"


def test_shortfall_rounds_up_to_whole_packs_in_pack_unit():
    recipes = {"ハンバーグ": make_recipe("ハンバーグ", [("ひき肉", 250, "g")])}
    units = {"ひき肉": PurchaseUnit("ひき肉", 100, "g", unit_price=180)}

    meals, shopping = run({"ひき肉": InventoryEntry("ひき肉", 0, "g")}, recipes, units, 1)

    assert shopping == [ShoppingEntry("ひき肉", 300, "g")]
    assert meals[0].estimated_cost == 540


def test_fractional_packs_do_not_over_round():
    assert packs_needed(0.3, 0.1) == 3
    assert packs_needed(0.1 + 0.2, 0.1) == 3
    assert packs_needed(0, 100) == 0
    assert packs_needed(-5, 100) == 0



def test_packs_always_cover_the_shortfall():
    for shortfall, pack in [(1000.0000005, 1000.0), (2.5, 1.0), (0.7, 0.1), (199.99999, 100.0), (1e-7, 500.0)]:
        packs = packs_needed(shortfall, pack)
        assert packs * pack >= shortfall
        assert (packs - 1) * pack < shortfall
    assert packs_needed(1000.0000005, 1000.0) == 2


def test_pack_surplus_carries_over_to_later_meals():
    recipes = {"牛丼": make_recipe("牛丼", [("牛肉", 50, "g")])}
    units = {"牛肉": PurchaseUnit("牛肉", 100, "g", unit_price=250)}

    meals, shopping = run({}, recipes, units, 2)

    assert shopping == [ShoppingEntry("牛肉", 100, "g")]
    assert [m.estimated_cost for m in meals] == [250, 0]


def test_shopping_list_aggregates_per_ingredient():
    meals, shopping = run(sample_inventory(), sample_recipes(), sample_purchase_units(), 3)

    assert [m.recipe for m in meals] == ["牛肉炒め", "牛肉炒め", "牛肉炒め"]
    assert shopping == [ShoppingEntry("牛肉", 100, "g"), ShoppingEntry("玉ねぎ", 1, "個")]
    # one beef pack at its own price plus one onion pack at the default price
    assert meals[2].estimated_cost == 350


def test_default_unit_price_is_configurable():
    recipes = {"野菜スープ": make_recipe("野菜スープ", [("にんじん", 2, "本")])}

    meals, _ = run({}, recipes, {}, 1, default_unit_price=80.0)
    assert meals[0].estimated_cost == 160


@pytest.mark.parametrize("alpha,beta", [(0, 0), (1, 1), (10, 0.1), (0.1, 10)])
def test_infinite_ingredient_never_bought(alpha, beta):
    inventory = {"しょうゆ": InventoryEntry("しょうゆ", 0, "mL", infinite=True)}
    recipes = {
        "照り焼き": make_recipe("照り焼き", [("しょうゆ", 1000, "mL"), ("鶏肉", 300, "g")]),
        "しょうゆ煮": make_recipe("しょうゆ煮", [("しょうゆ", 500, "mL")]),
    }

    _, shopping = run(inventory, recipes, {}, 6, alpha=alpha, beta=beta)

    assert "しょうゆ" not in {item.ingredient for item in shopping}


def test_all_infinite_recipe_is_selectable_and_free():
    inventory = {"塩": InventoryEntry("塩", 0, "g", infinite=True)}
    recipes = {"塩むすび": make_recipe("塩むすび", [("塩", 1, "g")])}

    meals, shopping = run(inventory, recipes, {}, 2)

    assert [m.recipe for m in meals] == ["塩むすび", "塩むすび"]
    assert shopping == []
    assert all(m.estimated_cost == 0 for m in meals)


# =============================================================================
# RANDOMNESS
# =============================================================================


def test_zero_temperature_never_draws_noise():
    rng = FixedRandom([0.9])
    run(sample_inventory(), sample_recipes(), sample_purchase_units(), 3, rng=rng)
    assert rng.calls == 0


def test_noise_is_scaled_by_temperature():
    inventory = {"豆腐": InventoryEntry("豆腐", 1, "丁")}
    recipes = {
        "冷奴": make_recipe("冷奴", [("豆腐", 1, "丁")]),
        "麻婆豆腐": make_recipe("麻婆豆腐", [("豆腐", 1, "丁"), ("ひき肉", 100, "g")]),
    }
    units = {"ひき肉": PurchaseUnit("ひき肉", 100, "g")}

    # deterministic scores: 0 vs -0.5; noise -1 and +1 flip the order
    meals, _ = run(inventory, recipes, units, 1, alpha=0.5, temperature=1.0, rng=FixedRandom([-1.0, 1.0]))
    assert meals[0].recipe == "麻婆豆腐"

    meals, _ = run(inventory, recipes, units, 1, alpha=0.5, temperature=0.1, rng=FixedRandom([-1.0, 1.0]))
    assert meals[0].recipe == "冷奴"


def test_positive_temperature_varies_selection():
    inventory = {"豆腐": InventoryEntry("豆腐", 10, "丁")}
    recipes = {
        "冷奴": make_recipe("冷奴", [("豆腐", 1, "丁")]),
        "湯豆腐": make_recipe("湯豆腐", [("豆腐", 1, "丁")]),
    }

    picks = set()
    for seed in range(50):
        meals, _ = run(inventory, recipes, {}, 1, temperature=1.0, rng=random.Random(seed))
        assert len(meals) == 1
        picks.add(meals[0].recipe)

    assert picks == {"冷奴", "湯豆腐"}


# =============================================================================
# ISOLATION AND VALIDATION
# =============================================================================


def test_caller_inventory_is_not_mutated():
    inventory = sample_inventory()
    purchase_units = sample_purchase_units()
    before = copy.deepcopy(inventory)
    units_before = copy.deepcopy(purchase_units)

    run(inventory, sample_recipes(), purchase_units, 5)

    assert inventory == before
    assert purchase_units == units_before


def test_negative_stock_is_treated_as_empty():
    inventory = {"卵": InventoryEntry("卵", -3, "個")}
    recipes = {"目玉焼き": make_recipe("目玉焼き", [("卵", 2, "個")])}

    _, shopping = run(inventory, recipes, {}, 1)
    assert shopping == [ShoppingEntry("卵", 2, "個")]


@pytest.mark.parametrize("bad", [math.nan, math.inf])
def test_non_finite_recipe_quantity_is_rejected(bad):
    recipes = {"謎の料理": make_recipe("謎の料理", [("卵", bad, "個")])}

    with pytest.raises(ServiceValidationError) as exc_info:
        run({}, recipes, {}, 1)
    assert exc_info.value.code == "NON_FINITE_QUANTITY"


def test_non_finite_stock_quantity_is_rejected():
    inventory = {"卵": InventoryEntry("卵", math.nan, "個")}
    recipes = {"目玉焼き": make_recipe("目玉焼き", [("卵", 2, "個")])}

    with pytest.raises(ServiceValidationError):
        run(inventory, recipes, {}, 1)


def test_malformed_expiry_string_is_rejected():
    inventory = {"卵": InventoryEntry("卵", 6, "個", expiry_date="next week")}
    recipes = {"目玉焼き": make_recipe("目玉焼き", [("卵", 2, "個")])}

    with pytest.raises(ServiceValidationError) as exc_info:
        run(inventory, recipes, {}, 1)
    assert exc_info.value.code == "INVALID_EXPIRY_DATE"
