"""
Food unit vocabulary and quantity string helpers
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Optional, Tuple


FOOD_UNITS = (
    # weight
    "g",
    "kg",
    # volume
    "mL",
    "L",
    "cc",
    "合",
    # count
    "個",
    "本",
    "枚",
    "袋",
    "缶",
    "パック",
    "箱",
    "束",
    "片",
    # cooking
    "人前",
    "カップ",
    "大さじ",
    "小さじ",
    # other
    "適量",
    "お好み",
    "-",
)

# Unit used for recipe ingredients without a usable amount ("少々", "適量")
UNSPECIFIED_UNIT = "適量"

UNIT_ALIASES = {
    "ml": "mL",
    "l": "L",
    "グラム": "g",
    "キロ": "kg",
    "こ": "個",
    "ヶ": "個",
    "コ": "個",
}

_QUANTITY_RE = re.compile(r"^(\d*\.?\d*)\s*(.*)$")


def normalize_unit(token: str) -> str:
    """Map common unit variants (full-width, lowercase, kana) to FOOD_UNITS spelling."""
    t = unicodedata.normalize("NFKC", token or "").strip()
    if t in FOOD_UNITS:
        return t
    return UNIT_ALIASES.get(t.lower(), UNIT_ALIASES.get(t, t))


def parse_quantity(quantity: Optional[str]) -> Tuple[str, str]:
    """
    Split a quantity string into (amount, unit).

    The amount is the leading number as written; the unit is kept only when
    it is a known food unit, otherwise it is returned as "".

    Examples:
        >>> parse_quantity("500g")
        ('500', 'g')
        >>> parse_quantity("1.5 L")
        ('1.5', 'L')
        >>> parse_quantity("大さじ1")
        ('', '')
        >>> parse_quantity("")
        ('', '-')
    """
    if not quantity:
        return "", "-"

    text = unicodedata.normalize("NFKC", quantity).strip()
    match = _QUANTITY_RE.match(text)
    if not match:
        return "", text

    amount, unit = match.groups()
    unit = normalize_unit(unit)
    return amount or "", unit if unit in FOOD_UNITS else ""


def parse_amount(amount: Optional[str]) -> Optional[float]:
    """Convert an amount string to float; None when it does not hold a number."""
    if amount is None:
        return None
    try:
        value = float(amount)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def format_quantity(amount: str, unit: str) -> str:
    """Join amount and unit back into a single display string."""
    if not amount and not unit:
        return ""
    if not amount:
        return unit
    if not unit:
        return amount
    return f"{amount}{unit}"
