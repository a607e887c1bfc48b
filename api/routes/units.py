"""Food unit vocabulary for quantity inputs"""

from typing import List

from fastapi import APIRouter

from core.utils.units import FOOD_UNITS

router = APIRouter(prefix="/units", tags=["Units"])


@router.get("", response_model=List[str])
def list_units():
    """Units accepted in stock and recipe quantity strings, in display order."""
    return list(FOOD_UNITS)
