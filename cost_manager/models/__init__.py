"""Pydantic domain models for the Cost Manager."""

from .constants import (
    BASE_CURRENCY,
    CURRENCIES,
    CATEGORIES,
    DEFAULT_RATES,
)  # re-export
from .cost import NewCostIn, StoredCost

__all__ = [
    "BASE_CURRENCY",
    "CURRENCIES",
    "CATEGORIES",
    "DEFAULT_RATES",
    "NewCostIn",
    "StoredCost",
]
