"""Domain constants and enumerations for validation.

Tuples rather than sets: report buckets are pre-initialized in this order.
"""

from typing import Dict, Tuple

BASE_CURRENCY = "USD"
CURRENCIES: Tuple[str, ...] = ("USD", "ILS", "GBP", "EUR")
CATEGORIES: Tuple[str, ...] = (
    "FOOD",
    "HEALTH",
    "EDUCATION",
    "TRAVEL",
    "HOUSING",
    "OTHER",
)

# Multipliers relative to BASE_CURRENCY
DEFAULT_RATES: Dict[str, float] = {
    "USD": 1.0,
    "ILS": 3.4,
    "EUR": 0.7,
    "GBP": 0.6,
}
