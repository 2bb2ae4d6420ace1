from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Mapping

from cost_manager.models import StoredCost

"""Currency normalization.

Rates are multipliers relative to the base currency (USD=1), so converting
goes through the base: (amount / rates[from]) * rates[to].

A currency missing from the table is treated as multiplier 1. An explicit 0
is a configuration error; it produces inf or nan instead of raising, and the
report layer drops non-finite values from its sums.
"""


def _rate(rates: Mapping[str, float], currency: str) -> float:
    return rates.get(currency, 1.0)


def _divide(amount: float, rate: float) -> float:
    if rate == 0:
        if amount == 0 or math.isnan(amount):
            return math.nan
        return math.copysign(math.inf, amount)
    return amount / rate


def convert(
    amount: float, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> float:
    in_base = _divide(amount, _rate(rates, from_currency))
    return in_base * _rate(rates, to_currency)


@dataclass(frozen=True)
class ConversionResult:
    cost: StoredCost
    currency: str
    converted_amount: float

    @property
    def countable(self) -> bool:
        return math.isfinite(self.converted_amount)


def convert_cost(
    cost: StoredCost, to_currency: str, rates: Mapping[str, float]
) -> ConversionResult:
    return ConversionResult(
        cost=cost,
        currency=to_currency,
        converted_amount=convert(cost.amount, cost.currency, to_currency, rates),
    )
