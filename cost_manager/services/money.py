"""Money / rounding helpers.

Shared by the report aggregator and the HTTP layer so totals are rounded
the same way everywhere (half-up, two decimals).
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
import math


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def round2(value: float) -> float:
    value = finite_or_zero(value)
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
