from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from cost_manager.core.config import Settings
from cost_manager.models.constants import CATEGORIES
from cost_manager.models import StoredCost
from cost_manager.services.app_settings import get_effective_rate_provider
from cost_manager.services.money import round2
from cost_manager.services.rates.base import RateProvider, RateResolution, RateTable
from cost_manager.services.rates.conversion import convert_cost

if TYPE_CHECKING:  # pragma: no cover
    from cost_manager.db.dal import Database

"""Report aggregation.

Reports:
    - Monthly report: every cost of one year/month converted to a target
      currency, summed per category and in total.
    - Annual report: twelve month buckets, each holding a converted sum for
      every category.

Design notes:
    Each call scans the store once and resolves the rate table once, so all
    records of one report share the same rates. Nothing is cached between
    calls; the exchange rate URL is re-read every time a provider is built.
    Non-finite conversions (a zero rate in a fetched table) count as 0.
"""

logger = logging.getLogger("cost_manager.reports")


@dataclass(frozen=True)
class ReportCost:
    id: int
    amount: float
    currency: str
    category: str
    description: str
    day: int
    converted_amount: float


@dataclass(frozen=True)
class ReportTotal:
    currency: str
    total: float


@dataclass(frozen=True)
class MonthlyReport:
    year: int
    month: int
    costs: List[ReportCost]
    total: ReportTotal
    by_category: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthBucket:
    month: int
    totals: Dict[str, float]


@dataclass(frozen=True)
class AnnualReport:
    year: int
    currency: str
    months: List[MonthBucket]


def log_resolution(resolution: RateResolution) -> None:
    """Record which table is in use; a failed fetch is logged, never raised."""
    if resolution.degraded:
        logger.warning(
            "exchange rate fetch failed; using built-in rates",
            extra={"event": "rate_fetch_degraded", "reason": resolution.reason},
        )
    else:
        logger.debug("using %s exchange rates", resolution.source)


def resolve_rates(provider: RateProvider) -> RateTable:
    resolution = provider.resolve()
    log_resolution(resolution)
    return resolution.rates


def _log_missing_currencies(
    rates: RateTable, costs: Iterable[StoredCost], target_currency: str
) -> None:
    missing = {c.currency for c in costs} | {target_currency}
    missing -= set(rates)
    if missing:
        logger.debug(
            "currencies missing from rate table treated as 1: %s",
            ", ".join(sorted(missing)),
        )


def _rates_for(
    db: "Database",
    costs: List[StoredCost],
    target_currency: str,
    provider: Optional[RateProvider],
    settings: Optional[Settings],
) -> RateTable:
    if provider is None:
        provider = get_effective_rate_provider(db, settings)
    rates = resolve_rates(provider)
    _log_missing_currencies(rates, costs, target_currency)
    return rates


def compute_monthly_report(
    db: Optional["Database"],
    year: int,
    month: int,
    target_currency: str,
    provider: Optional[RateProvider] = None,
    settings: Optional[Settings] = None,
) -> MonthlyReport:
    """Return the converted costs of one month with per-category and grand totals.

    An unopened store or an empty month yields an empty report with total 0.
    Per-cost converted amounts are left unrounded; the category sums and the
    grand total are rounded half-up to two decimals.
    """
    empty = MonthlyReport(
        year=year,
        month=month,
        costs=[],
        total=ReportTotal(currency=target_currency, total=0.0),
    )
    if db is None or not db.is_open:
        return empty
    costs = db.scan_by_year_month(year, month)
    if not costs:
        return empty

    rates = _rates_for(db, costs, target_currency, provider, settings)
    items: List[ReportCost] = []
    by_category: Dict[str, float] = {}
    total = 0.0
    for cost in costs:
        result = convert_cost(cost, target_currency, rates)
        items.append(
            ReportCost(
                id=cost.id,
                amount=cost.amount,
                currency=cost.currency,
                category=cost.category,
                description=cost.description,
                day=cost.day,
                converted_amount=result.converted_amount,
            )
        )
        if not result.countable:
            continue
        by_category[cost.category] = (
            by_category.get(cost.category, 0.0) + result.converted_amount
        )
        total += result.converted_amount

    return MonthlyReport(
        year=year,
        month=month,
        costs=items,
        total=ReportTotal(currency=target_currency, total=round2(total)),
        by_category={k: round2(v) for k, v in by_category.items()},
    )


def compute_annual_by_category(
    db: Optional["Database"],
    year: int,
    target_currency: str,
    provider: Optional[RateProvider] = None,
    settings: Optional[Settings] = None,
) -> AnnualReport:
    """Return twelve month buckets of per-category converted sums for `year`.

    Every bucket carries every category, zero when nothing was spent. Costs
    whose stored month falls outside 1..12 are skipped.
    """
    buckets: List[Dict[str, float]] = [
        {category: 0.0 for category in CATEGORIES} for _ in range(12)
    ]
    costs = db.scan_by_year(year) if db is not None and db.is_open else []
    if costs:
        rates = _rates_for(db, costs, target_currency, provider, settings)
        for cost in costs:
            index = cost.month - 1
            if not 0 <= index < 12:
                logger.debug(
                    "skipping cost with out-of-range month",
                    extra={"cost_id": cost.id, "month": cost.month},
                )
                continue
            result = convert_cost(cost, target_currency, rates)
            if not result.countable:
                continue
            bucket = buckets[index]
            bucket[cost.category] = bucket.get(cost.category, 0.0) + result.converted_amount

    return AnnualReport(
        year=year,
        currency=target_currency,
        months=[
            MonthBucket(
                month=i + 1, totals={k: round2(v) for k, v in bucket.items()}
            )
            for i, bucket in enumerate(buckets)
        ],
    )
