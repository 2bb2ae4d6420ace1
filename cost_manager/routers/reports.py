from __future__ import annotations

import math
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from cost_manager.core.config import Settings
from cost_manager.db.dal import Database
from cost_manager.models.constants import CURRENCIES
from cost_manager.routers.deps import get_app_settings, get_db
from cost_manager.services.reports import (
    compute_annual_by_category,
    compute_monthly_report,
)

router = APIRouter(prefix="/reports", tags=["reports"])


class ReportCostOut(BaseModel):
    id: int
    amount: float
    currency: str
    category: str
    description: str
    day: int
    converted_amount: Optional[float]  # null when a zero rate made it non-finite


class ReportTotalOut(BaseModel):
    currency: str
    total: float


class MonthlyReportOut(BaseModel):
    year: int
    month: int
    costs: List[ReportCostOut]
    by_category: Dict[str, float]
    total: ReportTotalOut


class MonthBucketOut(BaseModel):
    month: int
    totals: Dict[str, float]


class AnnualReportOut(BaseModel):
    year: int
    currency: str
    months: List[MonthBucketOut]


def _target_currency(currency: Optional[str], settings: Settings) -> str:
    target = (currency or settings.default_currency).upper()
    if target not in CURRENCIES:
        raise HTTPException(status_code=400, detail="unsupported currency")
    return target


@router.get(
    "/monthly",
    response_model=MonthlyReportOut,
    summary="Costs of one month converted to a target currency",
)
def monthly_report_endpoint(
    year: int = Query(..., ge=1, description="Calendar year"),
    month: int = Query(..., ge=1, le=12, description="Month 1-12"),
    currency: Optional[str] = Query(None, description="Target currency"),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    report = compute_monthly_report(
        db, year, month, _target_currency(currency, settings), settings=settings
    )
    return MonthlyReportOut(
        year=report.year,
        month=report.month,
        costs=[
            ReportCostOut(
                id=c.id,
                amount=c.amount,
                currency=c.currency,
                category=c.category,
                description=c.description,
                day=c.day,
                converted_amount=c.converted_amount
                if math.isfinite(c.converted_amount)
                else None,
            )
            for c in report.costs
        ],
        by_category=report.by_category,
        total=ReportTotalOut(
            currency=report.total.currency, total=report.total.total
        ),
    )


@router.get(
    "/annual",
    response_model=AnnualReportOut,
    summary="Per-category totals for each month of a year",
)
def annual_report_endpoint(
    year: int = Query(..., ge=1, description="Calendar year"),
    currency: Optional[str] = Query(None, description="Target currency"),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    report = compute_annual_by_category(
        db, year, _target_currency(currency, settings), settings=settings
    )
    return AnnualReportOut(
        year=report.year,
        currency=report.currency,
        months=[MonthBucketOut(month=b.month, totals=b.totals) for b in report.months],
    )
