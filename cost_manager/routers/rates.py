from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Dict, Optional

from cost_manager.core.config import Settings
from cost_manager.db.dal import Database
from cost_manager.routers.deps import get_app_settings, get_db
from cost_manager.services.app_settings import (
    get_effective_rate_provider,
    get_exchange_rates_url,
    set_exchange_rates_url,
)
from cost_manager.services.rates.base import UsedDefault
from cost_manager.services.reports import log_resolution

"""Rates and settings routers.

Endpoints:
    - GET /rates                          -> currently resolved table and its source
    - GET /settings/exchange-rates-url    -> effective source URL (null when unset)
    - PUT /settings/exchange-rates-url    -> save {url}; empty or null clears it
"""

router = APIRouter(prefix="/rates", tags=["rates"])
settings_router = APIRouter(prefix="/settings", tags=["settings"])


class RatesOut(BaseModel):
    source: str
    rates: Dict[str, float]
    reason: Optional[str] = None


class RatesUrlPayload(BaseModel):
    url: Optional[str] = None


class RatesUrlOut(BaseModel):
    url: Optional[str]


@router.get("", response_model=RatesOut, summary="Resolve the exchange rate table")
def get_rates(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    resolution = get_effective_rate_provider(db, settings).resolve()
    log_resolution(resolution)
    return RatesOut(
        source=resolution.source,
        rates=resolution.rates,
        reason=resolution.reason if isinstance(resolution, UsedDefault) else None,
    )


@settings_router.get(
    "/exchange-rates-url",
    response_model=RatesUrlOut,
    summary="Effective exchange rate source URL",
)
def read_rates_url(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return RatesUrlOut(url=get_exchange_rates_url(db, settings))


@settings_router.put(
    "/exchange-rates-url",
    response_model=RatesUrlOut,
    summary="Save or clear the exchange rate source URL",
)
def save_rates_url(
    payload: RatesUrlPayload,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    # invalid URLs raise ValidationError -> 422 via the app handler
    set_exchange_rates_url(db, payload.url)
    return RatesUrlOut(url=get_exchange_rates_url(db, settings))
