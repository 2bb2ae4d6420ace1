from __future__ import annotations

"""Concrete rate providers and factory.

A provider never raises: `resolve()` returns either `Fetched` with the table
the external source sent, or `UsedDefault` with the built-in table and the
reason it was used. Logging the fallback is left to the caller.
"""
import math
from numbers import Real
from typing import Any, Callable, Optional

from cost_manager.services.http_client import get_json, HttpError

from .base import Fetched, RateProvider, RateResolution, RateTable, UsedDefault

NOT_CONFIGURED = "no exchange rate source configured"


class StaticRateProvider(RateProvider):
    def resolve(self) -> RateResolution:  # type: ignore[override]
        return UsedDefault(reason=NOT_CONFIGURED, degraded=False)


def parse_rate_table(payload: Any) -> RateTable:
    """Validate a decoded JSON body as a currency -> number mapping.

    Values are kept verbatim (including zero); only the shape is checked.
    """
    if not isinstance(payload, dict) or not payload:
        raise ValueError("rate table must be a non-empty JSON object")
    table: RateTable = {}
    for code, value in payload.items():
        if not isinstance(code, str) or not code:
            raise ValueError(f"invalid currency code {code!r}")
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValueError(f"rate for {code} is not a number: {value!r}")
        if not math.isfinite(value):
            raise ValueError(f"rate for {code} is not finite")
        table[code] = float(value)
    return table


class ExternalHTTPRateProvider(RateProvider):
    """One GET against a user-configured URL; falls back to the default table."""

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        fetch: Callable[..., Any] = get_json,
    ):
        self.url = url
        self._timeout = timeout
        self._fetch = fetch

    def resolve(self) -> RateResolution:  # type: ignore[override]
        try:
            payload = self._fetch(self.url, timeout=self._timeout)
            table = parse_rate_table(payload)
        except HttpError as e:
            return UsedDefault(reason=str(e), degraded=True)
        except ValueError as e:
            return UsedDefault(
                reason=f"malformed rate table from {self.url}: {e}", degraded=True
            )
        return Fetched(rates=table, url=self.url)


def make_rate_provider(
    url: Optional[str], timeout: Optional[float] = None
) -> RateProvider:
    if url and url.strip():
        return ExternalHTTPRateProvider(url.strip(), timeout=timeout)
    return StaticRateProvider()

