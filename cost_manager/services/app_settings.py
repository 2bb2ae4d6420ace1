"""Application settings backed by the metadata table.

The only user-editable setting is the exchange rate source URL. It is read
fresh on every call (no caching) so a change applies to the next report.
When nothing has been saved, the `EXCHANGE_RATES_URL` environment setting is
used; when neither is present the built-in rate table applies.
"""

from __future__ import annotations
from typing import Optional
from urllib.parse import urlparse

from typing import TYPE_CHECKING
from cost_manager.core.config import Settings, get_settings
from cost_manager.core.errors import ValidationError
from cost_manager.services.rates.base import RateProvider
from cost_manager.services.rates.providers import make_rate_provider

if TYPE_CHECKING:  # pragma: no cover
    from cost_manager.db.dal import Database

EXCHANGE_RATES_URL_KEY = "exchange_rates_url"


def validate_rates_url(url: str) -> str:
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("exchange rate URL must be an absolute http(s) URL")
    return url


# ------------- Exchange rate source --------------


def get_exchange_rates_url(
    db: "Database", settings: Optional[Settings] = None
) -> Optional[str]:
    stored = db.get_metadata(EXCHANGE_RATES_URL_KEY)
    if stored:
        return stored
    # Fall back to environment settings
    return (settings or get_settings()).exchange_rates_url or None


def set_exchange_rates_url(db: "Database", url: Optional[str]) -> Optional[str]:
    """Persist the URL; an empty value clears the saved setting."""
    if url is None or not url.strip():
        db.delete_metadata(EXCHANGE_RATES_URL_KEY)
        return None
    url = validate_rates_url(url)
    db.set_metadata(EXCHANGE_RATES_URL_KEY, url)
    return url


def get_effective_rate_provider(
    db: "Database", settings: Optional[Settings] = None
) -> RateProvider:
    settings = settings or get_settings()
    return make_rate_provider(
        get_exchange_rates_url(db, settings), timeout=settings.http_timeout_seconds
    )


__all__ = [
    "EXCHANGE_RATES_URL_KEY",
    "validate_rates_url",
    "get_exchange_rates_url",
    "set_exchange_rates_url",
    "get_effective_rate_provider",
]
