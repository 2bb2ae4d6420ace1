from __future__ import annotations

"""Lightweight HTTP client util for the exchange rate source.

Uses stdlib urllib; a single GET per call, no retries. Anything other than an
exact 200 response or a JSON body is reported as `HttpError`.
"""
import http.client
import json
import urllib.request
import urllib.error
from typing import Any, Optional


class HttpError(Exception):
    pass


def get_json(url: str, *, timeout: Optional[float] = None) -> Any:
    kwargs = {} if timeout is None else {"timeout": timeout}
    try:
        with urllib.request.urlopen(url, **kwargs) as resp:  # nosec B310
            if resp.status != 200:
                raise HttpError(f"HTTP {resp.status} for {url}")
            data = resp.read()
    except urllib.error.HTTPError as e:
        raise HttpError(f"HTTP {e.code} for {url}") from e
    except http.client.HTTPException as e:
        # garbled status line, truncated body and the like
        raise HttpError(f"Bad response from {url}: {e!r}") from e
    except (urllib.error.URLError, TimeoutError, OSError, ValueError) as e:
        # ValueError covers malformed URLs
        raise HttpError(f"Failed to fetch {url}: {e}") from e
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise HttpError(f"Malformed JSON body from {url}: {e}") from e
