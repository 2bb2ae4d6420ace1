import http.client
import io
import json
import logging
import socket
import threading
import urllib.error
import urllib.request

import pytest

from cost_manager.models.constants import DEFAULT_RATES
from cost_manager.services.http_client import HttpError, get_json
from cost_manager.services.rates.base import Fetched, UsedDefault
from cost_manager.services.rates.providers import (
    ExternalHTTPRateProvider,
    StaticRateProvider,
    make_rate_provider,
    parse_rate_table,
)
from cost_manager.services.reports import resolve_rates

URL = "http://rates.test/latest.json"


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200):
        self.status = status
        self._body = io.BytesIO(body)

    def read(self):
        return self._body.read()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def serve(monkeypatch):
    """Replace urlopen with a canned response or exception."""
    calls = []

    def _serve(body=None, status=200, error=None):
        def fake_urlopen(url, **kwargs):
            calls.append((url, kwargs))
            if error is not None:
                raise error
            payload = body if isinstance(body, bytes) else json.dumps(body).encode()
            return FakeResponse(payload, status)

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
        return calls

    return _serve


@pytest.fixture
def raw_server():
    """Listen on localhost and answer one connection with raw bytes."""
    sockets = []

    def _start(reply: bytes) -> str:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        listener.settimeout(5)
        sockets.append(listener)

        def answer():
            conn, _ = listener.accept()
            with conn:
                conn.recv(65536)
                conn.sendall(reply)

        threading.Thread(target=answer, daemon=True).start()
        host, port = listener.getsockname()
        return f"http://{host}:{port}/rates.json"

    yield _start
    for listener in sockets:
        listener.close()


def test_no_url_uses_default_table_without_degrading():
    provider = make_rate_provider(None)
    assert isinstance(provider, StaticRateProvider)
    resolution = provider.resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.rates == DEFAULT_RATES
    assert resolution.degraded is False


def test_blank_url_is_treated_as_unset():
    assert isinstance(make_rate_provider("   "), StaticRateProvider)


def test_successful_fetch_is_returned_verbatim(serve):
    table = {"USD": 1, "ILS": 3.7, "EUR": 0.92, "GBP": 0.79}
    calls = serve(table)
    resolution = make_rate_provider(URL).resolve()
    assert isinstance(resolution, Fetched)
    assert resolution.rates == table
    assert resolution.source == "fetched"
    assert len(calls) == 1
    assert calls[0] == (URL, {})


def test_timeout_is_passed_when_configured(serve):
    calls = serve({"USD": 1})
    make_rate_provider(URL, timeout=2.5).resolve()
    assert calls[0][1] == {"timeout": 2.5}


def test_http_500_falls_back_to_defaults(serve):
    error = urllib.error.HTTPError(URL, 500, "Server Error", hdrs=None, fp=None)
    calls = serve(error=error)
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded is True
    assert resolution.rates == DEFAULT_RATES
    assert "500" in resolution.reason
    # single attempt, no retries
    assert len(calls) == 1


def test_non_200_success_status_falls_back(serve):
    serve({"USD": 1}, status=204)
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded


def test_network_error_falls_back(serve):
    serve(error=urllib.error.URLError("connection refused"))
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.rates == DEFAULT_RATES


@pytest.mark.parametrize(
    "error",
    [
        http.client.BadStatusLine("GARBAGE"),
        http.client.RemoteDisconnected("closed without response"),
    ],
)
def test_broken_protocol_response_falls_back(serve, error):
    serve(error=error)
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded
    assert resolution.rates == DEFAULT_RATES


def test_truncated_body_falls_back(serve, monkeypatch):
    def short_read(self):
        raise http.client.IncompleteRead(b"{\"USD\": 1", 491)

    serve({"USD": 1})
    monkeypatch.setattr(FakeResponse, "read", short_read)
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded


@pytest.mark.parametrize(
    "reply",
    [
        b"GARBAGE\r\n\r\n",
        b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
        b"Content-Length: 500\r\n\r\n{\"USD\": 1",
    ],
    ids=["bad-status-line", "short-body"],
)
def test_malformed_wire_response_falls_back(raw_server, reply):
    url = raw_server(reply)
    resolution = ExternalHTTPRateProvider(url, timeout=5).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded
    assert resolution.rates == DEFAULT_RATES


@pytest.mark.parametrize(
    "body",
    [
        b"<html>not json</html>",
        [1, 2, 3],
        {},
        {"USD": "one"},
        {"USD": True},
        {"USD": None},
    ],
)
def test_malformed_body_falls_back(serve, body):
    serve(body)
    resolution = ExternalHTTPRateProvider(URL).resolve()
    assert isinstance(resolution, UsedDefault)
    assert resolution.degraded
    assert resolution.rates == DEFAULT_RATES


def test_parse_rate_table_keeps_zero_rates():
    assert parse_rate_table({"USD": 1, "ILS": 0}) == {"USD": 1.0, "ILS": 0.0}


def test_get_json_raises_http_error_on_bad_status(serve):
    serve({"USD": 1}, status=301)
    with pytest.raises(HttpError):
        get_json(URL)


def test_default_tables_are_independent_copies():
    first = StaticRateProvider().resolve()
    first.rates["USD"] = 99
    assert StaticRateProvider().resolve().rates["USD"] == 1.0


def test_degraded_resolution_is_logged_by_the_caller(serve, caplog):
    serve(error=urllib.error.HTTPError(URL, 500, "Server Error", hdrs=None, fp=None))
    with caplog.at_level(logging.WARNING, logger="cost_manager.reports"):
        rates = resolve_rates(ExternalHTTPRateProvider(URL))
    assert rates == DEFAULT_RATES
    degraded = [r for r in caplog.records if getattr(r, "event", None) == "rate_fetch_degraded"]
    assert len(degraded) == 1
