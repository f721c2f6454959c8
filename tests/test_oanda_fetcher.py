from __future__ import annotations

import json

import pytest
import requests

from fx_ratecache.errors import OandaCurrencyFetchError, UnknownCurrency
from fx_ratecache.providers.base import ProviderResponse
from fx_ratecache.providers.oanda import (
    DEFAULT_DATA_SET,
    SERVICE_URL,
    FetchOutcome,
    OandaRateFetcher,
)

_FALLBACK_MESSAGE = "Dunno why but I still fail after falling back to OANDA"
_QUOTES = json.dumps(
    {"quotes": [{"base_currency": "VND", "quote_currency": "USD", "midpoint": "0.00004"}]}
)


class _DummyResponse:
    def __init__(self, status_code: int, body: object) -> None:
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)


class _DummySession:
    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, str]] = []

    def get(self, url: str, params=None, timeout=None):
        assert url == SERVICE_URL
        self.calls.append(dict(params or {}))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _fetcher(session: _DummySession, data_set: str = "MUFG") -> OandaRateFetcher:
    return OandaRateFetcher("123", data_set, session=session)  # type: ignore[arg-type]


def test_build_request_carries_pair_data_set_and_key() -> None:
    request = _fetcher(_DummySession()).build_request("JPY", "EUR")

    assert request.params == {"base": "JPY", "quote": "EUR", "data_set": "MUFG", "api_key": "123"}
    assert request.data_set == "MUFG"
    assert "data_set=MUFG" in request.full_url.split("?", 1)[1].split("&")


def test_empty_data_set_falls_back_to_default() -> None:
    assert OandaRateFetcher("123", "").data_set == DEFAULT_DATA_SET


def test_successful_fetch_returns_the_body() -> None:
    session = _DummySession(_DummyResponse(200, _QUOTES))

    assert _fetcher(session).fetch("VND", "USD") == _QUOTES
    assert len(session.calls) == 1


def test_unsupported_data_set_retries_once_with_default() -> None:
    session = _DummySession(
        _DummyResponse(400, {"code": 1, "message": "Not in MUFG"}),
        _DummyResponse(200, _QUOTES),
    )

    assert _fetcher(session).fetch("VND", "USD") == _QUOTES
    assert [call["data_set"] for call in session.calls] == ["MUFG", DEFAULT_DATA_SET]


def test_failed_fallback_raises_unknown_currency_with_upstream_message() -> None:
    session = _DummySession(
        _DummyResponse(400, {"code": 1, "message": _FALLBACK_MESSAGE}),
        _DummyResponse(400, {"code": 1, "message": "second failure"}),
    )

    with pytest.raises(UnknownCurrency) as exc_info:
        _fetcher(session).fetch("VND", "USD")

    assert str(exc_info.value) == _FALLBACK_MESSAGE
    assert len(session.calls) == 2


def test_fallback_transport_error_raises_unknown_currency() -> None:
    failure = requests.ConnectionError("connection reset")
    session = _DummySession(
        _DummyResponse(400, {"code": 1, "message": _FALLBACK_MESSAGE}),
        failure,
    )

    with pytest.raises(UnknownCurrency) as exc_info:
        _fetcher(session).fetch("VND", "USD")

    assert str(exc_info.value) == _FALLBACK_MESSAGE
    assert exc_info.value.__cause__ is failure


def test_other_errors_fail_immediately_with_upstream_message() -> None:
    session = _DummySession(
        _DummyResponse(404, {"code": 56, "message": "The rates requested have not yet been published"}),
    )

    with pytest.raises(OandaCurrencyFetchError) as exc_info:
        _fetcher(session).fetch("MYR", "USD")

    assert str(exc_info.value) == "The rates requested have not yet been published"
    assert exc_info.value.status_code == 404
    assert exc_info.value.code == 56
    assert len(session.calls) == 1


def test_bad_request_with_other_code_is_not_retried() -> None:
    session = _DummySession(_DummyResponse(400, {"code": 5, "message": "Invalid quote currency"}))

    with pytest.raises(OandaCurrencyFetchError, match="Invalid quote currency"):
        _fetcher(session).fetch("MYR", "XXX")

    assert len(session.calls) == 1


def test_primary_transport_error_raises_fetch_error() -> None:
    failure = requests.Timeout("read timed out")
    session = _DummySession(failure)

    with pytest.raises(OandaCurrencyFetchError) as exc_info:
        _fetcher(session).fetch("USD", "EUR")

    assert exc_info.value.__cause__ is failure


def test_unreadable_error_body_raises_fetch_error() -> None:
    session = _DummySession(_DummyResponse(502, "<html>Bad Gateway</html>"))

    with pytest.raises(OandaCurrencyFetchError, match="HTTP 502"):
        _fetcher(session).fetch("USD", "EUR")


@pytest.mark.parametrize(
    "status, body, outcome",
    [
        (200, _QUOTES, FetchOutcome.SUCCESS),
        (400, json.dumps({"code": 1, "message": "x"}), FetchOutcome.FALLBACK),
        (400, json.dumps({"code": 2, "message": "x"}), FetchOutcome.FAILURE),
        (401, json.dumps({"code": 1, "message": "x"}), FetchOutcome.FAILURE),
    ],
)
def test_classify(status: int, body: str, outcome: FetchOutcome) -> None:
    classification = OandaRateFetcher.classify(ProviderResponse(status, body))

    assert classification.outcome is outcome
