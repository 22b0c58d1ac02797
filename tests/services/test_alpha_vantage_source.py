from __future__ import annotations

from typing import Any, cast
from unittest.mock import Mock

import pytest
import requests

from services.alpha_vantage_source import (
    AlphaVantageAPIError,
    AlphaVantageRateLimitError,
    AlphaVantageSource,
    _AlphaVantageClient,
)


class _StubResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = "payload"

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(response=cast(requests.Response, self))

    def json(self) -> Any:
        return self._payload


class _StubSession:
    def __init__(self, response: _StubResponse) -> None:
        self._response = response
        self.last_request: dict[str, Any] | None = None

    def request(
        self, method: str, url: str, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> _StubResponse:
        self.last_request = {"method": method, "url": url, "params": params, "timeout": timeout}
        return self._response


def _source(payload: Any, status_code: int = 200) -> tuple[AlphaVantageSource, _StubSession]:
    session = _StubSession(_StubResponse(payload, status_code))
    client = _AlphaVantageClient(
        api_key="test-key",
        base_url="https://example.com",
        session=cast(requests.Session, session),
    )
    return AlphaVantageSource(client=client), session


def test_fetch_price_parses_global_quote() -> None:
    payload = {"Global Quote": {"01. symbol": "IBM", "05. price": "182.4500"}}
    source, session = _source(payload)

    assert source.fetch_price("ibm") == 182.45
    assert session.last_request == {
        "method": "GET",
        "url": "https://example.com/query",
        "params": {"function": "GLOBAL_QUOTE", "symbol": "IBM", "apikey": "test-key"},
        "timeout": 10.0,
    }


@pytest.mark.parametrize("field", ["Note", "Information"])
def test_rate_limit_notice_is_reported(field: str) -> None:
    source, _ = _source({field: "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls"})

    with pytest.raises(AlphaVantageRateLimitError, match="API limit reached"):
        source.fetch_price("IBM")


def test_error_message_is_reported() -> None:
    source, _ = _source({"Error Message": "Invalid API call."})

    with pytest.raises(AlphaVantageAPIError, match="API error: Invalid API call.") as excinfo:
        source.fetch_price("IBM")
    assert not isinstance(excinfo.value, AlphaVantageRateLimitError)


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({}, "missing Global Quote"),
        ({"Global Quote": {}}, "missing price field"),
        ({"Global Quote": {"05. price": 182.45}}, "missing price field"),
        ({"Global Quote": {"05. price": "n/a"}}, "failed to parse price"),
        ({"Global Quote": {"05. price": "nan"}}, "failed to parse price"),
    ],
)
def test_malformed_quotes_raise_parse_errors(payload: dict[str, Any], message: str) -> None:
    source, _ = _source(payload)

    with pytest.raises(AlphaVantageAPIError, match=message):
        source.fetch_price("IBM")


def test_http_errors_carry_status_code() -> None:
    source, _ = _source({}, status_code=503)

    with pytest.raises(AlphaVantageAPIError) as excinfo:
        source.fetch_price("IBM")
    assert excinfo.value.status_code == 503


def test_connection_errors_are_wrapped() -> None:
    session = Mock()
    session.request.side_effect = requests.ConnectionError("unreachable")
    source = AlphaVantageSource(client=_AlphaVantageClient(api_key="demo", session=session))

    with pytest.raises(AlphaVantageAPIError, match="request failed"):
        source.fetch_price("IBM")


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError):
        _AlphaVantageClient(api_key="")
