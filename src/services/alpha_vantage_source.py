from __future__ import annotations

import math
from typing import Any

import requests

from .price_sources import QuoteSource, QuoteSourceError

# Alpha Vantage answers HTTP 200 for throttled calls and puts the notice in one of these fields.
_RATE_LIMIT_FIELDS = ("Note", "Information")


class AlphaVantageAPIError(QuoteSourceError):
    pass


class AlphaVantageRateLimitError(AlphaVantageAPIError):
    pass


class _AlphaVantageClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://www.alphavantage.co",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            msg = "api_key must be provided"
            raise ValueError(msg)

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_global_quote(self, symbol: str) -> dict[str, Any]:
        if not symbol:
            raise ValueError("symbol must be provided")
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key}
        return self._request("GET", "/query", params=params)

    def _request(self, method: str, path: str, *, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise AlphaVantageAPIError(
                f"Alpha Vantage returned status code {status_code}", status_code=status_code
            ) from exc
        except requests.RequestException as exc:
            raise AlphaVantageAPIError(f"Alpha Vantage request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise AlphaVantageAPIError(
                f"Alpha Vantage returned status code {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AlphaVantageAPIError("Alpha Vantage returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload, dict):
            raise AlphaVantageAPIError("Alpha Vantage returned unexpected payload type", payload=payload)

        self._raise_for_soft_failure(payload)
        return payload

    @staticmethod
    def _raise_for_soft_failure(payload: dict[str, Any]) -> None:
        for field in _RATE_LIMIT_FIELDS:
            note = payload.get(field)
            if isinstance(note, str):
                raise AlphaVantageRateLimitError(f"API limit reached: {note}", payload=payload)

        message = payload.get("Error Message")
        if isinstance(message, str):
            raise AlphaVantageAPIError(f"API error: {message}", payload=payload)


class AlphaVantageSource(QuoteSource):
    def __init__(self, *, client: _AlphaVantageClient) -> None:
        self.client = client

    def fetch_price(self, symbol: str) -> float:
        payload = self.client.get_global_quote(symbol.strip().upper())

        quote = payload.get("Global Quote")
        if not isinstance(quote, dict):
            raise AlphaVantageAPIError("invalid response format: missing Global Quote", payload=payload)

        price_raw = quote.get("05. price")
        if not isinstance(price_raw, str):
            raise AlphaVantageAPIError("invalid response format: missing price field", payload=payload)

        try:
            price = float(price_raw)
        except ValueError as exc:
            raise AlphaVantageAPIError(f"failed to parse price {price_raw!r}", payload=payload) from exc
        if not math.isfinite(price):
            raise AlphaVantageAPIError(f"failed to parse price {price_raw!r}", payload=payload)
        return price


__all__ = ["AlphaVantageAPIError", "AlphaVantageRateLimitError", "AlphaVantageSource"]
