from __future__ import annotations

from typing import Any

import requests

from .price_sources import QuoteSource, QuoteSourceError

_DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; market-prices/0.1)"


class YahooFinanceAPIError(QuoteSourceError):
    pass


class _YahooFinanceClient:
    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session or requests.Session()

    def get_chart(self, symbol: str, *, interval: str = "1d", range_: str = "1d") -> dict[str, Any]:
        if not symbol:
            raise ValueError("symbol must be provided")
        path = f"/v8/finance/chart/{symbol}"
        return self._request("GET", path, params={"interval": interval, "range": range_})

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise YahooFinanceAPIError(
                f"Yahoo Finance returned status code {status_code}", status_code=status_code
            ) from exc
        except requests.RequestException as exc:
            raise YahooFinanceAPIError(f"Yahoo Finance request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise YahooFinanceAPIError(
                f"Yahoo Finance returned status code {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise YahooFinanceAPIError("Yahoo Finance returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload, dict):
            raise YahooFinanceAPIError("Yahoo Finance returned unexpected payload type", payload=payload)
        return payload


class YahooFinanceSource(QuoteSource):
    """Reads ``regularMarketPrice`` from the public chart endpoint. No API key needed."""

    def __init__(self, *, client: _YahooFinanceClient | None = None) -> None:
        self.client = client or _YahooFinanceClient()

    def fetch_price(self, symbol: str) -> float:
        payload = self.client.get_chart(symbol.strip().upper())
        return self._extract_price(payload)

    @staticmethod
    def _extract_price(payload: dict[str, Any]) -> float:
        chart = payload.get("chart")
        if not isinstance(chart, dict):
            raise YahooFinanceAPIError("invalid response format: missing chart", payload=payload)

        results = chart.get("result")
        if not isinstance(results, list) or not results:
            raise YahooFinanceAPIError("invalid response format: missing result array", payload=payload)

        first = results[0]
        if not isinstance(first, dict):
            raise YahooFinanceAPIError("invalid response format: invalid result", payload=payload)

        meta = first.get("meta")
        if not isinstance(meta, dict):
            raise YahooFinanceAPIError("invalid response format: missing meta", payload=payload)

        price = meta.get("regularMarketPrice")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise YahooFinanceAPIError("invalid response format: missing price", payload=payload)
        return float(price)


__all__ = ["YahooFinanceAPIError", "YahooFinanceSource"]
