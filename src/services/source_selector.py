from __future__ import annotations

import logging
from typing import Protocol

import requests

from .alpha_vantage_source import AlphaVantageSource, _AlphaVantageClient
from .price_sources import QuoteSource
from .yahoo_finance_source import YahooFinanceSource, _YahooFinanceClient

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "yahoo"


class SourceFactory(Protocol):
    def __call__(self, *, api_key: str, timeout: float, session: requests.Session | None) -> QuoteSource: ...


def _yahoo_source(*, api_key: str, timeout: float, session: requests.Session | None) -> QuoteSource:
    return YahooFinanceSource(client=_YahooFinanceClient(timeout=timeout, session=session))


def _alpha_vantage_source(*, api_key: str, timeout: float, session: requests.Session | None) -> QuoteSource:
    return AlphaVantageSource(client=_AlphaVantageClient(api_key=api_key, timeout=timeout, session=session))


SOURCE_FACTORIES: dict[str, SourceFactory] = {
    "yahoo": _yahoo_source,
    "alphavantage": _alpha_vantage_source,
}


def select_quote_source(
    provider_name: str | None,
    *,
    api_key: str,
    timeout: float = 10.0,
    session: requests.Session | None = None,
) -> QuoteSource:
    """Build the quote source registered under ``provider_name``.

    Missing or unknown names fall back to the default provider instead of failing.
    """
    name = (provider_name or "").strip().lower()
    if not name:
        name = DEFAULT_PROVIDER
    elif name not in SOURCE_FACTORIES:
        logger.warning("Unknown market data provider %r, falling back to %s", provider_name, DEFAULT_PROVIDER)
        name = DEFAULT_PROVIDER

    return SOURCE_FACTORIES[name](api_key=api_key, timeout=timeout, session=session)


__all__ = ["DEFAULT_PROVIDER", "SOURCE_FACTORIES", "select_quote_source"]
