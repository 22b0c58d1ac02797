from __future__ import annotations

import logging
from datetime import timedelta

from config import AppSettings, config
from db.db import init_db

from .asset_price_sync import AssetPriceSync, SqlAssetPriceSync
from .clock import Clock, utc_now
from .price_cache import InMemoryPriceCache, LayeredPriceCache, PriceCache, SqlPriceCache
from .price_sources import QuoteSource, QuoteSourceError
from .price_types import AssetKind, AssetSource, PriceQuery, ResolutionOutcome
from .source_selector import select_quote_source

logger = logging.getLogger(__name__)

MAX_SYMBOL_LENGTH = 5


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def is_stock_symbol(name: str) -> bool:
    """Ticker heuristic: 1-5 characters, all ASCII ``A``-``Z``."""
    name = name.strip()
    if not 1 <= len(name) <= MAX_SYMBOL_LENGTH:
        return False
    return all("A" <= char <= "Z" for char in name)


class PriceService:
    """Resolves the current value of an asset, preferring live market prices over stored values.

    Only stocks tracked with the ``market_api`` source are priced live. Prices are served from
    ``cache`` while fresh, otherwise fetched from ``source`` and written back. Provider and storage
    failures never propagate out of :meth:`resolve`; the caller's stored value is returned instead.
    """

    def __init__(
        self,
        source: QuoteSource,
        cache: PriceCache,
        asset_sync: AssetPriceSync | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.source = source
        self.cache = cache
        self.asset_sync = asset_sync
        self._clock = clock

    def resolve(self, asset_kind: str, symbol: str, stored_value: float, source_tag: str) -> float:
        query = PriceQuery(asset_kind=asset_kind, symbol=symbol, stored_value=stored_value, source_tag=source_tag)
        return self.resolve_query(query).price

    def resolve_query(self, query: PriceQuery) -> ResolutionOutcome:
        if not self.is_eligible(query):
            logger.debug("Using stored value for %s %r (source: %s)", query.asset_kind, query.symbol, query.source_tag)
            return ResolutionOutcome(price=query.stored_value, used_live=False)

        symbol = normalize_symbol(query.symbol)
        try:
            price, fetched = self._cached_or_fetched(symbol)
        except QuoteSourceError as exc:
            logger.warning(
                "Failed to fetch %s (status: %s): %s - using stored value %.2f",
                symbol,
                exc.status_code,
                exc,
                query.stored_value,
            )
            return ResolutionOutcome(price=query.stored_value, used_live=False)
        except Exception:
            logger.exception("Unexpected error resolving %s - using stored value %.2f", symbol, query.stored_value)
            return ResolutionOutcome(price=query.stored_value, used_live=False)

        if fetched:
            self.propagate_price(symbol, price)
        return ResolutionOutcome(price=price, used_live=True)

    def get_stock_price(self, symbol: str) -> float:
        """Return a fresh price for ``symbol``; raises :class:`QuoteSourceError` when the fetch fails."""
        price, _ = self._cached_or_fetched(normalize_symbol(symbol))
        return price

    def propagate_price(self, symbol: str, price: float) -> int | None:
        if self.asset_sync is None:
            return None
        try:
            updated = self.asset_sync.update_market_price(symbol, price, self._clock())
        except Exception:
            logger.exception("Failed to update assets for %s", symbol)
            return None
        logger.info("Updated %d asset(s) with %s price", updated, symbol)
        return updated

    @staticmethod
    def is_eligible(query: PriceQuery) -> bool:
        return (
            query.asset_kind == AssetKind.STOCK
            and query.source_tag == AssetSource.MARKET_API
            and is_stock_symbol(query.symbol)
        )

    def _cached_or_fetched(self, symbol: str) -> tuple[float, bool]:
        try:
            cached = self.cache.lookup(symbol)
        except Exception:
            logger.warning("Price cache lookup failed for %s, fetching fresh data", symbol, exc_info=True)
            cached = None
        if cached is not None:
            logger.debug("Using cached price for %s: %.2f (observed: %s)", symbol, cached.price, cached.observed_at)
            return cached.price, False

        price = self.source.fetch_price(symbol)
        logger.info("Fetched %s price: %.2f", symbol, price)
        try:
            self.cache.store(symbol, price, self._clock())
        except Exception:
            logger.exception("Failed to cache price for %s", symbol)
        return price, True


def build_default_service(settings: AppSettings | None = None) -> PriceService:
    settings = settings or config()
    window = timedelta(minutes=settings.price_freshness_minutes)
    session_factory = init_db(settings.database_url)

    cache = LayeredPriceCache(
        front=InMemoryPriceCache(freshness_window=window),
        back=SqlPriceCache(session_factory=session_factory, freshness_window=window),
    )
    source = select_quote_source(
        settings.market_data_provider,
        api_key=settings.alpha_vantage_api_key,
        timeout=settings.price_request_timeout_seconds,
    )
    return PriceService(source=source, cache=cache, asset_sync=SqlAssetPriceSync(session_factory=session_factory))


__all__ = ["PriceService", "build_default_service", "is_stock_symbol", "normalize_symbol"]
