from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.repositories import StockPriceRepository

from .clock import Clock, utc_now
from .price_types import CachedPrice

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = timedelta(minutes=60)


class PriceCacheError(Exception):
    pass


class PriceCache(Protocol):
    def lookup(self, symbol: str) -> CachedPrice | None: ...

    def store(self, symbol: str, price: float, observed_at: datetime) -> None: ...


def _validate_window(freshness_window: timedelta) -> timedelta:
    if freshness_window <= timedelta(0):
        msg = "freshness_window must be positive"
        raise ValueError(msg)
    return freshness_window


def _is_fresh(entry: CachedPrice, now: datetime, freshness_window: timedelta) -> bool:
    return now - entry.observed_at < freshness_window


class InMemoryPriceCache(PriceCache):
    """Process-local cache. Entries live as long as the instance."""

    def __init__(self, *, freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW, clock: Clock = utc_now) -> None:
        self.freshness_window = _validate_window(freshness_window)
        self._clock = clock
        self._entries: dict[str, CachedPrice] = {}
        self._lock = threading.Lock()

    def lookup(self, symbol: str) -> CachedPrice | None:
        with self._lock:
            entry = self._entries.get(symbol)
        if entry is None or not _is_fresh(entry, self._clock(), self.freshness_window):
            return None
        return entry

    def store(self, symbol: str, price: float, observed_at: datetime) -> None:
        entry = CachedPrice(symbol=symbol, price=price, observed_at=observed_at)
        with self._lock:
            current = self._entries.get(symbol)
            # never move a symbol's observation time backwards
            if current is not None and current.observed_at > observed_at:
                return
            self._entries[symbol] = entry


class SqlPriceCache(PriceCache):
    """Durable cache backed by the ``stock_prices`` table; concurrent writers resolve as last-write-wins."""

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session],
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        clock: Clock = utc_now,
    ) -> None:
        self.freshness_window = _validate_window(freshness_window)
        self._session_factory = session_factory
        self._clock = clock

    def lookup(self, symbol: str) -> CachedPrice | None:
        try:
            with self._session_factory() as session:
                entry = StockPriceRepository(session).get(symbol)
        except SQLAlchemyError as exc:
            raise PriceCacheError(f"Failed to read cached price for {symbol}") from exc

        if entry is None:
            return None
        if not _is_fresh(entry, self._clock(), self.freshness_window):
            logger.debug("Cached price for %s expired (age: %s)", symbol, self._clock() - entry.observed_at)
            return None
        return entry

    def store(self, symbol: str, price: float, observed_at: datetime) -> None:
        try:
            with self._session_factory() as session:
                StockPriceRepository(session).upsert(symbol, price, observed_at)
        # ValueError: the database dialect has no upsert support
        except (SQLAlchemyError, ValueError) as exc:
            raise PriceCacheError(f"Failed to cache price for {symbol}") from exc


class LayeredPriceCache(PriceCache):
    def __init__(self, *, front: InMemoryPriceCache, back: PriceCache) -> None:
        self.front = front
        self.back = back

    def lookup(self, symbol: str) -> CachedPrice | None:
        entry = self.front.lookup(symbol)
        if entry is not None:
            return entry

        try:
            entry = self.back.lookup(symbol)
        except PriceCacheError:
            logger.warning("Durable price cache read failed for %s, treating as miss", symbol, exc_info=True)
            return None

        if entry is not None:
            self.front.store(entry.symbol, entry.price, entry.observed_at)
        return entry

    def store(self, symbol: str, price: float, observed_at: datetime) -> None:
        self.front.store(symbol, price, observed_at)
        self.back.store(symbol, price, observed_at)


__all__ = [
    "DEFAULT_FRESHNESS_WINDOW",
    "InMemoryPriceCache",
    "LayeredPriceCache",
    "PriceCache",
    "PriceCacheError",
    "SqlPriceCache",
]
