from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.repositories import AssetRepository


class AssetPriceSyncError(Exception):
    pass


class AssetPriceSync(Protocol):
    def update_market_price(self, symbol: str, price: float, updated_at: datetime) -> int: ...


class SqlAssetPriceSync(AssetPriceSync):
    """Copies a refreshed price into every market-priced stock asset named after the symbol."""

    def __init__(self, *, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def update_market_price(self, symbol: str, price: float, updated_at: datetime) -> int:
        try:
            with self._session_factory() as session:
                return AssetRepository(session).update_market_price(symbol, price, updated_at)
        except SQLAlchemyError as exc:
            raise AssetPriceSyncError(f"Failed to update assets for {symbol}") from exc


__all__ = ["AssetPriceSync", "AssetPriceSyncError", "SqlAssetPriceSync"]
