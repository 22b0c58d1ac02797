from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, cast

from sqlalchemy import CursorResult, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from db import models
from services.price_types import AssetKind, AssetSource, CachedPrice


class StockPriceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, symbol: str) -> CachedPrice | None:
        orm_price = self._session.get(models.StockPriceOrm, symbol)
        if orm_price is None:
            return None
        return self._to_domain(orm_price)

    def upsert(self, symbol: str, price: float, observed_at: datetime) -> None:
        """Insert the row or overwrite price and ``last_updated`` in one statement; ``created_at`` is kept."""
        insert = self._insert_for_dialect()
        stmt = insert(models.StockPriceOrm).values(
            symbol=symbol,
            price=price,
            last_updated=observed_at,
            created_at=observed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["symbol"],
            set_={"price": stmt.excluded.price, "last_updated": stmt.excluded.last_updated},
        )
        self._session.execute(stmt)
        self._session.commit()

    def _insert_for_dialect(self) -> Any:
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        msg = f"Unsupported database dialect for price upserts: {dialect}"
        raise ValueError(msg)

    @staticmethod
    def _to_domain(orm_price: models.StockPriceOrm) -> CachedPrice:
        observed_at = orm_price.last_updated
        if observed_at.tzinfo is None:
            observed_at = observed_at.replace(tzinfo=timezone.utc)
        return CachedPrice(symbol=orm_price.symbol, price=orm_price.price, observed_at=observed_at)


class AssetRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def update_market_price(self, symbol: str, price: float, updated_at: datetime) -> int:
        stmt = (
            update(models.AssetOrm)
            .where(
                models.AssetOrm.name == symbol,
                models.AssetOrm.type == AssetKind.STOCK.value,
                models.AssetOrm.source == AssetSource.MARKET_API.value,
            )
            .values(current_value=price, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        result = cast("CursorResult[Any]", self._session.execute(stmt))
        self._session.commit()
        return result.rowcount
