from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class AssetKind(StrEnum):
    STOCK = "stock"
    PROPERTY = "property"
    CAR = "car"
    CASH = "cash"
    INVESTMENT = "investment"


class AssetSource(StrEnum):
    MANUAL = "manual"
    MARKET_API = "market_api"


@dataclass(frozen=True)
class CachedPrice:
    """Most recent price observed for a symbol."""

    symbol: str
    price: float
    observed_at: datetime


@dataclass(frozen=True)
class PriceQuery:
    asset_kind: str
    symbol: str
    stored_value: float
    source_tag: str


@dataclass(frozen=True)
class ResolutionOutcome:
    price: float
    used_live: bool


__all__ = ["AssetKind", "AssetSource", "CachedPrice", "PriceQuery", "ResolutionOutcome"]
