from __future__ import annotations

from typing import Any, Protocol


class QuoteSourceError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class QuoteSource(Protocol):
    def fetch_price(self, symbol: str) -> float: ...


__all__ = ["QuoteSource", "QuoteSourceError"]
