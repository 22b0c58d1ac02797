# flake8: noqa E402
# Run via uv, e.g.:
# uv run scripts/price_service_probe.py AAPL MSFT --repeat 2 --provider alphavantage
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from config import config
from services.price_service import build_default_service
from services.price_sources import QuoteSource
from services.price_types import AssetKind, AssetSource, PriceQuery


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Probe PriceService caching against the configured quote provider.")
    parser.add_argument("symbols", nargs="+", help="Ticker symbols to resolve, e.g. AAPL BRK.B.")
    parser.add_argument("--stored", type=float, default=0.0, help="Stored value returned on fallback (default: 0).")
    parser.add_argument("--repeat", type=int, default=2, help="Resolve each symbol this many times (default: 2).")
    parser.add_argument("--provider", help="Override MARKET_DATA_PROVIDER (yahoo or alphavantage).")
    parser.add_argument(
        "--database-url",
        default=f"sqlite:///{PROJECT_ROOT / '.cache' / 'price_service_probe.db'}",
        help="Database holding the durable price cache (default: .cache/price_service_probe.db).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


class CountingQuoteSource(QuoteSource):
    def __init__(self, inner: QuoteSource) -> None:
        self.inner = inner
        self.fetch_count = 0

    def fetch_price(self, symbol: str) -> float:
        self.fetch_count += 1
        print(f"[source] fetch #{self.fetch_count} for {symbol}")
        return self.inner.fetch_price(symbol)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    overrides: dict[str, object] = {"database_url": args.database_url}
    if args.provider:
        overrides["market_data_provider"] = args.provider
    settings = config().model_copy(update=overrides)

    service = build_default_service(settings)
    source = CountingQuoteSource(service.source)
    service.source = source

    print(f"Using provider {settings.market_data_provider} with cache at {settings.database_url}")
    for symbol in args.symbols:
        for attempt in range(1, args.repeat + 1):
            before = source.fetch_count
            outcome = service.resolve_query(
                PriceQuery(
                    asset_kind=AssetKind.STOCK,
                    symbol=symbol,
                    stored_value=args.stored,
                    source_tag=AssetSource.MARKET_API,
                )
            )
            if not outcome.used_live:
                status = "stored-value"
            elif source.fetch_count == before:
                status = "cache-hit"
            else:
                status = "fetched"
            print(f"[request {attempt}] {symbol} => {outcome.price} ({status})")


if __name__ == "__main__":
    main()
