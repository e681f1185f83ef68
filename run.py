"""
CRYPTO HERALD — Entry point
Prints the current BTC/ETH snapshots and news-feed status.
Run: python run.py
Serve the API: uvicorn api.main:app --port 8000
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from catalog.fallback import build_default_catalog
from common.logger import get_logger, new_request_id
from config.settings import NEWS_TIMEOUT_SECONDS, QUOTE_TIMEOUT_SECONDS, SNAPSHOT_SYMBOLS
from delivery.news import NewsService
from delivery.snapshots import SnapshotService
from ingest.alpha_vantage import AlphaVantageNewsSource
from ingest.binance import BinanceQuoteSource
from ingest.coingecko import CoinGeckoTickerSource

logger = get_logger("run")


async def main():
    new_request_id()
    catalog = build_default_catalog()
    snapshots = SnapshotService(catalog, BinanceQuoteSource(timeout=QUOTE_TIMEOUT_SECONDS))
    news = NewsService(catalog, AlphaVantageNewsSource(timeout=NEWS_TIMEOUT_SECONDS),
                       CoinGeckoTickerSource(timeout=NEWS_TIMEOUT_SECONDS))

    print("\n" + "="*78)
    print(f"  CRYPTO HERALD  —  fallback catalog {catalog.version}")
    print("="*78)
    print(f"{'Symbol':<10} {'Price':>12} {'24h %':>7} {'RSI':>6} {'MACD':>8}  {'Live':<5} Source")
    print("-"*78)
    for key, symbol in SNAPSHOT_SYMBOLS.items():
        envelope = await snapshots.get_snapshot(symbol)
        s = envelope.data
        print(
            f"{s.symbol:<10}"
            f" {s.current_price:>12,.2f}"
            f" {s.price_change_24h:>7.2f}"
            f" {s.technical_indicators.rsi:>6.1f}"
            f" {s.technical_indicators.macd:>8}"
            f"  {'yes' if s.provenance.is_live_data else 'no':<5}"
            f" {s.provenance.source}"
        )

    feed = await news.get_feed()
    status = feed.data.api_status
    print("-"*78)
    print(f"  News: {feed.meta.total_articles} articles | {status.status} via {status.source}")
    print(f"  {status.message}")
    print("="*78 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
