"""Binance public API quote source (no API key required)."""
import requests

from config.settings import BINANCE_BASE_URL
from ingest.base import BaseQuoteSource, QuoteSourceError, parse_positive_decimal

TICKER_PRICE_PATH = "/api/v3/ticker/price"


class BinanceQuoteSource(BaseQuoteSource):
    name = "Binance"

    def __init__(self, timeout: float = 10.0, base_url: str = BINANCE_BASE_URL):
        super().__init__(timeout)
        self.url = base_url.rstrip("/") + TICKER_PRICE_PATH

    def fetch_quote(self, symbol: str) -> dict:
        self.logger.info(f"Fetching {symbol} price from Binance...")
        try:
            resp = requests.get(self.url, params={"symbol": symbol.upper()}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise QuoteSourceError(f"Binance request failed for {symbol}: {e}") from e
        except ValueError as e:
            raise QuoteSourceError(f"Binance returned a non-JSON body for {symbol}") from e
        if not isinstance(data, dict):
            raise QuoteSourceError(f"Unexpected Binance payload for {symbol}: {type(data).__name__}")

        price = parse_positive_decimal(data.get("price"))
        self.logger.info(f"Got {symbol} = {price}")
        return {"current_price": price}
