"""CoinGecko market ticker source (top coins by market cap)."""
import numpy as np
import requests

from common.models import TickerEntry
from config.settings import COINGECKO_API_KEY, COINGECKO_BASE_URL
from ingest.base import BaseSource, QuoteSourceError, parse_positive_decimal

MARKETS_PATH = "/api/v3/coins/markets"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and bool(np.isfinite(value))


class CoinGeckoTickerSource(BaseSource):
    name = "CoinGecko"

    def __init__(self, timeout: float = 5.0, base_url: str = COINGECKO_BASE_URL,
                 api_key: str = COINGECKO_API_KEY):
        super().__init__(timeout)
        self.url = base_url.rstrip("/") + MARKETS_PATH
        self.api_key = api_key

    def fetch_ticker(self, per_page: int = 8) -> list[TickerEntry]:
        params = {"vs_currency": "usd", "order": "market_cap_desc",
                  "per_page": per_page, "page": 1, "sparkline": "false"}
        if self.api_key:
            params["x_cg_demo_api_key"] = self.api_key
        try:
            resp = requests.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise QuoteSourceError(f"CoinGecko request failed: {e}") from e
        except ValueError as e:
            raise QuoteSourceError("CoinGecko returned a non-JSON body") from e
        if not isinstance(data, list) or not data:
            raise QuoteSourceError("Empty CoinGecko markets response")

        entries = []
        for coin in data:
            if not isinstance(coin, dict):
                continue
            try:
                price = parse_positive_decimal(coin.get("current_price"), "current_price")
            except QuoteSourceError:
                self.logger.warning(f"Skipping {coin.get('symbol')}: bad price")
                continue
            change = coin.get("price_change_percentage_24h")
            entries.append(TickerEntry(
                symbol=str(coin.get("symbol", "")).upper(),
                name=str(coin.get("name", "")),
                price=price,
                change=round(float(change), 2) if _is_number(change) else 0.0,
            ))
        if not entries:
            raise QuoteSourceError("CoinGecko response had no usable coins")
        return entries
