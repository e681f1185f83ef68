"""
Fallback Catalog — static, versioned market/news data served whenever live
upstream data is unavailable.

The catalog is built once at startup (``build_default_catalog``) and handed to
the services; nothing mutates it afterwards. Every snapshot is internally
consistent: supply zones sit above ``current_price``, demand zones below, and
prediction targets agree with their direction.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Mapping

from common.models import (
    MarketConditions, MarketSnapshot, NewsArticle, Prediction, Predictions,
    Provenance, SupplyDemandZones, TechnicalIndicators, TickerEntry, Zone,
)

CATALOG_VERSION = "2025.08"
CATALOG_AS_OF = datetime(2025, 8, 1, tzinfo=timezone.utc)


def catalog_source(version: str) -> str:
    return f"Fallback Catalog {version}"


CATALOG_SOURCE = catalog_source(CATALOG_VERSION)


class UnknownSymbolError(KeyError):
    """Symbol has no catalog entry, so there is nothing to degrade to."""


def resolve_symbol(symbol_spec: str) -> str:
    """'btc', 'BTC-USD', 'btc/usdt' and 'BTCUSDT' all resolve to 'BTCUSDT'."""
    s = "".join(ch for ch in symbol_spec.upper() if ch.isalnum())
    for quote in ("USDT", "USD"):
        if s.endswith(quote) and len(s) > len(quote):
            s = s[: -len(quote)]
            break
    return f"{s}USDT"


@dataclass(frozen=True)
class NewsTemplate:
    """A catalog headline; its timestamp is fixed relative to request time."""
    id: str
    headline: str
    summary: str
    source: str
    age: timedelta
    category: str
    sentiment: str

    def materialize(self, now: datetime) -> NewsArticle:
        return NewsArticle(
            id=self.id, headline=self.headline, summary=self.summary,
            source=self.source, published_at=now - self.age,
            category=self.category, sentiment=self.sentiment, is_live=False,
        )


class FallbackCatalog:
    """Read-only registry of fallback snapshots, headlines and ticker entries."""

    def __init__(self, snapshots: Mapping[str, MarketSnapshot],
                 news: tuple[NewsTemplate, ...], ticker: tuple[TickerEntry, ...],
                 version: str = CATALOG_VERSION):
        self.version = version
        self._snapshots = MappingProxyType({
            symbol: self._stamp(snapshot) for symbol, snapshot in snapshots.items()
        })
        self._news = tuple(news)
        self._ticker = tuple(ticker)

    @property
    def source_name(self) -> str:
        return catalog_source(self.version)

    def _stamp(self, snapshot: MarketSnapshot) -> MarketSnapshot:
        # snapshots always name the catalog that serves them
        if snapshot.provenance.source == self.source_name:
            return snapshot
        provenance = snapshot.provenance.model_copy(update={"source": self.source_name})
        return snapshot.model_copy(update={"provenance": provenance})

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self._snapshots)

    def snapshot(self, symbol: str) -> MarketSnapshot:
        try:
            return self._snapshots[symbol]
        except KeyError:
            raise UnknownSymbolError(symbol) from None

    def news(self, now: datetime) -> list[NewsArticle]:
        return [t.materialize(now) for t in self._news]

    def market_ticker(self) -> list[TickerEntry]:
        return list(self._ticker)


def rebase(snapshot: MarketSnapshot, price: float) -> MarketSnapshot:
    """Move every price-derived level of *snapshot* to *price*.

    Zones, EMAs and prediction targets keep their distance from the price in
    percent, so supply stays above and demand below the new price. Nothing
    else changes, provenance included.
    """
    ratio = price / snapshot.current_price
    if ratio == 1:
        return snapshot

    def level(value: float) -> float:
        return round(value * ratio, 2 if price >= 1 else 8)

    zones = snapshot.supply_demand_zones
    ti = snapshot.technical_indicators
    predictions = snapshot.predictions
    return snapshot.model_copy(update={
        "current_price": price,
        "technical_indicators": ti.model_copy(update={"ema20": level(ti.ema20), "ema50": level(ti.ema50)}),
        "supply_demand_zones": zones.model_copy(update={
            "supply_zones": tuple(z.model_copy(update={"level": level(z.level)}) for z in zones.supply_zones),
            "demand_zones": tuple(z.model_copy(update={"level": level(z.level)}) for z in zones.demand_zones),
        }),
        "predictions": predictions.model_copy(update={
            horizon: p.model_copy(update={"target_price": level(p.target_price)})
            for horizon, p in (("hourly", predictions.hourly), ("daily", predictions.daily),
                               ("weekly", predictions.weekly))
        }),
    })


# ── Default content ───────────────────────────────────────────────────────────

def _zone(price: float, pct: float, strength: str, confidence: float,
          source: str = "historical") -> Zone:
    return Zone(level=round(price * (1 + pct / 100), 2), strength=strength,
                confidence=confidence, source=source)


def _snapshot(symbol: str, price: float, change: float, volume: float,
              market_cap: float, rsi: float) -> MarketSnapshot:
    trend = "bullish" if change > 0.5 else "bearish" if change < -0.5 else "neutral"
    return MarketSnapshot(
        symbol=symbol,
        current_price=price,
        price_change_24h=change,
        volume_24h=volume,
        market_cap=market_cap,
        technical_indicators=TechnicalIndicators(
            rsi=rsi,
            macd={"bullish": "BULLISH", "bearish": "BEARISH"}.get(trend, "NEUTRAL"),
            ema20=round(price * 0.985, 2),
            ema50=round(price * 0.962, 2),
            trend=trend,
        ),
        supply_demand_zones=SupplyDemandZones(
            supply_zones=(
                _zone(price, 1.2, "Weak", 62, "orderbook"),
                _zone(price, 2.8, "Medium", 74),
                _zone(price, 5.5, "Strong", 86),
            ),
            demand_zones=(
                _zone(price, -1.1, "Weak", 60, "orderbook"),
                _zone(price, -2.9, "Medium", 72),
                _zone(price, -6.0, "Strong", 88),
            ),
        ),
        market_conditions=MarketConditions(
            volatility="Medium" if abs(change) > 2 else "Low",
            volume="Normal",
            price_position="Mid Range",
            sentiment={"bullish": "Bullish", "bearish": "Bearish"}.get(trend, "Neutral"),
        ),
        predictions=Predictions(
            hourly=Prediction(direction="UP", confidence=72,
                              target_price=round(price * 1.004, 2), timeframe="1H"),
            daily=Prediction(direction="UP", confidence=66,
                             target_price=round(price * 1.018, 2), timeframe="24H"),
            weekly=Prediction(direction="SIDEWAYS", confidence=58,
                              target_price=round(price * 1.002, 2), timeframe="7D"),
        ),
        provenance=Provenance(is_live_data=False, source=CATALOG_SOURCE,
                              calculated_at=CATALOG_AS_OF),
    )


DEFAULT_NEWS = (
    NewsTemplate("fallback-1", "Bitcoin Holds Above Key Support as Spot ETF Inflows Continue",
                 "Spot bitcoin ETFs logged another week of net inflows while BTC consolidated "
                 "above its 50-day moving average.",
                 "CoinDesk", timedelta(minutes=35), "Market News", "Bullish"),
    NewsTemplate("fallback-2", "Ethereum Layer 2 Activity Reaches Record Transaction Count",
                 "Rollup networks processed more transactions than Ethereum mainnet for the "
                 "fourth consecutive month.",
                 "The Block", timedelta(hours=1, minutes=20), "Technology", "Bullish"),
    NewsTemplate("fallback-3", "Regulators Outline Stablecoin Reserve Requirements",
                 "A new draft framework sets reserve and audit rules for dollar-backed "
                 "stablecoin issuers.",
                 "Reuters", timedelta(hours=2, minutes=5), "Regulation", "Neutral"),
    NewsTemplate("fallback-4", "DeFi Lending Rates Drop as Stablecoin Supply Expands",
                 "Borrowing costs on major lending protocols fell as on-chain stablecoin "
                 "liquidity grew.",
                 "Decrypt", timedelta(hours=3, minutes=40), "DeFi", "Neutral"),
    NewsTemplate("fallback-5", "Corporate Treasuries Add to Bitcoin Holdings",
                 "Several listed companies disclosed additional BTC purchases in quarterly "
                 "filings.",
                 "Bloomberg", timedelta(hours=5), "Institutional", "Bullish"),
    NewsTemplate("fallback-6", "Altcoins Slide as Traders Take Profits After Weekly Rally",
                 "Mid-cap tokens gave back part of the week's gains amid lower spot volumes.",
                 "CoinTelegraph", timedelta(hours=7, minutes=15), "Market News", "Bearish"),
)

DEFAULT_TICKER = (
    TickerEntry(symbol="BTC", name="Bitcoin", price=105000.0, change=1.24),
    TickerEntry(symbol="ETH", name="Ethereum", price=2650.0, change=2.05),
    TickerEntry(symbol="USDT", name="Tether", price=1.0, change=0.01),
    TickerEntry(symbol="XRP", name="XRP", price=2.95, change=-0.84),
    TickerEntry(symbol="BNB", name="BNB", price=760.0, change=0.42),
    TickerEntry(symbol="SOL", name="Solana", price=165.0, change=3.10),
    TickerEntry(symbol="USDC", name="USDC", price=1.0, change=0.0),
    TickerEntry(symbol="DOGE", name="Dogecoin", price=0.21, change=-1.35),
)


def build_default_catalog(version: str = CATALOG_VERSION) -> FallbackCatalog:
    snapshots = {
        "BTCUSDT": _snapshot("BTCUSDT", 105000.0, 1.24, 28_500_000_000, 2_085_000_000_000, 58.4),
        "ETHUSDT": _snapshot("ETHUSDT", 2650.0, 2.05, 15_500_000_000, 318_000_000_000, 61.2),
    }
    return FallbackCatalog(snapshots, DEFAULT_NEWS, DEFAULT_TICKER, version)
