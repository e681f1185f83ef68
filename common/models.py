"""Core Pydantic models for CRYPTO HERALD."""
from datetime import datetime
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import settings

T = TypeVar("T")

ZoneStrength = Literal["Strong", "Medium", "Weak"]
ZoneSource = Literal["historical", "orderbook"]
MacdSignal = Literal["BULLISH", "BEARISH", "NEUTRAL"]
TrendLabel = Literal["bullish", "bearish", "neutral"]
Sentiment = Literal["Bullish", "Bearish", "Neutral"]


class WireModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnapshotModel(WireModel):
    """Immutable, NaN-free building block of a market snapshot."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


# ── Market snapshot ───────────────────────────────────────────────────────────

class Zone(SnapshotModel):
    level: float = Field(gt=0)
    strength: ZoneStrength
    confidence: float = Field(ge=0, le=100)
    source: ZoneSource


class SupplyDemandZones(SnapshotModel):
    supply_zones: tuple[Zone, ...]
    demand_zones: tuple[Zone, ...]


class TechnicalIndicators(SnapshotModel):
    rsi: float = Field(ge=0, le=100)
    macd: MacdSignal
    ema20: float = Field(gt=0)
    ema50: float = Field(gt=0)
    trend: TrendLabel


class MarketConditions(SnapshotModel):
    volatility: Literal["Low", "Medium", "High"]
    volume: Literal["Low", "Normal", "High"]
    price_position: Literal["Near Low", "Mid Range", "Near High"]
    sentiment: Sentiment


class Prediction(SnapshotModel):
    direction: Literal["UP", "DOWN", "SIDEWAYS"]
    confidence: float = Field(ge=0, le=100)
    target_price: float = Field(gt=0)
    timeframe: str


class Predictions(SnapshotModel):
    hourly: Prediction
    daily: Prediction
    weekly: Prediction


class Provenance(SnapshotModel):
    is_live_data: bool
    source: str
    calculated_at: datetime


class MarketSnapshot(SnapshotModel):
    symbol: str
    current_price: float = Field(gt=0)
    price_change_24h: float = Field(ge=-100, alias="priceChange24h")
    volume_24h: float = Field(ge=0, alias="volume24h")
    market_cap: float = Field(ge=0)
    technical_indicators: TechnicalIndicators
    supply_demand_zones: SupplyDemandZones
    market_conditions: MarketConditions
    predictions: Predictions
    provenance: Provenance


# ── News feed ─────────────────────────────────────────────────────────────────

class NewsArticle(SnapshotModel):
    id: str
    headline: str
    summary: str
    source: str
    published_at: datetime
    category: str
    sentiment: Sentiment
    is_live: bool
    url: Optional[str] = None


class TickerEntry(SnapshotModel):
    symbol: str
    name: str
    price: float = Field(gt=0)
    change: float


class ApiStatus(WireModel):
    source: str
    status: Literal["Active", "Fallback", "Error"]
    message: str
    is_rate_limit: bool = False


class NewsFeed(WireModel):
    articles: list[NewsArticle]
    market_ticker: list[TickerEntry]
    api_status: ApiStatus


# ── Envelope ──────────────────────────────────────────────────────────────────

class EnvelopeMeta(WireModel):
    is_live_data: bool
    sources: list[str]
    last_updated: datetime
    count: Optional[int] = None
    total_articles: Optional[int] = None


class ApiEnvelope(WireModel, Generic[T]):
    success: bool = True
    data: T
    meta: EnvelopeMeta


# ── Email ─────────────────────────────────────────────────────────────────────

class EmailDispatchResult(WireModel):
    success: bool
    timestamp: Optional[datetime] = None
    error: Optional[str] = None
    error_type: Optional[Literal["configuration", "recipient", "transport"]] = None


class MailConfig(WireModel):
    model_config = ConfigDict(frozen=True)

    sender_email: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    public_app_url: str = ""

    @classmethod
    def from_env(cls) -> "MailConfig":
        return cls(
            sender_email=settings.SENDER_EMAIL,
            tenant_id=settings.AZURE_TENANT_ID,
            client_id=settings.AZURE_CLIENT_ID,
            client_secret=settings.AZURE_CLIENT_SECRET,
            public_app_url=settings.PUBLIC_APP_URL,
        )

    def readiness(self) -> dict[str, bool]:
        """Per-field readiness map keyed by wire name; never exposes values."""
        return {
            to_camel(name): bool(str(getattr(self, name)).strip())
            for name in type(self).model_fields
        }

    def missing_fields(self) -> list[str]:
        return [name for name, ok in self.readiness().items() if not ok]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()
