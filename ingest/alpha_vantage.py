"""Alpha Vantage crypto news & sentiment source."""
import re
from datetime import datetime, timezone

import pandas as pd
import requests

from common.models import NewsArticle
from config.settings import ALPHA_VANTAGE_API_KEY
from ingest.base import BaseSource, QuoteSourceError, RateLimitedError

MAX_ARTICLES = 15

_CATEGORY_KEYWORDS = [
    ("Regulation", ("regulation", "sec ", "legal", "lawsuit", "etf approval")),
    ("DeFi", ("defi", "decentralized", "staking", "yield")),
    ("Institutional", ("institution", "bank", "corporate", "treasury", "blackrock")),
    ("Technology", ("technology", "blockchain", "protocol", "upgrade", "layer 2")),
    ("Market News", ("market", "price", "trading", "rally", "sell-off")),
]


def categorize(title: str, topics: list[dict] | None = None) -> str:
    topic_names = {t.get("topic") for t in topics or [] if isinstance(t, dict)}
    if topic_names & {"technology", "blockchain"}:
        return "Technology"
    if "financial_markets" in topic_names:
        return "Market News"
    text = f" {title.lower()} "
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return "Market News"


def map_sentiment(label: str | None) -> str:
    if not label:
        return "Neutral"
    s = label.lower()
    if "bullish" in s or "positive" in s:
        return "Bullish"
    if "bearish" in s or "negative" in s:
        return "Bearish"
    return "Neutral"


def clean_source_name(name: str) -> str:
    cleaned = re.sub(r"\.com.*", "", name or "")
    cleaned = re.sub(r"\s*-\s*.*", "", cleaned).strip()
    return cleaned or "Crypto News"


def parse_published(raw: str | None, now: datetime) -> datetime:
    """Alpha Vantage stamps look like 20250801T134500. Never later than *now*."""
    if not raw:
        return now
    try:
        ts = pd.to_datetime(raw, format="%Y%m%dT%H%M%S", utc=True).to_pydatetime()
    except (ValueError, TypeError):
        return now
    return min(ts, now)


class AlphaVantageNewsSource(BaseSource):
    name = "Alpha Vantage"
    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(self, timeout: float = 10.0, api_key: str = ALPHA_VANTAGE_API_KEY):
        super().__init__(timeout)
        self.api_key = api_key

    def fetch_news(self, tickers: str = "CRYPTO:BTC,CRYPTO:ETH", limit: int = 20) -> list[NewsArticle]:
        """Fetch crypto headlines. Raises QuoteSourceError / RateLimitedError."""
        if not self.api_key:
            raise QuoteSourceError("ALPHA_VANTAGE_API_KEY not configured")
        params = {"function": "NEWS_SENTIMENT", "tickers": tickers,
                  "topics": "blockchain,technology", "limit": limit, "apikey": self.api_key}
        try:
            resp = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise QuoteSourceError(f"Alpha Vantage request failed: {e}") from e
        except ValueError as e:
            raise QuoteSourceError("Alpha Vantage returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise QuoteSourceError("Unexpected Alpha Vantage payload")

        info = str(data.get("Information") or data.get("Note") or "")
        if info:
            if "rate limit" in info.lower() or "requests per day" in info.lower():
                raise RateLimitedError(f"Alpha Vantage rate limit: {info}")
            raise QuoteSourceError(info)
        if data.get("Error Message"):
            raise QuoteSourceError(data["Error Message"])
        feed = data.get("feed") or []
        if not feed:
            raise QuoteSourceError("No articles returned from Alpha Vantage")

        now = datetime.now(timezone.utc)
        articles = []
        for i, item in enumerate(feed[:MAX_ARTICLES]):
            if not isinstance(item, dict):
                continue
            title = (item.get("title") or "").strip()
            if not title:
                continue
            summary = (item.get("summary") or "").strip()
            if len(summary) > 200:
                summary = summary[:200].rstrip() + "..."
            articles.append(NewsArticle(
                id=f"alpha-{int(now.timestamp())}-{i}",
                headline=title,
                summary=summary or "Latest cryptocurrency market developments.",
                source=clean_source_name(item.get("source", "")),
                published_at=parse_published(item.get("time_published"), now),
                category=categorize(title, item.get("topics")),
                sentiment=map_sentiment(item.get("overall_sentiment_label")),
                is_live=True,
                url=item.get("url"),
            ))
        if not articles:
            raise QuoteSourceError("Alpha Vantage feed had no usable articles")
        self.logger.info(f"Got {len(articles)} articles from Alpha Vantage")
        return articles
