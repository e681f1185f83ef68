"""Degrading fetch orchestrator for the crypto news feed."""
import asyncio
import re
from datetime import datetime, timezone

from catalog.fallback import FallbackCatalog
from common.logger import get_logger
from common.models import ApiEnvelope, ApiStatus, EnvelopeMeta, NewsArticle, NewsFeed
from config.settings import NEWS_TIMEOUT_SECONDS
from delivery.outcome import Live, attempt_with_deadline
from ingest.alpha_vantage import AlphaVantageNewsSource
from ingest.coingecko import CoinGeckoTickerSource

logger = get_logger("news")

MAX_FEED_ARTICLES = 12


def headline_signature(headline: str) -> str:
    """First five significant words, order-insensitive."""
    significant = [w for w in re.sub(r"[^\w\s]", "", headline.lower()).split() if len(w) > 3]
    return " ".join(sorted(significant[:5]))


def deduplicate(articles: list[NewsArticle]) -> list[NewsArticle]:
    seen = set()
    unique = []
    for article in articles:
        signature = headline_signature(article.headline)
        if signature in seen:
            continue
        seen.add(signature)
        unique.append(article)
    return unique


class NewsService:
    def __init__(self, catalog: FallbackCatalog, news_source: AlphaVantageNewsSource,
                 ticker_source: CoinGeckoTickerSource, timeout: float = NEWS_TIMEOUT_SECONDS):
        self.catalog = catalog
        self.news_source = news_source
        self.ticker_source = ticker_source
        self.timeout = timeout

    async def get_feed(self) -> ApiEnvelope[NewsFeed]:
        now = datetime.now(timezone.utc)
        news, ticker = await asyncio.gather(
            attempt_with_deadline(self.news_source.fetch_news, self.catalog.news(now),
                                  timeout=self.timeout, source=self.news_source.name, logger=logger),
            attempt_with_deadline(self.ticker_source.fetch_ticker, self.catalog.market_ticker(),
                                  timeout=self.timeout, source=self.ticker_source.name, logger=logger),
        )

        if isinstance(news, Live):
            articles = deduplicate(news.value)[:MAX_FEED_ARTICLES]
            status = ApiStatus(source=news.source, status="Active",
                               message=f"Live news feed active from {news.source}")
        else:
            articles = news.value
            status = ApiStatus(source=self.catalog.source_name, status="Fallback",
                               message=f"{news.reason} - using catalog headlines",
                               is_rate_limit=news.rate_limited)

        sources = []
        for outcome in (news, ticker):
            name = outcome.source if isinstance(outcome, Live) else self.catalog.source_name
            if name not in sources:
                sources.append(name)

        logger.info(f"News feed: {len(articles)} articles, live={news.is_live}, ticker live={ticker.is_live}")
        return ApiEnvelope[NewsFeed](
            success=True,
            data=NewsFeed(articles=articles, market_ticker=ticker.value, api_status=status),
            meta=EnvelopeMeta(
                total_articles=len(articles),
                is_live_data=news.is_live,
                sources=sources,
                last_updated=now,
            ),
        )
