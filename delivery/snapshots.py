"""Degrading fetch orchestrator for market snapshots."""
from datetime import datetime, timezone

from catalog.fallback import FallbackCatalog, rebase, resolve_symbol
from common.logger import get_logger
from common.models import ApiEnvelope, EnvelopeMeta, MarketSnapshot
from config.settings import QUOTE_TIMEOUT_SECONDS
from delivery.normalizer import normalize
from delivery.outcome import Live, attempt_with_deadline
from ingest.base import BaseQuoteSource

logger = get_logger("snapshots")


class SnapshotService:
    """Serve a MarketSnapshot for a catalog symbol, live when possible.

    The catalog entry is always the starting point; one quote-source call is
    attempted under ``timeout`` and merged in on success. Nothing here raises
    for a known symbol: degraded answers differ only in provenance and meta.
    """

    def __init__(self, catalog: FallbackCatalog, quote_source: BaseQuoteSource,
                 timeout: float = QUOTE_TIMEOUT_SECONDS):
        self.catalog = catalog
        self.quote_source = quote_source
        self.timeout = timeout

    async def get_snapshot(self, symbol_spec: str) -> ApiEnvelope[MarketSnapshot]:
        symbol = resolve_symbol(symbol_spec)
        fallback = self.catalog.snapshot(symbol)

        outcome = await attempt_with_deadline(
            lambda: self.quote_source.fetch_quote(symbol),
            None,
            timeout=self.timeout,
            source=self.quote_source.name,
            logger=logger,
        )
        now = datetime.now(timezone.utc)
        snapshot = fallback
        if isinstance(outcome, Live):
            merged = normalize(fallback, outcome.value, source=outcome.source, calculated_at=now)
            if merged.provenance.is_live_data:
                # re-derive zones, EMAs and targets around the accepted live price
                snapshot = normalize(rebase(fallback, merged.current_price), outcome.value,
                                     source=outcome.source, calculated_at=now)
            else:
                logger.warning(f"{symbol}: {outcome.source} answered without a usable price, serving fallback")
        logger.info(f"{symbol} snapshot: price={snapshot.current_price} "
                    f"live={snapshot.provenance.is_live_data} source={snapshot.provenance.source}")

        return ApiEnvelope[MarketSnapshot](
            success=True,
            data=snapshot,
            meta=EnvelopeMeta(
                count=1,
                is_live_data=snapshot.provenance.is_live_data,
                sources=[snapshot.provenance.source],
                last_updated=now,
            ),
        )
