"""Tests for the degrading snapshot orchestrator."""
import logging

import pytest

from catalog.fallback import UnknownSymbolError, build_default_catalog
from delivery.outcome import Fallback, Live, attempt_with_deadline
from delivery.snapshots import SnapshotService
from ingest.base import QuoteSourceError, RateLimitedError
from tests.conftest import StubQuoteSource

logger = logging.getLogger("test")


def shape(snapshot):
    """Key tree of the wire form, values dropped."""
    def keys(obj):
        if isinstance(obj, dict):
            return {k: keys(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [keys(v) for v in obj]
        return None
    return keys(snapshot.model_dump(mode="json", by_alias=True))


class TestAttemptWithDeadline:
    @pytest.mark.asyncio
    async def test_live(self):
        outcome = await attempt_with_deadline(lambda: 42, 0, timeout=1, source="S", logger=logger)
        assert isinstance(outcome, Live)
        assert outcome.value == 42 and outcome.source == "S" and outcome.is_live

    @pytest.mark.asyncio
    async def test_failure_becomes_fallback(self):
        def boom():
            raise QuoteSourceError("HTTP 503")
        outcome = await attempt_with_deadline(boom, "fb", timeout=1, source="S", logger=logger)
        assert isinstance(outcome, Fallback)
        assert outcome.value == "fb"
        assert "HTTP 503" in outcome.reason
        assert not outcome.rate_limited

    @pytest.mark.asyncio
    async def test_rate_limit_flagged(self):
        def limited():
            raise RateLimitedError("25 requests per day")
        outcome = await attempt_with_deadline(limited, [], timeout=1, source="S", logger=logger)
        assert isinstance(outcome, Fallback) and outcome.rate_limited

    @pytest.mark.asyncio
    async def test_deadline(self):
        slow = StubQuoteSource(result={"current_price": 1.0}, delay=0.3)
        outcome = await attempt_with_deadline(lambda: slow.fetch_quote("X"), None,
                                              timeout=0.05, source="Slow", logger=logger)
        assert isinstance(outcome, Fallback)
        assert "did not answer within 0.05s" in outcome.reason


class TestSnapshotService:
    def setup_method(self):
        self.catalog = build_default_catalog()
        self.fallback = self.catalog.snapshot("BTCUSDT")

    @pytest.mark.asyncio
    async def test_live_price_merged(self):
        src = StubQuoteSource(result={"current_price": 45000.5})
        env = await SnapshotService(self.catalog, src, timeout=1).get_snapshot("btc")
        snap = env.data
        assert src.calls == ["BTCUSDT"]
        assert snap.current_price == 45000.5
        assert snap.provenance.is_live_data is True
        assert snap.provenance.source == "Stub"
        assert env.meta.is_live_data is True
        assert env.meta.sources == ["Stub"]
        assert env.meta.count == 1

    @pytest.mark.asyncio
    async def test_live_price_moves_zones_and_targets(self):
        src = StubQuoteSource(result={"current_price": 45000.5})
        snap = (await SnapshotService(self.catalog, src, timeout=1).get_snapshot("btc")).data
        price = snap.current_price
        assert all(z.level > price for z in snap.supply_demand_zones.supply_zones)
        assert all(z.level < price for z in snap.supply_demand_zones.demand_zones)
        assert snap.technical_indicators.ema50 < snap.technical_indicators.ema20 < price
        assert snap.predictions.hourly.target_price > price
        assert snap.predictions.daily.target_price > price

    @pytest.mark.asyncio
    async def test_live_fields_beyond_price_survive_rebase(self):
        src = StubQuoteSource(result={"current_price": 45000.5,
                                      "technical_indicators": {"ema20": 44000.0, "rsi": 35.0}})
        snap = (await SnapshotService(self.catalog, src, timeout=1).get_snapshot("btc")).data
        assert snap.technical_indicators.ema20 == 44000.0
        assert snap.technical_indicators.rsi == 35.0

    @pytest.mark.asyncio
    async def test_upstream_error_serves_fallback(self):
        src = StubQuoteSource(exc=QuoteSourceError("HTTP 503"))
        env = await SnapshotService(self.catalog, src, timeout=1).get_snapshot("BTCUSDT")
        assert env.success is True
        assert env.data == self.fallback
        assert env.meta.is_live_data is False

    @pytest.mark.asyncio
    async def test_deadline_serves_exact_fallback(self):
        src = StubQuoteSource(result={"current_price": 1.0}, delay=0.3)
        env = await SnapshotService(self.catalog, src, timeout=0.05).get_snapshot("BTCUSDT")
        assert env.data == self.fallback
        assert env.data.current_price == self.fallback.current_price

    @pytest.mark.asyncio
    async def test_unusable_price_serves_fallback(self):
        src = StubQuoteSource(result={"current_price": float("nan")})
        env = await SnapshotService(self.catalog, src, timeout=1).get_snapshot("BTCUSDT")
        assert env.data == self.fallback

    @pytest.mark.asyncio
    async def test_shape_identical_live_and_fallback(self):
        live = await SnapshotService(self.catalog, StubQuoteSource(result={"current_price": 45000.5}),
                                     timeout=1).get_snapshot("BTCUSDT")
        dead = await SnapshotService(self.catalog, StubQuoteSource(exc=RuntimeError("down")),
                                     timeout=1).get_snapshot("BTCUSDT")
        assert shape(live.data) == shape(dead.data)

    @pytest.mark.asyncio
    async def test_unknown_symbol_raises_without_io(self):
        src = StubQuoteSource(result={"current_price": 1.0})
        with pytest.raises(UnknownSymbolError):
            await SnapshotService(self.catalog, src, timeout=1).get_snapshot("DOGE")
        assert src.calls == []

    @pytest.mark.asyncio
    async def test_catalog_untouched_after_live_merge(self):
        src = StubQuoteSource(result={"current_price": 45000.5})
        await SnapshotService(self.catalog, src, timeout=1).get_snapshot("BTCUSDT")
        assert self.catalog.snapshot("BTCUSDT").current_price == 105000.0
