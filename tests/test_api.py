"""End-to-end tests for the REST API with stubbed upstreams."""
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from api.main import create_app
from catalog.fallback import build_default_catalog
from common.models import MailConfig
from ingest.base import QuoteSourceError, RateLimitedError
from ingest.binance import BinanceQuoteSource
from mail.transport import MailTransportError
from tests.conftest import StubQuoteSource


def failing_news_sources():
    news_source = MagicMock()
    news_source.name = "Alpha Vantage"
    news_source.fetch_news.side_effect = RateLimitedError("Alpha Vantage daily rate limit reached")
    ticker_source = MagicMock()
    ticker_source.name = "CoinGecko"
    ticker_source.fetch_ticker.side_effect = QuoteSourceError("CoinGecko HTTP 429")
    return news_source, ticker_source


@pytest.fixture
def make_client(mail_config):
    clients = []

    def _make(quote_source=None, config=None, transport=None):
        news_source, ticker_source = failing_news_sources()
        app = create_app(
            catalog=build_default_catalog(),
            quote_source=quote_source or StubQuoteSource(exc=QuoteSourceError("offline")),
            news_source=news_source,
            ticker_source=ticker_source,
            mail_config=config if config is not None else mail_config,
            mail_transport=transport if transport is not None else MagicMock(),
            quote_timeout=1,
            news_timeout=1,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


class TestHealth:
    def test_health(self, make_client):
        resp = make_client().get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_routes_mounted_under_api_prefix(self, make_client):
        assert make_client().get("/api/health").status_code == 200


class TestMarketSnapshots:
    def test_btc_live_through_binance(self, make_client):
        resp_mock = MagicMock()
        resp_mock.json.return_value = {"symbol": "BTCUSDT", "price": "45000.5"}
        client = make_client(quote_source=BinanceQuoteSource(timeout=1))
        with patch("ingest.binance.requests.get", return_value=resp_mock):
            resp = client.get("/btc-analysis")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["currentPrice"] == 45000.5
        assert body["data"]["provenance"]["isLiveData"] is True
        assert body["data"]["provenance"]["source"] == "Binance"
        assert body["meta"]["isLiveData"] is True
        assert body["meta"]["sources"] == ["Binance"]

    def test_btc_degraded_on_upstream_503(self, make_client):
        resp_mock = MagicMock()
        resp_mock.raise_for_status.side_effect = requests.HTTPError("503 Service Unavailable")
        client = make_client(quote_source=BinanceQuoteSource(timeout=1))
        with patch("ingest.binance.requests.get", return_value=resp_mock):
            resp = client.get("/api/btc-analysis")
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"]["currentPrice"] == 105000.0
        assert body["data"]["provenance"]["isLiveData"] is False
        assert body["meta"]["isLiveData"] is False

    def test_wire_shape(self, make_client):
        data = make_client().get("/eth-analysis").json()["data"]
        assert data["symbol"] == "ETHUSDT"
        assert {"priceChange24h", "volume24h", "marketCap", "technicalIndicators",
                "supplyDemandZones", "marketConditions", "predictions"} <= set(data)
        assert {"supplyZones", "demandZones"} == set(data["supplyDemandZones"])
        assert set(data["predictions"]) == {"hourly", "daily", "weekly"}

    def test_same_shape_live_and_degraded(self, make_client):
        live = make_client(quote_source=StubQuoteSource(result={"current_price": 2700.0})).get("/eth-analysis")
        dead = make_client().get("/eth-analysis")
        assert set(live.json()["data"]) == set(dead.json()["data"])

    def test_market_snapshot_by_symbol(self, make_client):
        resp = make_client().get("/market-snapshot/eth")
        assert resp.status_code == 200
        assert resp.json()["data"]["symbol"] == "ETHUSDT"

    def test_unknown_symbol_404(self, make_client):
        src = StubQuoteSource(result={"current_price": 1.0})
        resp = make_client(quote_source=src).get("/market-snapshot/doge")
        assert resp.status_code == 404
        assert src.calls == []


class TestCryptoHerald:
    def test_fallback_feed(self, make_client):
        resp = make_client().get("/crypto-herald")
        assert resp.status_code == 200
        body = resp.json()
        status = body["data"]["apiStatus"]
        assert status["status"] == "Fallback"
        assert status["isRateLimit"] is True
        assert body["data"]["articles"]
        assert all(a["isLive"] is False for a in body["data"]["articles"])
        assert body["data"]["marketTicker"][0]["symbol"] == "BTC"
        assert body["meta"]["totalArticles"] == len(body["data"]["articles"])
        assert body["meta"]["isLiveData"] is False


class TestTestEmail:
    def test_missing_recipient_400(self, make_client):
        assert make_client().get("/test-email").status_code == 400
        assert make_client().get("/test-email", params={"to": "not-an-address"}).status_code == 400

    def test_incomplete_config_500_with_readiness(self, make_client):
        transport = MagicMock()
        client = make_client(config=MailConfig(sender_email="no-reply@herald.test"), transport=transport)
        resp = client.get("/test-email", params={"to": "user@example.com"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["config"]["senderEmail"] is True
        assert body["config"]["clientSecret"] is False
        transport.send.assert_not_called()

    def test_transport_failure_500(self, make_client):
        transport = MagicMock()
        transport.send.side_effect = MailTransportError("auth rejected")
        resp = make_client(transport=transport).get("/test-email", params={"to": "user@example.com"})
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "auth rejected"}
        assert transport.send.call_count == 1

    def test_success(self, make_client, mail_config):
        transport = MagicMock()
        resp = make_client(transport=transport).get("/test-email", params={"to": "user@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["to"] == "user@example.com"
        assert body["from"] == mail_config.sender_email
        assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None

        sent = transport.send.call_args.args[0]
        assert sent.to == "user@example.com"
        assert f'href="{mail_config.public_app_url}/verify-email?token=' in sent.body
        assert "expire in 24 hours" in sent.body

    def test_text_format_sends_plain_body(self, make_client, mail_config):
        transport = MagicMock()
        resp = make_client(transport=transport).get(
            "/test-email", params={"to": "user@example.com", "format": "text"})
        assert resp.status_code == 200
        sent = transport.send.call_args.args[0]
        assert sent.content_type == "Text"
        assert "<html" not in sent.body
        assert any(line.startswith(f"{mail_config.public_app_url}/verify-email?token=")
                   for line in sent.body.splitlines())

    def test_unknown_format_rejected(self, make_client):
        resp = make_client().get("/test-email", params={"to": "user@example.com", "format": "pdf"})
        assert resp.status_code == 422
