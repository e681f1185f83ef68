"""CRYPTO HERALD — FastAPI REST API."""
import asyncio
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.fallback import FallbackCatalog, UnknownSymbolError, build_default_catalog
from common.logger import get_logger, new_request_id
from common.models import ApiEnvelope, MailConfig, MarketSnapshot, NewsFeed
from config.settings import (
    CORS_ORIGINS, NEWS_TIMEOUT_SECONDS, QUOTE_TIMEOUT_SECONDS, SNAPSHOT_SYMBOLS,
    VERIFICATION_EXPIRY_HOURS,
)
from delivery.news import NewsService
from delivery.snapshots import SnapshotService
from ingest.alpha_vantage import AlphaVantageNewsSource
from ingest.base import BaseQuoteSource
from ingest.binance import BinanceQuoteSource
from ingest.coingecko import CoinGeckoTickerSource
from mail.dispatcher import dispatch, is_plausible_address
from mail.templates import VERIFY_SUBJECT, build_verification_email, build_verification_email_text
from mail.transport import EmailMessage, GraphMailTransport

logger = get_logger("api")


def create_app(catalog: FallbackCatalog | None = None,
               quote_source: BaseQuoteSource | None = None,
               news_source: AlphaVantageNewsSource | None = None,
               ticker_source: CoinGeckoTickerSource | None = None,
               mail_config: MailConfig | None = None,
               mail_transport=None,
               quote_timeout: float = QUOTE_TIMEOUT_SECONDS,
               news_timeout: float = NEWS_TIMEOUT_SECONDS) -> FastAPI:
    """Build the app. Collaborators default to the real upstream clients."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cat = catalog if catalog is not None else build_default_catalog()
        config = mail_config if mail_config is not None else MailConfig.from_env()
        app.state.catalog = cat
        app.state.snapshots = SnapshotService(cat, quote_source or BinanceQuoteSource(timeout=quote_timeout),
                                              timeout=quote_timeout)
        app.state.news = NewsService(cat, news_source or AlphaVantageNewsSource(timeout=news_timeout),
                                     ticker_source or CoinGeckoTickerSource(timeout=news_timeout),
                                     timeout=news_timeout)
        app.state.mail_config = config
        app.state.mail_transport = mail_transport if mail_transport is not None else GraphMailTransport(config)
        logger.info(f"Fallback catalog {cat.version} loaded: {', '.join(cat.symbols)}")
        if not config.is_complete:
            logger.warning(f"Mail configuration incomplete (missing {', '.join(config.missing_fields())}); "
                           "email endpoints will answer 500 until it is set")
        yield

    app = FastAPI(title="CRYPTO HERALD API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware,
        allow_origins=CORS_ORIGINS, allow_methods=["GET"], allow_headers=["*"])

    # Mount routes at root (for nginx) and at /api (for direct browser access)
    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app


router = APIRouter()


@router.get("/health")
def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── Market data ───────────────────────────────────────────────────────────────

@router.get("/btc-analysis", response_model=ApiEnvelope[MarketSnapshot], response_model_exclude_none=True)
async def btc_analysis(request: Request):
    new_request_id()
    return await request.app.state.snapshots.get_snapshot(SNAPSHOT_SYMBOLS["btc"])


@router.get("/eth-analysis", response_model=ApiEnvelope[MarketSnapshot], response_model_exclude_none=True)
async def eth_analysis(request: Request):
    new_request_id()
    return await request.app.state.snapshots.get_snapshot(SNAPSHOT_SYMBOLS["eth"])


@router.get("/market-snapshot/{symbol}", response_model=ApiEnvelope[MarketSnapshot],
            response_model_exclude_none=True)
async def market_snapshot(symbol: str, request: Request):
    new_request_id()
    try:
        return await request.app.state.snapshots.get_snapshot(symbol)
    except UnknownSymbolError:
        raise HTTPException(404, f"No market data available for {symbol.upper()}")


@router.get("/crypto-herald", response_model=ApiEnvelope[NewsFeed], response_model_exclude_none=True)
async def crypto_herald(request: Request):
    new_request_id()
    return await request.app.state.news.get_feed()


# ── Email ─────────────────────────────────────────────────────────────────────

@router.get("/test-email")
async def test_email(request: Request, to: str | None = Query(default=None),
                     format: Literal["html", "text"] = Query(default="html")):
    """Send a verification email to *to*, reporting delivery failures as 500.

    ``format=text`` sends the plain-text body for clients that block HTML.
    """
    new_request_id()
    if not is_plausible_address(to):
        raise HTTPException(400, "Query parameter 'to' must be an email address")

    config: MailConfig = request.app.state.mail_config
    if not config.is_complete:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": f"Mail configuration incomplete: missing {', '.join(config.missing_fields())}",
            "config": config.readiness(),
        })

    token = secrets.token_urlsafe(32)
    verification_url = f"{config.public_app_url.rstrip('/')}/verify-email?token={token}"
    if format == "text":
        body = build_verification_email_text(to, verification_url, VERIFICATION_EXPIRY_HOURS)
    else:
        body = build_verification_email(to, verification_url, VERIFICATION_EXPIRY_HOURS)
    message = EmailMessage(to=to, subject=VERIFY_SUBJECT, body=body,
                           content_type="Text" if format == "text" else "HTML")
    result = await asyncio.to_thread(dispatch, config, message, request.app.state.mail_transport)
    if not result.success:
        return JSONResponse(status_code=500, content={"success": False, "error": result.error})

    return {
        "success": True,
        "message": f"Verification email sent to {to}",
        "to": to,
        "from": config.sender_email,
        "timestamp": result.timestamp.isoformat(),
    }


app = create_app()
