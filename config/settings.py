"""Configuration loader."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Upstream deadlines (seconds)
QUOTE_TIMEOUT_SECONDS = float(os.getenv("QUOTE_TIMEOUT_SECONDS", "5"))
NEWS_TIMEOUT_SECONDS = float(os.getenv("NEWS_TIMEOUT_SECONDS", "8"))
MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", "15"))

BINANCE_BASE_URL = os.getenv("BINANCE_BASE_URL", "https://api.binance.com")
COINGECKO_BASE_URL = os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com")
COINGECKO_API_KEY = os.getenv("COINGECKO_API_KEY", "")
ALPHA_VANTAGE_API_KEY = os.getenv("ALPHA_VANTAGE_API_KEY", "")

# Office 365 / Microsoft Graph mail
SENDER_EMAIL = os.getenv("SENDER_EMAIL", "")
AZURE_TENANT_ID = os.getenv("AZURE_TENANT_ID", "")
AZURE_CLIENT_ID = os.getenv("AZURE_CLIENT_ID", "")
AZURE_CLIENT_SECRET = os.getenv("AZURE_CLIENT_SECRET", "")
PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", os.getenv("NEXT_PUBLIC_APP_URL", ""))
VERIFICATION_EXPIRY_HOURS = int(os.getenv("VERIFICATION_EXPIRY_HOURS", "24"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

SNAPSHOT_SYMBOLS = {
    "btc": "BTCUSDT",
    "eth": "ETHUSDT",
}
