"""Pytest configuration and shared stubs."""
import sys
import time
from pathlib import Path

# Ensure project root is importable regardless of where pytest is invoked
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from catalog.fallback import build_default_catalog
from common.models import MailConfig
from ingest.base import BaseQuoteSource


class StubQuoteSource(BaseQuoteSource):
    """Quote source returning a canned delta, raising, or sleeping past a deadline."""
    name = "Stub"

    def __init__(self, result=None, exc=None, delay=0.0):
        super().__init__()
        self.result = result if result is not None else {}
        self.exc = exc
        self.delay = delay
        self.calls = []

    def fetch_quote(self, symbol: str) -> dict:
        self.calls.append(symbol)
        if self.delay:
            time.sleep(self.delay)
        if self.exc:
            raise self.exc
        return self.result


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def mail_config():
    return MailConfig(
        sender_email="no-reply@herald.test",
        tenant_id="tenant-123",
        client_id="client-456",
        client_secret="s3cret",
        public_app_url="https://herald.test",
    )
