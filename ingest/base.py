"""Base upstream source classes and the errors they raise."""
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from common.logger import get_logger


class QuoteSourceError(Exception):
    """Upstream unavailable: network error, bad status or unusable payload."""


class QuoteParseError(QuoteSourceError):
    """Upstream answered, but the payload failed numeric validation."""


class RateLimitedError(QuoteSourceError):
    """Upstream reported that our quota is exhausted."""


def parse_positive_decimal(raw: Any, field: str = "price") -> float:
    """Parse an untrusted stringified decimal. Zero, negatives and NaN are rejected."""
    if isinstance(raw, bool) or raw is None:
        raise QuoteParseError(f"{field} missing or not numeric: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise QuoteParseError(f"{field} is not numeric: {raw!r}") from None
    if not np.isfinite(value) or value <= 0:
        raise QuoteParseError(f"{field} out of range: {raw!r}")
    return value


class BaseSource(ABC):
    name: str = "upstream"

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self.logger = get_logger(self.__class__.__name__)


class BaseQuoteSource(BaseSource):
    @abstractmethod
    def fetch_quote(self, symbol: str) -> dict:
        """Return a partial snapshot (attribute name -> value). Raises QuoteSourceError."""
        pass
