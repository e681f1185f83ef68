"""Live-or-fallback outcome of a single bounded upstream attempt."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from ingest.base import RateLimitedError

T = TypeVar("T")


@dataclass(frozen=True)
class Live(Generic[T]):
    value: T
    source: str

    is_live = True


@dataclass(frozen=True)
class Fallback(Generic[T]):
    value: T
    reason: str
    rate_limited: bool = False

    is_live = False


Outcome = Union[Live[T], Fallback[T]]


async def attempt_with_deadline(call: Callable[[], T], fallback: T, *, timeout: float,
                                source: str, logger: logging.Logger) -> Outcome:
    """Run the blocking *call* in a worker thread under a hard deadline.

    At most one attempt is made. Any failure, including a late answer, yields
    ``Fallback(fallback, reason)``; a result arriving after the deadline is dropped.
    """
    rate_limited = False
    try:
        value = await asyncio.wait_for(asyncio.to_thread(call), timeout=timeout)
    except asyncio.TimeoutError:
        reason = f"{source} did not answer within {timeout:g}s"
    except RateLimitedError as e:
        reason, rate_limited = str(e), True
    except Exception as e:
        reason = f"{source} failed: {e}"
    else:
        return Live(value, source)

    logger.warning(f"Degrading to fallback data: {reason}")
    return Fallback(fallback, reason, rate_limited)
