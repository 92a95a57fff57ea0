"""Retry helpers for callers layered above the fetcher."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def retry(
    operation: Callable[[], T],
    *,
    attempts: int,
    backoff_seconds: float,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    give_up_on: tuple[type[BaseException], ...] = (),
) -> T:
    """Execute `operation`, retrying `retry_on` failures with exponential backoff.

    Exceptions matching `give_up_on` are re-raised immediately even when they
    also match `retry_on`.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    last_error: BaseException | None = None
    for attempt in range(attempts):
        try:
            return operation()
        except give_up_on:
            raise
        except retry_on as exc:
            last_error = exc
            if attempt == attempts - 1:
                break
            delay = backoff_seconds * (2**attempt)
            logger.warning("Attempt %s/%s failed (%s); retrying in %.1fs", attempt + 1, attempts, exc, delay)
            time.sleep(delay)
    assert last_error is not None  # for type checkers
    raise last_error


__all__ = ["retry"]
