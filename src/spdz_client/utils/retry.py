"""Retry helper for polling operations that can signal "not ready yet"."""

from __future__ import annotations

import time
from typing import Callable, Optional, Tuple, Type, TypeVar


T = TypeVar("T")


class RetryError(Exception):
    """Raised when retry attempts are exhausted."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


def retry(
    func: Callable[[], T],
    retries: int,
    backoff: float,
    exceptions: Tuple[Type[BaseException], ...],
) -> T:
    """Call ``func`` until it succeeds, sleeping with exponential backoff between attempts.

    Only ``exceptions`` are retried; anything else propagates immediately.
    """
    if retries < 0:
        raise ValueError("retries must not be negative")
    attempt = 0
    delay = backoff
    while True:
        try:
            return func()
        except exceptions as exc:
            attempt += 1
            if attempt > retries:
                raise RetryError(f"Failed after {retries} retries", last_error=exc) from exc
            time.sleep(delay)
            delay *= 2
