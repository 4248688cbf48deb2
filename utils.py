#!/usr/bin/env python3
"""Utility helpers for finalize-repo."""

import time
from typing import List

from logging_utils import Logger


class RateLimiter:
    """Sliding one-minute window limiting requests against one API."""

    WINDOW_S = 60.0

    def __init__(self, label: str, max_requests_per_minute: int = 60):
        self.label = label
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []

    def wait_if_needed(self) -> None:
        """Block until another request fits in the window, then record it."""
        now = time.time()
        self._drop_expired(now)
        if len(self.requests) >= self.max_requests:
            wait_time = self.WINDOW_S - (now - self.requests[0])
            if wait_time > 0:
                Logger.security_event(
                    "RATE_LIMIT_HIT",
                    f"rate limit reached for {self.label}, waiting {wait_time:.2f}s",
                )
                time.sleep(wait_time)
                now = time.time()
                self._drop_expired(now)
        self.requests.append(now)

    def _drop_expired(self, now: float) -> None:
        cutoff = now - self.WINDOW_S
        self.requests = [t for t in self.requests if t > cutoff]


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
