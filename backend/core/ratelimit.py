# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Process-local fixed-window rate limiter.

Each key (client fingerprint + scope) maps to the timestamps of its recent
requests.  A request is allowed while fewer than ``max_requests`` timestamps
fall inside the last ``window_seconds``.  State is per process; behind
several workers every worker counts on its own.
"""

import threading
import time
from collections import defaultdict
from typing import Callable

from fastapi import HTTPException, Request, status

from core.config import settings
from core.logger import logger
from core.security import client_fingerprint


class RateLimiter:
    """Thread-safe fixed-window counter keyed by an arbitrary string."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._hits: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def allow(self, key: str, max_requests: int, window_seconds: float) -> bool:
        now = self._clock()
        with self._lock:
            recent = [t for t in self._hits[key] if now - t < window_seconds]
            if len(recent) >= max_requests:
                self._hits[key] = recent
                return False
            recent.append(now)
            self._hits[key] = recent
            return True

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


# Module-level singleton shared by every router
limiter = RateLimiter()


def rate_limit(scope: str, limit_setting: str):
    """
    Build a FastAPI dependency that enforces ``settings.<limit_setting>``
    requests per window for *scope*.  Settings are read per request so a
    changed limit applies immediately.
    """

    def _dependency(request: Request) -> None:
        key = f"{client_fingerprint(request)}_{scope}"
        max_requests = getattr(settings, limit_setting)
        if not limiter.allow(key, max_requests, settings.rate_limit_window_seconds):
            logger.warning("Rate limit hit | scope=%s key=%s", scope, key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
            )

    return _dependency
