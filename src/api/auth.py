"""Admin API-key guard for the order and inbox routers.

When PRINTPALOOZA_ADMIN_API_KEY is set, every admin route requires that key
in ``X-API-Key`` or ``Authorization: Bearer <key>``. When it is unset the
admin API is open, which is how local development runs.

The guard is a router dependency, so only routers that declare it are
protected. The webhook router does not: deliveries are authenticated by
their Svix signature instead.

Repeated bad keys from one client are throttled with HTTP 429.
"""

from __future__ import annotations

import hmac
import logging
import os
import threading
import time
from collections import deque
from collections.abc import Callable

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)

ADMIN_KEY_ENV = "PRINTPALOOZA_ADMIN_API_KEY"
TRUST_PROXY_ENV = "PRINTPALOOZA_TRUST_PROXY"
MIN_ADMIN_KEY_LENGTH = 32


class FailureLimiter:
    """Sliding-window counter of failed key attempts per client.

    Args:
        max_failures: Failures allowed inside the window before blocking.
        window_seconds: Length of the window.
        clock: Monotonic time source (tests).
    """

    def __init__(
        self,
        max_failures: int = 10,
        window_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def _expire(self, client: str, now: float) -> deque[float]:
        stamps = self._failures.get(client)
        if stamps is None:
            return deque()
        while stamps and now - stamps[0] >= self.window_seconds:
            stamps.popleft()
        if not stamps:
            del self._failures[client]
        return stamps

    def is_blocked(self, client: str) -> bool:
        with self._lock:
            return len(self._expire(client, self._clock())) >= self.max_failures

    def record(self, client: str) -> None:
        with self._lock:
            now = self._clock()
            self._expire(client, now)
            self._failures.setdefault(client, deque()).append(now)

    def reset(self) -> None:
        with self._lock:
            self._failures.clear()


failure_limiter = FailureLimiter()


def configured_admin_key() -> str:
    """Return the admin key; empty string means the admin API is open."""
    return os.environ.get(ADMIN_KEY_ENV, "").strip()


def validate_admin_key() -> None:
    """Refuse to start with a guessable admin key.

    Raises:
        ValueError: If the key is set but shorter than MIN_ADMIN_KEY_LENGTH.
    """
    key = configured_admin_key()
    if key and len(key) < MIN_ADMIN_KEY_LENGTH:
        raise ValueError(
            f"{ADMIN_KEY_ENV} is too short ({len(key)} chars); "
            f"use at least {MIN_ADMIN_KEY_LENGTH}."
        )


def client_id(request: Request) -> str:
    """Identify the caller for throttling.

    X-Forwarded-For is honoured only when PRINTPALOOZA_TRUST_PROXY is on.
    """
    if os.environ.get(TRUST_PROXY_ENV, "").strip().lower() in ("1", "true"):
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


def require_admin_key(
    request: Request,
    x_api_key: str | None = Header(None),
    authorization: str | None = Header(None),
) -> None:
    """FastAPI dependency guarding admin routers.

    Raises:
        HTTPException: 429 when the caller is throttled, 401 for a missing
            or wrong key.
    """
    expected = configured_admin_key()
    if not expected:
        return

    caller = client_id(request)
    if failure_limiter.is_blocked(caller):
        logger.warning("Admin auth throttled for %s", caller)
        raise HTTPException(
            status_code=429,
            detail="Too many authentication failures. Try again later.",
        )

    presented = x_api_key or _bearer_token(authorization)
    if not presented or not hmac.compare_digest(
        presented.encode("utf-8"), expected.encode("utf-8")
    ):
        failure_limiter.record(caller)
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing admin API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
