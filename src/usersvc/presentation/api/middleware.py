"""HTTP middleware: request body size cap and fixed-window rate limiting.

Both middlewares answer with the standard error envelope, so clients see
the same shape whether a request was rejected here or by a handler.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from usersvc.domain.shared.exceptions import ErrorCode
from usersvc.presentation.api.exception_handlers import create_error_response

logger = logging.getLogger(__name__)


# =============================================================================
# Rate limiting
# =============================================================================


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the current window ends

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


@dataclass
class _Window:
    started_at: float
    count: int = 0


@dataclass
class FixedWindowRateLimiter:
    """
    Counts requests per client key within fixed windows.

    A window opens on a key's first request and lasts ``window_seconds``.
    Once ``max_requests`` have been counted, further requests are refused
    until the window ends and a new one opens. State is in-process only.
    """

    max_requests: int
    window_seconds: int
    clock: Callable[[], float] = time.monotonic
    _windows: dict[str, _Window] = field(default_factory=dict, repr=False)

    def hit(self, key: str) -> RateLimitDecision:
        now = self.clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            self._evict_expired(now)
            window = _Window(started_at=now)
            self._windows[key] = window

        reset_after = max(
            0,
            math.ceil(window.started_at + self.window_seconds - now),
        )

        if window.count >= self.max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_after=reset_after,
            )

        window.count += 1
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - window.count,
            reset_after=reset_after,
        )

    def reset(self) -> None:
        self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


def client_key(request: Request) -> str:
    """Rate-limit key: the client address as seen by the server."""
    if request.client is None:
        return "unknown"
    return request.client.host


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply a FixedWindowRateLimiter to every request."""

    def __init__(self, app: ASGIApp, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        key = client_key(request)
        decision = self.limiter.hit(key)
        headers = decision.headers()

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s on %s %s",
                key,
                request.method,
                request.url.path,
            )
            headers["Retry-After"] = str(decision.reset_after)
            return create_error_response(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                message="Too many requests from this IP, please try again later",
                code=ErrorCode.RATE_LIMIT_EXCEEDED.value,
                headers=headers,
                retry_after=decision.reset_after,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


# =============================================================================
# Body size
# =============================================================================


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_bytes`` with 413.

    A declared Content-Length is checked before the application runs. The
    bytes actually received are counted too, so chunked uploads without a
    Content-Length are capped as they are read.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        rejection = self._check_declared_length(request)
        if rejection is not None:
            await rejection(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    self._log_rejection(request, received)
                    # Handled by the HTTP exception handler like any 413
                    raise HTTPException(
                        status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                        detail=self.too_large_message,
                    )
            return message

        await self.app(scope, limited_receive, send)

    @property
    def too_large_message(self) -> str:
        return f"Request body exceeds the limit of {self.max_body_bytes} bytes"

    def _check_declared_length(self, request: Request) -> Optional[Response]:
        declared = request.headers.get("content-length")
        if declared is None:
            return None

        try:
            size = int(declared)
        except ValueError:
            return create_error_response(
                status_code=status.HTTP_400_BAD_REQUEST,
                message="Invalid Content-Length header",
                code=ErrorCode.INVALID_REQUEST_BODY.value,
            )

        if size > self.max_body_bytes:
            self._log_rejection(request, size)
            return create_error_response(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                message=self.too_large_message,
                code=ErrorCode.PAYLOAD_TOO_LARGE.value,
            )
        return None

    def _log_rejection(self, request: Request, size: int) -> None:
        logger.warning(
            "Rejected %s %s: body of %d bytes exceeds %d",
            request.method,
            request.url.path,
            size,
            self.max_body_bytes,
        )
