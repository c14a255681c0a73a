"""
Jokes API Backend — Rate Limiting Middleware
==============================================

What:  Per-client sliding-window throttle for the credential endpoints.
Why:   Login and registration spend a bcrypt hash per call; unthrottled they
       invite password guessing and CPU exhaustion.
How:   Keeps the timestamps of each client's recent requests under the
       configured path prefix (default /api/auth). Timestamps older than the
       window are dropped on every request; a client already at the limit gets
       429 rate_limit_exceeded with a Retry-After header.

Algorithm: Sliding Window Log
    1. Drop the client's timestamps older than now - window
    2. If the remaining count >= limit → reject (429)
    3. Otherwise record now and pass the request through

State is in-process memory: each worker process limits independently.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from jokes_api.exceptions import RateLimitExceededError
from jokes_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        max_requests: Requests allowed per client per window
        window:       Window length in seconds
        path_prefix:  Only the prefix path and paths below it are counted
    """

    # Run the inactive-client sweep every this many recorded requests
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window: int = 3600,
        path_prefix: str = "/api/auth",
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window = window
        self.path_prefix = path_prefix
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    def is_throttled(self, path: str) -> bool:
        """True for the prefix itself and paths below it, not for /api/authors."""
        prefix = self.path_prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.is_throttled(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response_body(request_id_var.get("")),
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self._recorded += 1
        if self._recorded % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_clients(window_start)

        return await call_next(request)

    def _cleanup_inactive_clients(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
