import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    interval: float  # window length in seconds
    limit: int  # requests allowed per window


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float  # epoch seconds when the window closes


# Predefined rate limit configurations
RATE_LIMITS: Dict[str, RateLimitConfig] = {
    "api": RateLimitConfig(interval=60, limit=100),
    "auth": RateLimitConfig(interval=15 * 60, limit=5),
    "upload": RateLimitConfig(interval=60, limit=10),
    "search": RateLimitConfig(interval=60, limit=50),
}


class RateLimiter:
    """
    Fixed-window request counter keyed by client and bucket, held in memory.

    Counts are per process; several workers each keep their own.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._windows: Dict[str, Dict[str, Any]] = {}

    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()

        # Drop expired windows
        for stale in [k for k, w in self._windows.items() if w["reset"] <= now]:
            del self._windows[stale]

        current = self._windows.get(key)
        if current is None:
            reset = now + config.interval
            self._windows[key] = {"count": 1, "reset": reset}
            return RateLimitResult(True, config.limit, config.limit - 1, reset)

        if current["count"] >= config.limit:
            return RateLimitResult(False, config.limit, 0, current["reset"])

        current["count"] += 1
        return RateLimitResult(
            True, config.limit, config.limit - current["count"], current["reset"]
        )

    def reset(self) -> None:
        self._windows.clear()


rate_limiter = RateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client:
        return request.client.host
    return "unknown"


def bucket_for_path(path: str, api_prefix: str = settings.API_V1_STR) -> Optional[str]:
    if path.startswith(f"{api_prefix}/auth/"):
        return "auth"
    if path.startswith(f"{api_prefix}/admin/upload"):
        return "upload"
    if "search" in path:
        return "search"
    if path.startswith("/api/"):
        return "api"
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter = rate_limiter, enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        bucket = bucket_for_path(request.url.path) if self.enabled else None
        if bucket is None:
            return await call_next(request)

        ip = client_ip(request)
        result = self.limiter.check(f"{bucket}:{ip}", RATE_LIMITS[bucket])
        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(int(result.reset)),
        }

        if not result.success:
            retry_after = max(0, math.ceil(result.reset - time.time()))
            logger.warning(f"Rate limit exceeded for {ip} on {bucket} bucket")
            return JSONResponse(
                status_code=429,
                content={"error": "Rate limit exceeded", "retryAfter": retry_after},
                headers={**headers, "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
