from fastapi import HTTPException, Request
from typing import Dict, List
import math
import time

from .config import settings


class RateLimiter:
    """Sliding-window request counter keyed by client address."""

    def __init__(self, max_requests: int = 100, window: int = 900):
        self.max_requests = max_requests
        self.window = window
        self.requests: Dict[str, List[float]] = {}
        self._last_sweep = time.time()

    @staticmethod
    def client_key(request: Request) -> str:
        if settings.trust_proxy_headers:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _sweep(self, window_start: float):
        """Forget clients whose whole window has passed"""
        stale = [key for key, times in self.requests.items() if not times or times[-1] <= window_start]
        for key in stale:
            del self.requests[key]

    async def check_rate_limit(self, request: Request):
        """Record the request or raise 429 when the window is full"""
        key = self.client_key(request)
        now = time.time()
        window_start = now - self.window

        if now - self._last_sweep >= min(self.window, 60):
            self._sweep(window_start)
            self._last_sweep = now

        recent = [req_time for req_time in self.requests.get(key, []) if req_time > window_start]

        if len(recent) >= self.max_requests:
            self.requests[key] = recent
            retry_after = max(1, math.ceil(recent[0] + self.window - now))
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "Too Many Requests",
                    "message": "Too many requests from this IP, please try again later.",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self.requests[key] = recent

    def reset(self):
        self.requests.clear()
        self._last_sweep = time.time()


rate_limiter = RateLimiter(
    max_requests=settings.rate_limit_requests,
    window=settings.rate_limit_window,
)
