# smis/core/middleware.py
"""HTTP middleware: size limit, rate limiting, timing, compression and CORS."""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from .config import settings
from .error_handlers import http_exception_handler
from .performance_monitor import performance_metrics
from .rate_limiter import rate_limiter

logger = logging.getLogger(__name__)

RATE_LIMIT_EXEMPT_PREFIXES = ("/health",)


class CompressionMiddleware(GZipMiddleware):
    """GZip that can be switched off per request with an x-no-compression header."""

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and Headers(scope=scope).get("x-no-compression"):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


def _route_name(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    return f"{request.method} {path}"


def setup_middleware(app: FastAPI):
    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.max_request_size:
            logger.warning(f"Rejected oversized request: {content_length} bytes to {request.url.path}")
            return JSONResponse(
                status_code=413,
                content={"success": False, "message": "Request entity too large"},
            )
        return await call_next(request)

    @app.middleware("http")
    async def enforce_rate_limit(request: Request, call_next):
        if settings.rate_limit_enabled and not request.url.path.startswith(RATE_LIMIT_EXEMPT_PREFIXES):
            try:
                await rate_limiter.check_rate_limit(request)
            except StarletteHTTPException as exc:
                logger.warning(f"Rate limit exceeded for {rate_limiter.client_key(request)}")
                return await http_exception_handler(request, exc)
        return await call_next(request)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Response-Time"] = f"{process_time * 1000:.2f}ms"
        if request.url.path.startswith("/api/auth"):
            response.headers.setdefault("Cache-Control", "no-store")
        elif request.url.path.startswith("/api"):
            response.headers.setdefault("Cache-Control", "private, max-age=0")

        performance_metrics.record_operation(
            _route_name(request), process_time, success=response.status_code < 500
        )
        if process_time > settings.slow_request_threshold:
            logger.warning(f"Slow request: {request.method} {request.url.path} - {process_time:.3f}s")
        logger.info(f"{request.method} {request.url.path} {response.status_code} - {process_time:.3f}s")
        return response

    app.add_middleware(CompressionMiddleware, minimum_size=settings.compression_min_size)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )
