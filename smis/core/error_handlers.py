from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


def _error_body(detail) -> dict:
    """Flatten an exception detail into the response envelope"""
    if isinstance(detail, dict):
        body = {"success": False, "message": detail.get("message") or detail.get("error", "Error")}
        extra = {k: v for k, v in detail.items() if k not in ("message",)}
        if extra:
            body["details"] = extra
        return body
    return {"success": False, "message": str(detail)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP and application exceptions"""
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail} - Path: {request.url.path}")
    else:
        logger.info(f"HTTP {exc.status_code}: {exc.detail} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body and query validation errors"""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed - Path: {request.url.path} - {errors}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"}
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
