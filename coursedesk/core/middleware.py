import time
import logging
import uuid
from typing import Callable, Dict, Any
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from coursedesk.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_PATHS = ["/health", "/docs", "/openapi.json", "/redoc"]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def get_client_ip(request: Request) -> str:
    """Client IP, honouring proxy headers"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
    }


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with a short X-Request-ID and warns about slow ones.
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: list = None,
        slow_request_threshold: float = 1.0,
    ):
        super().__init__(app)
        self.exclude_paths = exclude_paths or DEFAULT_EXCLUDE_PATHS
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        request.state.request_id = uuid.uuid4().hex[:8]
        context = _request_context(request)
        start_time = time.perf_counter()

        logger.info(
            f"{request.method} {request.url.path} started",
            extra={
                **context,
                "query_params": str(request.query_params) or None,
                "client_ip": get_client_ip(request),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed: {type(e).__name__}",
                extra={**context, "duration_ms": _elapsed_ms(start_time)},
            )
            raise

        duration_ms = _elapsed_ms(start_time)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )

        if duration_ms > self.slow_request_threshold * 1000:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms}ms",
                extra={**context, "duration_ms": duration_ms, "category": "performance"},
            )

        response.headers["X-Request-ID"] = request.state.request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


class ErrorTrackingMiddleware(BaseHTTPMiddleware):
    """Counts 4xx/5xx responses and unhandled exceptions"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
        except Exception as e:
            error_tracker.track_error(
                f"UNHANDLED_{type(e).__name__}",
                str(e),
                {**_request_context(request), "client_ip": get_client_ip(request)},
            )
            raise

        if response.status_code >= 400:
            error_tracker.track_error(
                f"HTTP_{response.status_code}",
                f"{request.method} {request.url.path} answered {response.status_code}",
                _request_context(request),
            )

        return response


def setup_middleware(app, config: dict = None):
    """
    Install the middleware stack

    Args:
        app: FastAPI application
        config: slow_request_threshold, exclude_paths
    """
    config = config or {}

    # Registered innermost first
    app.add_middleware(ErrorTrackingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RequestLoggingMiddleware,
        exclude_paths=config.get("exclude_paths", DEFAULT_EXCLUDE_PATHS),
        slow_request_threshold=config.get("slow_request_threshold", 1.0),
    )

    logger.info("Middleware configured")
