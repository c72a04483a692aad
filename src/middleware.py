"""
Custom middleware for the sound catalog and alarm API.
"""

import time
from typing import Callable, Dict, Any, Iterable
from datetime import datetime, timezone

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.observability import record_http_metrics
from src.services.key_validator import KeyValidator

logger = structlog.get_logger()

PUBLIC_PATH_PREFIXES = (
    "/validate-key",
    "/ui",
    "/doc",
    "/swagger-config",
    "/cover",
    "/audio",
    "/healthz",
    "/metrics",
)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """
    Middleware rejecting requests to protected paths without a valid credential.
    """

    def __init__(
        self,
        app,
        key_validator: KeyValidator,
        header_name: str = "X-API-Key",
        public_prefixes: Iterable[str] = PUBLIC_PATH_PREFIXES
    ):
        super().__init__(app)
        self.key_validator = key_validator
        self.header_name = header_name
        self.public_prefixes = tuple(public_prefixes)

    def is_public(self, path: str) -> bool:
        """Whether ``path`` is one of the public paths or lies beneath one."""
        return any(
            path == prefix or path.startswith(prefix + "/")
            for prefix in self.public_prefixes
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.is_public(request.url.path):
            return await call_next(request)

        if not self.key_validator.is_valid(request.headers.get(self.header_name)):
            logger.warning(
                "Rejected request with invalid or missing API key",
                method=request.method,
                path=request.url.path
            )
            return JSONResponse(
                status_code=401,
                content={"error": "Unauthorized: Invalid or missing API key"}
            )

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging with correlation ID support.
    """

    def __init__(self, app, exclude_paths: set = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or {"/healthz", "/ui", "/doc", "/swagger-config"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip logging for health checks and docs
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        correlation_id = request.headers.get("X-Call-ID", f"req_{int(time.time() * 1000)}")

        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        start_time = time.time()
        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
            user_agent=request.headers.get("User-Agent", "unknown")
        )

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(
                "Request completed",
                status_code=response.status_code,
                process_time_ms=round(process_time * 1000, 2)
            )

            response.headers["X-Call-ID"] = correlation_id
            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                process_time_ms=round(process_time * 1000, 2)
            )

            return JSONResponse(
                status_code=500,
                content={
                    "error": "InternalServerError",
                    "message": "An unexpected error occurred",
                    "correlation_id": correlation_id,
                    "timestamp": utc_timestamp()
                },
                headers={"X-Call-ID": correlation_id}
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to responses.
    """

    def __init__(self, app, csp_exempt_paths: set = None):
        super().__init__(app)
        # Swagger UI pulls its assets from a CDN
        self.csp_exempt_paths = csp_exempt_paths or {"/ui"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.update({
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "X-XSS-Protection": "1; mode=block",
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
            "Referrer-Policy": "strict-origin-when-cross-origin"
        })
        if request.url.path not in self.csp_exempt_paths:
            response.headers["Content-Security-Policy"] = "default-src 'self'"

        return response


class RequestMetrics:
    """Process-wide request counters served by the metrics endpoint."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.request_count = 0
        self.error_count = 0
        self.total_processing_time = 0.0

    def record(self, status_code: int, processing_time: float) -> None:
        self.request_count += 1
        self.total_processing_time += processing_time
        if status_code >= 400:
            self.error_count += 1

    def snapshot(self) -> Dict[str, Any]:
        """Get current metrics."""
        avg_processing_time = (
            self.total_processing_time / self.request_count
            if self.request_count > 0 else 0
        )

        return {
            "total_requests": self.request_count,
            "error_count": self.error_count,
            "error_rate": self.error_count / self.request_count if self.request_count > 0 else 0,
            "avg_processing_time_ms": round(avg_processing_time * 1000, 2)
        }


# Global metrics instance
request_metrics = RequestMetrics()


def get_metrics() -> Dict[str, Any]:
    """Get current application metrics."""
    return request_metrics.snapshot()


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect basic metrics about requests.
    """

    def __init__(self, app, metrics: RequestMetrics = request_metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            self.metrics.record(500, time.time() - start_time)
            raise

        processing_time = time.time() - start_time
        self.metrics.record(response.status_code, processing_time)
        record_http_metrics(request.method, request.url.path, response.status_code, processing_time)

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Simple rate limiting middleware (in-memory, for basic protection).
    """

    def __init__(self, app, max_requests: int = 100, window_seconds: int = 60):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[str, list] = {}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        current_time = time.time()

        self._prune(current_time)
        recent = self.requests.setdefault(client_ip, [])

        if len(recent) >= self.max_requests:
            logger.warning(
                "Rate limit exceeded",
                client_ip=client_ip,
                request_count=len(recent),
                max_requests=self.max_requests
            )

            return JSONResponse(
                status_code=429,
                content={
                    "error": "RateLimitExceeded",
                    "message": f"Too many requests. Limit: {self.max_requests} per {self.window_seconds} seconds",
                    "correlation_id": request.headers.get("X-Call-ID", "unknown"),
                    "timestamp": utc_timestamp()
                }
            )

        recent.append(current_time)

        return await call_next(request)

    def _prune(self, current_time: float) -> None:
        """Drop expired timestamps, and clients with none left in the window."""
        for client_ip in list(self.requests):
            recent = [
                req_time for req_time in self.requests[client_ip]
                if current_time - req_time < self.window_seconds
            ]
            if recent:
                self.requests[client_ip] = recent
            else:
                del self.requests[client_ip]
