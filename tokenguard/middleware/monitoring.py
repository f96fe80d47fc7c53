"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from tokenguard.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "tokenguard_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "tokenguard_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "tokenguard_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Token metrics
tokens_issued_total = Counter(
    "tokenguard_tokens_issued_total",
    "Total tokens issued",
    ["source"]  # login, refresh
)

refresh_total = Counter(
    "tokenguard_refresh_total",
    "Total refresh attempts",
    ["outcome"]  # ok, missing_credential, malformed_credential, already_refreshed, refresh_window_expired
)

verify_failures_total = Counter(
    "tokenguard_verify_failures_total",
    "Total rejected tokens on protected endpoints",
    ["reason"]  # missing_credential, malformed_credential, expired
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            # Log slow requests
            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={
                        "request_id": request_id,
                        "method": method,
                        "path": endpoint,
                        "duration": duration,
                        "status": status
                    }
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception as e:
            duration = time.time() - start_time
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": endpoint,
                    "duration": duration,
                    "error": str(e)
                },
                exc_info=True
            )
            raise


def record_token_issued(source: str):
    """Record an issued token (``login`` or ``refresh``)"""
    tokens_issued_total.labels(source=source).inc()


def record_refresh(outcome: str):
    """Record a refresh attempt outcome (``ok`` or an error code)"""
    refresh_total.labels(outcome=outcome).inc()


def record_verify_failure(reason: str):
    """Record a token rejected on a protected endpoint"""
    verify_failures_total.labels(reason=reason).inc()
