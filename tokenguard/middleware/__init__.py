"""Middleware modules for production-ready features"""
from tokenguard.middleware.monitoring import (
    MonitoringMiddleware,
    record_refresh,
    record_token_issued,
    record_verify_failure,
)
from tokenguard.middleware.rate_limit import get_rate_limit, limiter, rate_limit

__all__ = [
    "MonitoringMiddleware",
    "record_refresh",
    "record_token_issued",
    "record_verify_failure",
    "limiter",
    "get_rate_limit",
    "rate_limit",
]
