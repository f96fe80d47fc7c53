"""Rate limiting for the token endpoints"""
from typing import Callable

from slowapi import Limiter
from slowapi.util import get_remote_address

from tokenguard.config import settings

# Clients are anonymous until they present a token, so limits are per address
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    rate_limits = {
        "login": settings.RATE_LIMIT_LOGIN,
        "refresh": settings.RATE_LIMIT_REFRESH,
    }
    return rate_limits[endpoint]


def rate_limit(endpoint: str) -> Callable:
    """Decorator applying the endpoint's limit, or nothing when limiting is off.

    The limit string is read from settings on each request. Decorated
    endpoints must accept a ``request: Request`` parameter.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return lambda func: func
    return limiter.limit(lambda: get_rate_limit(endpoint))
