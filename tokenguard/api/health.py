"""Health check endpoints"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from tokenguard import __version__
from tokenguard.api.deps import get_token_service
from tokenguard.config import settings
from tokenguard.tokens.service import TokenService

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": "TokenGuard",
        "version": __version__,
        "timestamp": _timestamp(),
    }


@router.get("/ready")
def readiness_check(service: TokenService = Depends(get_token_service)):
    """
    Readiness check - verifies the revocation store is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks: Dict[str, Any] = {
        "revocation_store": False,
        "revocation_backend": settings.REVOCATION_BACKEND,
        "store_latency_ms": None,
    }

    try:
        start = time.time()
        service.store.ping()
        checks["store_latency_ms"] = round((time.time() - start) * 1000, 2)
        checks["revocation_store"] = True
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Revocation store check failed: {e}",
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": _timestamp(),
    }


@router.get("/live")
def liveness_check() -> Dict[str, Any]:
    """
    Liveness check - verifies service is alive

    Used by Kubernetes liveness probe
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": _timestamp(),
    }
