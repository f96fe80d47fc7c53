"""FastAPI application entry point"""
import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from tokenguard import __version__
from tokenguard.api import auth, health
from tokenguard.api.errors import TokenHTTPException, token_http_exception_handler
from tokenguard.config import settings
from tokenguard.middleware.rate_limit import limiter
from tokenguard.tokens.factory import build_token_service
from tokenguard.tokens.sweeper import revocation_sweep_loop
from tokenguard.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup; a missing or unusable signing key aborts here
    logger.info("TokenGuard starting up", extra={"action": "startup"})
    app.state.token_service = build_token_service(settings)
    sweeper = asyncio.create_task(
        revocation_sweep_loop(app.state.token_service, settings.REVOCATION_SWEEP_INTERVAL)
    )
    yield
    # Shutdown
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    logger.info("TokenGuard shutting down", extra={"action": "shutdown"})


# Create FastAPI app
app = FastAPI(
    title="TokenGuard",
    description="Short-lived bearer tokens with single-use refresh",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from tokenguard.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="tokenguard_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={
            "path": request.url.path,
            "method": request.method,
            "action": "rate_limit",
        }
    )
    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Please try again later.",
            "content": None,
            "error": "rate_limit_exceeded",
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(auth.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "TokenGuard",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

app.add_exception_handler(TokenHTTPException, token_http_exception_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request validation errors in the common envelope"""
    return JSONResponse(
        status_code=422,
        content={
            "message": "Invalid request parameters",
            "content": None,
            "error": "validation_error",
            "detail": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "message": "An unexpected error occurred.",
            "content": None,
            "error": "internal_server_error",
        }
    )


def run() -> None:
    """Serve the application with uvicorn on HOST:PORT"""
    import uvicorn

    uvicorn.run(
        "tokenguard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False,
    )
