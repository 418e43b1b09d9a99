"""
Document Portal - FastAPI application

An admin shares files with companies; companies view them, read
notifications and raise document requests.

Middleware order: CORS → CorrelationId → Logging → RateLimiting
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Union

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core imports (leaf modules - safe for circular imports)
import portal.models  # noqa: F401  Force model registration with SQLAlchemy
from portal.core.config import settings
from portal.core.exceptions import AppException
from portal.core.init_system import init_system_data
from portal.core.limiter import limiter
from portal.core.logging import setup_logging
from portal.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from portal.core.schemas import ApiResponse, ErrorInfo
from portal.database import SessionLocal, init_db
from portal.routers import storage
from portal.routers.api_router import api_router

# ============================================================================
# LOGGING SETUP
# ============================================================================
setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN MANAGEMENT
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.
    - Startup: Initialize database and bootstrap admin
    - Shutdown: Cleanup resources
    """
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")

    try:
        init_db()
        logger.info("✓ Database initialized successfully")

        init_system_data()
        logger.info("✓ System initialization check complete")
    except Exception as e:
        logger.error(f"✗ Database initialization failed: {e}")
        raise

    yield

    logger.info("Gracefully shutting down...")


# ============================================================================
# FASTAPI INSTANCE
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Document Portal - share files, notifications and document requests with client companies",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ============================================================================
# MIDDLEWARE STACK
# Add in REVERSE order (last added runs first)
# ============================================================================
app.state.limiter = limiter

# 3. Rate Limiting (innermost)
app.add_middleware(SlowAPIMiddleware)

# 2. Request Logging
app.add_middleware(LoggingMiddleware)

# 1. Correlation ID (for tracing)
app.add_middleware(CorrelationIdMiddleware)

# 0. CORS (outermost - runs first on requests, last on responses)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", settings.request_id_header],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)


# ============================================================================
# EXCEPTION HANDLERS
# Every error leaves as {"success": false, "message": ..., "errors": [...]}
# ============================================================================
def _error_response(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    body = ApiResponse.fail(message, errors=errors)
    return JSONResponse(status_code=status_code, content=body.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI validation errors (422) with structured format."""
    errors = []
    for error in exc.errors():
        # Clean up field name (loc is usually ('body', 'field_name'))
        field = error["loc"][-1] if len(error["loc"]) > 0 else "unknown"
        errors.append(ErrorInfo(field=str(field), msg=error["msg"]))

    logger.warning(f"Validation Error: {[e.model_dump() for e in errors]}")
    first = errors[0] if errors else None
    message = f"{first.field}: {first.msg}" if first else "Invalid request"
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, errors)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handle domain-specific application exceptions."""
    logger.warning(f"AppException: {exc.message}", extra={"code": exc.error_code})
    return _error_response(exc.status_code, exc.message, [ErrorInfo(msg=exc.message, code=exc.error_code)])


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    """Handle standard HTTP exceptions."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded: {request.client.host if request.client else 'unknown'} {request.url.path}")
    return _error_response(status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests, please try again later.")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Fallback handler for unhandled server errors."""
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return _error_response(500, "Internal Server Error")


# ============================================================================
# ROUTER INCLUSION
# ============================================================================
app.include_router(api_router, prefix=settings.api_prefix)
app.include_router(storage.router)


# ============================================================================
# OPERATIONAL ENDPOINTS (at root level, not rate limited)
# ============================================================================
@app.get("/", tags=["Health"])
@limiter.exempt
def root():
    """API root endpoint."""
    return {
        "message": "Document Portal API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.exempt
def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
@limiter.exempt
def readiness_check():
    """Readiness probe - verifies database connectivity."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "components": {"database": "connected"},
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
