"""
RentLedger API - Main Application
FastAPI application with CORS, error handling, request logging and startup checks
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from rentledger.api.routes import (
    auth_router,
    profile_router,
    properties_router,
    tenants_router,
    tenancies_router,
    payments_router,
    tenant_portal_router,
    notifications_router,
    dashboard_router,
)
from rentledger.core.config import settings
from rentledger.database import close_db_connection, init_db, test_connection


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==================== STARTUP & SHUTDOWN ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info("=" * 70)

    if test_connection():
        logger.info("[OK] Database connection successful")
    else:
        logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    if init_db():
        logger.info("[OK] Database tables ready")
    else:
        logger.warning("[WARN] Database init failed - run the Alembic migrations")

    if not settings.supabase_configured:
        logger.warning("[WARN] SUPABASE_URL / SUPABASE_KEY not set - auth and proof uploads will fail")

    yield

    logger.info("Shutting down application...")
    close_db_connection()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.PROJECT_DESCRIPTION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


# ==================== MIDDLEWARE ====================


app.add_middleware(GZipMiddleware, minimum_size=1000)

allowed_origins = list(dict.fromkeys([settings.FRONTEND_URL, *settings.ALLOWED_ORIGINS]))

# Credentials (the auth cookie) require explicit origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request except health probes"""
    if request.url.path == "/health":
        return await call_next(request)

    started = time.perf_counter()
    client = request.client.host if request.client else "-"
    logger.info(f">> {request.method} {request.url.path} - {client}")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = time.perf_counter() - started
        logger.error(f"[ERROR] {request.method} {request.url.path} - Error: {e} ({duration:.2f}s)")
        raise

    duration = time.perf_counter() - started
    logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response


# ==================== ROUTERS ====================


app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(profile_router, prefix="/api/profile", tags=["Profile"])
app.include_router(properties_router, prefix="/api/properties", tags=["Properties"])
app.include_router(tenants_router, prefix="/api/tenants", tags=["Tenants"])
app.include_router(tenancies_router, prefix="/api/tenancies", tags=["Tenancies"])
app.include_router(payments_router, prefix="/api/payments", tags=["Payments"])
app.include_router(tenant_portal_router, prefix="/api/tenant", tags=["Tenant Portal"])
app.include_router(notifications_router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


# ==================== ERROR HANDLERS ====================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed response"""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "detail": "Validation error",
            "errors": jsonable_errors(exc.errors()),
        }
    )


def jsonable_errors(errors):
    """Pydantic puts the raised exception object in ctx; keep only its text"""
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        cleaned.append(error)
    return cleaned


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

    # Don't expose internal errors in production
    error_message = str(exc) if settings.DEBUG else "Something went wrong. Please try again."

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": error_message,
            "timestamp": utc_timestamp(),
        }
    )


# ==================== HEALTH ENDPOINTS ====================


@app.get("/", tags=["System"])
async def root():
    """Root endpoint - API information"""
    return {
        "success": True,
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": "/api/docs",
        "status": "operational",
        "environment": "development" if settings.DEBUG else "production",
    }


@app.get("/health", tags=["System"])
def health_check():
    """Health check with a database probe"""
    connection_ok = test_connection()
    body = {
        "success": connection_ok,
        "status": "healthy" if connection_ok else "degraded",
        "database": "connected" if connection_ok else "disconnected",
        "timestamp": utc_timestamp(),
    }
    if not connection_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
