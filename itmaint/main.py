"""
IT Maintenance API - Main Application
FastAPI application with CORS, error handling, request logging and the
preventive maintenance scheduler started in the lifespan
"""
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from itmaint.api.routes import (
    alerts_router,
    auth_router,
    dashboard_router,
    equipments_router,
    interventions_router,
)
from itmaint.core.config import get_cors_origins, settings
from itmaint.core.exceptions import (
    ConfigurationError,
    DeliveryError,
    InvalidTransitionError,
    StorageError,
)
from itmaint.database import close_db_connection, init_db, test_connection
from itmaint.services.scheduler import build_scheduler


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ==================== STARTUP & SHUTDOWN ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and run the maintenance scheduler"""
    logger.info("=" * 70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info("=" * 70)

    if test_connection():
        logger.info("[OK] Database connection successful!")
    else:
        logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    if not init_db():
        logger.warning("[WARN] Database init returned False - tables may not exist")

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = build_scheduler(settings)
        scheduler.start()
        app.state.scheduler = scheduler
    else:
        logger.info("[scheduler] Disabled by configuration")

    if not settings.email_configured:
        logger.warning("[mail] Email not configured - alert notifications are disabled")

    logger.info("[OK] Application startup complete!")
    yield

    logger.info("Shutting down application...")
    if scheduler is not None:
        await scheduler.stop()
    close_db_connection()
    logger.info("Application shutdown complete")


# Initialize FastAPI app
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

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


# ==================== ROUTERS ====================


app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(equipments_router, prefix="/api/equipments", tags=["Equipments"])
app.include_router(interventions_router, prefix="/api/interventions", tags=["Interventions"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(alerts_router, prefix="/api/alerts", tags=["Alerts"])


# ==================== ERROR HANDLERS ====================


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "detail": detail,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed response"""
    logger.warning(f"Validation error on {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "detail": "Validation error",
            "errors": exc.errors()
        }
    )


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) if settings.DEBUG else "Database error")


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))


@app.exception_handler(DeliveryError)
async def delivery_error_handler(request: Request, exc: DeliveryError):
    logger.error(f"Delivery error on {request.url.path}: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) if settings.DEBUG else "Internal server error")


# ==================== HEALTH & STATUS ENDPOINTS ====================


@app.get("/api/health", tags=["System"])
async def health_check():
    """Health check endpoint"""
    return {"status": "OK", "timestamp": datetime.utcnow().isoformat()}


@app.get("/api/version", tags=["System"])
async def get_version():
    """Get API version information"""
    return {
        "success": True,
        "api_version": settings.VERSION,
        "app_name": settings.PROJECT_NAME,
        "alert_days_before": settings.ALERT_DAYS_BEFORE,
        "email_notifications": settings.email_configured,
    }


# ==================== REQUEST LOGGING ====================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    if request.url.path == "/api/health":
        return await call_next(request)

    start_time = datetime.utcnow()
    client = request.client.host if request.client else "-"
    logger.info(f">> {request.method} {request.url.path} - {client}")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.error(f"[ERROR] {request.method} {request.url.path} - Error: {e} ({duration:.2f}s)")
        raise

    duration = (datetime.utcnow() - start_time).total_seconds()
    logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response
