# ================================
# MAIN APPLICATION (main.py)
# ================================

from datetime import datetime, timezone
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy import text

# Core imports
from groupstays.config import settings
from groupstays.core.database import engine
from groupstays.core.exceptions import AppException
from groupstays.core.middleware import (
    DatabaseSessionMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware
)
from groupstays.core.scheduler import scheduler, initialize_scheduler
from groupstays.utils.audit import audit_publisher, WebhookAuditSubscriber

# API Routes
from groupstays.api import api_router, API_VERSION, API_TITLE, API_DESCRIPTION

import logging

# ================================
# LOGGING CONFIGURATION
# ================================

logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ================================
# APPLICATION LIFECYCLE
# ================================

_webhook_subscriber = None

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""

    # Startup
    logger.info(f"Starting {settings.APP_NAME}")
    await startup_tasks()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")
    await shutdown_tasks()

async def startup_tasks():
    """Tasks to run on application startup"""
    initialize_database()
    initialize_audit_subscribers()
    await initialize_background_scheduler()

async def shutdown_tasks():
    """Tasks to run on application shutdown"""
    await scheduler.stop()

    global _webhook_subscriber
    if _webhook_subscriber is not None:
        audit_publisher.unsubscribe(_webhook_subscriber)
        _webhook_subscriber.shutdown()
        _webhook_subscriber = None

    engine.dispose()
    logger.info("Application shutdown complete")

def initialize_database():
    """Verify the database connection and optionally run migrations"""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_database_migrations()

def run_database_migrations():
    """Run Alembic database migrations"""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")

def initialize_audit_subscribers():
    """Forward committed audit events to the configured webhook, if any"""
    global _webhook_subscriber
    if not settings.AUDIT_EVENT_WEBHOOK_URL or _webhook_subscriber is not None:
        return

    _webhook_subscriber = WebhookAuditSubscriber(
        settings.AUDIT_EVENT_WEBHOOK_URL,
        timeout=settings.AUDIT_EVENT_WEBHOOK_TIMEOUT
    )
    audit_publisher.subscribe(_webhook_subscriber)
    logger.info("Audit event webhook subscriber registered")

async def initialize_background_scheduler():
    """Initialize and start the claims expiry sweep"""
    initialize_scheduler()
    await scheduler.start()

# ================================
# FASTAPI APPLICATION
# ================================

app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# ================================
# MIDDLEWARE CONFIGURATION
# ================================

# Security Headers
app.add_middleware(SecurityHeadersMiddleware)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"]
)

# Request Logging
app.add_middleware(RequestLoggingMiddleware)

# Request ID + DB Session (outermost, runs first)
app.add_middleware(DatabaseSessionMiddleware)

# ================================
# EXCEPTION HANDLERS
# ================================

def _error_content(request: Request, detail, error_code=None, **extra):
    content = {
        "detail": detail,
        "error_code": error_code,
        "request_id": getattr(request.state, "request_id", None)
    }
    content.update(extra)
    return content

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handler für Application-spezifische Exceptions"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.detail, exc.error_code)
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are client errors (400)"""
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=400,
        content=_error_content(request, "Invalid request", "VALIDATION_ERROR", errors=errors)
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handler für Standard HTTP Exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.detail)
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handler für unbehandelte Exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_content(
            request,
            "Internal server error" if not settings.DEBUG else str(exc),
            "INTERNAL_ERROR"
        )
    )

# ================================
# HEALTH CHECK ENDPOINTS
# ================================

@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@app.get("/ready", tags=["Health"])
async def readiness_check():
    """Kubernetes readiness probe"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready", "scheduler": scheduler.get_task_status()}

# ================================
# API ROUTES
# ================================

app.include_router(api_router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "groupstays.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
