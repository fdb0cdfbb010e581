# ================================
# MIDDLEWARE (core/middleware.py)
# ================================

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from groupstays.core.database import SessionLocal
import time
import uuid
import logging

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes hit these every few seconds
_QUIET_PATHS = frozenset({"/health", "/ready"})

class DatabaseSessionMiddleware(BaseHTTPMiddleware):
    """
    Outermost layer: assigns the correlation id and opens the request session.

    Claims services commit their own unit of work; whatever is still pending when
    the request fails is rolled back here before the session is closed.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        db = SessionLocal()
        request.state.db = db
        try:
            response = await call_next(request)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.4f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per admin/owner call and one per response, tagged with the request id"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        request_id = getattr(request.state, "request_id", None)
        logger.info(
            f"Request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "ip_address": request.client.host if request.client else None
            }
        )

        response = await call_next(request)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"Response: {response.status_code} {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "process_time": response.headers.get("X-Process-Time")
            }
        )
        return response

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers for the JSON API (no framing, no MIME sniffing)"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
