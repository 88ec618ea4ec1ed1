# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS, session (CSRF token storage) and request-log middleware.
* Install the ``{"error": message}`` exception handlers.
* Mount the JSON API routers and the server-rendered pages.
* Mount the frontend static files.
* Expose a /health endpoint for container liveness checks.
* Materialise the configured admin as a database row on startup.
"""

import time
from pathlib import Path

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from auth.router import router as auth_router
from categories.router import router as categories_router
from challenges.router import router as challenges_router
from events.router import router as events_router
from pages.router import router as pages_router
from sponsors.router import router as sponsors_router
from stats.router import router as stats_router
from submissions.router import router as submissions_router
from users.router import router as users_router
from core.config import settings
from core.errors import register_exception_handlers
from core.logger import logger
from core.security import ensure_configured_admin, get_client_ip
from database import SessionLocal

app = FastAPI(title="CTF Platform", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# Origins come from CORS_ORIGINS.  Credentials are allowed so the session
# cookie holding the CSRF token travels with cross-origin API calls.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-Admin-Email", "X-CSRF-Token"],
)

# ---------------------------------------------------------------------------
# Session – signed cookie carrying the CSRF token
# ---------------------------------------------------------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    same_site="lax",
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies (passwords, flags) are NOT echoed – only the URL and metadata.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            get_client_ip(request),
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(challenges_router)
app.include_router(events_router)
app.include_router(categories_router)
app.include_router(sponsors_router)
app.include_router(submissions_router)
app.include_router(stats_router)
app.include_router(pages_router)

# ---------------------------------------------------------------------------
# Lifecycle + health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
def _on_startup():
    logger.info("CTF Platform service starting up")
    db = SessionLocal()
    try:
        ensure_configured_admin(db)
    finally:
        db.close()


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("CTF Platform service shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Static files – frontend assets
# ---------------------------------------------------------------------------
_STATIC_DIR = Path(__file__).resolve().parent.parent / "frontend" / "static"

if _STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")
