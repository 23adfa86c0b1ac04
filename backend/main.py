# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS middleware and the error-envelope exception handlers.
* Mount the three feature routers (auth, users, roles).
* Start the OTP / refresh-token housekeeping loops on startup.
* Expose a /health endpoint for container liveness checks.

Production note
---------------
The refresh token travels in a cookie, so CORS runs with credentials
enabled.  CORS_ORIGINS must list the exact frontend origin(s); a wildcard
is not accepted by browsers in that mode.
"""

import asyncio
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from auth.housekeeping import start_housekeeping
from auth.router import router as auth_router
from roles.router import router as roles_router
from users.router import router as users_router
from core.config import settings
from core.errors import register_exception_handlers
from core.logger import logger

app = FastAPI(title=f"{settings.project_title} Admin API", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Only the URL and metadata are recorded; bodies carry passwords and codes.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
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
app.include_router(roles_router)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
_background_tasks: list[asyncio.Task] = []


@app.on_event("startup")
async def _on_startup():
    logger.info("%s service starting up", settings.project_title)
    _background_tasks.extend(start_housekeeping())


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("%s service shutting down", settings.project_title)
    for task in _background_tasks:
        task.cancel()
    _background_tasks.clear()


@app.get("/health")
def health():
    return {"status": "ok"}
