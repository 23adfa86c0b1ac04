# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Typed service-layer errors and their translation to JSON responses.

Service functions raise the classes below; they never build HTTP responses
themselves.  :func:`register_exception_handlers` maps every error onto the
same envelope::

    {"status": false, "code": "<error_code>", "message": "...",
     "verify": true, "refresh": true}

``verify`` and ``refresh`` are client hints and only appear when set:
``verify`` asks the client to drop its session and re-authenticate,
``refresh`` asks it to reload (e.g. a new visitor fingerprint is needed).
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.logger import logger


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        verify: bool = False,
        refresh: bool = False,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.verify = verify
        self.refresh = refresh
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ServiceError):
    """Missing or malformed input, password policy failure (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(ServiceError):
    """Bad credentials, wrong OTP code, invalid refresh token (401)."""
    status_code = 401
    error_code = "unauthorized"


class OtpExpiredError(AuthenticationError):
    """The OTP challenge exists but its TTL has elapsed (401)."""
    error_code = "otp_expired"


class ForbiddenError(ServiceError):
    """Account suspended / inactive / deleted, or permission denied (403)."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ServiceError):
    """Missing user, role, module, visitor or OTP challenge (404)."""
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Duplicate e-mail on signup (409)."""
    status_code = 409
    error_code = "conflict"


class ServerError(ServiceError):
    """Store unavailable or any other unexpected failure (500)."""
    status_code = 500
    error_code = "server_error"


_GENERIC_500 = "Something went wrong. Please try again."


def error_body(message: str, code: str, *, verify: bool = False, refresh: bool = False) -> dict:
    body = {"status": False, "code": code, "message": message}
    if verify:
        body["verify"] = True
    if refresh:
        body["refresh"] = True
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that turn every failure into the JSON envelope."""

    @app.exception_handler(ServiceError)
    async def _handle_service_error(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s | %s: %s", request.method, request.url.path, exc.error_code, exc.message
            )
            message = _GENERIC_500
        else:
            logger.warning(
                "%s %s | status=%d code=%s", request.method, request.url.path,
                exc.status_code, exc.error_code,
            )
            message = exc.message
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, exc.error_code, verify=exc.verify, refresh=exc.refresh),
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
        return JSONResponse(
            status_code=400,
            content=error_body(f"Invalid or missing field: {field}", "validation_error"),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):
        logger.exception("%s %s | unhandled error", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body(_GENERIC_500, "server_error"))
