"""
Error Handler Middleware

Catches exceptions that escape the endpoints:
- database lock timeouts become 409 so the client can retry
- anything else is logged through the error logging service and answered
  with a generic 500 carrying the error id
"""

from typing import Callable

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.middleware.base import BaseHTTPMiddleware

from foodie.services.error_logging import error_logger


# Fragments of lock timeout messages across MySQL, PostgreSQL and SQLite
LOCK_TIMEOUT_MARKERS = (
    "lock wait timeout",
    "database is locked",
    "could not obtain lock",
    "lock timeout",
    "deadlock",
)

LOCK_TIMEOUT_DETAIL = "The database is busy, please retry"


def is_lock_timeout(exc: BaseException) -> bool:
    """Whether exc is a database error caused by a lock timeout or deadlock."""
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in LOCK_TIMEOUT_MARKERS)


def lock_timeout_response() -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": LOCK_TIMEOUT_DETAIL, "retry": True})


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and logs them.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except HTTPException as http_exc:
            if http_exc.status_code >= 500:
                error_logger.log_error(
                    http_exc,
                    request=request,
                    user=getattr(request.state, "user", None),
                    severity="error",
                    context={"status_code": http_exc.status_code, "detail": http_exc.detail}
                )
            return JSONResponse(
                status_code=http_exc.status_code,
                content={"detail": http_exc.detail}
            )

        except Exception as exc:
            if is_lock_timeout(exc):
                error_logger.log_warning(f"Lock timeout on {request.method} {request.url.path}: {exc}")
                return lock_timeout_response()

            error_id = error_logger.log_error(
                exc,
                request=request,
                user=getattr(request.state, "user", None),
                severity="critical",
                context={"unhandled": True}
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "An internal error occurred. Please contact the administrator.",
                    "error_id": str(error_id) if error_id else None
                }
            )
