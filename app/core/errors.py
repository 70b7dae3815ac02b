"""
Domain errors and their HTTP translation.

Services raise these; `register_exception_handlers` turns them into a stable
JSON body so a client can tell "you may never do this" (403), "try again
differently" (400/404/409) and "server is broken" (500) apart.

Body shape:
    {"success": false, "error": "<message>", "reason": "<machine code>"}
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from app.core.policy import Decision, DenyReason

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors with a stable reason code."""

    status_code: int = 500
    reason: str = "server_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class NotFound(AppError):
    status_code = 404
    reason = "not_found"


class Unauthenticated(AppError):
    status_code = 401
    reason = DenyReason.not_authenticated.value

    def __init__(self, message: str = "Not authenticated", reason: Optional[str] = None):
        super().__init__(message, reason)


class Forbidden(AppError):
    """
    Authenticated actor denied by the policy.

    `reason` is one of wrong_role / not_owner / invalid_state. An
    invalid-state denial is a 400 (the request may succeed later or
    differently); the others are 403.
    """

    def __init__(self, message: str, reason: DenyReason = DenyReason.not_owner):
        super().__init__(message, DenyReason(reason).value)
        self.status_code = 400 if reason == DenyReason.invalid_state else 403

    @classmethod
    def from_decision(cls, decision: Decision) -> AppError:
        if decision.reason == DenyReason.not_authenticated:
            return Unauthenticated(decision.message or "Not authenticated")
        return cls(decision.message or "Not authorized", decision.reason)


class Conflict(AppError):
    status_code = 409
    reason = "conflict"


class ValidationFailed(AppError):
    status_code = 400
    reason = "validation_failed"


class FileTooLarge(AppError):
    status_code = 413
    reason = "file_too_large"


class UpstreamError(AppError):
    """A third-party service (AI provider, OAuth provider) failed."""

    status_code = 502
    reason = "upstream_error"


def ensure_allowed(decision: Decision) -> None:
    """Raise the taxonomy entry matching a DENY decision."""
    if not decision.allowed:
        raise Forbidden.from_decision(decision)


def error_body(message: str, reason: str) -> dict:
    return {"success": False, "error": message, "reason": reason}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.reason),
            headers=headers,
        )

    @app.exception_handler(PyMongoError)
    async def handle_db_error(request: Request, exc: PyMongoError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Server error", "server_error"))
