"""Domain errors and their mapping to HTTP responses.

Every error raised by the auth and habit layers derives from
`HabitTrackerError` and carries an `ErrorKind`. The boundary turns the kind
into a status code and a `{"code", "message"}` envelope, so NotFound,
Unauthorized and validation failures stay distinguishable for clients.
"""

from __future__ import annotations

import enum
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = structlog.get_logger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class HabitTrackerError(Exception):
    """Base class for errors reported to the caller of an operation."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "internal_error"
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


# -- validation --

class ValidationError(HabitTrackerError):
    kind = ErrorKind.VALIDATION
    code = "validation_error"
    message = "Invalid input"


class InvalidDate(ValidationError):
    code = "invalid_date"
    message = "Invalid date format. Use YYYY-MM-DD"


class MissingField(ValidationError):
    code = "missing_field"
    message = "A required field is missing"


# -- unauthorized --

class Unauthorized(HabitTrackerError):
    kind = ErrorKind.UNAUTHORIZED
    code = "unauthorized"
    message = "Could not validate credentials"


class InvalidCredentials(Unauthorized):
    code = "invalid_credentials"
    message = "Invalid credentials"


class MissingToken(Unauthorized):
    code = "missing_token"
    message = "Authorization header required"


class TokenError(Unauthorized):
    """Raised by the token service when a session token is rejected."""


class SignatureInvalid(TokenError):
    code = "signature_invalid"
    message = "Invalid token"


class Expired(TokenError):
    code = "token_expired"
    message = "Token expired"


class Malformed(TokenError):
    code = "token_malformed"
    message = "Invalid token"


# -- not found --

class NotFound(HabitTrackerError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    message = "Not found"


class HabitNotFound(NotFound):
    code = "habit_not_found"
    message = "Habit not found"


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "User not found"


class NoCompletions(NotFound):
    code = "no_completions"
    message = "No completions to undo"


# -- conflict --

class Conflict(HabitTrackerError):
    kind = ErrorKind.CONFLICT
    code = "conflict"
    message = "Conflict"


class LoginTaken(Conflict):
    code = "login_taken"
    message = "Login already exists"


class CompletionConflict(Conflict):
    code = "completion_conflict"
    message = "Completion was already recorded for this date"


# -- internal --

class HashingError(HabitTrackerError):
    code = "hashing_error"


class MalformedHash(HabitTrackerError):
    code = "malformed_hash"


def error_response(status_code: int, code: str, message: str, details: Any = None, headers=None) -> JSONResponse:
    content = {"code": code, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def handle_domain_error(request: Request, exc: HabitTrackerError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    if exc.kind is ErrorKind.INTERNAL:
        log.error("internal_error", code=exc.code, path=request.url.path, error=str(exc))
        # internal detail stays in the logs
        return error_response(500, HabitTrackerError.code, HabitTrackerError.message)

    headers = None
    if exc.kind is ErrorKind.UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    log.info("request_rejected", code=exc.code, status_code=status_code, path=request.url.path)
    return error_response(status_code, exc.code, exc.message, exc.details, headers)


def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return error_response(400, ValidationError.code, ValidationError.message, errors)


def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_error", path=request.url.path, exception_type=type(exc).__name__, exc_info=exc)
    return error_response(500, HabitTrackerError.code, HabitTrackerError.message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HabitTrackerError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
