"""
Application error taxonomy and the FastAPI handlers that render it.

Every error reaches the client as
    {"error": "<short reason>", "errors": {"<field>": "<message>"}}
with "errors" present only when there is field-level detail.
Internal failures are logged and reported with a generic message.
"""
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from bloghub.cookies import clear_session_cookie

logger = structlog.get_logger()


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class InvalidSession(Unauthorized):
    message = "Invalid session"


class UserNotFound(Unauthorized):
    message = "User not found"


class AdminRequired(Unauthorized):
    message = "Admin access required"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Already exists"


class InternalError(AppError):
    pass


def error_response(exc: AppError) -> JSONResponse:
    body = {"error": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    response = JSONResponse(status_code=exc.status_code, content=body)
    # A dead session must not be replayed; clearing the cookie
    # drops the client's logged-in state
    if isinstance(exc, (InvalidSession, UserNotFound)):
        clear_session_cookie(response)
    return response


def _field_name(loc) -> str:
    # Defaults that fail validation are reported under the Python name
    parts = [
        to_camel(part) if isinstance(part, str) and "_" in part else str(part)
        for part in loc
        if part not in ("body", "query", "path", "cookie")
    ]
    return ".".join(parts) or "body"


def _error_message(error: dict) -> str:
    # Messages raised from validators carry the original ValueError in ctx
    ctx = error.get("ctx") or {}
    if isinstance(ctx.get("error"), ValueError):
        return str(ctx["error"])
    if error.get("type") == "missing":
        return "This field is required"
    return error.get("msg", "Invalid value")


def register_error_handlers(app: FastAPI):
    """
    Install handlers for AppError, request validation failures and
    anything unexpected.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("request.failed", path=request.url.path, error=exc.message)
        else:
            logger.info(
                "request.rejected",
                path=request.url.path,
                status=exc.status_code,
                reason=exc.message,
            )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            errors.setdefault(_field_name(error["loc"]), _error_message(error))
        logger.info("request.invalid", path=request.url.path, fields=sorted(errors))
        if list(errors) == ["body"]:
            # Whole-body checks have no field to point at
            return error_response(ValidationError(errors["body"]))
        return error_response(ValidationError(errors=errors))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("request.crashed", path=request.url.path)
        return error_response(InternalError())
