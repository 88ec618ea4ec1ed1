# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Uniform error responses.

Every failure leaves the API as ``{"error": "<message>"}`` with a non-2xx
status.  Messages pass through :func:`sanitize_error_message` first so file
paths never reach the client.  Unexpected exceptions are logged with their
traceback and reported with a generic message.
"""

import re

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logger import logger

GENERIC_ERROR = "An error occurred"
DATABASE_ERROR = "Database error"

_RELATIVE_PATH_RE = re.compile(r"\.\./\S+")
_FILE_PATH_RE = re.compile(r"/\S+\.(py|php|json|sql|log)\b", re.IGNORECASE)


def sanitize_error_message(message) -> str:
    """Redact relative paths and file paths from *message*."""
    text = str(message) if message is not None else GENERIC_ERROR
    text = _RELATIVE_PATH_RE.sub("[path removed]", text)
    text = _FILE_PATH_RE.sub("[file removed]", text)
    return text


def error_response(message, status_code: int) -> JSONResponse:
    return JSONResponse({"error": sanitize_error_message(message)}, status_code=status_code)


def first_validation_message(errors) -> str:
    """Turn pydantic's error list into one short, client-safe sentence."""
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "header", "path")]
    field = ".".join(loc)
    if err.get("type") == "missing":
        return f"Missing required field: {field}" if field else "Missing required fields"
    return f"Invalid value for {field}" if field else "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on *app*."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.detail, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return error_response(first_validation_message(exc.errors()), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(ValidationError)
    async def _model_validation_error(request: Request, exc: ValidationError):
        return error_response(first_validation_message(exc.errors()), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return error_response(DATABASE_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(GENERIC_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)
