"""
Error handling and sanitization

- Domain errors (BrewHavenError) → {"error": code, "message": message}
- Request validation errors → 400 validation_error
- Anything unhandled → logged with traceback, generic 500 to the client
"""
import logging
import traceback
from typing import Union

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from brewhaven.core.config import settings
from brewhaven.core.exceptions import BrewHavenError, InternalError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

# Patterns that indicate internal/sensitive error information
SENSITIVE_PATTERNS = [
    "password",
    "secret",
    "token",
    "credential",
    "sqlalchemy",
    "asyncpg",
    "postgresql",
    "sqlite",
    "traceback",
    "file \"",
    "/brewhaven/",
]


def is_sensitive_error(message: str) -> bool:
    """Check if error message contains sensitive information."""
    message_lower = message.lower()
    return any(pattern in message_lower for pattern in SENSITIVE_PATTERNS)


def sanitize_error_message(error: Union[str, Exception]) -> str:
    """Return a message safe to show the client."""
    message = error if isinstance(error, str) else str(error)

    if settings.DEBUG:
        return message

    if is_sensitive_error(message):
        return "An internal error occurred. Please try again later."

    if len(message) > 200:
        return message[:200] + "..."

    return message


async def brewhaven_error_handler(request: Request, exc: BrewHavenError) -> JSONResponse:
    """Render a domain error with its stable code."""
    if isinstance(exc, InternalError) or exc.status_code >= 500:
        logger.error(
            f"Internal error on {request.method} {request.url.path}: {exc!r}",
            exc_info=exc,
        )
        message = GENERIC_ERROR_MESSAGE
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}"
        )
        message = sanitize_error_message(exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": message},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client errors (400), not 422."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))

    return JSONResponse(
        status_code=400,
        content={
            "error": "validation_error",
            "message": "; ".join(problems) or "Invalid request",
        },
    )


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and sanitize error responses.

    - In production: Returns generic error, logs full details
    - In development: Returns full error for debugging
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            error_id = f"{request.client.host if request.client else 'unknown'}-{id(e)}"
            logger.error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}\n"
                f"Path: {request.url.path}\n"
                f"Method: {request.method}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            content = {
                "error": "internal_error",
                "message": GENERIC_ERROR_MESSAGE,
                "error_id": error_id,
            }
            if settings.DEBUG:
                content["message"] = str(e)
                content["type"] = type(e).__name__

            return JSONResponse(status_code=500, content=content)
