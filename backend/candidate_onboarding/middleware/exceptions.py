"""Error types and handlers for the identity/profile service.

Every failure leaves the service in one envelope, which the onboarding
client turns into a ProfileBackendError carrying `message`:

    {"error": {"code": "ERROR_CODE", "message": "...", "details": {...}}}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class OnboardingServiceError(Exception):
    """Base for errors the service reports deliberately."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code or self.default_code
        super().__init__(message)


class BusinessLogicError(OnboardingServiceError):
    """Request is well-formed but not acceptable (e.g. a bad upload)."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "BUSINESS_LOGIC_ERROR"


class ResourceNotFoundError(OnboardingServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")


class ConflictError(OnboardingServiceError):
    """Duplicate record or an illegal onboarding state change."""
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class PermissionDeniedError(OnboardingServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


# Substring of the driver message → (status, code, client message)
_INTEGRITY_RULES = (
    ("unique", status.HTTP_409_CONFLICT, "DUPLICATE_RECORD", "A record with this value already exists"),
    ("foreign key", status.HTTP_422_UNPROCESSABLE_ENTITY, "FOREIGN_KEY_VIOLATION", "Referenced record does not exist"),
    ("not null", status.HTTP_422_UNPROCESSABLE_ENTITY, "NULL_VALUE_NOT_ALLOWED", "Required field is missing"),
)


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: dict | list | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _where(request: Request) -> str:
    return f"{request.method} {request.url.path}"


async def service_error_handler(request: Request, exc: OnboardingServiceError) -> JSONResponse:
    logger.warning("%s → %s: %s", _where(request), exc.error_code, exc.message)
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s → HTTP %d: %s", _where(request), exc.status_code, exc.detail)
    return create_error_response(
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.info("%s → validation failed on %d field(s)", _where(request), len(errors))
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        details={"errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    driver_message = str(exc.orig if exc.orig is not None else exc).lower()
    logger.error("%s → integrity error: %s", _where(request), driver_message)

    for needle, status_code, code, message in _INTEGRITY_RULES:
        if needle in driver_message:
            return create_error_response(status_code, message, code)
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Database constraint violation",
        "INTEGRITY_ERROR",
    )


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("%s → database unavailable: %s", _where(request), exc)
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s → unhandled %s", _where(request), type(exc).__name__, exc_info=exc)
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OnboardingServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
