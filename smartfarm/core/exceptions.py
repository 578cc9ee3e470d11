"""
Domain error taxonomy and the HTTP mapping applied at the API boundary.

Services raise these errors; the handlers registered by
``register_exception_handlers`` turn them into JSON responses. Persistence
and unexpected failures are logged with their cause and answered with a
generic 500 body.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SmartFarmError(Exception):
    """Base class for errors raised by the service layer"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "internal_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.error_code, "detail": self.detail}


class ValidationError(SmartFarmError, ValueError):
    """Malformed or out-of-range input"""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "validation_error"

    def __init__(self, field: str, reason: str):
        super().__init__(reason)
        self.field = field

    def to_dict(self) -> dict:
        return {"error": self.error_code, "field": self.field, "detail": self.detail}


class NotFoundError(SmartFarmError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"


class AuthenticationError(SmartFarmError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthorized"


class AuthorizationError(SmartFarmError):
    """Actor lacks ownership or the required role"""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "forbidden"


class ConflictError(SmartFarmError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"


class InvalidTransitionError(ConflictError):
    """Requested status change is not allowed from the current status"""

    def __init__(self, current_status: str, target_status: str, detail: Optional[str] = None):
        super().__init__(
            detail or f"Cannot move loan from '{current_status}' to '{target_status}'"
        )
        self.current_status = current_status
        self.target_status = target_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "current_status": self.current_status,
            "target_status": self.target_status,
        })
        return data


class PersistenceError(SmartFarmError):
    """A storage operation failed"""


INTERNAL_ERROR_BODY = {"error": "internal_error", "detail": "Internal server error"}


async def smartfarm_error_handler(request: Request, exc: SmartFarmError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.detail}",
            exc_info=exc.__cause__ or exc
        )
        return JSONResponse(status_code=exc.status_code, content=INTERNAL_ERROR_BODY)

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=INTERNAL_ERROR_BODY
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handlers to the application"""
    app.add_exception_handler(SmartFarmError, smartfarm_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
