# =============================================================================
# HELPDESK API - CENTRALIZED EXCEPTIONS
# =============================================================================
# Custom exceptions and the single responder mapping them to HTTP responses
# =============================================================================

import logging
from typing import Optional, Dict, Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class HelpdeskException(Exception):
    """
    Base exception for the helpdesk API.

    Every custom exception extends this class; the exception handlers
    registered in register_exception_handlers() turn it into a
    {success: false, message} response with its status code.
    """
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    detail: str = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None, extra: Dict[str, Any] = None):
        self.detail = detail or self.__class__.detail
        self.extra = extra or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Dictionary form for logging."""
        return {
            "code": self.code,
            "status_code": self.status_code,
            "message": self.detail,
            **self.extra
        }


# =============================================================================
# STANDARD HTTP EXCEPTIONS
# =============================================================================

class ValidationError(HelpdeskException):
    """Missing or invalid field (400)."""
    status_code = 400
    code = "VALIDATION_ERROR"
    detail = "Validation error"


class UnauthorizedError(HelpdeskException):
    """Missing or invalid credentials (401)."""
    status_code = 401
    code = "UNAUTHORIZED"
    detail = "Unauthorized Access"


class ForbiddenError(HelpdeskException):
    """Role or ownership violation (403)."""
    status_code = 403
    code = "FORBIDDEN"
    detail = "Access denied"


class NotFoundError(HelpdeskException):
    """Entity absent (404)."""
    status_code = 404
    code = "NOT_FOUND"
    detail = "Resource not found"


class ConflictError(HelpdeskException):
    """Conflict with current state (409)."""
    status_code = 409
    code = "CONFLICT"
    detail = "Conflict with the current state of the resource"


class UpstreamError(HelpdeskException):
    """Storage or AI collaborator failure blocking the request (500)."""
    status_code = 500
    code = "UPSTREAM_FAILURE"
    detail = "Upstream service failure"


# =============================================================================
# DOMAIN EXCEPTIONS
# =============================================================================

class TicketNotFoundError(NotFoundError):
    code = "TICKET_NOT_FOUND"
    detail = "Ticket not found"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    detail = "User not found"


class DataEntryNotFoundError(NotFoundError):
    code = "DATA_ENTRY_NOT_FOUND"
    detail = "Data entry not found"


class EmailAlreadyRegisteredError(ConflictError):
    code = "EMAIL_ALREADY_REGISTERED"
    detail = "User with this email already exists"


class InvalidCredentialsError(UnauthorizedError):
    code = "INVALID_CREDENTIALS"
    detail = "Invalid email or password"


class AttachmentUploadError(UpstreamError):
    code = "ATTACHMENT_UPLOAD_FAILED"
    detail = "Failed to upload attachment"


class ImageUploadError(UpstreamError):
    code = "IMAGE_UPLOAD_FAILED"
    detail = "Failed to upload image"


# =============================================================================
# CENTRALIZED RESPONDER
# =============================================================================

def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the exception handlers that render every error uniformly."""

    @app.exception_handler(HelpdeskException)
    async def helpdesk_exception_handler(request: Request, exc: HelpdeskException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.to_dict()}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content=error_body(message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(_first_validation_message(exc)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body("Internal Server Error"))
