"""
Custom Exception Classes and Handlers
Provides consistent error responses across the API
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from typing import Any, Dict
from uuid import UUID
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


# ============================================================================
# CUSTOM EXCEPTION CLASSES
# ============================================================================

class BaseAPIException(HTTPException):
    """Base exception class for all API exceptions"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str = None,
        headers: Dict[str, Any] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or self.__class__.__name__


# ============================================================================
# PROPERTY EXCEPTIONS
# ============================================================================

class PropertyNotFoundException(BaseAPIException):
    """Raised when property is not found"""

    def __init__(self, property_id: UUID):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property {property_id} not found",
            error_code="PROPERTY_NOT_FOUND"
        )
        self.property_id = property_id


# ============================================================================
# USER EXCEPTIONS
# ============================================================================

class UserNotFoundException(BaseAPIException):
    """Raised when user is not found"""

    def __init__(self, user_id: UUID = None, email: str = None):
        identifier = str(user_id) if user_id else email
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {identifier} not found",
            error_code="USER_NOT_FOUND"
        )


class UserAlreadyExistsException(BaseAPIException):
    """Raised when trying to create user with existing email"""

    def __init__(self, email: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with email {email} already exists",
            error_code="USER_ALREADY_EXISTS"
        )


class InvalidCredentialsException(BaseAPIException):
    """Raised when login credentials are invalid"""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            error_code="INVALID_CREDENTIALS",
            headers={"WWW-Authenticate": "Bearer"}
        )


class IncorrectPasswordException(BaseAPIException):
    """Raised when the current password does not match on password change"""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect password",
            error_code="INCORRECT_PASSWORD"
        )


class InactiveUserException(BaseAPIException):
    """Raised when user account is inactive"""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
            error_code="INACTIVE_USER"
        )


# ============================================================================
# AUTHENTICATION EXCEPTIONS
# ============================================================================

class InvalidTokenException(BaseAPIException):
    """Raised when JWT token is missing, invalid or expired"""

    def __init__(self, reason: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=reason,
            error_code="INVALID_TOKEN",
            headers={"WWW-Authenticate": "Bearer"}
        )


class InsufficientPermissionsException(BaseAPIException):
    """Raised when user doesn't have required permissions"""

    def __init__(self, required_role: str = None):
        message = "Insufficient permissions to access this resource"
        if required_role:
            message += f". Required role: {required_role}"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
            error_code="INSUFFICIENT_PERMISSIONS"
        )


# ============================================================================
# SEARCH EXCEPTIONS
# ============================================================================

class InvalidSearchQueryException(BaseAPIException):
    """Raised when a search criterion cannot be interpreted"""

    def __init__(self, message: str, field: str = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid search query: {message}",
            error_code="INVALID_SEARCH_QUERY"
        )
        self.field = field


# ============================================================================
# FAVORITE EXCEPTIONS
# ============================================================================

class FavoriteAlreadyExistsException(BaseAPIException):
    """Raised when trying to add duplicate favorite"""

    def __init__(self, property_id: UUID):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Property already in favorites",
            error_code="FAVORITE_ALREADY_EXISTS"
        )
        self.property_id = property_id


class FavoriteNotFoundException(BaseAPIException):
    """Raised when favorite is not found"""

    def __init__(self, property_id: UUID):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Favorite not found",
            error_code="FAVORITE_NOT_FOUND"
        )
        self.property_id = property_id


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def _error_body(code: str, message: Any, request: Request, **extra) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
            **extra
        }
    }


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """
    Handler for custom API exceptions
    Returns consistent error format
    """
    logger.error(
        f"API Exception: {exc.error_code} - {exc.detail}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.detail, request),
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handler for Pydantic validation errors
    Returns detailed field-level errors
    """
    logger.warning(
        f"Validation Error: {request.url.path}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            "VALIDATION_ERROR",
            "Request validation failed",
            request,
            details=jsonable_encoder(exc.errors())
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for standard HTTP exceptions"""
    logger.error(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(f"HTTP_{exc.status_code}", exc.detail, request),
        headers=getattr(exc, "headers", None)
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handler for database-related exceptions

    An unreachable database is reported as 503 so callers can tell
    it apart from an empty result.
    """
    logger.error(
        f"Database Exception: {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )

    # Integrity errors (unique constraints, foreign keys, etc.)
    if isinstance(exc, IntegrityError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body(
                "DATABASE_INTEGRITY_ERROR",
                "A database constraint was violated",
                request
            )
        )

    # Operational errors (connection issues, timeouts, etc.)
    if isinstance(exc, OperationalError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body(
                "DATABASE_UNAVAILABLE",
                "Database is temporarily unavailable",
                request
            )
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "DATABASE_ERROR",
            "An unexpected database error occurred",
            request
        )
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unhandled exceptions
    Logs detailed error and returns generic message to user
    """
    logger.critical(
        f"Unhandled Exception: {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
            request
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application"""
    app.add_exception_handler(BaseAPIException, base_api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
