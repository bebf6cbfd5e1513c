"""
Error taxonomy shared by services and routes.

Every error is an HTTPException so FastAPI renders it without extra handlers;
backend failures from PostgREST are mapped with translate_api_error.
"""

import logging
from fastapi import HTTPException, status
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)


class UnauthenticatedError(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    # Generic detail: never says whether the row exists
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationFailedError(HTTPException):
    def __init__(self, detail: str = "Validation failed"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class TransientIOError(HTTPException):
    def __init__(self, detail: str = "Storage backend unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


# Postgres SQLSTATE codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
_VALIDATION_CODES = {"23503", "23502", "23514", "22P02"}
_FORBIDDEN_CODES = {"42501"}


def translate_api_error(error: Exception, context: str = "") -> HTTPException:
    """Map a backend exception to the error taxonomy."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, APIError):
        code = error.code or ""
        if code == UNIQUE_VIOLATION:
            return ConflictError("Resource already exists")
        if code in _VALIDATION_CODES:
            return ValidationFailedError(error.message or "Invalid data")
        if code in _FORBIDDEN_CODES:
            return ForbiddenError()
    logger.error(f"Backend failure{' during ' + context if context else ''}: {error}")
    return TransientIOError()
