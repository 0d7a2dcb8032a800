"""
Middleware Package

Provides FastAPI middleware for error handling and the service exception
hierarchy it renders.
"""

from lms.middleware.error_handling import (
    AuthorizationError,
    ConflictError,
    ErrorHandlingMiddleware,
    NotFoundError,
    PersistenceError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
    setup_error_handling,
)

__all__ = [
    "AuthorizationError",
    "ConflictError",
    "ErrorHandlingMiddleware",
    "NotFoundError",
    "PersistenceError",
    "ServiceError",
    "UnauthorizedError",
    "ValidationError",
    "setup_error_handling",
]
