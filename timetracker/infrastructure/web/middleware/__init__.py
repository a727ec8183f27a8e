"""Web middleware."""

from .error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
    BusinessException,
    ValidationException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    ConflictException,
    TooManyRequestsException,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "register_exception_handlers",
    "BusinessException",
    "ValidationException",
    "NotFoundException",
    "UnauthorizedException",
    "ForbiddenException",
    "ConflictException",
    "TooManyRequestsException",
]
