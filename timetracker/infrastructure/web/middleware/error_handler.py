"""
Global error handling for the FastAPI application.
Maps exceptions onto status codes and renders them as JSON or as an HTML page.
"""

import json
import logging
import traceback
from http import HTTPStatus
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response

from timetracker.config import settings
from timetracker.domain.models.base import (
    BusinessRuleViolation,
    DomainException,
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)
from timetracker.infrastructure.integrations.jira.exceptions import (
    JiraApiException,
    JiraApiUnauthorizedException,
)

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again later."
JSON_PATH_PARTS = ("/api/", "/tracking/", "/interpretation/", "/settings/")
JSON_PATH_SUFFIXES = ("/save", "/delete")
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


class BusinessException(Exception):
    """
    Base exception for business logic errors.
    """
    def __init__(
        self,
        message: str,
        error_code: str = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Dict[str, Any] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(BusinessException):
    """Exception raised for validation errors."""
    def __init__(self, message: str, field: str = None, **kwargs):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            **kwargs
        )
        if field:
            self.details["field"] = field


class NotFoundException(BusinessException):
    """Exception raised when a resource is not found."""
    def __init__(self, message: str = "No entry for id.", **kwargs):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            **kwargs
        )


class UnauthorizedException(BusinessException):
    """Exception raised for authentication errors."""
    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=status.HTTP_401_UNAUTHORIZED,
            **kwargs
        )


class ForbiddenException(BusinessException):
    """Exception raised for authorization errors."""
    def __init__(self, message: str = "You are not allowed to perform this action.", **kwargs):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
            **kwargs
        )


class ConflictException(BusinessException):
    """Exception raised for conflict errors."""
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            **kwargs
        )


class TooManyRequestsException(BusinessException):
    """Exception raised when a client exceeds its request budget."""
    def __init__(self, message: str = "Too many requests", retry_after: int = 60, **kwargs):
        super().__init__(
            message=message,
            error_code="TOO_MANY_REQUESTS",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            **kwargs
        )
        self.retry_after = retry_after


DOMAIN_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DuplicateEntityError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    EntityNotFoundError: status.HTTP_404_NOT_FOUND,
    BusinessRuleViolation: status.HTTP_400_BAD_REQUEST,
}


def wants_json(request: Request) -> bool:
    """Ajax calls and API routes get JSON, browsers navigating get an HTML page."""
    if "json" in request.headers.get("accept", "").lower():
        return True
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return True

    path = request.url.path
    if any(part in path for part in JSON_PATH_PARTS):
        return True
    return path.startswith("/get") or path.endswith(JSON_PATH_SUFFIXES)


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _violations(errors) -> list:
    violations = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        violations.append({"field": ".".join(location), "message": error.get("msg", "")})
    return violations


def classify_exception(exc: Exception) -> Tuple[int, str, str, Dict[str, Any], Dict[str, str]]:
    """
    Status code, error type, message, extra body fields and headers of an exception.
    """
    details: Dict[str, Any] = {}
    headers: Dict[str, str] = {}

    if isinstance(exc, BusinessException):
        if isinstance(exc, TooManyRequestsException):
            headers["Retry-After"] = str(exc.retry_after)
        return exc.status_code, exc.error_code or _phrase(exc.status_code), exc.message, dict(exc.details), headers

    if isinstance(exc, DomainException):
        status_code = next(
            (code for cls, code in DOMAIN_STATUS.items() if isinstance(exc, cls)),
            status.HTTP_400_BAD_REQUEST,
        )
        if getattr(exc, "field", None):
            details["field"] = exc.field
        return status_code, exc.code, exc.message, details, headers

    if isinstance(exc, RequestValidationError):
        details["violations"] = _violations(exc.errors())
        return status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Validation failed", details, headers

    if isinstance(exc, PydanticValidationError):
        details["violations"] = _violations(exc.errors())
        return status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Validation failed", details, headers

    if isinstance(exc, StarletteHTTPException):
        headers.update(getattr(exc, "headers", None) or {})
        message = exc.detail if isinstance(exc.detail, str) else _phrase(exc.status_code)
        if isinstance(exc.detail, dict):
            details.update(exc.detail)
        return exc.status_code, _phrase(exc.status_code), message, details, headers

    if isinstance(exc, JiraApiUnauthorizedException):
        details["redirect_url"] = exc.redirect_url
        return status.HTTP_401_UNAUTHORIZED, "JIRA_UNAUTHORIZED", exc.message, details, headers

    if isinstance(exc, JiraApiException):
        return status.HTTP_502_BAD_GATEWAY, "JIRA_ERROR", exc.message, details, headers

    if isinstance(exc, json.JSONDecodeError):
        return status.HTTP_400_BAD_REQUEST, "Invalid JSON", "The request body contains invalid JSON", details, headers
    if isinstance(exc, ValueError):
        return status.HTTP_400_BAD_REQUEST, "Bad Request", str(exc), details, headers
    if isinstance(exc, PermissionError):
        return (
            status.HTTP_403_FORBIDDEN, "Forbidden",
            "You don't have permission to perform this action", details, headers,
        )
    if isinstance(exc, (FileNotFoundError, LookupError)):
        return status.HTTP_404_NOT_FOUND, "Not Found", str(exc) or "Resource not found", details, headers
    if isinstance(exc, TimeoutError):
        return (
            status.HTTP_408_REQUEST_TIMEOUT, "Request Timeout",
            "The request took too long to process", details, headers,
        )

    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error",
        str(exc) or "An unexpected error occurred", details, headers,
    )


def _debug_info(exc: Exception) -> Dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last = frames[-1] if frames else None
    return {
        "exception_type": type(exc).__name__,
        "file": last.filename if last else None,
        "line": last.lineno if last else None,
        "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
    }


def render_error_page(status_code: int, error: str, message: str) -> str:
    template = _templates.get_template("error.html")
    return template.render(status_code=status_code, error=error, message=message)


def build_error_response(request: Request, exc: Exception) -> Response:
    """Log the exception and format it for the client."""
    status_code, error, message, details, headers = classify_exception(exc)

    if status_code >= 500:
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=exc,
            extra={
                "request_path": request.url.path,
                "request_method": request.method,
                "client_host": request.client.host if request.client else None
            }
        )
        if not settings.expose_error_details:
            message = GENERIC_SERVER_ERROR
    else:
        logger.warning(f"{request.method} {request.url.path} failed with {status_code}: {message}")

    if not wants_json(request):
        return HTMLResponse(
            render_error_page(status_code, error, message),
            status_code=status_code,
            headers=headers,
        )

    body = {"error": error, "message": message, "status_code": status_code}
    body.update(details)
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    if settings.expose_error_details and status_code >= 500:
        body["debug"] = _debug_info(exc)

    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def handle_exception(request: Request, exc: Exception) -> Response:
    return build_error_response(request, exc)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle all uncaught exceptions and format error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return build_error_response(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers for every exception type with a known status."""
    for exception_class in (
        BusinessException,
        DomainException,
        RequestValidationError,
        PydanticValidationError,
        StarletteHTTPException,
        JiraApiException,
        ValueError,
        PermissionError,
        LookupError,
        TimeoutError,
    ):
        app.add_exception_handler(exception_class, handle_exception)
