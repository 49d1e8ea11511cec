"""
Error taxonomy and FastAPI handlers
Standardized error responses for session and report operations
"""
import logging
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from fastapi.exceptions import RequestValidationError


class ErrorCategory(str, Enum):
    """Categories of errors for better classification"""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    BUSINESS_LOGIC = "business_logic"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorResponse(BaseModel):
    """Standardized error response model"""
    error: str = Field(..., description="Error identifier")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    request_id: str = Field(..., description="Unique request identifier")
    timestamp: str = Field(..., description="ISO timestamp of the error")
    category: ErrorCategory
    severity: ErrorSeverity
    user_message: Optional[str] = None
    suggested_action: Optional[str] = None
    stack_trace: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "no_active_session",
                "message": "No active session for interview 5f2c...",
                "details": {"interview_id": "5f2c..."},
                "request_id": "0b7c...",
                "timestamp": "2025-01-15T10:30:00+00:00",
                "category": "business_logic",
                "severity": "medium",
                "user_message": "This interview has no session in progress.",
                "suggested_action": "Start a new session before sending messages.",
            }
        }
    )


class ApplicationError(Exception):
    """Base application error with rich context"""

    def __init__(
        self,
        error_code: str,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggested_action: Optional[str] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.category = category
        self.severity = severity
        self.status_code = status_code
        self.details = details or {}
        self.user_message = user_message
        self.suggested_action = suggested_action
        self.request_id = str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)


class ValidationError(ApplicationError):
    """Missing or malformed input (InvalidInput)"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            error_code="invalid_input",
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.MEDIUM,
            status_code=422,
            details={"field": field} if field else None,
            user_message="Some required information is missing or invalid.",
            suggested_action="Check the request fields and try again.",
        )


class AuthenticationError(ApplicationError):
    """No caller identity (Unauthenticated)"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            error_code="unauthenticated",
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            status_code=401,
            user_message="You need to sign in.",
            suggested_action="Sign in or refresh your token.",
        )


class AuthorizationError(ApplicationError):
    """Caller does not own the resource (Unauthorized)"""

    def __init__(self, message: str = "Access denied", resource_type: Optional[str] = None):
        super().__init__(
            error_code="unauthorized",
            message=message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            status_code=403,
            details={"resource_type": resource_type} if resource_type else None,
            user_message="You do not have access to this resource.",
        )


class NotFoundError(ApplicationError):
    """Resource not found error"""

    def __init__(self, resource_type: str, resource_id: Optional[Union[str, int]] = None):
        message = f"{resource_type} not found"
        if resource_id:
            message += f" (ID: {resource_id})"

        super().__init__(
            error_code="resource_not_found",
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
            user_message="The requested resource could not be found.",
            suggested_action="Check the resource id and try again.",
        )


class NoActiveSessionError(ApplicationError):
    """Operation needs an active session and none exists"""

    def __init__(self, interview_id: str):
        super().__init__(
            error_code="no_active_session",
            message=f"No active session for interview {interview_id}",
            category=ErrorCategory.BUSINESS_LOGIC,
            severity=ErrorSeverity.MEDIUM,
            status_code=409,
            details={"interview_id": interview_id},
            user_message="This interview has no session in progress.",
            suggested_action="Start a new session before sending messages.",
        )


class SessionConflictError(ApplicationError):
    """An active session already exists for the interview"""

    def __init__(self, interview_id: str, session_id: str):
        super().__init__(
            error_code="session_conflict",
            message=f"Interview {interview_id} already has an active session",
            category=ErrorCategory.BUSINESS_LOGIC,
            severity=ErrorSeverity.MEDIUM,
            status_code=409,
            details={"interview_id": interview_id, "session_id": session_id},
            user_message="A session for this interview is already running.",
            suggested_action="Resume or end the running session first.",
        )


class AnalysisFailure(Exception):
    """Raised inside analyzers when an LLM result is unusable; always absorbed into a fallback."""

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind}: {reason}")


class ErrorHandler:
    """Centralized error handling system"""

    def __init__(self):
        self.logger = logging.getLogger("errors")
        self.development_mode = False

    async def handle_application_error(self, request: Request, error: ApplicationError) -> JSONResponse:
        self._log_error(request, error)

        response = ErrorResponse(
            error=error.error_code,
            message=error.message,
            details=error.details or None,
            request_id=error.request_id,
            timestamp=error.timestamp.isoformat(),
            category=error.category,
            severity=error.severity,
            user_message=error.user_message,
            suggested_action=error.suggested_action,
        )
        if self.development_mode:
            source = error.__cause__ or error
            response.stack_trace = "".join(
                traceback.format_exception(type(source), source, source.__traceback__)
            )

        return JSONResponse(
            status_code=error.status_code,
            content=response.model_dump(mode="json", exclude_none=True),
        )

    async def handle_http_exception(self, request: Request, exc: HTTPException) -> JSONResponse:
        error = ApplicationError(
            error_code=f"http_{exc.status_code}",
            message=str(exc.detail),
            category=self._categorize_http_exception(exc.status_code),
            severity=ErrorSeverity.CRITICAL if exc.status_code >= 500 else ErrorSeverity.LOW,
            status_code=exc.status_code,
        )
        return await self.handle_application_error(request, error)

    async def handle_validation_exception(self, request: Request, exc: Exception) -> JSONResponse:
        fields = []
        if isinstance(exc, (PydanticValidationError, RequestValidationError)):
            fields = [".".join(str(loc) for loc in err["loc"]) for err in exc.errors()]
        error = ValidationError(message="Validation failed", field=", ".join(fields) or None)
        error.__cause__ = exc
        return await self.handle_application_error(request, error)

    async def handle_generic_exception(self, request: Request, exc: Exception) -> JSONResponse:
        error = ApplicationError(
            error_code="internal_server_error",
            message="An unexpected error occurred",
            category=ErrorCategory.SYSTEM,
            severity=ErrorSeverity.CRITICAL,
            status_code=500,
            details={"exception_type": type(exc).__name__},
            user_message="Something went wrong on our side.",
            suggested_action="Please try again in a few minutes.",
        )
        self.logger.error(
            f"Unhandled exception: {exc}",
            extra={
                "request_id": error.request_id,
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
            exc_info=True,
        )
        error.__cause__ = exc
        return await self.handle_application_error(request, error)

    def _log_error(self, request: Request, error: ApplicationError) -> None:
        log_data = {
            "request_id": error.request_id,
            "error_code": error.error_code,
            "category": error.category.value,
            "severity": error.severity.value,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
        }
        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(error.message, extra=log_data)
        elif error.severity == ErrorSeverity.HIGH:
            self.logger.error(error.message, extra=log_data)
        elif error.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(error.message, extra=log_data)
        else:
            self.logger.info(error.message, extra=log_data)

    def _categorize_http_exception(self, status_code: int) -> ErrorCategory:
        if status_code == 401:
            return ErrorCategory.AUTHENTICATION
        if status_code == 403:
            return ErrorCategory.AUTHORIZATION
        if status_code == 404:
            return ErrorCategory.NOT_FOUND
        if 400 <= status_code < 500:
            return ErrorCategory.VALIDATION
        return ErrorCategory.SYSTEM


# Global error handler
error_handler = ErrorHandler()


async def application_error_handler(request: Request, exc: ApplicationError):
    return await error_handler.handle_application_error(request, exc)


async def http_exception_handler(request: Request, exc: HTTPException):
    return await error_handler.handle_http_exception(request, exc)


async def validation_exception_handler(request: Request, exc: Exception):
    return await error_handler.handle_validation_exception(request, exc)


async def generic_exception_handler(request: Request, exc: Exception):
    return await error_handler.handle_generic_exception(request, exc)
