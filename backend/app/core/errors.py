"""Error Hierarchy — typed, categorized exceptions for all Airform failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope; its keys are camelCase like every
      other API payload
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AirformError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - SubmissionRejectedError is WARNING severity: a respondent skipping a required
      question is expected, not a system fault
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    form_id: str | None = None
    question_key: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class AirformError(Exception):
    """Base exception for all Airform errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def details(self) -> dict[str, Any]:
        """Error-specific payload merged into the response envelope."""
        return {}

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": {
                "formId": self.context.form_id,
                "questionKey": self.context.question_key,
                "operation": self.context.operation,
                "retryAfterMs": self.context.retry_after_ms,
            },
        }
        body.update(self.details())
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class SubmissionRejectedError(AirformError):
    """Visible required questions were left unanswered."""
    def __init__(self, missing_required_keys: list[str], context: ErrorContext | None = None):
        super().__init__(
            "Missing required fields",
            "MISSING_REQUIRED_FIELDS", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.missing_required_keys = missing_required_keys

    def details(self) -> dict[str, Any]:
        return {"fields": self.missing_required_keys}


class FormDefinitionError(AirformError):
    """Form definition is malformed (duplicate keys, bad condition references)."""
    def __init__(self, problems: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Invalid form definition: {'; '.join(problems)}",
            "INVALID_FORM_DEFINITION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.problems = problems

    def details(self) -> dict[str, Any]:
        return {"problems": self.problems}


class OAuthError(AirformError):
    """OAuth callback could not be completed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "OAUTH_ERROR", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 400,
        )


class AuthenticationError(AirformError):
    """Caller could not be identified."""
    def __init__(self, message: str = "User ID required", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AccessDeniedError(AirformError):
    """Caller does not own the requested resource."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Access denied", "ACCESS_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(AirformError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(AirformError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AirtableAPIError(AirformError):
    """Airtable API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Airtable API error ({api_error_type}): {message}",
            "AIRTABLE_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.api_error_type = api_error_type
        self.status_code = status_code


class ExternalWriteFailedError(AirformError):
    """Every external write of a submission failed; nothing reached Airtable."""
    def __init__(self, failures: list, context: ErrorContext | None = None):
        super().__init__(
            f"All {len(failures)} external write(s) failed",
            "EXTERNAL_WRITE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.failures = failures

    def details(self) -> dict[str, Any]:
        return {
            "failures": [
                {"operation": f.operation, "questionKey": f.question_key}
                for f in self.failures
            ],
        }
