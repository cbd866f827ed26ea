"""Base exception and error taxonomy for the delivery pipeline.

Every domain error carries an ErrorType (who has to act) and an
ErrorCode (what went wrong). The error handler uses both to pick a user
message, recovery actions and whether operators are alerted.
"""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    """Who has to act on an error.

    Values:
        USER: Bad input; surfaced to the caller, never retried.
        SYSTEM: Broken configuration or storage; needs an operator.
        INTEGRATION: An external service rejected or failed the call.
        TEMPORARY: Transient condition expected to clear on retry.
    """

    USER = "user"
    SYSTEM = "system"
    INTEGRATION = "integration"
    TEMPORARY = "temporary"


class ErrorCode(str, Enum):
    """What went wrong."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONTENT_REJECTED = "CONTENT_REJECTED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    DOCUMENT_SERVICE_ERROR = "DOCUMENT_SERVICE_ERROR"
    AI_PROVIDER_ERROR = "AI_PROVIDER_ERROR"
    EMAIL_DELIVERY_ERROR = "EMAIL_DELIVERY_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    UNKNOWN = "UNKNOWN"


class DeliveryPipelineError(Exception):
    """Base exception for all pipeline domain errors.

    Subclasses override error_type and error_code so the error handler
    can classify them without pattern matching on messages.
    """

    error_type: ErrorType = ErrorType.SYSTEM
    error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
