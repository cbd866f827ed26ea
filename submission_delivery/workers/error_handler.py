"""Error classification and handling for the delivery pipeline.

Errors are classified along two axes:

- ErrorType: who has to act (user, system, integration, temporary)
- ErrorCode: what went wrong (timeout, rate limit, configuration, ...)

Domain errors carry their own type and code. Anything else (network
exceptions, HTTP client errors, SMTP errors surfacing unwrapped) is
classified from registered exception types first, then from the
exception name and message.

The resilience layer asks is_retriable_error() whether an attempt is
worth repeating; the orchestrator and delivery queue hand terminal
failures to PipelineErrorHandler.handle() which logs them with context
and alerts operators for configuration and database failures.
"""

from __future__ import annotations

import asyncio
import errno
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

import httpx
import structlog
from sqlalchemy.exc import SQLAlchemyError

from submission_delivery.application.ports.admin_notifier import (
    AdminAlert,
    AdminNotifierPort,
    AlertSeverity,
)
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError

logger = structlog.get_logger(__name__)


class RecoveryStrategy(str, Enum):
    """How a failure can be recovered from."""

    RETRY = "retry"
    FALLBACK = "fallback"
    MANUAL_INTERVENTION = "manual_intervention"
    GRACEFUL_DEGRADATION = "graceful_degradation"


@dataclass(frozen=True)
class RecoveryAction:
    """One recovery option, lower priority value tried first."""

    strategy: RecoveryStrategy
    description: str
    priority: int


@dataclass(frozen=True)
class ClassifiedError:
    """An error with its classification and handling guidance.

    Attributes:
        id: Identifier quoted in logs and alerts.
        error_type: Who has to act.
        error_code: What went wrong.
        message: Technical message.
        user_message: Message safe to show a citizen.
        retryable: Whether repeating the operation may succeed.
        recovery_actions: Ordered recovery options.
        context: Operation context (operation, submission id, metadata).
    """

    id: str
    error_type: ErrorType
    error_code: ErrorCode
    message: str
    user_message: str
    retryable: bool
    recovery_actions: tuple[RecoveryAction, ...] = ()
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def requires_admin_alert(self) -> bool:
        """Whether operators must be alerted."""
        return self.error_code in ADMIN_ALERT_CODES

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API error bodies."""
        return {
            "id": self.id,
            "type": self.error_type.value,
            "code": self.error_code.value,
            "message": self.message,
            "user_message": self.user_message,
            "retryable": self.retryable,
            "recovery_actions": [
                {
                    "strategy": action.strategy.value,
                    "description": action.description,
                    "priority": action.priority,
                }
                for action in self.recovery_actions
            ],
        }


# Error type registry for exceptions that do not carry a classification
ERROR_CLASSIFICATIONS: dict[type[BaseException], tuple[ErrorType, ErrorCode]] = {}


def register_error_classification(
    error_class: type[BaseException],
    error_type: ErrorType,
    error_code: ErrorCode,
) -> None:
    """Register an exception class with its classification.

    Args:
        error_class: The exception type.
        error_type: Who has to act.
        error_code: What went wrong.
    """
    ERROR_CLASSIFICATIONS[error_class] = (error_type, error_code)


ADMIN_ALERT_CODES: frozenset[ErrorCode] = frozenset(
    {ErrorCode.DATABASE_ERROR, ErrorCode.CONFIGURATION_ERROR}
)

RETRIABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429})

RETRIABLE_MESSAGE_PATTERNS: tuple[str, ...] = (
    "timeout",
    "timed out",
    "rate limit",
    "quota",
    "service unavailable",
    "temporary",
    "temporarily",
)

NETWORK_ERRNOS: frozenset[int] = frozenset(
    {
        errno.ECONNRESET,
        errno.ECONNREFUSED,
        errno.ECONNABORTED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
        errno.EPIPE,
    }
)

USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Please check your submission details and try again.",
    ErrorCode.CONTENT_REJECTED: (
        "Your submission text could not be accepted. Please remove links, "
        "emojis or unusual characters and try again."
    ),
    ErrorCode.NOT_FOUND: "We could not find that submission.",
    ErrorCode.CONFLICT: "This submission is already being processed.",
    ErrorCode.DATABASE_ERROR: (
        "We are experiencing technical difficulties. Your submission is safe "
        "and our team has been notified."
    ),
    ErrorCode.CONFIGURATION_ERROR: (
        "This campaign is not fully set up yet. Our team has been notified."
    ),
    ErrorCode.DOCUMENT_SERVICE_ERROR: (
        "We could not prepare your documents right now. We will try again shortly."
    ),
    ErrorCode.AI_PROVIDER_ERROR: (
        "We could not prepare your submission text right now. "
        "We will try again shortly."
    ),
    ErrorCode.EMAIL_DELIVERY_ERROR: (
        "We could not send your email yet. It has been queued and will be "
        "retried automatically."
    ),
    ErrorCode.RATE_LIMIT_EXCEEDED: (
        "We are handling a lot of submissions right now. Please wait a moment."
    ),
    ErrorCode.TIMEOUT: "The request took too long. Please try again.",
    ErrorCode.SERVICE_UNAVAILABLE: (
        "A service we depend on is temporarily unavailable. Please try again later."
    ),
    ErrorCode.QUOTA_EXCEEDED: (
        "We have reached a temporary processing limit. Please try again later."
    ),
    ErrorCode.UNKNOWN: "Something went wrong. Please try again later.",
}

_RETRY = RecoveryAction(RecoveryStrategy.RETRY, "Retry with exponential backoff", 1)
_MANUAL = RecoveryAction(
    RecoveryStrategy.MANUAL_INTERVENTION, "Operator investigation required", 3
)

RECOVERY_ACTIONS: dict[ErrorCode, tuple[RecoveryAction, ...]] = {
    ErrorCode.AI_PROVIDER_ERROR: (
        _RETRY,
        RecoveryAction(
            RecoveryStrategy.FALLBACK, "Switch to the next text generation provider", 2
        ),
        RecoveryAction(
            RecoveryStrategy.GRACEFUL_DEGRADATION, "Use the citizen's own text", 3
        ),
    ),
    ErrorCode.DOCUMENT_SERVICE_ERROR: (_RETRY, _MANUAL),
    ErrorCode.EMAIL_DELIVERY_ERROR: (
        RecoveryAction(RecoveryStrategy.RETRY, "Reschedule through the delivery queue", 1),
        RecoveryAction(
            RecoveryStrategy.MANUAL_INTERVENTION, "Operator retries the dead letter", 2
        ),
    ),
    ErrorCode.RATE_LIMIT_EXCEEDED: (_RETRY,),
    ErrorCode.TIMEOUT: (_RETRY,),
    ErrorCode.SERVICE_UNAVAILABLE: (_RETRY,),
    ErrorCode.QUOTA_EXCEEDED: (
        RecoveryAction(
            RecoveryStrategy.FALLBACK, "Switch to the next text generation provider", 1
        ),
        _MANUAL,
    ),
    ErrorCode.DATABASE_ERROR: (_RETRY, _MANUAL),
    ErrorCode.CONFIGURATION_ERROR: (
        RecoveryAction(
            RecoveryStrategy.MANUAL_INTERVENTION, "Configure the missing template", 1
        ),
    ),
}


def _status_code_of(error: BaseException) -> int | None:
    """Extract an HTTP-like status code from an error, if it carries one."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def _is_network_error(error: BaseException) -> bool:
    if isinstance(error, (httpx.TransportError, ConnectionError, socket.gaierror)):
        return True
    if isinstance(error, OSError) and error.errno in NETWORK_ERRNOS:
        return True
    name = type(error).__name__.lower()
    return any(p in name for p in ("connection", "network", "disconnected"))


def _is_timeout(error: BaseException) -> bool:
    return isinstance(
        error, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
    ) or "timeout" in type(error).__name__.lower()


def is_retriable_error(error: BaseException) -> bool:
    """Decide whether repeating the failed operation may succeed.

    Retriable: network errors, timeouts, HTTP 5xx/429/408, and messages
    mentioning timeouts, rate limits, quotas or temporary unavailability.
    Not retriable: open circuits (fail fast), user errors, configuration
    errors, and everything else.

    Args:
        error: The exception raised by the attempt.

    Returns:
        True if the attempt should be repeated.
    """
    if isinstance(error, CircuitOpenError):
        return False

    if isinstance(error, DeliveryPipelineError):
        if error.error_type == ErrorType.TEMPORARY:
            return True
        if error.error_type in (ErrorType.USER, ErrorType.SYSTEM):
            return False

    if _is_timeout(error) or _is_network_error(error):
        return True

    status = _status_code_of(error)
    if status is not None and (status >= 500 or status in RETRIABLE_STATUS_CODES):
        return True

    message = str(error).lower()
    return any(pattern in message for pattern in RETRIABLE_MESSAGE_PATTERNS)


def classify_error(error: BaseException) -> tuple[ErrorType, ErrorCode]:
    """Determine the type and code of an error.

    Args:
        error: The exception to classify.

    Returns:
        Tuple of (ErrorType, ErrorCode).
    """
    if isinstance(error, DeliveryPipelineError):
        error_type, error_code = error.error_type, error.error_code
        status = _status_code_of(error)
        if status == 429:
            return ErrorType.TEMPORARY, ErrorCode.RATE_LIMIT_EXCEEDED
        return error_type, error_code

    for error_class, classification in ERROR_CLASSIFICATIONS.items():
        if isinstance(error, error_class):
            return classification

    if _is_timeout(error):
        return ErrorType.TEMPORARY, ErrorCode.TIMEOUT

    status = _status_code_of(error)
    if status == 429:
        return ErrorType.TEMPORARY, ErrorCode.RATE_LIMIT_EXCEEDED
    if status == 408:
        return ErrorType.TEMPORARY, ErrorCode.TIMEOUT
    if status is not None and status >= 500:
        return ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE

    if _is_network_error(error):
        return ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE

    error_name = type(error).__name__.lower()
    message = str(error).lower()

    if "rate limit" in message or "ratelimit" in error_name:
        return ErrorType.TEMPORARY, ErrorCode.RATE_LIMIT_EXCEEDED
    if "quota" in message:
        return ErrorType.INTEGRATION, ErrorCode.QUOTA_EXCEEDED
    if "service unavailable" in message or "temporar" in message:
        return ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE
    if any(p in error_name for p in ("database", "sql", "dbapi", "postgres")):
        return ErrorType.SYSTEM, ErrorCode.DATABASE_ERROR
    if "validation" in error_name or isinstance(error, ValueError):
        return ErrorType.USER, ErrorCode.VALIDATION_FAILED

    return ErrorType.SYSTEM, ErrorCode.UNKNOWN


class PipelineErrorHandler:
    """Classifies terminal failures, logs them and alerts operators.

    Usage:
        handler = PipelineErrorHandler(admin_notifier, time_authority)

        try:
            await orchestrator_step()
        except Exception as e:
            classified = await handler.handle(
                e, operation="process_submission", submission_id=submission_id
            )
            raise
    """

    def __init__(
        self,
        admin_notifier: AdminNotifierPort | None,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        """Initialize the error handler.

        Args:
            admin_notifier: Operator alert channel (None disables alerts).
            time_authority: Clock for alert timestamps.
        """
        self._notifier = admin_notifier
        self._time = time_authority

    def classify(
        self, error: BaseException, context: dict[str, Any] | None = None
    ) -> ClassifiedError:
        """Classify an error without side effects.

        Args:
            error: The exception.
            context: Operation context for logs and alerts.

        Returns:
            ClassifiedError with user message and recovery actions.
        """
        error_type, error_code = classify_error(error)
        return ClassifiedError(
            id=str(uuid4()),
            error_type=error_type,
            error_code=error_code,
            message=str(error) or type(error).__name__,
            user_message=USER_MESSAGES.get(error_code, USER_MESSAGES[ErrorCode.UNKNOWN]),
            retryable=is_retriable_error(error),
            recovery_actions=RECOVERY_ACTIONS.get(error_code, ()),
            context=dict(context or {}),
        )

    async def handle(
        self,
        error: BaseException,
        *,
        operation: str,
        submission_id: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> ClassifiedError:
        """Classify, log and (for system failures) alert on an error.

        Args:
            error: The exception.
            operation: Name of the failed operation.
            submission_id: Submission affected, if any.
            metadata: Extra context.

        Returns:
            The ClassifiedError.
        """
        context: dict[str, Any] = {"operation": operation, **(metadata or {})}
        if submission_id is not None:
            context["submission_id"] = str(submission_id)

        classified = self.classify(error, context)
        log = logger.bind(
            error_id=classified.id,
            error_type=classified.error_type.value,
            error_code=classified.error_code.value,
            **context,
        )

        if classified.error_type == ErrorType.SYSTEM:
            log.error("pipeline_error", message=classified.message)
        elif classified.error_type == ErrorType.USER:
            log.info("pipeline_user_error", message=classified.message)
        else:
            log.warning("pipeline_integration_error", message=classified.message)

        if classified.requires_admin_alert:
            await self._alert(classified)

        return classified

    async def _alert(self, classified: ClassifiedError) -> None:
        if self._notifier is None:
            logger.warning("admin_alert_skipped_no_notifier", error_id=classified.id)
            return
        severity = (
            AlertSeverity.CRITICAL
            if classified.error_code == ErrorCode.DATABASE_ERROR
            else AlertSeverity.HIGH
        )
        alert = AdminAlert(
            severity=severity,
            title=f"Pipeline {classified.error_code.value}",
            message=classified.message,
            timestamp=self._time.now(),
            context={"error_id": classified.id, **classified.context},
        )
        await self._notifier.notify(alert)


# Register standard library exceptions
register_error_classification(TimeoutError, ErrorType.TEMPORARY, ErrorCode.TIMEOUT)
register_error_classification(
    ConnectionError, ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE
)
register_error_classification(SQLAlchemyError, ErrorType.SYSTEM, ErrorCode.DATABASE_ERROR)
