"""Resilience layer errors."""

from __future__ import annotations

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)


class CircuitOpenError(DeliveryPipelineError):
    """Raised when a call is refused because its circuit is open.

    The guarded operation was not invoked.

    Attributes:
        operation_name: Name of the guarded dependency.
        retry_after_seconds: Seconds until a trial call is allowed.
    """

    error_type = ErrorType.TEMPORARY
    error_code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(self, operation_name: str, retry_after_seconds: float) -> None:
        self.operation_name = operation_name
        self.retry_after_seconds = max(0.0, retry_after_seconds)
        super().__init__(
            f"Circuit breaker is OPEN for {operation_name}; "
            f"retry after {self.retry_after_seconds:.0f}s"
        )
