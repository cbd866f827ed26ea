"""Delivery queue and mail transport errors."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)


class DeliveryJobNotFoundError(DeliveryPipelineError):
    """Raised when a delivery job id does not exist."""

    error_type = ErrorType.USER
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, job_id: UUID) -> None:
        self.job_id = job_id
        super().__init__(f"Delivery job not found: {job_id}")


class JobNotRetryableError(DeliveryPipelineError):
    """Raised when a manual retry targets a job that is not dead-lettered.

    Attributes:
        job_id: The job.
        status: Its current status.
    """

    error_type = ErrorType.USER
    error_code = ErrorCode.CONFLICT

    def __init__(self, job_id: UUID, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(
            f"Delivery job {job_id} is {status}; only failed jobs can be retried"
        )


class MailDeliveryError(DeliveryPipelineError):
    """Raised by mail transports when a message cannot be sent.

    Attributes:
        recipient: Intended recipient.
        smtp_code: SMTP reply code, if the server answered.
        transient: Whether the server signalled a temporary condition
            (4xx reply, dropped connection).
    """

    error_code = ErrorCode.EMAIL_DELIVERY_ERROR

    def __init__(
        self,
        message: str,
        recipient: str = "",
        smtp_code: int | None = None,
        transient: bool = False,
    ) -> None:
        self.recipient = recipient
        self.smtp_code = smtp_code
        self.transient = transient
        self.error_type = ErrorType.TEMPORARY if transient else ErrorType.INTEGRATION
        super().__init__(message)
