"""Delivery queue request/response models."""

from uuid import UUID

from pydantic import BaseModel, Field

from submission_delivery.api.models.submission import DateTimeWithZ
from submission_delivery.application.services.delivery_queue_service import (
    DrainResult,
)
from submission_delivery.domain.models.delivery_job import DeliveryJob


class DeliveryJobResponse(BaseModel):
    """A queued email (attachment bodies omitted)."""

    id: UUID
    job_type: str
    submission_id: UUID | None
    to: str
    subject: str
    attachments: list[str]
    priority: int
    status: str
    retry_count: int
    max_retries: int
    scheduled_for: DateTimeWithZ
    error_log: str | None
    message_id: str | None
    created_at: DateTimeWithZ
    updated_at: DateTimeWithZ

    @classmethod
    def from_domain(cls, job: DeliveryJob) -> "DeliveryJobResponse":
        return cls(
            id=job.id,
            job_type=job.job_type.value,
            submission_id=job.submission_id,
            to=job.payload.to,
            subject=job.payload.subject,
            attachments=[a.filename for a in job.payload.attachments],
            priority=job.priority,
            status=job.status.value,
            retry_count=job.retry_count,
            max_retries=job.max_retries,
            scheduled_for=job.scheduled_for,
            error_log=job.error_log,
            message_id=job.message_id,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class DeadLetterListResponse(BaseModel):
    """A page of dead-lettered jobs."""

    jobs: list[DeliveryJobResponse]
    total: int
    limit: int
    offset: int


class RetryJobRequest(BaseModel):
    """Manual retry of a dead-lettered job."""

    actor: str = Field(default="operator", min_length=1, max_length=200)


class DrainResponse(BaseModel):
    """Counts from one queue drain."""

    claimed: int
    sent: int
    rescheduled: int
    dead_lettered: int
    deferred: int

    @classmethod
    def from_result(cls, result: DrainResult) -> "DrainResponse":
        return cls(**result.to_dict())


class QueueStatusResponse(BaseModel):
    """Queue depth snapshot."""

    pending: int


class RemindersResponse(BaseModel):
    """Review reminders queued by one sweep."""

    queued: int
