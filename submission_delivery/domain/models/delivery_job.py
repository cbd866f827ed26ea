"""Delivery job domain models for the persistent email queue.

Every outbound email (council submission, review link, draft pack,
reminder) is persisted as a DeliveryJob before it is sent, so a crash
or an unreachable mail server never loses a message.

Job state is a tagged value:

    JobPending -> JobProcessing -> JobSent(message_id)
                               -> JobPending (retry scheduled)
                               -> JobFailed(reason)  (dead letter)
    JobFailed -> JobPending (operator manual retry only)

JobSent is terminal: the payload is never re-read once a job is sent.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union
from uuid import UUID


class JobStatus(str, Enum):
    """Persisted status column derived from the job state."""

    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"


class DeliveryJobType(str, Enum):
    """Kinds of email carried by the queue."""

    COUNCIL_SUBMISSION = "council_submission"
    REVIEW_LINK = "review_link"
    DRAFT_PACK = "draft_pack"
    REVIEW_REMINDER = "review_reminder"
    APPLICANT_COPY = "applicant_copy"

    @property
    def is_council_bound(self) -> bool:
        """Whether delivery of this job completes a council submission."""
        return self == DeliveryJobType.COUNCIL_SUBMISSION


@dataclass(frozen=True)
class JobPending:
    """Waiting for its scheduled time."""

    status = JobStatus.PENDING


@dataclass(frozen=True)
class JobProcessing:
    """Claimed by a worker; send in progress."""

    status = JobStatus.PROCESSING


@dataclass(frozen=True)
class JobSent:
    """Delivered. Terminal.

    Attributes:
        message_id: Transport message id.
        sent_at: Delivery timestamp.
    """

    message_id: str
    sent_at: datetime

    status = JobStatus.SENT


@dataclass(frozen=True)
class JobFailed:
    """Dead-lettered after exhausting retries.

    Attributes:
        reason: Final error message.
        failed_at: When the job was dead-lettered.
    """

    reason: str
    failed_at: datetime

    status = JobStatus.FAILED


JobState = Union[JobPending, JobProcessing, JobSent, JobFailed]


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Attachment:
    """Binary email attachment."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    def to_dict(self) -> dict[str, Any]:
        """Serialize with base64-encoded content for JSON storage."""
        return {
            "filename": self.filename,
            "content": base64.b64encode(self.content).decode("ascii"),
            "content_type": self.content_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attachment:
        """Rebuild an attachment from its stored form."""
        return cls(
            filename=data["filename"],
            content=base64.b64decode(data["content"]),
            content_type=data.get("content_type", "application/pdf"),
        )


@dataclass(frozen=True)
class EmailPayload:
    """Everything needed to send one email.

    Attributes:
        to: Recipient address.
        from_address: Sender address.
        from_name: Sender display name.
        subject: Subject line.
        text: Plain-text body.
        html: Optional HTML body.
        attachments: Binary attachments.
        reply_to: Optional reply-to address.
    """

    to: str
    from_address: str
    from_name: str
    subject: str
    text: str
    html: str | None = None
    attachments: tuple[Attachment, ...] = ()
    reply_to: str | None = None

    def __post_init__(self) -> None:
        """Validate payload fields."""
        if not self.to:
            raise ValueError("to cannot be empty")
        if not self.subject:
            raise ValueError("subject cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        """Serialize payload for JSON storage."""
        return {
            "to": self.to,
            "from_address": self.from_address,
            "from_name": self.from_name,
            "subject": self.subject,
            "text": self.text,
            "html": self.html,
            "attachments": [a.to_dict() for a in self.attachments],
            "reply_to": self.reply_to,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmailPayload:
        """Rebuild a payload from its stored form."""
        return cls(
            to=data["to"],
            from_address=data["from_address"],
            from_name=data.get("from_name", ""),
            subject=data["subject"],
            text=data.get("text", ""),
            html=data.get("html"),
            attachments=tuple(
                Attachment.from_dict(a) for a in data.get("attachments", [])
            ),
            reply_to=data.get("reply_to"),
        )


@dataclass(frozen=True)
class DeliveryJob:
    """A persisted outbound email.

    Attributes:
        id: Job identifier.
        job_type: Kind of email.
        payload: Email content.
        scheduled_for: Earliest time the job may be claimed.
        submission_id: Submission the email belongs to, if any.
        priority: Higher is drained first (default 5).
        retry_count: Failed sends so far (never exceeds max_retries).
        max_retries: Retry budget before dead-lettering (default 3).
        state: Tagged job state.
        error_log: Last error message.
        created_at: Enqueue timestamp.
        updated_at: Last modification timestamp.
    """

    id: UUID
    job_type: DeliveryJobType
    payload: EmailPayload
    scheduled_for: datetime
    submission_id: UUID | None = None
    priority: int = 5
    retry_count: int = 0
    max_retries: int = 3
    state: JobState = field(default_factory=JobPending)
    error_log: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate delivery job fields."""
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.retry_count < 0:
            raise ValueError("retry_count cannot be negative")
        if self.retry_count > self.max_retries:
            raise ValueError(
                f"retry_count ({self.retry_count}) exceeds "
                f"max_retries ({self.max_retries})"
            )
        if self.scheduled_for.tzinfo is None:
            raise ValueError("scheduled_for must be timezone-aware (UTC)")

    @property
    def status(self) -> JobStatus:
        """Status derived from the state tag."""
        return self.state.status

    @property
    def retries_exhausted(self) -> bool:
        """Whether the next failure dead-letters the job."""
        return self.retry_count >= self.max_retries

    @property
    def message_id(self) -> str | None:
        """Transport message id once sent."""
        if isinstance(self.state, JobSent):
            return self.state.message_id
        return None

    def is_due(self, now: datetime) -> bool:
        """Check whether the job is pending and its scheduled time has passed."""
        return isinstance(self.state, JobPending) and self.scheduled_for <= now

    def is_claimable(self, now: datetime, lease_cutoff: datetime) -> bool:
        """Check whether a drain may claim the job.

        A processing job whose claim is older than lease_cutoff belonged to
        a worker that never finished it and is claimable again.
        """
        if isinstance(self.state, JobProcessing):
            return self.updated_at < lease_cutoff
        return self.is_due(now)

    def claimed(self, now: datetime) -> DeliveryJob:
        """Return a copy marked Processing (also re-claims an expired lease)."""
        if not isinstance(self.state, (JobPending, JobProcessing)):
            raise ValueError(f"cannot claim job in state {self.status.value}")
        return replace(self, state=JobProcessing(), updated_at=now)

    def sent(self, message_id: str, now: datetime) -> DeliveryJob:
        """Return a copy marked Sent (terminal)."""
        return replace(
            self,
            state=JobSent(message_id=message_id, sent_at=now),
            updated_at=now,
        )

    def rescheduled(self, error: str, run_at: datetime, now: datetime) -> DeliveryJob:
        """Return a copy back in Pending with one more retry consumed."""
        return replace(
            self,
            state=JobPending(),
            retry_count=self.retry_count + 1,
            scheduled_for=run_at,
            error_log=error,
            updated_at=now,
        )

    def deferred(self, run_at: datetime, now: datetime) -> DeliveryJob:
        """Return a copy back in Pending without consuming a retry.

        Used when the send was never attempted (circuit open).
        """
        return replace(self, state=JobPending(), scheduled_for=run_at, updated_at=now)

    def dead_lettered(self, error: str, now: datetime) -> DeliveryJob:
        """Return a copy marked Failed with the final error recorded."""
        reason = f"Max retries exceeded. Last error: {error}"
        return replace(
            self,
            state=JobFailed(reason=reason, failed_at=now),
            error_log=reason,
            updated_at=now,
        )

    def requeued(self, now: datetime) -> DeliveryJob:
        """Return a dead-lettered copy re-pended for a manual retry."""
        if not isinstance(self.state, JobFailed):
            raise ValueError(f"cannot requeue job in state {self.status.value}")
        return replace(
            self,
            state=JobPending(),
            retry_count=0,
            scheduled_for=now,
            updated_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize job for API responses (attachment bodies omitted)."""
        return {
            "id": str(self.id),
            "job_type": self.job_type.value,
            "submission_id": str(self.submission_id) if self.submission_id else None,
            "to": self.payload.to,
            "subject": self.payload.subject,
            "attachments": [a.filename for a in self.payload.attachments],
            "priority": self.priority,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "scheduled_for": self.scheduled_for.isoformat(),
            "error_log": self.error_log,
            "message_id": self.message_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def state_from_row(
    status: str,
    message_id: str | None,
    error_log: str | None,
    updated_at: datetime,
) -> JobState:
    """Rebuild a tagged state from persisted columns."""
    job_status = JobStatus(status)
    if job_status == JobStatus.PENDING:
        return JobPending()
    if job_status == JobStatus.PROCESSING:
        return JobProcessing()
    if job_status == JobStatus.SENT:
        return JobSent(message_id=message_id or "", sent_at=updated_at)
    return JobFailed(reason=error_log or "", failed_at=updated_at)
