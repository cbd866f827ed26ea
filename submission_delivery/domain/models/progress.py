"""Progress event models for submission timelines.

Progress events are append-only: each stage transition of a submission
is recorded once and never edited. Timelines are ordered by created_at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class ProgressStage(str, Enum):
    """Pipeline stage an event refers to."""

    SUBMISSION_CREATED = "submission_created"
    AI_GENERATION = "ai_generation"
    DOCUMENT_GENERATION = "document_generation"
    REVIEW_PREPARATION = "review_preparation"
    USER_REVIEW = "user_review"
    COUNCIL_EMAIL = "council_email"
    APPLICANT_EMAIL = "applicant_email"
    REMINDER = "reminder"
    RETRY = "retry"


class ProgressStatus(str, Enum):
    """Outcome of a stage at the time of the event."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING_RETRY = "pending_retry"


@dataclass(frozen=True)
class ProgressEvent:
    """One recorded stage transition.

    Attributes:
        id: Event identifier.
        submission_id: Submission the event belongs to.
        stage: Pipeline stage.
        status: Stage outcome.
        created_at: When the event was recorded.
        metadata: Free-form context (job id, provider, error).
        actor: Who caused the event (system, operator, applicant).
    """

    id: UUID
    submission_id: UUID
    stage: ProgressStage
    status: ProgressStatus
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    actor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize event for API responses."""
        return {
            "id": str(self.id),
            "submission_id": str(self.submission_id),
            "stage": self.stage.value,
            "status": self.status.value,
            "metadata": self.metadata,
            "actor": self.actor,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class SubmissionTimeline:
    """Ordered events of one submission."""

    submission_id: UUID
    events: tuple[ProgressEvent, ...]

    @property
    def latest(self) -> ProgressEvent | None:
        """Most recent event, if any."""
        return self.events[-1] if self.events else None

    def latest_by_stage(self) -> dict[ProgressStage, ProgressEvent]:
        """Most recent event per stage."""
        result: dict[ProgressStage, ProgressEvent] = {}
        for event in self.events:
            result[event.stage] = event
        return result


@dataclass(frozen=True)
class StaleSubmission:
    """A non-terminal submission with no recent progress.

    Attributes:
        submission_id: The submission.
        project_id: Its campaign.
        status: Current submission status.
        latest_stage: Stage of the latest event.
        latest_stage_status: Outcome of the latest event.
        last_event_at: When the latest event was recorded.
        minutes_inactive: Minutes since that event.
    """

    submission_id: UUID
    project_id: UUID
    status: str
    latest_stage: str | None
    latest_stage_status: str | None
    last_event_at: datetime | None
    minutes_inactive: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "submission_id": str(self.submission_id),
            "project_id": str(self.project_id),
            "status": self.status,
            "latest_stage": self.latest_stage,
            "latest_stage_status": self.latest_stage_status,
            "last_event_at": self.last_event_at.isoformat()
            if self.last_event_at
            else None,
            "minutes_inactive": self.minutes_inactive,
        }
