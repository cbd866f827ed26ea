"""Progress and resilience monitoring models."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from submission_delivery.api.models.submission import DateTimeWithZ
from submission_delivery.domain.models.progress import (
    ProgressEvent,
    StaleSubmission,
    SubmissionTimeline,
)


class ProgressEventResponse(BaseModel):
    """One progress event."""

    id: UUID
    stage: str
    status: str
    metadata: dict[str, Any]
    actor: str | None
    created_at: DateTimeWithZ

    @classmethod
    def from_domain(cls, event: ProgressEvent) -> "ProgressEventResponse":
        return cls(
            id=event.id,
            stage=event.stage.value,
            status=event.status.value,
            metadata=event.metadata,
            actor=event.actor,
            created_at=event.created_at,
        )


class TimelineResponse(BaseModel):
    """Ordered events of one submission."""

    submission_id: UUID
    events: list[ProgressEventResponse]

    @classmethod
    def from_domain(cls, timeline: SubmissionTimeline) -> "TimelineResponse":
        return cls(
            submission_id=timeline.submission_id,
            events=[ProgressEventResponse.from_domain(e) for e in timeline.events],
        )


class OverviewResponse(BaseModel):
    """Latest event per stage."""

    submission_id: UUID
    stages: dict[str, dict[str, Any]]


class StaleSubmissionResponse(BaseModel):
    """A submission with no recent progress."""

    submission_id: UUID
    project_id: UUID
    status: str
    latest_stage: str | None
    latest_stage_status: str | None
    last_event_at: DateTimeWithZ | None
    minutes_inactive: int

    @classmethod
    def from_domain(cls, stale: StaleSubmission) -> "StaleSubmissionResponse":
        return cls(
            submission_id=stale.submission_id,
            project_id=stale.project_id,
            status=stale.status,
            latest_stage=stale.latest_stage,
            latest_stage_status=stale.latest_stage_status,
            last_event_at=stale.last_event_at,
            minutes_inactive=stale.minutes_inactive,
        )


class StaleSubmissionsResponse(BaseModel):
    """Stale submissions, longest-inactive first."""

    inactivity_minutes: int
    submissions: list[StaleSubmissionResponse]


class CircuitsResponse(BaseModel):
    """Breaker state and call counters per operation."""

    circuits: dict[str, dict[str, Any]]
