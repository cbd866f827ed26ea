"""Progress tracker: append-only submission timelines and stale detection.

The orchestrator and delivery queue record an event for every stage
transition. Timelines are read often (status pages poll them), so they
are cached briefly. Every write invalidates the submission's own views
and all cached stale reports.

Stale detection reports non-terminal submissions (NEW, PROCESSING,
AWAITING_REVIEW) whose latest event is older than a threshold. It is
for operator alerting only and never changes submission state.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import structlog

from submission_delivery.application.ports.progress_event_repository import (
    ProgressEventRepositoryPort,
)
from submission_delivery.application.ports.submission_repository import (
    SubmissionRepositoryPort,
)
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.domain.models.progress import (
    ProgressEvent,
    ProgressStage,
    ProgressStatus,
    StaleSubmission,
    SubmissionTimeline,
)
from submission_delivery.domain.models.submission import SubmissionStatus
from submission_delivery.infrastructure.cache.timeline_cache import TimelineCache

logger = structlog.get_logger(__name__)

DEFAULT_INACTIVITY_MINUTES = 30

NON_TERMINAL_STATUSES: tuple[SubmissionStatus, ...] = (
    SubmissionStatus.NEW,
    SubmissionStatus.PROCESSING,
    SubmissionStatus.AWAITING_REVIEW,
)


class ProgressTrackerService:
    """Records and reads submission progress events."""

    def __init__(
        self,
        events: ProgressEventRepositoryPort,
        submissions: SubmissionRepositoryPort,
        time_authority: TimeAuthorityProtocol,
        cache: TimelineCache | None = None,
        cache_ttl_seconds: int = 30,
    ) -> None:
        """Initialize the tracker.

        Args:
            events: Progress event store.
            submissions: Submission store (for stale detection).
            time_authority: Clock for event timestamps.
            cache: Timeline cache (one is created when omitted).
            cache_ttl_seconds: TTL used when creating the cache; stale
                reports are cached for twice this.
        """
        self._events = events
        self._submissions = submissions
        self._time = time_authority
        self._cache = cache or TimelineCache(time_authority, cache_ttl_seconds)
        self._stale_ttl = cache_ttl_seconds * 2
        self._log = logger.bind(component="progress_tracker")

    async def record_event(
        self,
        submission_id: UUID,
        stage: ProgressStage,
        status: ProgressStatus,
        metadata: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> ProgressEvent:
        """Append an event and invalidate the cached views it affects.

        Args:
            submission_id: Submission the event belongs to.
            stage: Pipeline stage.
            status: Stage outcome.
            metadata: Free-form context.
            actor: Who caused the event.

        Returns:
            The recorded event.
        """
        event = ProgressEvent(
            id=uuid4(),
            submission_id=submission_id,
            stage=stage,
            status=status,
            created_at=self._time.now(),
            metadata=dict(metadata or {}),
            actor=actor,
        )
        await self._events.append(event)
        self._cache.invalidate_submission(submission_id)
        self._log.debug(
            "progress_event_recorded",
            submission_id=str(submission_id),
            stage=stage.value,
            status=status.value,
        )
        return event

    async def get_timeline(self, submission_id: UUID) -> SubmissionTimeline:
        """Return the submission's events ordered by time (cached)."""
        key = TimelineCache.timeline_key(submission_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        events = await self._events.list_for_submission(submission_id)
        timeline = SubmissionTimeline(
            submission_id=submission_id,
            events=tuple(sorted(events, key=lambda e: e.created_at)),
        )
        self._cache.set(key, timeline)
        return timeline

    async def get_overview(self, submission_id: UUID) -> dict[str, dict[str, Any]]:
        """Latest event per stage (cached).

        Returns:
            Mapping of stage name to the serialized latest event.
        """
        key = TimelineCache.overview_key(submission_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        timeline = await self.get_timeline(submission_id)
        overview = {
            stage.value: event.to_dict()
            for stage, event in timeline.latest_by_stage().items()
        }
        self._cache.set(key, overview)
        return overview

    async def find_stale(
        self, inactivity_minutes: int = DEFAULT_INACTIVITY_MINUTES
    ) -> list[StaleSubmission]:
        """Find non-terminal submissions with no recent progress.

        A submission without any event is measured from its updated_at.

        Args:
            inactivity_minutes: Minutes without events before a submission
                counts as stale.

        Returns:
            Stale submissions, longest-inactive first.
        """
        if inactivity_minutes < 1:
            raise ValueError(
                f"inactivity_minutes must be positive, got {inactivity_minutes}"
            )

        key = TimelineCache.stale_key(inactivity_minutes)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        now = self._time.now()
        candidates = await self._submissions.list_by_status(NON_TERMINAL_STATUSES)
        latest = await self._events.latest_for_submissions([s.id for s in candidates])

        stale: list[StaleSubmission] = []
        for submission in candidates:
            event = latest.get(submission.id)
            last_activity = event.created_at if event else submission.updated_at
            minutes_inactive = int((now - last_activity).total_seconds() // 60)
            if minutes_inactive < inactivity_minutes:
                continue
            stale.append(
                StaleSubmission(
                    submission_id=submission.id,
                    project_id=submission.project_id,
                    status=submission.status.value,
                    latest_stage=event.stage.value if event else None,
                    latest_stage_status=event.status.value if event else None,
                    last_event_at=event.created_at if event else None,
                    minutes_inactive=minutes_inactive,
                )
            )

        stale.sort(key=lambda s: s.minutes_inactive, reverse=True)
        self._cache.set(key, stale, ttl_seconds=self._stale_ttl)
        if stale:
            self._log.warning(
                "stale_submissions_detected",
                count=len(stale),
                inactivity_minutes=inactivity_minutes,
            )
        return stale
