"""Unit tests for ProgressTrackerService."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

import pytest

from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.domain.models.progress import ProgressStage, ProgressStatus
from submission_delivery.domain.models.submission import (
    Pathway,
    Submission,
    SubmissionStatus,
)
from submission_delivery.infrastructure.stubs import (
    ProgressEventRepositoryStub,
    SubmissionRepositoryStub,
)
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def tracker(
    event_repo: ProgressEventRepositoryStub,
    submission_repo: SubmissionRepositoryStub,
    fake_time_authority: FakeTimeAuthority,
) -> ProgressTrackerService:
    return ProgressTrackerService(
        event_repo, submission_repo, fake_time_authority, cache_ttl_seconds=30
    )


class TestRecordEvent:
    """Tests for record_event()."""

    @pytest.mark.asyncio
    async def test_records_event_with_clock_time(
        self,
        tracker: ProgressTrackerService,
        event_repo: ProgressEventRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        submission = make_submission()

        event = await tracker.record_event(
            submission.id,
            ProgressStage.AI_GENERATION,
            ProgressStatus.COMPLETED,
            metadata={"provider": "primary"},
            actor="system",
        )

        assert event_repo.events == [event]
        assert event.created_at == fake_time_authority.now()
        assert event.metadata == {"provider": "primary"}
        assert event.actor == "system"


class TestTimeline:
    """Tests for cached timeline and overview reads."""

    @pytest.mark.asyncio
    async def test_timeline_ordered_by_time(
        self,
        tracker: ProgressTrackerService,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        submission = make_submission()
        await tracker.record_event(
            submission.id, ProgressStage.SUBMISSION_CREATED, ProgressStatus.IN_PROGRESS
        )
        fake_time_authority.advance(seconds=10)
        await tracker.record_event(
            submission.id, ProgressStage.AI_GENERATION, ProgressStatus.COMPLETED
        )

        timeline = await tracker.get_timeline(submission.id)

        assert [e.stage for e in timeline.events] == [
            ProgressStage.SUBMISSION_CREATED,
            ProgressStage.AI_GENERATION,
        ]
        assert timeline.latest.stage == ProgressStage.AI_GENERATION

    @pytest.mark.asyncio
    async def test_timeline_cached_until_next_write(
        self,
        tracker: ProgressTrackerService,
        event_repo: ProgressEventRepositoryStub,
        make_submission: Callable[..., Submission],
    ) -> None:
        """Test that reads hit the cache and a write invalidates it."""
        submission = make_submission()
        await tracker.record_event(
            submission.id, ProgressStage.SUBMISSION_CREATED, ProgressStatus.IN_PROGRESS
        )

        await tracker.get_timeline(submission.id)
        await tracker.get_timeline(submission.id)
        assert event_repo.list_calls == 1

        await tracker.record_event(
            submission.id, ProgressStage.AI_GENERATION, ProgressStatus.IN_PROGRESS
        )
        timeline = await tracker.get_timeline(submission.id)

        assert event_repo.list_calls == 2
        assert len(timeline.events) == 2

    @pytest.mark.asyncio
    async def test_timeline_cache_expires(
        self,
        tracker: ProgressTrackerService,
        event_repo: ProgressEventRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        submission = make_submission()
        await tracker.get_timeline(submission.id)

        fake_time_authority.advance(seconds=31)
        await tracker.get_timeline(submission.id)

        assert event_repo.list_calls == 2

    @pytest.mark.asyncio
    async def test_overview_keeps_latest_event_per_stage(
        self,
        tracker: ProgressTrackerService,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        submission = make_submission()
        await tracker.record_event(
            submission.id, ProgressStage.COUNCIL_EMAIL, ProgressStatus.QUEUED
        )
        fake_time_authority.advance(seconds=5)
        await tracker.record_event(
            submission.id, ProgressStage.COUNCIL_EMAIL, ProgressStatus.COMPLETED
        )

        overview = await tracker.get_overview(submission.id)

        assert list(overview) == ["council_email"]
        assert overview["council_email"]["status"] == "completed"


class TestFindStale:
    """Tests for stale submission detection."""

    @pytest.mark.asyncio
    async def test_reports_only_inactive_non_terminal_submissions(
        self,
        tracker: ProgressTrackerService,
        submission_repo: SubmissionRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        """Test threshold, terminal exclusion and longest-inactive ordering."""
        quiet_review = make_submission(
            pathway=Pathway.REVIEW, status=SubmissionStatus.AWAITING_REVIEW
        )
        stuck = make_submission(status=SubmissionStatus.PROCESSING)
        done = make_submission(status=SubmissionStatus.SUBMITTED)
        busy = make_submission(status=SubmissionStatus.PROCESSING)
        submission_repo.seed(quiet_review, stuck, done, busy)

        await tracker.record_event(
            stuck.id, ProgressStage.DOCUMENT_GENERATION, ProgressStatus.IN_PROGRESS
        )
        fake_time_authority.advance(delta=timedelta(minutes=20))
        await tracker.record_event(
            quiet_review.id, ProgressStage.USER_REVIEW, ProgressStatus.IN_PROGRESS
        )
        fake_time_authority.advance(delta=timedelta(minutes=25))
        await tracker.record_event(
            busy.id, ProgressStage.AI_GENERATION, ProgressStatus.IN_PROGRESS
        )

        stale = await tracker.find_stale(inactivity_minutes=30)

        assert [s.submission_id for s in stale] == [stuck.id]
        assert stale[0].minutes_inactive == 45
        assert stale[0].latest_stage == "document_generation"
        assert stale[0].latest_stage_status == "in_progress"

    @pytest.mark.asyncio
    async def test_submission_without_events_uses_updated_at(
        self,
        tracker: ProgressTrackerService,
        submission_repo: SubmissionRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        silent = make_submission(status=SubmissionStatus.PROCESSING)
        submission_repo.seed(silent)
        fake_time_authority.advance(delta=timedelta(minutes=90))

        [stale] = await tracker.find_stale(inactivity_minutes=60)

        assert stale.submission_id == silent.id
        assert stale.latest_stage is None
        assert stale.minutes_inactive == 90

    @pytest.mark.asyncio
    async def test_new_submission_never_picked_up_is_stale(
        self,
        tracker: ProgressTrackerService,
        submission_repo: SubmissionRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        waiting = make_submission(status=SubmissionStatus.NEW)
        submission_repo.seed(waiting)
        fake_time_authority.advance(delta=timedelta(minutes=40))

        [stale] = await tracker.find_stale(inactivity_minutes=30)

        assert stale.submission_id == waiting.id
        assert stale.status == "NEW"

    @pytest.mark.asyncio
    async def test_progress_clears_cached_stale_report(
        self,
        tracker: ProgressTrackerService,
        submission_repo: SubmissionRepositoryStub,
        make_submission: Callable[..., Submission],
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        """Test that a new event is reflected before the report's TTL ends."""
        stuck = make_submission(status=SubmissionStatus.PROCESSING)
        submission_repo.seed(stuck)
        fake_time_authority.advance(delta=timedelta(minutes=45))
        assert len(await tracker.find_stale(inactivity_minutes=30)) == 1

        await tracker.record_event(
            stuck.id, ProgressStage.COUNCIL_EMAIL, ProgressStatus.QUEUED
        )

        assert await tracker.find_stale(inactivity_minutes=30) == []

    @pytest.mark.asyncio
    async def test_rejects_non_positive_threshold(
        self, tracker: ProgressTrackerService
    ) -> None:
        with pytest.raises(ValueError, match="inactivity_minutes"):
            await tracker.find_stale(inactivity_minutes=0)
