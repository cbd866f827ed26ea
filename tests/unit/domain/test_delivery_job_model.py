"""Unit tests for DeliveryJob state transitions and payload serialisation."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from submission_delivery.domain.models.delivery_job import (
    Attachment,
    DeliveryJob,
    DeliveryJobType,
    EmailPayload,
    JobFailed,
    JobPending,
    JobProcessing,
    JobSent,
    JobStatus,
    state_from_row,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def payload() -> EmailPayload:
    return EmailPayload(
        to="planning@council.example",
        from_address="campaign@savepark.example",
        from_name="Save Example Park",
        subject="Development Application Submission - 12 Park Road",
        text="Please find attached.",
        attachments=(Attachment(filename="DA_Cover.pdf", content=b"%PDF-1.4"),),
        reply_to="jordan@resident.example",
    )


@pytest.fixture
def job(payload: EmailPayload) -> DeliveryJob:
    return DeliveryJob(
        id=uuid4(),
        job_type=DeliveryJobType.COUNCIL_SUBMISSION,
        payload=payload,
        scheduled_for=NOW,
        submission_id=uuid4(),
        created_at=NOW,
        updated_at=NOW,
    )


class TestDeliveryJobValidation:
    """Tests for construction-time invariants."""

    def test_defaults(self, job: DeliveryJob) -> None:
        assert job.priority == 5
        assert job.max_retries == 3
        assert job.retry_count == 0
        assert isinstance(job.state, JobPending)
        assert job.status == JobStatus.PENDING

    def test_retry_count_cannot_exceed_budget(self, payload: EmailPayload) -> None:
        with pytest.raises(ValueError, match="exceeds"):
            DeliveryJob(
                id=uuid4(),
                job_type=DeliveryJobType.REVIEW_LINK,
                payload=payload,
                scheduled_for=NOW,
                retry_count=4,
                max_retries=3,
            )

    def test_scheduled_for_must_be_aware(self, payload: EmailPayload) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            DeliveryJob(
                id=uuid4(),
                job_type=DeliveryJobType.REVIEW_LINK,
                payload=payload,
                scheduled_for=datetime(2026, 3, 2, 9, 0),
            )

    def test_payload_requires_recipient(self) -> None:
        with pytest.raises(ValueError, match="to cannot be empty"):
            EmailPayload(to="", from_address="a@b", from_name="", subject="s", text="t")


class TestDeliveryJobTransitions:
    """Tests for the pending -> processing -> sent/failed lifecycle."""

    def test_is_due_only_when_pending_and_scheduled(self, job: DeliveryJob) -> None:
        assert job.is_due(NOW)
        assert not job.is_due(NOW - timedelta(seconds=1))
        assert not job.claimed(NOW).is_due(NOW)

    def test_claim_refuses_finished_jobs(self, job: DeliveryJob) -> None:
        claimed = job.claimed(NOW)

        assert isinstance(claimed.state, JobProcessing)
        with pytest.raises(ValueError, match="cannot claim"):
            claimed.sent("<abc@mail>", NOW).claimed(NOW)

    def test_expired_lease_makes_processing_job_claimable(
        self, job: DeliveryJob
    ) -> None:
        claimed = job.claimed(NOW)
        later = NOW + timedelta(minutes=30)

        assert not claimed.is_claimable(later, lease_cutoff=NOW)
        assert claimed.is_claimable(later, lease_cutoff=NOW + timedelta(seconds=1))
        assert claimed.claimed(later).updated_at == later
        assert not job.is_claimable(NOW - timedelta(seconds=1), lease_cutoff=NOW)

    def test_sent_records_message_id(self, job: DeliveryJob) -> None:
        sent = job.claimed(NOW).sent("<abc@mail>", NOW)

        assert isinstance(sent.state, JobSent)
        assert sent.message_id == "<abc@mail>"
        assert sent.status == JobStatus.SENT

    def test_rescheduled_consumes_one_retry(self, job: DeliveryJob) -> None:
        run_at = NOW + timedelta(minutes=5)

        rescheduled = job.claimed(NOW).rescheduled("451 try later", run_at, NOW)

        assert rescheduled.retry_count == 1
        assert rescheduled.scheduled_for == run_at
        assert rescheduled.error_log == "451 try later"
        assert isinstance(rescheduled.state, JobPending)

    def test_deferred_keeps_retry_budget(self, job: DeliveryJob) -> None:
        run_at = NOW + timedelta(seconds=60)

        deferred = job.claimed(NOW).deferred(run_at, NOW)

        assert deferred.retry_count == 0
        assert deferred.scheduled_for == run_at
        assert isinstance(deferred.state, JobPending)

    def test_dead_lettered_records_final_error(self, job: DeliveryJob) -> None:
        failed = job.claimed(NOW).dead_lettered("550 mailbox unavailable", NOW)

        assert isinstance(failed.state, JobFailed)
        assert failed.error_log == "Max retries exceeded. Last error: 550 mailbox unavailable"
        assert failed.state.reason == failed.error_log

    def test_requeued_resets_retry_budget(self, job: DeliveryJob) -> None:
        later = NOW + timedelta(hours=1)
        exhausted = job.claimed(NOW)
        for _ in range(3):
            exhausted = exhausted.rescheduled("boom", NOW, NOW).claimed(NOW)
        failed = exhausted.dead_lettered("boom", NOW)

        requeued = failed.requeued(later)

        assert requeued.retry_count == 0
        assert requeued.scheduled_for == later
        assert isinstance(requeued.state, JobPending)

    def test_requeue_requires_failed(self, job: DeliveryJob) -> None:
        with pytest.raises(ValueError, match="cannot requeue"):
            job.requeued(NOW)

    def test_retries_exhausted_at_budget(self, job: DeliveryJob) -> None:
        current = job
        for _ in range(3):
            assert not current.retries_exhausted
            current = current.rescheduled("boom", NOW, NOW)

        assert current.retries_exhausted


class TestSerialisation:
    """Tests for payload and row round-trips used by the repository."""

    def test_payload_dict_round_trip_keeps_attachments(
        self, payload: EmailPayload
    ) -> None:
        restored = EmailPayload.from_dict(payload.to_dict())

        assert restored == payload
        assert restored.attachments[0].content == b"%PDF-1.4"

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("pending", JobPending),
            ("processing", JobProcessing),
            ("sent", JobSent),
            ("failed", JobFailed),
        ],
    )
    def test_state_from_row(self, status: str, expected: type) -> None:
        state = state_from_row(
            status, message_id="<m@x>", error_log="boom", updated_at=NOW
        )

        assert isinstance(state, expected)

    def test_council_submission_is_council_bound(self) -> None:
        assert DeliveryJobType.COUNCIL_SUBMISSION.is_council_bound
        assert not DeliveryJobType.APPLICANT_COPY.is_council_bound
