"""Delivery queue: persistent, retrying email delivery.

Every outbound email is enqueued as a DeliveryJob before anything is
sent. A worker (or an external scheduler) calls drain() periodically:

1. Claim up to batch_size due pending jobs, highest priority first, then
   oldest first. The claim is atomic, so concurrent drains never send
   the same job twice.
2. Send each claimed job, in order, through the mail transport inside the
   resilience registry ("mail_transport" circuit).
3. Success -> Sent(message_id), terminal.
   Failure with budget left -> back to Pending, retry_count + 1,
       scheduled 2^retry_count * base_backoff later.
   Failure with budget spent -> Failed (dead letter), operators alerted.
   Circuit open -> back to Pending for when the circuit allows a trial,
       without consuming retry budget.

Delivery is at-least-once. A send interrupted by cancellation hands the
job straight back to pending; a worker that dies outright leaves it in
processing until its claim lease expires and the next drain re-claims
it, so a send that did reach the server may be repeated.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID, uuid4

import structlog

from submission_delivery.application.ports.admin_notifier import (
    AdminAlert,
    AdminNotifierPort,
    AlertSeverity,
)
from submission_delivery.application.ports.delivery_job_repository import (
    DeliveryJobRepositoryPort,
)
from submission_delivery.application.ports.mail_transport import MailTransportPort
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.config.pipeline_config import DeliveryQueueConfig
from submission_delivery.domain.errors.delivery import (
    DeliveryJobNotFoundError,
    JobNotRetryableError,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.models.circuit_breaker import RetryPolicy
from submission_delivery.domain.models.delivery_job import (
    DeliveryJob,
    DeliveryJobType,
    EmailPayload,
    JobFailed,
    JobSent,
)
from submission_delivery.domain.models.progress import ProgressStage, ProgressStatus
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics

logger = structlog.get_logger(__name__)

MAIL_OPERATION = "mail_transport"

# Short in-process retries for connection blips; longer waits are the
# queue's job.
DEFAULT_SEND_RETRY_POLICY = RetryPolicy(
    max_retries=2, initial_delay_seconds=1.0, max_delay_seconds=5.0
)

OutcomeListener = Callable[[DeliveryJob], Awaitable[None]]


@dataclass(frozen=True)
class DrainResult:
    """Counts from one drain pass."""

    claimed: int = 0
    sent: int = 0
    rescheduled: int = 0
    dead_lettered: int = 0
    deferred: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "claimed": self.claimed,
            "sent": self.sent,
            "rescheduled": self.rescheduled,
            "dead_lettered": self.dead_lettered,
            "deferred": self.deferred,
        }


def _stage_for(job: DeliveryJob) -> ProgressStage:
    if job.job_type == DeliveryJobType.REVIEW_REMINDER:
        return ProgressStage.REMINDER
    if job.job_type.is_council_bound:
        return ProgressStage.COUNCIL_EMAIL
    return ProgressStage.APPLICANT_EMAIL


class DeliveryQueueService:
    """Persistent email queue with retry, backoff and dead-lettering."""

    def __init__(
        self,
        jobs: DeliveryJobRepositoryPort,
        transport: MailTransportPort,
        resilience: ResilienceRegistry,
        progress: ProgressTrackerService,
        time_authority: TimeAuthorityProtocol,
        config: DeliveryQueueConfig | None = None,
        admin_notifier: AdminNotifierPort | None = None,
        metrics: PipelineMetrics | None = None,
        send_retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            jobs: Delivery job store.
            transport: Mail transport.
            resilience: Shared resilience registry.
            progress: Progress tracker for submission-bound jobs.
            time_authority: Clock.
            config: Queue configuration.
            admin_notifier: Operator alert channel for dead letters.
            metrics: Optional Prometheus collector.
            send_retry_policy: In-process retry policy for each send.
        """
        self._jobs = jobs
        self._transport = transport
        self._resilience = resilience
        self._progress = progress
        self._time = time_authority
        self._config = config or DeliveryQueueConfig()
        self._notifier = admin_notifier
        self._metrics = metrics
        self._send_policy = send_retry_policy or DEFAULT_SEND_RETRY_POLICY
        self._listeners: list[OutcomeListener] = []
        self._log = logger.bind(component="delivery_queue")

    def add_outcome_listener(self, listener: OutcomeListener) -> None:
        """Register a callback invoked when a job is sent or dead-lettered."""
        self._listeners.append(listener)

    async def enqueue(
        self,
        job_type: DeliveryJobType,
        payload: EmailPayload,
        *,
        submission_id: UUID | None = None,
        priority: int | None = None,
        max_retries: int | None = None,
        scheduled_for=None,
        job_id: UUID | None = None,
    ) -> DeliveryJob:
        """Persist a new pending job.

        Args:
            job_type: Kind of email.
            payload: Email content.
            submission_id: Submission the email belongs to.
            priority: Drain priority (higher first).
            max_retries: Retry budget.
            scheduled_for: Earliest send time (now when omitted).
            job_id: Id to use for the job, when the caller records it first.

        Returns:
            The persisted job.
        """
        now = self._time.now()
        job = DeliveryJob(
            id=job_id or uuid4(),
            job_type=job_type,
            payload=payload,
            scheduled_for=scheduled_for or now,
            submission_id=submission_id,
            priority=self._config.default_priority if priority is None else priority,
            max_retries=(
                self._config.default_max_retries if max_retries is None else max_retries
            ),
            created_at=now,
            updated_at=now,
        )
        await self._jobs.add(job)
        self._log.info(
            "delivery_job_enqueued",
            job_id=str(job.id),
            job_type=job_type.value,
            submission_id=str(submission_id) if submission_id else None,
            priority=job.priority,
        )
        if submission_id is not None:
            await self._progress.record_event(
                submission_id,
                _stage_for(job),
                ProgressStatus.QUEUED,
                metadata={"job_id": str(job.id), "job_type": job_type.value},
            )
        return job

    async def drain(self, batch_size: int | None = None) -> DrainResult:
        """Claim and process due jobs.

        Args:
            batch_size: Maximum jobs to claim (config default when omitted).

        Returns:
            DrainResult with per-outcome counts.
        """
        limit = batch_size or self._config.batch_size
        now = self._time.now()
        lease_cutoff = now - timedelta(minutes=self._config.processing_lease_minutes)
        claimed = await self._jobs.claim_due_jobs(now, limit, lease_cutoff)

        sent = rescheduled = dead_lettered = deferred = 0
        for index, job in enumerate(claimed):
            try:
                outcome = await self.process_job(job)
            except BaseException:
                # Jobs after the one that failed were never started
                for other in claimed[index + 1 :]:
                    await self._release(other)
                raise
            if outcome == "sent":
                sent += 1
            elif outcome == "rescheduled":
                rescheduled += 1
            elif outcome == "dead_lettered":
                dead_lettered += 1
            else:
                deferred += 1
                # Circuit is open: hand the rest of the batch back untouched
                remaining = claimed[index + 1 :]
                for other in remaining:
                    await self._defer(other, 0.0)
                deferred += len(remaining)
                break

        result = DrainResult(
            claimed=len(claimed),
            sent=sent,
            rescheduled=rescheduled,
            dead_lettered=dead_lettered,
            deferred=deferred,
        )
        if self._metrics is not None:
            self._metrics.set_queue_depth(await self._jobs.count_pending())
        if claimed:
            self._log.info("delivery_queue_drained", **result.to_dict())
        return result

    async def process_job(self, job: DeliveryJob) -> str:
        """Send one claimed job and persist its new state.

        Returns:
            "sent", "rescheduled", "dead_lettered" or "deferred".
        """
        log = self._log.bind(
            job_id=str(job.id),
            job_type=job.job_type.value,
            retry_count=job.retry_count,
        )
        try:
            result = await self._resilience.execute_with_retry(
                lambda: self._transport.send(job.payload),
                operation_name=MAIL_OPERATION,
                retry_policy=self._send_policy,
                submission_id=job.submission_id,
            )
        except CircuitOpenError as error:
            await self._defer(job, error.retry_after_seconds)
            log.warning(
                "delivery_deferred_circuit_open",
                retry_after_seconds=error.retry_after_seconds,
            )
            return "deferred"
        except Exception as error:
            message = str(error) or type(error).__name__
            if job.retries_exhausted:
                await self._dead_letter(job, message)
                log.error("delivery_job_dead_lettered", error=message)
                return "dead_lettered"
            await self._reschedule(job, message)
            return "rescheduled"
        except BaseException:
            # Cancelled mid-send; the server may or may not have the message
            await self._release(job)
            log.warning("delivery_job_released_after_interrupt")
            raise

        now = self._time.now()
        sent_job = job.sent(result.message_id, now)
        await self._jobs.save(sent_job)
        self._record_metric(job, "sent")
        log.info("delivery_job_sent", message_id=result.message_id)
        if job.submission_id is not None:
            await self._progress.record_event(
                job.submission_id,
                _stage_for(job),
                ProgressStatus.COMPLETED,
                metadata={"job_id": str(job.id), "message_id": result.message_id},
            )
        await self._notify_listeners(sent_job)
        return "sent"

    async def retry_dead_letter(self, job_id: UUID, actor: str = "operator") -> DeliveryJob:
        """Manually re-pend a dead-lettered job with a fresh retry budget.

        Raises:
            DeliveryJobNotFoundError: Unknown job id.
            JobNotRetryableError: The job is not dead-lettered.
        """
        job = await self._jobs.get(job_id)
        if job is None:
            raise DeliveryJobNotFoundError(job_id)
        if not isinstance(job.state, JobFailed):
            raise JobNotRetryableError(job_id, job.status.value)

        requeued = job.requeued(self._time.now())
        await self._jobs.save(requeued)
        self._log.info("delivery_job_manually_retried", job_id=str(job_id), actor=actor)
        if job.submission_id is not None:
            await self._progress.record_event(
                job.submission_id,
                ProgressStage.RETRY,
                ProgressStatus.QUEUED,
                metadata={"job_id": str(job_id), "manual": True},
                actor=actor,
            )
        return requeued

    async def list_dead_letters(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[DeliveryJob], int]:
        """Page through dead-lettered jobs."""
        return await self._jobs.list_failed(limit=limit, offset=offset)

    async def get_job(self, job_id: UUID) -> DeliveryJob:
        """Load a job.

        Raises:
            DeliveryJobNotFoundError: Unknown job id.
        """
        job = await self._jobs.get(job_id)
        if job is None:
            raise DeliveryJobNotFoundError(job_id)
        return job

    async def queue_depth(self) -> int:
        """Number of pending jobs."""
        return await self._jobs.count_pending()

    def backoff_for(self, retry_count: int) -> timedelta:
        """Queue-level delay before the next attempt: 2^retry_count * base."""
        return timedelta(minutes=(2**retry_count) * self._config.base_backoff_minutes)

    async def _reschedule(self, job: DeliveryJob, error: str) -> None:
        now = self._time.now()
        run_at = now + self.backoff_for(job.retry_count)
        updated = job.rescheduled(error, run_at, now)
        await self._jobs.save(updated)
        self._record_metric(job, "retry")
        self._log.warning(
            "delivery_job_rescheduled",
            job_id=str(job.id),
            retry_count=updated.retry_count,
            max_retries=updated.max_retries,
            next_attempt_at=run_at.isoformat(),
            error=error,
        )
        if job.submission_id is not None:
            await self._progress.record_event(
                job.submission_id,
                ProgressStage.RETRY,
                ProgressStatus.PENDING_RETRY,
                metadata={
                    "job_id": str(job.id),
                    "retry_count": updated.retry_count,
                    "next_attempt_at": run_at.isoformat(),
                    "error": error,
                },
            )

    async def _dead_letter(self, job: DeliveryJob, error: str) -> None:
        now = self._time.now()
        failed = job.dead_lettered(error, now)
        await self._jobs.save(failed)
        self._record_metric(job, "dead_letter")
        if job.submission_id is not None:
            await self._progress.record_event(
                job.submission_id,
                _stage_for(job),
                ProgressStatus.FAILED,
                metadata={"job_id": str(job.id), "error": error},
            )
        if self._notifier is not None:
            await self._notifier.notify(
                AdminAlert(
                    severity=AlertSeverity.HIGH,
                    title="Delivery job dead-lettered",
                    message=failed.error_log or error,
                    timestamp=now,
                    context={
                        "job_id": job.id,
                        "job_type": job.job_type.value,
                        "submission_id": job.submission_id,
                        "recipient": job.payload.to,
                    },
                )
            )
        await self._notify_listeners(failed)

    async def _defer(self, job: DeliveryJob, retry_after_seconds: float) -> None:
        now = self._time.now()
        await self._jobs.save(
            job.deferred(now + timedelta(seconds=retry_after_seconds), now)
        )

    async def _release(self, job: DeliveryJob) -> None:
        """Hand an unfinished claim back to pending, due immediately."""
        try:
            await self._defer(job, 0.0)
        except Exception as error:
            # The claim lease recovers the job on a later drain
            self._log.error(
                "delivery_job_release_failed",
                job_id=str(job.id),
                error=str(error),
                error_class=type(error).__name__,
            )

    async def _notify_listeners(self, job: DeliveryJob) -> None:
        if not isinstance(job.state, (JobSent, JobFailed)):
            return
        for listener in self._listeners:
            try:
                await listener(job)
            except Exception as error:
                # Job state is already persisted; the listener failure is
                # reported but must not undo or repeat the delivery.
                self._log.error(
                    "delivery_outcome_listener_failed",
                    job_id=str(job.id),
                    error=str(error),
                    error_class=type(error).__name__,
                )

    def _record_metric(self, job: DeliveryJob, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_delivery(job.job_type.value, outcome)
