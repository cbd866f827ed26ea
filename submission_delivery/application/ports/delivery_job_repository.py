"""Delivery job repository port.

Backs the persistent email queue. The claim operation is the only point
of mutual exclusion in the pipeline: two workers draining concurrently
must never claim the same job. PostgreSQL implementations use
SELECT ... FOR UPDATE SKIP LOCKED inside a single UPDATE statement.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from submission_delivery.domain.models.delivery_job import DeliveryJob


class DeliveryJobRepositoryPort(Protocol):
    """Persistence for delivery jobs.

    Methods:
        add: Persist a new pending job
        claim_due_jobs: Atomically move due pending (or abandoned) jobs to processing
        save: Persist a job state change
        get: Load a job by id
        list_failed: Page through dead-lettered jobs
        count_pending: Pending queue depth
    """

    async def add(self, job: DeliveryJob) -> None:
        """Persist a newly enqueued job."""
        ...

    async def claim_due_jobs(
        self, now: datetime, limit: int, lease_cutoff: datetime
    ) -> list[DeliveryJob]:
        """Claim pending jobs whose scheduled time has passed.

        Processing jobs last updated before lease_cutoff are claimed too:
        their worker died or was cancelled mid-send. Jobs are ordered by
        priority (highest first), then created_at (oldest first). Claimed
        jobs are returned already marked processing; no other caller can
        claim them.

        Args:
            now: Current time.
            limit: Maximum jobs to claim.
            lease_cutoff: Processing claims older than this are expired.

        Returns:
            Claimed jobs in drain order.
        """
        ...

    async def save(self, job: DeliveryJob) -> None:
        """Persist a job's updated state."""
        ...

    async def get(self, job_id: UUID) -> DeliveryJob | None:
        """Load a job by id, or None if absent."""
        ...

    async def list_failed(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[DeliveryJob], int]:
        """Page through dead-lettered jobs, most recently failed first.

        Returns:
            Tuple of (jobs, total_failed).
        """
        ...

    async def count_pending(self) -> int:
        """Count pending jobs."""
        ...
