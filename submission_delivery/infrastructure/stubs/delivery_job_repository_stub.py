"""In-memory stub for DeliveryJobRepositoryPort.

Claims are serialized with an asyncio.Lock so concurrent drains in one
event loop behave like SELECT ... FOR UPDATE SKIP LOCKED: no job is ever
handed to two callers.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from uuid import UUID

from submission_delivery.domain.models.delivery_job import (
    DeliveryJob,
    JobFailed,
    JobStatus,
)


class DeliveryJobRepositoryStub:
    """In-memory delivery job store."""

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._jobs: dict[UUID, DeliveryJob] = {}
        self._claim_lock = asyncio.Lock()

    async def add(self, job: DeliveryJob) -> None:
        self._jobs[job.id] = job

    async def claim_due_jobs(
        self, now: datetime, limit: int, lease_cutoff: datetime
    ) -> list[DeliveryJob]:
        async with self._claim_lock:
            due = [
                job
                for job in self._jobs.values()
                if job.is_claimable(now, lease_cutoff)
            ]
            due.sort(key=lambda j: (-j.priority, j.created_at))
            claimed = [job.claimed(now) for job in due[:limit]]
            for job in claimed:
                self._jobs[job.id] = job
            return claimed

    async def save(self, job: DeliveryJob) -> None:
        self._jobs[job.id] = job

    async def get(self, job_id: UUID) -> DeliveryJob | None:
        return self._jobs.get(job_id)

    async def list_failed(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[DeliveryJob], int]:
        failed = [j for j in self._jobs.values() if isinstance(j.state, JobFailed)]
        failed.sort(key=lambda j: j.updated_at, reverse=True)
        return failed[offset : offset + limit], len(failed)

    async def count_pending(self) -> int:
        return sum(1 for j in self._jobs.values() if j.status == JobStatus.PENDING)

    def all_jobs(self) -> list[DeliveryJob]:
        """Every stored job, in insertion order."""
        return list(self._jobs.values())

    def jobs_for_submission(self, submission_id: UUID) -> list[DeliveryJob]:
        return [j for j in self._jobs.values() if j.submission_id == submission_id]
