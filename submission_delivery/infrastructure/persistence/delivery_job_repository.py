"""PostgreSQL delivery job repository (the email_queue table).

claim_due_jobs() selects and marks jobs in a single UPDATE using
FOR UPDATE SKIP LOCKED, so concurrent workers never claim the same row.
Rows stuck in processing past the lease cutoff are claimed again.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_delivery.domain.models.delivery_job import (
    DeliveryJob,
    DeliveryJobType,
    EmailPayload,
    JobStatus,
    state_from_row,
)

_COLUMNS = (
    "id",
    "submission_id",
    "job_type",
    "payload",
    "priority",
    "status",
    "retry_count",
    "max_retries",
    "scheduled_for",
    "message_id",
    "error_log",
    "created_at",
    "updated_at",
)
_SELECT_COLUMNS = ", ".join(_COLUMNS)

_CLAIM_SQL = f"""
    UPDATE email_queue
    SET status = 'processing', updated_at = :now
    WHERE id IN (
        SELECT id FROM email_queue
        WHERE (status = 'pending' AND scheduled_for <= :now)
           OR (status = 'processing' AND updated_at < :lease_cutoff)
        ORDER BY priority DESC, created_at ASC
        LIMIT :limit
        FOR UPDATE SKIP LOCKED
    )
    RETURNING {_SELECT_COLUMNS}
"""


def _from_row(row: Any) -> DeliveryJob:
    payload = row["payload"]
    if isinstance(payload, str):
        payload = json.loads(payload)
    return DeliveryJob(
        id=row["id"],
        job_type=DeliveryJobType(row["job_type"]),
        payload=EmailPayload.from_dict(payload),
        scheduled_for=row["scheduled_for"],
        submission_id=row["submission_id"],
        priority=row["priority"],
        retry_count=row["retry_count"],
        max_retries=row["max_retries"],
        state=state_from_row(
            row["status"], row["message_id"], row["error_log"], row["updated_at"]
        ),
        error_log=row["error_log"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _params(job: DeliveryJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "submission_id": job.submission_id,
        "job_type": job.job_type.value,
        "payload": json.dumps(job.payload.to_dict()),
        "priority": job.priority,
        "status": job.status.value,
        "retry_count": job.retry_count,
        "max_retries": job.max_retries,
        "scheduled_for": job.scheduled_for,
        "message_id": job.message_id,
        "error_log": job.error_log,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


class PostgresDeliveryJobRepository:
    """DeliveryJobRepositoryPort backed by PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, job: DeliveryJob) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    text(f"""
                        INSERT INTO email_queue ({_SELECT_COLUMNS})
                        VALUES (:id, :submission_id, :job_type, CAST(:payload AS JSONB),
                                :priority, :status, :retry_count, :max_retries,
                                :scheduled_for, :message_id, :error_log,
                                :created_at, :updated_at)
                    """),
                    _params(job),
                )

    async def claim_due_jobs(
        self, now: datetime, limit: int, lease_cutoff: datetime
    ) -> list[DeliveryJob]:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text(_CLAIM_SQL),
                    {"now": now, "limit": limit, "lease_cutoff": lease_cutoff},
                )
                rows = result.mappings().all()
        jobs = [_from_row(row) for row in rows]
        # RETURNING does not preserve the subquery order
        jobs.sort(key=lambda j: (-j.priority, j.created_at))
        return jobs

    async def save(self, job: DeliveryJob) -> None:
        params = _params(job)
        del params["payload"]
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    text("""
                        UPDATE email_queue
                        SET status = :status,
                            retry_count = :retry_count,
                            max_retries = :max_retries,
                            priority = :priority,
                            scheduled_for = :scheduled_for,
                            message_id = :message_id,
                            error_log = :error_log,
                            updated_at = :updated_at
                        WHERE id = :id
                    """),
                    params,
                )

    async def get(self, job_id: UUID) -> DeliveryJob | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"SELECT {_SELECT_COLUMNS} FROM email_queue WHERE id = :id"),
                {"id": job_id},
            )
            row = result.mappings().first()
        return _from_row(row) if row else None

    async def list_failed(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[DeliveryJob], int]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_SELECT_COLUMNS} FROM email_queue
                    WHERE status = 'failed'
                    ORDER BY updated_at DESC
                    LIMIT :limit OFFSET :offset
                """),
                {"limit": limit, "offset": offset},
            )
            rows = result.mappings().all()
            total_result = await session.execute(
                text("SELECT COUNT(*) FROM email_queue WHERE status = 'failed'")
            )
            total = total_result.scalar() or 0
        return [_from_row(row) for row in rows], total

    async def count_pending(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT COUNT(*) FROM email_queue WHERE status = :status"),
                {"status": JobStatus.PENDING.value},
            )
            return result.scalar() or 0
