"""PostgreSQL progress event repository (append-only)."""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_delivery.domain.models.progress import (
    ProgressEvent,
    ProgressStage,
    ProgressStatus,
)


def _from_row(row: Any) -> ProgressEvent:
    metadata = row["metadata"]
    if isinstance(metadata, str):
        metadata = json.loads(metadata)
    return ProgressEvent(
        id=row["id"],
        submission_id=row["submission_id"],
        stage=ProgressStage(row["stage"]),
        status=ProgressStatus(row["status"]),
        created_at=row["created_at"],
        metadata=metadata or {},
        actor=row["actor"],
    )


class PostgresProgressEventRepository:
    """ProgressEventRepositoryPort backed by submission_status_events."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append(self, event: ProgressEvent) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    text("""
                        INSERT INTO submission_status_events
                            (id, submission_id, stage, status, metadata, actor, created_at)
                        VALUES
                            (:id, :submission_id, :stage, :status,
                             CAST(:metadata AS JSONB), :actor, :created_at)
                    """),
                    {
                        "id": event.id,
                        "submission_id": event.submission_id,
                        "stage": event.stage.value,
                        "status": event.status.value,
                        "metadata": json.dumps(event.metadata, default=str),
                        "actor": event.actor,
                        "created_at": event.created_at,
                    },
                )

    async def list_for_submission(self, submission_id: UUID) -> list[ProgressEvent]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, submission_id, stage, status, metadata, actor, created_at
                    FROM submission_status_events
                    WHERE submission_id = :submission_id
                    ORDER BY created_at ASC
                """),
                {"submission_id": submission_id},
            )
            rows = result.mappings().all()
        return [_from_row(row) for row in rows]

    async def latest_for_submissions(
        self, submission_ids: list[UUID]
    ) -> dict[UUID, ProgressEvent]:
        if not submission_ids:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT DISTINCT ON (submission_id)
                           id, submission_id, stage, status, metadata, actor, created_at
                    FROM submission_status_events
                    WHERE submission_id = ANY(:ids)
                    ORDER BY submission_id, created_at DESC
                """),
                {"ids": submission_ids},
            )
            rows = result.mappings().all()
        return {row["submission_id"]: _from_row(row) for row in rows}
