"""Progress event repository port."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from submission_delivery.domain.models.progress import ProgressEvent


class ProgressEventRepositoryPort(Protocol):
    """Append-only store of progress events."""

    async def append(self, event: ProgressEvent) -> None:
        """Append an event. Events are never updated or deleted."""
        ...

    async def list_for_submission(self, submission_id: UUID) -> list[ProgressEvent]:
        """List a submission's events ordered by created_at."""
        ...

    async def latest_for_submissions(
        self, submission_ids: list[UUID]
    ) -> dict[UUID, ProgressEvent]:
        """Most recent event of each listed submission.

        Submissions without events are absent from the result.
        """
        ...
