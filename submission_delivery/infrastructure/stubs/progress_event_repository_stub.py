"""In-memory stub for ProgressEventRepositoryPort."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.models.progress import ProgressEvent


class ProgressEventRepositoryStub:
    """Append-only in-memory event log."""

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._events: list[ProgressEvent] = []
        self.list_calls = 0

    async def append(self, event: ProgressEvent) -> None:
        self._events.append(event)

    async def list_for_submission(self, submission_id: UUID) -> list[ProgressEvent]:
        self.list_calls += 1
        events = [e for e in self._events if e.submission_id == submission_id]
        return sorted(events, key=lambda e: e.created_at)

    async def latest_for_submissions(
        self, submission_ids: list[UUID]
    ) -> dict[UUID, ProgressEvent]:
        wanted = set(submission_ids)
        latest: dict[UUID, ProgressEvent] = {}
        for event in self._events:
            if event.submission_id not in wanted:
                continue
            current = latest.get(event.submission_id)
            if current is None or event.created_at >= current.created_at:
                latest[event.submission_id] = event
        return latest

    @property
    def events(self) -> list[ProgressEvent]:
        return list(self._events)
