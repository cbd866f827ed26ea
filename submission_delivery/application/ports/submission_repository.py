"""Submission and project repository ports."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import (
    Submission,
    SubmissionStatus,
)


class SubmissionRepositoryPort(Protocol):
    """Persistence for submissions.

    Submissions are never deleted. Only the orchestrator (and the delivery
    completion hook acting for it) writes them.
    """

    async def get(self, submission_id: UUID) -> Submission | None:
        """Load a submission by id, or None if absent."""
        ...

    async def save(self, submission: Submission) -> None:
        """Insert or update a submission."""
        ...

    async def list_by_status(
        self, statuses: tuple[SubmissionStatus, ...]
    ) -> list[Submission]:
        """List submissions currently in any of the given statuses."""
        ...


class ProjectRepositoryPort(Protocol):
    """Read-only access to campaign configuration."""

    async def get(self, project_id: UUID) -> Project | None:
        """Load a project by id, or None if absent."""
        ...
