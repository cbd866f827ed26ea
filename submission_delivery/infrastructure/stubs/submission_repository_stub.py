"""In-memory stubs for the submission and project repositories."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import (
    Submission,
    SubmissionStatus,
)


class SubmissionRepositoryStub:
    """In-memory implementation of SubmissionRepositoryPort.

    Keeps every saved version so tests can assert on the status history.
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._submissions: dict[UUID, Submission] = {}
        self.history: list[Submission] = []

    def seed(self, *submissions: Submission) -> None:
        """Add submissions without recording history."""
        for submission in submissions:
            self._submissions[submission.id] = submission

    async def get(self, submission_id: UUID) -> Submission | None:
        return self._submissions.get(submission_id)

    async def save(self, submission: Submission) -> None:
        self._submissions[submission.id] = submission
        self.history.append(submission)

    async def list_by_status(
        self, statuses: tuple[SubmissionStatus, ...]
    ) -> list[Submission]:
        return [s for s in self._submissions.values() if s.status in statuses]

    def status_history(self, submission_id: UUID) -> list[SubmissionStatus]:
        """Statuses saved for a submission, in order, without repeats."""
        statuses: list[SubmissionStatus] = []
        for submission in self.history:
            if submission.id != submission_id:
                continue
            if not statuses or statuses[-1] != submission.status:
                statuses.append(submission.status)
        return statuses


class ProjectRepositoryStub:
    """In-memory implementation of ProjectRepositoryPort."""

    def __init__(self, *projects: Project) -> None:
        """Initialize with optional projects."""
        self._projects: dict[UUID, Project] = {p.id: p for p in projects}

    def add(self, project: Project) -> None:
        self._projects[project.id] = project

    async def get(self, project_id: UUID) -> Project | None:
        return self._projects.get(project_id)
