"""PostgreSQL submission and project repositories."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import (
    Pathway,
    Submission,
    SubmissionStatus,
)

_SUBMISSION_COLUMNS = (
    "id",
    "project_id",
    "pathway",
    "status",
    "applicant_first_name",
    "applicant_last_name",
    "applicant_email",
    "applicant_postal_address",
    "site_address",
    "application_number",
    "generated_text",
    "ai_provider",
    "review_started_at",
    "review_deadline",
    "review_reminder_sent_at",
    "review_completed_at",
    "submitted_to_council_at",
    "confirmation_id",
    "council_job_id",
    "created_at",
    "updated_at",
)

_SELECT_SUBMISSION = f"SELECT {', '.join(_SUBMISSION_COLUMNS)} FROM submissions"

_UPSERT_SUBMISSION = f"""
    INSERT INTO submissions ({', '.join(_SUBMISSION_COLUMNS)})
    VALUES ({', '.join(':' + c for c in _SUBMISSION_COLUMNS)})
    ON CONFLICT (id) DO UPDATE SET
    {', '.join(f'{c} = EXCLUDED.{c}' for c in _SUBMISSION_COLUMNS if c != 'id')}
"""


def _submission_from_row(row: Any) -> Submission:
    data = dict(row)
    data["pathway"] = Pathway(data["pathway"])
    data["status"] = SubmissionStatus(data["status"])
    return Submission(**data)


def _submission_params(submission: Submission) -> dict[str, Any]:
    params = {column: getattr(submission, column) for column in _SUBMISSION_COLUMNS}
    params["pathway"] = submission.pathway.value
    params["status"] = submission.status.value
    return params


class PostgresSubmissionRepository:
    """SubmissionRepositoryPort backed by the submissions table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, submission_id: UUID) -> Submission | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"{_SELECT_SUBMISSION} WHERE id = :id"), {"id": submission_id}
            )
            row = result.mappings().first()
        return _submission_from_row(row) if row else None

    async def save(self, submission: Submission) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    text(_UPSERT_SUBMISSION), _submission_params(submission)
                )

    async def list_by_status(
        self, statuses: tuple[SubmissionStatus, ...]
    ) -> list[Submission]:
        if not statuses:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"{_SELECT_SUBMISSION} WHERE status = ANY(:statuses)"),
                {"statuses": [s.value for s in statuses]},
            )
            rows = result.mappings().all()
        return [_submission_from_row(row) for row in rows]


class PostgresProjectRepository:
    """ProjectRepositoryPort backed by the projects table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, project_id: UUID) -> Project | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, name, council_name, council_email, from_email,
                           from_name, test_submission_email, subject_template,
                           council_subject_template, default_application_number,
                           enable_ai_generation, info_pack
                    FROM projects
                    WHERE id = :id
                """),
                {"id": project_id},
            )
            row = result.mappings().first()
        return Project(**dict(row)) if row else None
