"""PostgreSQL document repository."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_delivery.domain.models.document import (
    Document,
    DocumentStatus,
    DocumentType,
)

_COLUMNS = (
    "id",
    "submission_id",
    "external_document_id",
    "template_ref",
    "doc_type",
    "status",
    "edit_url",
    "view_url",
    "pdf_url",
    "review_started_at",
    "review_completed_at",
    "last_modified_at",
    "created_at",
)

_UPSERT = f"""
    INSERT INTO documents ({', '.join(_COLUMNS)})
    VALUES ({', '.join(':' + c for c in _COLUMNS)})
    ON CONFLICT (id) DO UPDATE SET
    {', '.join(f'{c} = EXCLUDED.{c}' for c in _COLUMNS if c != 'id')}
"""


def _params(document: Document) -> dict[str, Any]:
    params = {column: getattr(document, column) for column in _COLUMNS}
    params["doc_type"] = document.doc_type.value if document.doc_type else None
    params["status"] = document.status.value
    return params


def _from_row(row: Any) -> Document:
    data = dict(row)
    data["doc_type"] = DocumentType(data["doc_type"]) if data["doc_type"] else None
    data["status"] = DocumentStatus(data["status"])
    return Document(**data)


class PostgresDocumentRepository:
    """DocumentRepositoryPort backed by the documents table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save_many(self, documents: list[Document]) -> None:
        """Upsert all documents in one transaction."""
        if not documents:
            return
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(text(_UPSERT), [_params(d) for d in documents])

    async def list_for_submission(self, submission_id: UUID) -> list[Document]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {', '.join(_COLUMNS)}
                    FROM documents
                    WHERE submission_id = :submission_id
                    ORDER BY created_at ASC
                """),
                {"submission_id": submission_id},
            )
            rows = result.mappings().all()
        return [_from_row(row) for row in rows]
