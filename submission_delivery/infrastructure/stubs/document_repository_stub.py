"""In-memory stub for DocumentRepositoryPort."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.models.document import Document


class DocumentRepositoryStub:
    """In-memory document store keyed by document id."""

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._documents: dict[UUID, Document] = {}

    async def save_many(self, documents: list[Document]) -> None:
        for document in documents:
            self._documents[document.id] = document

    async def list_for_submission(self, submission_id: UUID) -> list[Document]:
        documents = [
            d for d in self._documents.values() if d.submission_id == submission_id
        ]
        return sorted(documents, key=lambda d: d.created_at)

    @property
    def count(self) -> int:
        return len(self._documents)
