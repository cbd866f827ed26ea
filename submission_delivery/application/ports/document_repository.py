"""Document repository port."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from submission_delivery.domain.models.document import Document


class DocumentRepositoryPort(Protocol):
    """Persistence for generated documents."""

    async def save_many(self, documents: list[Document]) -> None:
        """Insert or update documents in a single transaction.

        The cover and grounds documents of a direct submission are written
        together so a reader never observes only one of them.
        """
        ...

    async def list_for_submission(self, submission_id: UUID) -> list[Document]:
        """List a submission's documents, oldest first."""
        ...
