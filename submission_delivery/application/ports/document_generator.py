"""Document generator port (external document/PDF service)."""

from __future__ import annotations

from typing import Protocol

from submission_delivery.domain.models.document import GeneratedDocument


class DocumentGeneratorPort(Protocol):
    """Contract for the external document service.

    Calls are wrapped by the resilience registry under the operation
    name "document_service".
    """

    async def create_submission_document(
        self,
        template_ref: str,
        placeholders: dict[str, str],
        title: str,
    ) -> GeneratedDocument:
        """Create a document from a template with placeholders filled.

        Args:
            template_ref: Storage path of the active template.
            placeholders: Values for {{key}} placeholders.
            title: Document title.

        Returns:
            GeneratedDocument with its id and links.
        """
        ...

    async def export_to_pdf(self, document_id: str) -> bytes:
        """Export a document as PDF bytes."""
        ...

    async def get_document_text(self, document_id: str) -> str:
        """Return the current plain text of a (possibly edited) document."""
        ...
