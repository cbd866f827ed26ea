"""In-memory stub for DocumentGeneratorPort.

Records every call, renders placeholders into a plain-text body and can
be told to fail the next N creations to exercise retry and breaker paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from submission_delivery.domain.errors.submission import DocumentGenerationError
from submission_delivery.domain.models.document import GeneratedDocument


@dataclass
class StoredDocument:
    """A document held by the stub."""

    document_id: str
    template_ref: str
    title: str
    placeholders: dict[str, str]
    text: str = ""


@dataclass
class DocumentGeneratorStub:
    """Fake document service.

    Attributes:
        fail_next: Number of upcoming create calls that raise.
        failure_status: HTTP status carried by injected failures.
        documents: Created documents keyed by id.
    """

    fail_next: int = 0
    failure_status: int = 503
    documents: dict[str, StoredDocument] = field(default_factory=dict)
    create_calls: int = 0
    export_calls: int = 0

    async def create_submission_document(
        self,
        template_ref: str,
        placeholders: dict[str, str],
        title: str,
    ) -> GeneratedDocument:
        self.create_calls += 1
        if self.fail_next > 0:
            self.fail_next -= 1
            raise DocumentGenerationError(
                "document service unavailable", status_code=self.failure_status
            )

        document_id = f"doc-{len(self.documents) + 1}"
        self.documents[document_id] = StoredDocument(
            document_id=document_id,
            template_ref=template_ref,
            title=title,
            placeholders=dict(placeholders),
            text=placeholders.get("submission_body", ""),
        )
        return GeneratedDocument(
            document_id=document_id,
            edit_url=f"https://docs.example.test/{document_id}/edit",
            view_url=f"https://docs.example.test/{document_id}/view",
            pdf_url=f"https://docs.example.test/{document_id}/export?format=pdf",
        )

    async def export_to_pdf(self, document_id: str) -> bytes:
        self.export_calls += 1
        if document_id not in self.documents:
            raise DocumentGenerationError(
                f"unknown document {document_id}", status_code=404
            )
        return b"%PDF-1.4 " + document_id.encode("ascii")

    async def get_document_text(self, document_id: str) -> str:
        if document_id not in self.documents:
            raise DocumentGenerationError(
                f"unknown document {document_id}", status_code=404
            )
        return self.documents[document_id].text

    def set_document_text(self, document_id: str, text: str) -> None:
        """Simulate a citizen editing the document."""
        self.documents[document_id].text = text
