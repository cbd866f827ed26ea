"""Generated document model.

A direct submission produces two documents (cover letter and grounds);
review and draft submissions produce a single editable document.

Status transitions:
    created -> user_editing -> finalized | approved -> submitted
    created -> finalized -> submitted   (direct pathway)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID


class DocumentType(str, Enum):
    """Role of a document within a direct submission."""

    COVER = "cover"
    GROUNDS = "grounds"


class DocumentStatus(str, Enum):
    """Lifecycle status of a document."""

    CREATED = "created"
    USER_EDITING = "user_editing"
    FINALIZED = "finalized"
    APPROVED = "approved"
    SUBMITTED = "submitted"


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Document:
    """A document produced by the external document service.

    Attributes:
        id: Document record identifier.
        submission_id: Owning submission.
        doc_type: cover/grounds for direct submissions, None otherwise.
        status: Document lifecycle status.
        template_ref: Storage path of the template it was created from.
        external_document_id: Identifier in the document service.
        edit_url: Link the citizen edits through.
        view_url: Read-only link.
        pdf_url: Link to the PDF export, if published.
        review_started_at: When the citizen began editing.
        review_completed_at: When the citizen finished editing.
        last_modified_at: Last status change.
        created_at: Creation timestamp.
    """

    id: UUID
    submission_id: UUID
    external_document_id: str
    template_ref: str
    doc_type: DocumentType | None = None
    status: DocumentStatus = DocumentStatus.CREATED
    edit_url: str | None = None
    view_url: str | None = None
    pdf_url: str | None = None
    review_started_at: datetime | None = None
    review_completed_at: datetime | None = None
    last_modified_at: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)

    def with_status(self, new_status: DocumentStatus, now: datetime) -> Document:
        """Return a copy with a new status, stamping review timestamps."""
        changes: dict[str, Any] = {"status": new_status, "last_modified_at": now}
        if new_status == DocumentStatus.USER_EDITING and self.review_started_at is None:
            changes["review_started_at"] = now
        if new_status in (DocumentStatus.FINALIZED, DocumentStatus.APPROVED):
            changes["review_completed_at"] = self.review_completed_at or now
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize document for API responses."""
        return {
            "id": str(self.id),
            "submission_id": str(self.submission_id),
            "doc_type": self.doc_type.value if self.doc_type else None,
            "status": self.status.value,
            "external_document_id": self.external_document_id,
            "edit_url": self.edit_url,
            "view_url": self.view_url,
            "pdf_url": self.pdf_url,
            "review_started_at": (
                self.review_started_at.isoformat() if self.review_started_at else None
            ),
            "review_completed_at": (
                self.review_completed_at.isoformat()
                if self.review_completed_at
                else None
            ),
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class GeneratedDocument:
    """Result of creating a document in the document service."""

    document_id: str
    edit_url: str
    view_url: str
    pdf_url: str | None = None


@dataclass(frozen=True)
class ActiveTemplate:
    """Active template version resolved for a project and document type."""

    storage_path: str
    mimetype: str = "application/vnd.google-apps.document"
    version: int | None = None


@dataclass(frozen=True)
class DocumentReviewSummary:
    """Submission status with its documents, for operators and citizens."""

    submission_id: UUID
    submission_status: str
    pathway: str
    documents: tuple[Document, ...]
    review_started_at: datetime | None = None
    review_completed_at: datetime | None = None
    review_deadline: datetime | None = None

    @property
    def has_documents(self) -> bool:
        """Whether any document exists yet."""
        return bool(self.documents)
