"""Submission workflow request/response models."""

from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer

from submission_delivery.application.services.submission_orchestrator import (
    WorkflowResult,
)
from submission_delivery.domain.models.document import Document, DocumentReviewSummary

DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class DocumentStatusEnum(str, Enum):
    """Document lifecycle statuses accepted by the API."""

    CREATED = "created"
    USER_EDITING = "user_editing"
    FINALIZED = "finalized"
    APPROVED = "approved"
    SUBMITTED = "submitted"


class ProcessSubmissionRequest(BaseModel):
    """Request to run a submission through its pathway.

    Attributes:
        text: Citizen-supplied submission text; skips generation.
        concerns: Selected concerns used to prompt generation.
        custom_grounds: Extra grounds the citizen wrote.
        allow_redo: Operator override for submissions that already have
            documents or are in ERROR.
    """

    text: str | None = Field(default=None, max_length=20000)
    concerns: list[str] = Field(default_factory=list, max_length=50)
    custom_grounds: str | None = Field(default=None, max_length=10000)
    allow_redo: bool = False


class FinalizeSubmissionRequest(BaseModel):
    """Request to finalise a reviewed submission."""

    notify_applicant: bool = False


class UpdateDocumentStatusRequest(BaseModel):
    """Request to move a submission's documents forward."""

    status: DocumentStatusEnum


class DocumentResponse(BaseModel):
    """One generated document."""

    id: UUID
    doc_type: str | None
    status: str
    external_document_id: str
    edit_url: str | None
    view_url: str | None
    pdf_url: str | None
    review_started_at: DateTimeWithZ | None
    review_completed_at: DateTimeWithZ | None
    created_at: DateTimeWithZ

    @classmethod
    def from_domain(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            doc_type=document.doc_type.value if document.doc_type else None,
            status=document.status.value,
            external_document_id=document.external_document_id,
            edit_url=document.edit_url,
            view_url=document.view_url,
            pdf_url=document.pdf_url,
            review_started_at=document.review_started_at,
            review_completed_at=document.review_completed_at,
            created_at=document.created_at,
        )


class WorkflowResponse(BaseModel):
    """Outcome of processing or finalising a submission."""

    submission_id: UUID
    pathway: str
    status: str
    documents: list[DocumentResponse]
    job_id: UUID | None
    edit_url: str | None
    ai_provider: str | None

    @classmethod
    def from_result(cls, result: WorkflowResult) -> "WorkflowResponse":
        return cls(
            submission_id=result.submission_id,
            pathway=result.pathway.value,
            status=result.status.value,
            documents=[DocumentResponse.from_domain(d) for d in result.documents],
            job_id=result.job_id,
            edit_url=result.edit_url,
            ai_provider=result.ai_provider,
        )


class DocumentSummaryResponse(BaseModel):
    """Submission status with its documents."""

    submission_id: UUID
    submission_status: str
    pathway: str
    has_documents: bool
    documents: list[DocumentResponse]
    review_started_at: DateTimeWithZ | None
    review_completed_at: DateTimeWithZ | None
    review_deadline: DateTimeWithZ | None

    @classmethod
    def from_summary(cls, summary: DocumentReviewSummary) -> "DocumentSummaryResponse":
        return cls(
            submission_id=summary.submission_id,
            submission_status=summary.submission_status,
            pathway=summary.pathway,
            has_documents=summary.has_documents,
            documents=[DocumentResponse.from_domain(d) for d in summary.documents],
            review_started_at=summary.review_started_at,
            review_completed_at=summary.review_completed_at,
            review_deadline=summary.review_deadline,
        )


class DocumentValidationResponse(BaseModel):
    """Whether the edited document would pass finalisation."""

    submission_id: UUID
    is_valid: bool
    issues: list[str]
