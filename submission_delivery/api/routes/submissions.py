"""Submission workflow routes.

Processing, review finalisation and document status for one submission.
Pipeline errors are returned as RFC 7807 problem details.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from submission_delivery.api.dependencies import get_error_handler, get_orchestrator
from submission_delivery.api.models.submission import (
    DocumentResponse,
    DocumentSummaryResponse,
    DocumentValidationResponse,
    FinalizeSubmissionRequest,
    ProcessSubmissionRequest,
    UpdateDocumentStatusRequest,
    WorkflowResponse,
)
from submission_delivery.api.problem_details import problem_exception
from submission_delivery.application.services.submission_orchestrator import (
    SubmissionOrchestrator,
)
from submission_delivery.domain.errors.base import DeliveryPipelineError
from submission_delivery.domain.models.document import DocumentStatus
from submission_delivery.workers.error_handler import PipelineErrorHandler

router = APIRouter(prefix="/v1/submissions", tags=["submissions"])


@router.post(
    "/{submission_id}/process",
    response_model=WorkflowResponse,
    summary="Run a submission through its pathway",
)
async def process_submission(
    submission_id: UUID,
    body: ProcessSubmissionRequest,
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> WorkflowResponse:
    """Generate documents and queue the pathway's email."""
    try:
        result = await orchestrator.process_submission(
            submission_id,
            text=body.text,
            concerns=tuple(body.concerns),
            custom_grounds=body.custom_grounds,
            allow_redo=body.allow_redo,
        )
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return WorkflowResponse.from_result(result)


@router.post(
    "/{submission_id}/finalize",
    response_model=WorkflowResponse,
    summary="Finalise a reviewed submission and queue it for the council",
)
async def finalize_submission(
    submission_id: UUID,
    request: Request,
    body: FinalizeSubmissionRequest | None = None,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> WorkflowResponse:
    notify = body.notify_applicant if body else False
    try:
        result = await orchestrator.finalize_and_submit(
            submission_id, notify_applicant=notify
        )
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return WorkflowResponse.from_result(result)


@router.get(
    "/{submission_id}/documents",
    response_model=DocumentSummaryResponse,
    summary="Submission status with its documents",
)
async def get_documents(
    submission_id: UUID,
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> DocumentSummaryResponse:
    try:
        summary = await orchestrator.get_document_status(submission_id)
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return DocumentSummaryResponse.from_summary(summary)


@router.patch(
    "/{submission_id}/documents/status",
    response_model=list[DocumentResponse],
    summary="Move a submission's documents forward in their lifecycle",
)
async def update_document_status(
    submission_id: UUID,
    body: UpdateDocumentStatusRequest,
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> list[DocumentResponse]:
    try:
        documents = await orchestrator.update_document_status(
            submission_id, DocumentStatus(body.status.value)
        )
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return [DocumentResponse.from_domain(d) for d in documents]


@router.get(
    "/{submission_id}/documents/validation",
    response_model=DocumentValidationResponse,
    summary="Check whether the edited document would pass finalisation",
)
async def validate_document(
    submission_id: UUID,
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> DocumentValidationResponse:
    try:
        is_valid, issues = await orchestrator.validate_document_for_submission(
            submission_id
        )
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return DocumentValidationResponse(
        submission_id=submission_id, is_valid=is_valid, issues=issues
    )
