"""RFC 7807 problem details for pipeline errors.

Routes catch DeliveryPipelineError and re-raise it as an HTTPException
whose detail is a problem object. The HTTP status follows the error's
code; the citizen-safe message comes from the error handler's
classification.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.workers.error_handler import PipelineErrorHandler

PROBLEM_TYPE_BASE = "urn:submission-delivery:error"

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_FAILED: 422,
    ErrorCode.CONTENT_REJECTED: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.QUOTA_EXCEEDED: 429,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.TIMEOUT: 504,
    ErrorCode.DOCUMENT_SERVICE_ERROR: 502,
    ErrorCode.AI_PROVIDER_ERROR: 502,
    ErrorCode.EMAIL_DELIVERY_ERROR: 502,
}


def status_for(error: DeliveryPipelineError) -> int:
    """HTTP status for a pipeline error."""
    if error.error_code in STATUS_BY_CODE:
        return STATUS_BY_CODE[error.error_code]
    if error.error_type == ErrorType.USER:
        return 400
    return 500


def problem_exception(
    error: DeliveryPipelineError,
    request: Request,
    error_handler: PipelineErrorHandler,
) -> HTTPException:
    """Build the HTTPException for a pipeline error."""
    classified = error_handler.classify(error)
    status = status_for(error)
    slug = classified.error_code.value.lower().replace("_", "-")
    detail = {
        "type": f"{PROBLEM_TYPE_BASE}:{slug}",
        "title": classified.error_code.value.replace("_", " ").title(),
        "status": status,
        "detail": str(error),
        "instance": str(request.url),
        "error_type": classified.error_type.value,
        "user_message": classified.user_message,
        "retryable": classified.retryable,
    }
    headers = None
    if isinstance(error, CircuitOpenError):
        headers = {"Retry-After": str(max(1, int(error.retry_after_seconds)))}
    return HTTPException(status_code=status, detail=detail, headers=headers)
