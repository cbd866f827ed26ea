"""Submission and pathway errors."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)


class SubmissionNotFoundError(DeliveryPipelineError):
    """Raised when a submission id does not exist.

    Attributes:
        submission_id: The id that was looked up.
    """

    error_type = ErrorType.USER
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, submission_id: UUID) -> None:
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")


class ProjectNotFoundError(DeliveryPipelineError):
    """Raised when a submission references an unknown project."""

    error_type = ErrorType.USER
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, project_id: UUID) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class InvalidSubmissionTransitionError(DeliveryPipelineError):
    """Raised when a status transition is not allowed for the pathway.

    Attributes:
        submission_id: Submission being transitioned.
        pathway: Its pathway.
        current: Status before the attempted transition.
        target: Requested status.
    """

    error_type = ErrorType.USER
    error_code = ErrorCode.CONFLICT

    def __init__(
        self, submission_id: UUID, pathway: str, current: str, target: str
    ) -> None:
        self.submission_id = submission_id
        self.pathway = pathway
        self.current = current
        self.target = target
        super().__init__(
            f"Submission {submission_id} ({pathway}) cannot move "
            f"from {current} to {target}"
        )


class DuplicateProcessingError(DeliveryPipelineError):
    """Raised when documents already exist for a submission being processed.

    Operators can force a redo with allow_redo=True.
    """

    error_type = ErrorType.USER
    error_code = ErrorCode.CONFLICT

    def __init__(self, submission_id: UUID, document_count: int) -> None:
        self.submission_id = submission_id
        self.document_count = document_count
        super().__init__(
            f"Submission {submission_id} already has {document_count} "
            "document(s); refusing to process again"
        )


class TemplateNotConfiguredError(DeliveryPipelineError):
    """Raised when a project has no active template for a document type.

    Fatal configuration error: never retried, alerts operators.
    """

    error_type = ErrorType.SYSTEM
    error_code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, project_id: UUID, template_type: str) -> None:
        self.project_id = project_id
        self.template_type = template_type
        super().__init__(
            f"No active {template_type} template configured for project {project_id}"
        )


class DocumentNotFoundError(DeliveryPipelineError):
    """Raised when a submission has no document to act on."""

    error_type = ErrorType.USER
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, submission_id: UUID) -> None:
        self.submission_id = submission_id
        super().__init__(f"No document found for submission {submission_id}")


class DocumentGenerationError(DeliveryPipelineError):
    """Raised by document generator adapters when the service fails.

    Attributes:
        status_code: HTTP status returned by the service, if any.
    """

    error_type = ErrorType.INTEGRATION
    error_code = ErrorCode.DOCUMENT_SERVICE_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ReviewAlreadyFinalizedError(DeliveryPipelineError):
    """Raised when a reviewed submission is finalised a second time."""

    error_type = ErrorType.USER
    error_code = ErrorCode.CONFLICT

    def __init__(self, submission_id: UUID) -> None:
        self.submission_id = submission_id
        super().__init__(
            f"Submission {submission_id} has already been finalised for delivery"
        )


class InvalidDocumentStatusError(DeliveryPipelineError):
    """Raised when a document would move backwards in its lifecycle."""

    error_type = ErrorType.USER
    error_code = ErrorCode.CONFLICT

    def __init__(self, submission_id: UUID, current: str, target: str) -> None:
        self.submission_id = submission_id
        self.current = current
        self.target = target
        super().__init__(
            f"Documents of submission {submission_id} cannot move "
            f"from {current} to {target}"
        )
