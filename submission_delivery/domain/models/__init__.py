"""Domain models for the submission delivery pipeline."""

from submission_delivery.domain.models.circuit_breaker import (
    CircuitBreakerState,
    CircuitPolicy,
    CircuitState,
    RetryPolicy,
)
from submission_delivery.domain.models.delivery_job import (
    Attachment,
    DeliveryJob,
    DeliveryJobType,
    EmailPayload,
    JobFailed,
    JobPending,
    JobProcessing,
    JobSent,
    JobState,
    JobStatus,
)
from submission_delivery.domain.models.document import (
    ActiveTemplate,
    Document,
    DocumentReviewSummary,
    DocumentStatus,
    DocumentType,
    GeneratedDocument,
)
from submission_delivery.domain.models.progress import (
    ProgressEvent,
    ProgressStage,
    ProgressStatus,
    StaleSubmission,
    SubmissionTimeline,
)
from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import (
    Pathway,
    Submission,
    SubmissionStatus,
)

__all__ = [
    "ActiveTemplate",
    "Attachment",
    "CircuitBreakerState",
    "CircuitPolicy",
    "CircuitState",
    "DeliveryJob",
    "DeliveryJobType",
    "Document",
    "DocumentReviewSummary",
    "DocumentStatus",
    "DocumentType",
    "EmailPayload",
    "GeneratedDocument",
    "JobFailed",
    "JobPending",
    "JobProcessing",
    "JobSent",
    "JobState",
    "JobStatus",
    "Pathway",
    "ProgressEvent",
    "ProgressStage",
    "ProgressStatus",
    "Project",
    "StaleSubmission",
    "Submission",
    "SubmissionStatus",
    "SubmissionTimeline",
]
