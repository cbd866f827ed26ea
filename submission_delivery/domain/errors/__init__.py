"""Domain errors for the submission delivery pipeline."""

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)
from submission_delivery.domain.errors.content import (
    AIDisclosureContentError,
    ContentRejectedError,
    DisallowedLinkContentError,
    EmDashContentError,
    EmojiContentError,
    MissingSubmissionTextError,
    WordLimitExceededError,
)
from submission_delivery.domain.errors.delivery import (
    DeliveryJobNotFoundError,
    JobNotRetryableError,
    MailDeliveryError,
)
from submission_delivery.domain.errors.generation import (
    AllProvidersFailedError,
    ProviderError,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.errors.submission import (
    DocumentGenerationError,
    DocumentNotFoundError,
    DuplicateProcessingError,
    InvalidDocumentStatusError,
    InvalidSubmissionTransitionError,
    ProjectNotFoundError,
    ReviewAlreadyFinalizedError,
    SubmissionNotFoundError,
    TemplateNotConfiguredError,
)

__all__ = [
    "AIDisclosureContentError",
    "AllProvidersFailedError",
    "CircuitOpenError",
    "ContentRejectedError",
    "DeliveryJobNotFoundError",
    "DeliveryPipelineError",
    "DisallowedLinkContentError",
    "DocumentGenerationError",
    "DocumentNotFoundError",
    "DuplicateProcessingError",
    "EmDashContentError",
    "EmojiContentError",
    "ErrorCode",
    "ErrorType",
    "InvalidDocumentStatusError",
    "InvalidSubmissionTransitionError",
    "JobNotRetryableError",
    "MailDeliveryError",
    "MissingSubmissionTextError",
    "ProjectNotFoundError",
    "ProviderError",
    "ReviewAlreadyFinalizedError",
    "SubmissionNotFoundError",
    "TemplateNotConfiguredError",
    "WordLimitExceededError",
]
