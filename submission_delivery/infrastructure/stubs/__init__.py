"""Infrastructure stubs for development and testing.

In-memory implementations of every application port. The container
wires them when no database or SMTP server is configured, and tests use
them directly.

WARNING: These stubs are NOT for production use.
Production implementations are in persistence/, mail/, llm/, documents/
and monitoring/.
"""

from submission_delivery.infrastructure.stubs.admin_notifier_stub import (
    AdminNotifierStub,
)
from submission_delivery.infrastructure.stubs.delivery_job_repository_stub import (
    DeliveryJobRepositoryStub,
)
from submission_delivery.infrastructure.stubs.document_generator_stub import (
    DocumentGeneratorStub,
)
from submission_delivery.infrastructure.stubs.document_repository_stub import (
    DocumentRepositoryStub,
)
from submission_delivery.infrastructure.stubs.mail_transport_stub import (
    MailTransportStub,
)
from submission_delivery.infrastructure.stubs.progress_event_repository_stub import (
    ProgressEventRepositoryStub,
)
from submission_delivery.infrastructure.stubs.submission_repository_stub import (
    ProjectRepositoryStub,
    SubmissionRepositoryStub,
)
from submission_delivery.infrastructure.stubs.template_resolver_stub import (
    TemplateResolverStub,
)
from submission_delivery.infrastructure.stubs.text_generation_provider_stub import (
    TextGenerationProviderStub,
)

__all__ = [
    "AdminNotifierStub",
    "DeliveryJobRepositoryStub",
    "DocumentGeneratorStub",
    "DocumentRepositoryStub",
    "MailTransportStub",
    "ProgressEventRepositoryStub",
    "ProjectRepositoryStub",
    "SubmissionRepositoryStub",
    "TemplateResolverStub",
    "TextGenerationProviderStub",
]
