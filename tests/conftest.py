"""
Pytest configuration and shared fixtures for submission delivery tests.

Testing Standards:
- All async tests run in asyncio auto mode (enabled in pyproject.toml)
- External dependencies are replaced by the in-memory stubs from
  submission_delivery.infrastructure.stubs
- Time is driven by FakeTimeAuthority; retries sleep on the fake clock
- Unit tests go in tests/unit/
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from uuid import uuid4

import pytest
from prometheus_client import CollectorRegistry

from submission_delivery.bootstrap.container import PipelineContainer, build_container
from submission_delivery.config.pipeline_config import PipelineConfig
from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import Pathway, Submission
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics
from submission_delivery.infrastructure.stubs import (
    AdminNotifierStub,
    DeliveryJobRepositoryStub,
    DocumentGeneratorStub,
    DocumentRepositoryStub,
    MailTransportStub,
    ProgressEventRepositoryStub,
    ProjectRepositoryStub,
    SubmissionRepositoryStub,
    TemplateResolverStub,
    TextGenerationProviderStub,
)
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Provide a fake clock frozen at a known instant."""
    return FakeTimeAuthority()


@pytest.fixture
def metrics() -> PipelineMetrics:
    """Provide metrics bound to an isolated registry."""
    return PipelineMetrics(registry=CollectorRegistry())


@pytest.fixture
def project() -> Project:
    """A council campaign with generation enabled."""
    return Project(
        id=uuid4(),
        name="Save Example Park",
        council_name="Example City Council",
        council_email="planning@council.example",
        from_email="campaign@savepark.example",
        from_name="Save Example Park",
        default_application_number="DA-2026-0042",
    )


@pytest.fixture
def make_submission(
    project: Project, fake_time_authority: FakeTimeAuthority
) -> Callable[..., Submission]:
    """Factory for NEW submissions belonging to the project fixture."""

    def _make(pathway: Pathway = Pathway.DIRECT, **overrides: Any) -> Submission:
        now = fake_time_authority.now()
        values: dict[str, Any] = {
            "id": uuid4(),
            "project_id": project.id,
            "pathway": pathway,
            "applicant_first_name": "Jordan",
            "applicant_last_name": "Lee",
            "applicant_email": "jordan@resident.example",
            "site_address": "12 Park Road, Exampleville",
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return Submission(**values)

    return _make


@pytest.fixture
def submission_repo() -> SubmissionRepositoryStub:
    return SubmissionRepositoryStub()


@pytest.fixture
def project_repo(project: Project) -> ProjectRepositoryStub:
    return ProjectRepositoryStub(project)


@pytest.fixture
def document_repo() -> DocumentRepositoryStub:
    return DocumentRepositoryStub()


@pytest.fixture
def job_repo() -> DeliveryJobRepositoryStub:
    return DeliveryJobRepositoryStub()


@pytest.fixture
def event_repo() -> ProgressEventRepositoryStub:
    return ProgressEventRepositoryStub()


@pytest.fixture
def template_resolver(project: Project) -> TemplateResolverStub:
    """Template resolver with cover and grounds templates for the project."""
    resolver = TemplateResolverStub()
    resolver.configure_defaults(project.id)
    return resolver


@pytest.fixture
def document_generator() -> DocumentGeneratorStub:
    return DocumentGeneratorStub()


@pytest.fixture
def mail_transport() -> MailTransportStub:
    return MailTransportStub()


@pytest.fixture
def admin_notifier() -> AdminNotifierStub:
    return AdminNotifierStub()


@pytest.fixture
def text_provider() -> TextGenerationProviderStub:
    """Provider returning a short, valid objection."""
    return TextGenerationProviderStub(
        name="primary",
        responses=[
            "I object to this development because it removes the only "
            "public green space in the neighbourhood."
        ],
    )


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Default configuration without a database (stubs are wired)."""
    return PipelineConfig()


@pytest.fixture
def container(
    pipeline_config: PipelineConfig,
    fake_time_authority: FakeTimeAuthority,
    metrics: PipelineMetrics,
    submission_repo: SubmissionRepositoryStub,
    project_repo: ProjectRepositoryStub,
    document_repo: DocumentRepositoryStub,
    job_repo: DeliveryJobRepositoryStub,
    event_repo: ProgressEventRepositoryStub,
    template_resolver: TemplateResolverStub,
    document_generator: DocumentGeneratorStub,
    mail_transport: MailTransportStub,
    admin_notifier: AdminNotifierStub,
    text_provider: TextGenerationProviderStub,
) -> PipelineContainer:
    """Fully wired pipeline over in-memory stubs and the fake clock."""
    return build_container(
        pipeline_config,
        time_authority=fake_time_authority,
        metrics=metrics,
        submissions=submission_repo,
        projects=project_repo,
        documents=document_repo,
        jobs=job_repo,
        events=event_repo,
        templates=template_resolver,
        document_generator=document_generator,
        transport=mail_transport,
        admin_notifier=admin_notifier,
        providers=[text_provider],
        sleep=fake_time_authority.sleep,
    )
