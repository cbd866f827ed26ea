"""Unit tests for pipeline dependency wiring."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from submission_delivery.bootstrap.container import (
    build_container,
    build_providers,
    get_container,
    reset_container,
    set_container,
)
from submission_delivery.config.pipeline_config import (
    LLMProviderConfig,
    PipelineConfig,
    ReviewConfig,
)
from submission_delivery.infrastructure.llm import AnthropicProvider, OpenAIProvider
from submission_delivery.infrastructure.monitoring.admin_alert_client import (
    WebhookAdminNotifier,
)
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics
from submission_delivery.infrastructure.stubs import (
    DeliveryJobRepositoryStub,
    MailTransportStub,
    SubmissionRepositoryStub,
)


@pytest.fixture(autouse=True)
def fresh_container() -> Iterator[None]:
    reset_container()
    yield
    reset_container()


def _metrics() -> PipelineMetrics:
    return PipelineMetrics(registry=CollectorRegistry())


class TestBuildContainer:
    """Tests for build_container()."""

    def test_without_database_wires_stubs(self) -> None:
        container = build_container(PipelineConfig(), metrics=_metrics())

        assert isinstance(container.submissions, SubmissionRepositoryStub)
        assert isinstance(container.jobs, DeliveryJobRepositoryStub)
        assert isinstance(container.transport, MailTransportStub)
        assert isinstance(container.admin_notifier, WebhookAdminNotifier)
        assert container.text_generation.provider_names == []

    def test_overrides_win(self) -> None:
        transport = MailTransportStub(fail_times=1)

        container = build_container(
            PipelineConfig(), metrics=_metrics(), transport=transport
        )

        assert container.transport is transport

    @pytest.mark.asyncio
    async def test_reminders_scheduled_only_with_review_deadline(self) -> None:
        without = build_container(PipelineConfig(), metrics=_metrics())
        with_deadline = build_container(
            PipelineConfig(review=ReviewConfig(deadline_days=5)), metrics=_metrics()
        )

        await without.worker.run_once()
        await with_deadline.worker.run_once()

        assert without.worker.stats.cycles == 1
        assert with_deadline.worker.stats.cycles == 1
        assert with_deadline.worker.stats.reminders_queued == 0


class TestBuildProviders:
    """Tests for provider construction."""

    def test_skips_providers_without_keys(self) -> None:
        providers = build_providers(
            LLMProviderConfig(
                provider_order=("anthropic", "openai"), anthropic_api_key="key"
            )
        )

        assert [type(p) for p in providers] == [AnthropicProvider]

    def test_keeps_configured_order(self) -> None:
        providers = build_providers(
            LLMProviderConfig(
                provider_order=("anthropic", "openai", "mistral"),
                openai_api_key="sk",
                anthropic_api_key="key",
            )
        )

        assert [type(p) for p in providers] == [AnthropicProvider, OpenAIProvider]


class TestContainerSingleton:
    """Tests for the process-wide container."""

    def test_set_and_get(self) -> None:
        container = build_container(PipelineConfig(), metrics=_metrics())

        set_container(container)

        assert get_container() is container
