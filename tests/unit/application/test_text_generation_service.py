"""Unit tests for TextGenerationService provider fallback."""

from __future__ import annotations

import pytest

from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.application.services.text_generation_service import (
    GenerationContext,
    TextGenerationService,
)
from submission_delivery.domain.errors.content import (
    EmojiContentError,
    WordLimitExceededError,
)
from submission_delivery.domain.errors.generation import AllProvidersFailedError
from submission_delivery.domain.models.circuit_breaker import CircuitPolicy, RetryPolicy
from submission_delivery.domain.services.content_validator import ContentRules
from submission_delivery.infrastructure.stubs import TextGenerationProviderStub
from tests.helpers import FakeTimeAuthority

CONTEXT = GenerationContext(
    council_name="Example City Council",
    site_address="12 Park Road, Exampleville",
    application_number="DA-2026-0042",
    concerns=("Loss of green space", " Traffic on Park Road "),
    custom_grounds="The park is used by the local school.",
)


@pytest.fixture
def resilience(fake_time_authority: FakeTimeAuthority) -> ResilienceRegistry:
    return ResilienceRegistry(fake_time_authority, sleep=fake_time_authority.sleep)


class TestGenerationContext:
    """Tests for prompt assembly."""

    def test_user_prompt_lists_context_and_concerns(self) -> None:
        prompt = CONTEXT.user_prompt()

        assert "Council: Example City Council" in prompt
        assert "Application number: DA-2026-0042" in prompt
        assert "- Traffic on Park Road" in prompt
        assert prompt.endswith("The park is used by the local school.")

    def test_user_prompt_omits_missing_fields(self) -> None:
        prompt = GenerationContext(council_name="C", site_address="S").user_prompt()

        assert prompt == "Council: C\nSite address: S"


class TestGenerate:
    """Tests for generate()."""

    @pytest.mark.asyncio
    async def test_first_provider_wins(self, resilience: ResilienceRegistry) -> None:
        primary = TextGenerationProviderStub(
            name="primary", responses=["I  object to the   tower."]
        )
        secondary = TextGenerationProviderStub(name="secondary")
        service = TextGenerationService([primary, secondary], resilience)

        result = await service.generate(CONTEXT)

        assert result.text == "I object to the tower."
        assert result.provider == "primary"
        assert secondary.requests == []
        request = primary.requests[0]
        assert request.max_words == 600
        assert "600 words" in request.system_prompt

    @pytest.mark.asyncio
    async def test_falls_back_after_retries_exhausted(
        self, resilience: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        """Test that a failing provider is retried, then the next one answers."""
        primary = TextGenerationProviderStub.failing("primary", status_code=503)
        secondary = TextGenerationProviderStub(
            name="secondary", responses=["Please refuse this application."]
        )
        service = TextGenerationService(
            [primary, secondary],
            resilience,
            retry_policy=RetryPolicy(max_retries=2, jitter=False),
        )

        result = await service.generate(CONTEXT)

        assert result.provider == "secondary"
        assert len(primary.requests) == 3
        assert fake_time_authority.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_all_providers_failing(self, resilience: ResilienceRegistry) -> None:
        service = TextGenerationService(
            [
                TextGenerationProviderStub.failing("primary"),
                TextGenerationProviderStub.failing("secondary"),
            ],
            resilience,
            retry_policy=RetryPolicy(max_retries=0),
        )

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await service.generate(CONTEXT)

        assert set(exc_info.value.failures) == {"primary", "secondary"}

    @pytest.mark.asyncio
    async def test_no_providers_configured(self, resilience: ResilienceRegistry) -> None:
        service = TextGenerationService([], resilience)

        with pytest.raises(AllProvidersFailedError, match="no providers configured"):
            await service.generate(CONTEXT)

    @pytest.mark.asyncio
    async def test_rejected_content_not_retried_with_next_provider(
        self, resilience: ResilienceRegistry
    ) -> None:
        primary = TextGenerationProviderStub(
            name="primary", responses=["Please refuse this \U0001f3d7"]
        )
        secondary = TextGenerationProviderStub(name="secondary")
        service = TextGenerationService([primary, secondary], resilience)

        with pytest.raises(EmojiContentError):
            await service.generate(CONTEXT)

        assert secondary.requests == []

    @pytest.mark.asyncio
    async def test_open_circuit_skips_provider(
        self, resilience: ResilienceRegistry
    ) -> None:
        """Test that a tripped provider is skipped without being called."""
        resilience.configure_circuit("llm:primary", CircuitPolicy(failure_threshold=1))
        primary = TextGenerationProviderStub.failing("primary")
        secondary = TextGenerationProviderStub(
            name="secondary", responses=["Please refuse this application."]
        )
        service = TextGenerationService(
            [primary, secondary], resilience, retry_policy=RetryPolicy(max_retries=0)
        )

        await service.generate(CONTEXT)
        result = await service.generate(CONTEXT)

        assert result.provider == "secondary"
        assert len(primary.requests) == 1

    @pytest.mark.asyncio
    async def test_word_limit_applied_to_output(
        self, resilience: ResilienceRegistry
    ) -> None:
        primary = TextGenerationProviderStub(
            name="primary", responses=["one two three four"]
        )
        service = TextGenerationService(
            [primary], resilience, content_rules=ContentRules(max_words=3)
        )

        with pytest.raises(WordLimitExceededError):
            await service.generate(CONTEXT)

    def test_provider_names(self, resilience: ResilienceRegistry) -> None:
        service = TextGenerationService(
            [
                TextGenerationProviderStub(name="openai"),
                TextGenerationProviderStub(name="anthropic"),
            ],
            resilience,
        )

        assert service.provider_names == ["openai", "anthropic"]
