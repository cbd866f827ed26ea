"""Text generation with ordered provider fallback.

Providers are tried in configured order. Each call runs inside the
resilience registry under "llm:<provider name>", so a provider that keeps
failing trips its own breaker and is skipped quickly on later
submissions. The first provider that answers wins and its name is
recorded on the submission.

Generated text is never trusted: it passes the content validator before
it is returned. A rejection is a USER-class error and is not retried
with another provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from submission_delivery.application.ports.text_generation_provider import (
    GenerationRequest,
    TextGenerationProviderPort,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.domain.errors.generation import AllProvidersFailedError
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.models.circuit_breaker import RetryPolicy
from submission_delivery.domain.services.content_validator import (
    ContentRules,
    sanitize_and_validate,
)

logger = structlog.get_logger(__name__)

DEFAULT_PROVIDER_RETRY_POLICY = RetryPolicy(
    max_retries=2, initial_delay_seconds=1.0, max_delay_seconds=8.0
)

SYSTEM_PROMPT = """You write a formal objection to a development application \
on behalf of a resident, addressed to the local council.

Rules:
- Use only the concerns and facts provided. Do not invent facts, figures or \
planning references.
- Plain text only. No markdown, no links, no emoji, no em dashes.
- Write in the first person as the resident. Never mention that the text was \
generated.
- Stay under {max_words} words."""


@dataclass(frozen=True)
class GenerationContext:
    """Inputs describing one submission's text.

    Attributes:
        council_name: Council receiving the objection.
        site_address: Address of the development site.
        application_number: Council application number, if known.
        concerns: The citizen's selected concerns, in order.
        custom_grounds: Free text the citizen added.
    """

    council_name: str
    site_address: str
    application_number: str | None = None
    concerns: tuple[str, ...] = field(default_factory=tuple)
    custom_grounds: str | None = None

    def user_prompt(self) -> str:
        lines = [
            f"Council: {self.council_name}",
            f"Site address: {self.site_address}",
        ]
        if self.application_number:
            lines.append(f"Application number: {self.application_number}")
        if self.concerns:
            lines.append("")
            lines.append("Concerns:")
            lines.extend(f"- {concern.strip()}" for concern in self.concerns)
        if self.custom_grounds:
            lines.append("")
            lines.append("Additional grounds from the resident:")
            lines.append(self.custom_grounds.strip())
        return "\n".join(lines)


@dataclass(frozen=True)
class GenerationResult:
    """Validated text and the provider that produced it."""

    text: str
    provider: str


class TextGenerationService:
    """Runs the provider chain and validates the winner's output."""

    def __init__(
        self,
        providers: list[TextGenerationProviderPort],
        resilience: ResilienceRegistry,
        content_rules: ContentRules | None = None,
        retry_policy: RetryPolicy | None = None,
        temperature: float = 0.2,
    ) -> None:
        """Initialize the service.

        Args:
            providers: Providers in fallback order.
            resilience: Shared resilience registry.
            content_rules: Rules applied to generated text.
            retry_policy: Per-provider retry policy.
            temperature: Sampling temperature passed to providers.
        """
        self._providers = list(providers)
        self._resilience = resilience
        self._rules = content_rules or ContentRules()
        self._retry_policy = retry_policy or DEFAULT_PROVIDER_RETRY_POLICY
        self._temperature = temperature

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self._providers]

    async def generate(
        self, context: GenerationContext, submission_id: object = None
    ) -> GenerationResult:
        """Generate and validate submission text.

        Args:
            context: What the text is about.
            submission_id: Included in log context.

        Returns:
            GenerationResult with sanitised text and provider name.

        Raises:
            AllProvidersFailedError: Every provider failed (or none is
                configured).
            ContentRejectedError: The winning provider's text was rejected.
        """
        request = GenerationRequest(
            system_prompt=SYSTEM_PROMPT.format(max_words=self._rules.max_words),
            user_prompt=context.user_prompt(),
            max_words=self._rules.max_words,
            temperature=self._temperature,
            allowed_links=self._rules.allowed_links,
        )
        log = logger.bind(submission_id=str(submission_id) if submission_id else None)

        failures: dict[str, str] = {}
        for provider in self._providers:
            try:
                raw = await self._resilience.execute_with_retry(
                    lambda p=provider: p.generate(request),
                    operation_name=f"llm:{provider.name}",
                    retry_policy=self._retry_policy,
                    submission_id=submission_id,
                )
            except CircuitOpenError as error:
                failures[provider.name] = str(error)
                log.info("text_provider_skipped_circuit_open", provider=provider.name)
                continue
            except Exception as error:
                failures[provider.name] = str(error) or type(error).__name__
                log.warning(
                    "text_provider_failed",
                    provider=provider.name,
                    error=failures[provider.name],
                )
                continue

            text = sanitize_and_validate(raw, self._rules)
            log.info(
                "text_generated",
                provider=provider.name,
                fallback_used=bool(failures),
                word_count=len(text.split()),
            )
            return GenerationResult(text=text, provider=provider.name)

        log.error("text_generation_exhausted", failures=failures)
        raise AllProvidersFailedError(failures)
