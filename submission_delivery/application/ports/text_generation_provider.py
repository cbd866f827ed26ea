"""Text generation provider port."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class GenerationRequest:
    """Input for one generation call.

    Attributes:
        system_prompt: Instructions framing the task.
        user_prompt: The citizen's concerns and context.
        max_words: Word limit the output must respect.
        temperature: Sampling temperature.
        allowed_links: Links the output may reference.
    """

    system_prompt: str
    user_prompt: str
    max_words: int = 600
    temperature: float = 0.2
    allowed_links: tuple[str, ...] = field(default_factory=tuple)


class TextGenerationProviderPort(Protocol):
    """One text generation backend.

    Providers are tried in configured order; each call is wrapped by the
    resilience registry under "llm:<name>".
    """

    @property
    def name(self) -> str:
        """Stable provider name recorded on the submission."""
        ...

    async def generate(self, request: GenerationRequest) -> str:
        """Generate text for a request.

        Raises:
            ProviderError: The provider rejected or failed the call.
        """
        ...
