"""Scripted stub for TextGenerationProviderPort."""

from __future__ import annotations

from submission_delivery.application.ports.text_generation_provider import (
    GenerationRequest,
)
from submission_delivery.domain.errors.generation import ProviderError


class TextGenerationProviderStub:
    """Returns scripted outputs in order.

    Each item in ``responses`` is either a string to return or an
    exception to raise. The last item repeats once the script runs out.
    """

    def __init__(
        self,
        name: str = "stub",
        responses: list[str | Exception] | None = None,
    ) -> None:
        """Initialize with a provider name and scripted responses."""
        self._name = name
        self._responses: list[str | Exception] = list(
            responses or ["Generated objection text."]
        )
        self.requests: list[GenerationRequest] = []

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if len(self._responses) > 1:
            response = self._responses.pop(0)
        else:
            response = self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @classmethod
    def failing(cls, name: str, status_code: int = 503) -> TextGenerationProviderStub:
        """A provider whose every call fails."""
        return cls(
            name=name,
            responses=[ProviderError(name, "provider unavailable", status_code)],
        )
