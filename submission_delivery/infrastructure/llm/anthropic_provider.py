"""Anthropic messages API provider."""

from __future__ import annotations

import httpx
import structlog

from submission_delivery.application.ports.text_generation_provider import (
    GenerationRequest,
)
from submission_delivery.domain.errors.generation import ProviderError
from submission_delivery.infrastructure.llm.response_parsing import (
    JSON_INSTRUCTION,
    extract_final_text,
)

logger = structlog.get_logger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider:
    """TextGenerationProviderPort backed by the Anthropic HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        timeout_seconds: float = 60.0,
        max_tokens: int = 2000,
        base_url: str = ANTHROPIC_MESSAGES_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout_seconds
        self._max_tokens = max_tokens
        self._url = base_url
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    async def generate(self, request: GenerationRequest) -> str:
        body = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": request.temperature,
            "system": request.system_prompt,
            "messages": [
                {
                    "role": "user",
                    "content": f"{request.user_prompt}\n\n{JSON_INSTRUCTION}",
                }
            ],
        }
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    self._url, json=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self._url, json=body, headers=headers, timeout=self._timeout
                    )
        except httpx.HTTPError as error:
            raise ProviderError(self.name, f"request failed: {error}") from error

        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            blocks = response.json()["content"]
            content = "".join(
                block.get("text", "") for block in blocks if block.get("type") == "text"
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            raise ProviderError(self.name, "unexpected response shape") from None

        text = extract_final_text(self.name, content)
        logger.debug("anthropic_generation_completed", model=self._model)
        return text
