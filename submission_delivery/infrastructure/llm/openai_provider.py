"""OpenAI chat completions provider."""

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

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIProvider:
    """TextGenerationProviderPort backed by the OpenAI HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 60.0,
        base_url: str = OPENAI_CHAT_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout_seconds
        self._url = base_url
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    async def generate(self, request: GenerationRequest) -> str:
        body = {
            "model": self._model,
            "temperature": request.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {
                    "role": "system",
                    "content": f"{request.system_prompt}\n\n{JSON_INSTRUCTION}",
                },
                {"role": "user", "content": request.user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

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
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ProviderError(self.name, "unexpected response shape") from None

        text = extract_final_text(self.name, content)
        logger.debug("openai_generation_completed", model=self._model)
        return text
