"""Text generation provider adapters."""

from submission_delivery.infrastructure.llm.anthropic_provider import (
    AnthropicProvider,
)
from submission_delivery.infrastructure.llm.openai_provider import OpenAIProvider
from submission_delivery.infrastructure.llm.response_parsing import (
    extract_final_text,
)

__all__ = ["AnthropicProvider", "OpenAIProvider", "extract_final_text"]
