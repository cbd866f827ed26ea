"""Text generation errors."""

from __future__ import annotations

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)


class ProviderError(DeliveryPipelineError):
    """Raised by a provider adapter when generation fails.

    Attributes:
        provider: Provider name.
        status_code: HTTP status from the provider API, if any.
    """

    error_type = ErrorType.INTEGRATION
    error_code = ErrorCode.AI_PROVIDER_ERROR

    def __init__(
        self, provider: str, message: str, status_code: int | None = None
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class AllProvidersFailedError(DeliveryPipelineError):
    """Raised when every configured provider failed or none is configured.

    Attributes:
        failures: Mapping of provider name to its final error message.
    """

    error_type = ErrorType.INTEGRATION
    error_code = ErrorCode.AI_PROVIDER_ERROR

    def __init__(self, failures: dict[str, str]) -> None:
        self.failures = failures
        if failures:
            detail = "; ".join(f"{name}: {msg}" for name, msg in failures.items())
        else:
            detail = "no providers configured"
        super().__init__(f"All text generation providers failed ({detail})")
