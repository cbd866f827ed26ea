"""Delivery pipeline configuration.

Frozen configuration objects with environment variable overrides for
production tuning.

Environment Variables (Retry):
- RETRY_MAX_RETRIES: Retries after the first attempt (default: 3)
- RETRY_INITIAL_DELAY_SECONDS: First backoff delay (default: 1.0)
- RETRY_MAX_DELAY_SECONDS: Backoff cap (default: 30.0)
- RETRY_BACKOFF_MULTIPLIER: Backoff growth factor (default: 2.0)
- RETRY_JITTER: Enable +/-25% jitter (default: true)

Environment Variables (Circuit breaker):
- CIRCUIT_FAILURE_THRESHOLD: Failures before opening (default: 5)
- CIRCUIT_SUCCESS_THRESHOLD: Half-open successes before closing (default: 2)
- CIRCUIT_TIMEOUT_SECONDS: Time spent open (default: 60)
- CIRCUIT_MONITORING_PERIOD_SECONDS: Failure memory while closed (default: 300)

Environment Variables (Delivery queue):
- DELIVERY_BATCH_SIZE: Jobs claimed per drain (default: 10)
- DELIVERY_POLL_INTERVAL: Seconds between drains (default: 30)
- DELIVERY_BASE_BACKOFF_MINUTES: Queue retry base delay (default: 5)
- DELIVERY_DEFAULT_MAX_RETRIES: Retry budget per job (default: 3)
- DELIVERY_DEFAULT_PRIORITY: Priority for ordinary jobs (default: 5)
- DELIVERY_COUNCIL_PRIORITY: Priority for council submissions (default: 10)
- DELIVERY_PROCESSING_LEASE_MINUTES: Minutes before an unfinished claim is released (default: 10)

Environment Variables (Content, review, progress):
- CONTENT_MAX_WORDS: Word limit for submission text (default: 600)
- CONTENT_ALLOWED_LINKS: Comma-separated URLs allowed in text
- REVIEW_DEADLINE_DAYS: Review window in days, 0 disables (default: 0)
- REVIEW_REMINDER_LEAD_HOURS: Reminder lead time (default: 24)
- PROGRESS_CACHE_TTL: Timeline cache TTL seconds (default: 30)
- STALE_INACTIVITY_MINUTES: Default stale threshold (default: 30)

Environment Variables (Mail, providers, alerts):
- SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD, SMTP_USE_TLS, SMTP_START_TLS,
  SMTP_TIMEOUT_SECONDS
- OPENAI_API_KEY, OPENAI_MODEL, ANTHROPIC_API_KEY, ANTHROPIC_MODEL,
  LLM_PROVIDER_ORDER, LLM_TIMEOUT_SECONDS
- ADMIN_ALERT_WEBHOOK_URL
- DOCUMENT_SERVICE_URL, DOCUMENT_SERVICE_TOKEN, DOCUMENT_SERVICE_TIMEOUT_SECONDS
- DATABASE_URL: PostgreSQL URL; in-memory stubs are used when unset
- ENVIRONMENT: "production" switches logs to JSON
- PUBLIC_BASE_URL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from submission_delivery.domain.models.circuit_breaker import (
    CircuitPolicy,
    RetryPolicy,
)
from submission_delivery.domain.services.content_validator import ContentRules


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed float value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_list_env(key: str) -> tuple[str, ...]:
    """Get comma-separated environment variable as a tuple."""
    value = os.environ.get(key, "")
    return tuple(item.strip() for item in value.split(",") if item.strip())


def retry_policy_from_environment() -> RetryPolicy:
    """Build the default retry policy from environment variables."""
    return RetryPolicy(
        max_retries=_get_int_env("RETRY_MAX_RETRIES", 3),
        initial_delay_seconds=_get_float_env("RETRY_INITIAL_DELAY_SECONDS", 1.0),
        max_delay_seconds=_get_float_env("RETRY_MAX_DELAY_SECONDS", 30.0),
        backoff_multiplier=_get_float_env("RETRY_BACKOFF_MULTIPLIER", 2.0),
        jitter=_get_bool_env("RETRY_JITTER", True),
    )


def circuit_policy_from_environment() -> CircuitPolicy:
    """Build the default circuit breaker policy from environment variables."""
    return CircuitPolicy(
        failure_threshold=_get_int_env("CIRCUIT_FAILURE_THRESHOLD", 5),
        success_threshold=_get_int_env("CIRCUIT_SUCCESS_THRESHOLD", 2),
        timeout_seconds=_get_float_env("CIRCUIT_TIMEOUT_SECONDS", 60.0),
        monitoring_period_seconds=_get_float_env(
            "CIRCUIT_MONITORING_PERIOD_SECONDS", 300.0
        ),
    )


def content_rules_from_environment() -> ContentRules:
    """Build content validation rules from environment variables."""
    return ContentRules(
        max_words=_get_int_env("CONTENT_MAX_WORDS", 600),
        allowed_links=_get_list_env("CONTENT_ALLOWED_LINKS"),
    )


@dataclass(frozen=True)
class DeliveryQueueConfig:
    """Configuration for the persistent email queue.

    Attributes:
        batch_size: Jobs claimed per drain.
        poll_interval_seconds: Seconds between worker drains.
        base_backoff_minutes: Queue retry delay is 2^retry_count times this.
        default_max_retries: Retry budget for new jobs.
        default_priority: Priority for ordinary jobs.
        council_priority: Priority for council submissions.
        processing_lease_minutes: A claimed job not finished within this
            window is handed to the next drain.
    """

    batch_size: int = 10
    poll_interval_seconds: float = 30.0
    base_backoff_minutes: float = 5.0
    default_max_retries: int = 3
    default_priority: int = 5
    council_priority: int = 10
    processing_lease_minutes: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.poll_interval_seconds <= 0:
            raise ValueError(
                f"poll_interval_seconds must be positive, "
                f"got {self.poll_interval_seconds}"
            )
        if self.base_backoff_minutes < 0:
            raise ValueError(
                f"base_backoff_minutes must be non-negative, "
                f"got {self.base_backoff_minutes}"
            )
        if self.default_max_retries < 0:
            raise ValueError(
                f"default_max_retries must be non-negative, "
                f"got {self.default_max_retries}"
            )
        if self.processing_lease_minutes <= 0:
            raise ValueError(
                f"processing_lease_minutes must be positive, "
                f"got {self.processing_lease_minutes}"
            )

    @classmethod
    def from_environment(cls) -> DeliveryQueueConfig:
        """Create config from environment variables with defaults."""
        return cls(
            batch_size=_get_int_env("DELIVERY_BATCH_SIZE", 10),
            poll_interval_seconds=_get_float_env("DELIVERY_POLL_INTERVAL", 30.0),
            base_backoff_minutes=_get_float_env("DELIVERY_BASE_BACKOFF_MINUTES", 5.0),
            default_max_retries=_get_int_env("DELIVERY_DEFAULT_MAX_RETRIES", 3),
            default_priority=_get_int_env("DELIVERY_DEFAULT_PRIORITY", 5),
            council_priority=_get_int_env("DELIVERY_COUNCIL_PRIORITY", 10),
            processing_lease_minutes=_get_float_env(
                "DELIVERY_PROCESSING_LEASE_MINUTES", 10.0
            ),
        )


@dataclass(frozen=True)
class ReviewConfig:
    """Configuration for the review pathway.

    Attributes:
        deadline_days: Days the citizen has to finalise; 0 means no deadline.
        reminder_lead_hours: Hours before the deadline a reminder is queued.
        public_base_url: Base URL used in links sent to citizens.
    """

    deadline_days: int = 0
    reminder_lead_hours: int = 24
    public_base_url: str = "http://localhost:8000"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.deadline_days < 0:
            raise ValueError(
                f"deadline_days must be non-negative, got {self.deadline_days}"
            )
        if self.reminder_lead_hours < 0:
            raise ValueError(
                f"reminder_lead_hours must be non-negative, "
                f"got {self.reminder_lead_hours}"
            )

    @classmethod
    def from_environment(cls) -> ReviewConfig:
        """Create config from environment variables with defaults."""
        return cls(
            deadline_days=_get_int_env("REVIEW_DEADLINE_DAYS", 0),
            reminder_lead_hours=_get_int_env("REVIEW_REMINDER_LEAD_HOURS", 24),
            public_base_url=os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000"),
        )


@dataclass(frozen=True)
class ProgressConfig:
    """Configuration for the progress tracker.

    Attributes:
        cache_ttl_seconds: Timeline and overview cache TTL.
        stale_inactivity_minutes: Default inactivity threshold.
    """

    cache_ttl_seconds: int = 30
    stale_inactivity_minutes: int = 30

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.cache_ttl_seconds < 0:
            raise ValueError(
                f"cache_ttl_seconds must be non-negative, got {self.cache_ttl_seconds}"
            )
        if self.stale_inactivity_minutes < 1:
            raise ValueError(
                f"stale_inactivity_minutes must be positive, "
                f"got {self.stale_inactivity_minutes}"
            )

    @classmethod
    def from_environment(cls) -> ProgressConfig:
        """Create config from environment variables with defaults."""
        return cls(
            cache_ttl_seconds=_get_int_env("PROGRESS_CACHE_TTL", 30),
            stale_inactivity_minutes=_get_int_env("STALE_INACTIVITY_MINUTES", 30),
        )


@dataclass(frozen=True)
class MailConfig:
    """SMTP transport configuration."""

    host: str = "localhost"
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = False
    start_tls: bool = True
    timeout_seconds: float = 30.0

    @classmethod
    def from_environment(cls) -> MailConfig:
        """Create config from environment variables with defaults."""
        use_tls = _get_bool_env("SMTP_USE_TLS", False)
        return cls(
            host=os.environ.get("SMTP_HOST", "localhost"),
            port=_get_int_env("SMTP_PORT", 465 if use_tls else 587),
            username=os.environ.get("SMTP_USERNAME") or None,
            password=os.environ.get("SMTP_PASSWORD") or None,
            use_tls=use_tls,
            start_tls=_get_bool_env("SMTP_START_TLS", not use_tls),
            timeout_seconds=_get_float_env("SMTP_TIMEOUT_SECONDS", 30.0),
        )


@dataclass(frozen=True)
class LLMProviderConfig:
    """Text generation provider configuration.

    Attributes:
        provider_order: Provider names in fallback order.
        openai_api_key: OpenAI key (provider skipped when absent).
        openai_model: OpenAI chat model.
        anthropic_api_key: Anthropic key (provider skipped when absent).
        anthropic_model: Anthropic model.
        timeout_seconds: Per-request HTTP timeout.
    """

    provider_order: tuple[str, ...] = ("openai", "anthropic")
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    timeout_seconds: float = 60.0

    @classmethod
    def from_environment(cls) -> LLMProviderConfig:
        """Create config from environment variables with defaults."""
        return cls(
            provider_order=_get_list_env("LLM_PROVIDER_ORDER") or ("openai", "anthropic"),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            anthropic_model=os.environ.get("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
            timeout_seconds=_get_float_env("LLM_TIMEOUT_SECONDS", 60.0),
        )


@dataclass(frozen=True)
class DocumentServiceConfig:
    """Document service HTTP configuration."""

    base_url: str = "http://localhost:8100"
    api_token: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_environment(cls) -> DocumentServiceConfig:
        """Create config from environment variables with defaults."""
        return cls(
            base_url=os.environ.get("DOCUMENT_SERVICE_URL", "http://localhost:8100"),
            api_token=os.environ.get("DOCUMENT_SERVICE_TOKEN") or None,
            timeout_seconds=_get_float_env("DOCUMENT_SERVICE_TIMEOUT_SECONDS", 30.0),
        )


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration consumed by the container."""

    retry: RetryPolicy = field(default_factory=RetryPolicy)
    circuit: CircuitPolicy = field(default_factory=CircuitPolicy)
    content: ContentRules = field(default_factory=ContentRules)
    queue: DeliveryQueueConfig = field(default_factory=DeliveryQueueConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    llm: LLMProviderConfig = field(default_factory=LLMProviderConfig)
    documents: DocumentServiceConfig = field(default_factory=DocumentServiceConfig)
    database_url: str | None = None
    admin_alert_webhook_url: str | None = None
    environment: str = "development"

    @classmethod
    def from_environment(cls) -> PipelineConfig:
        """Create the full configuration from environment variables."""
        return cls(
            retry=retry_policy_from_environment(),
            circuit=circuit_policy_from_environment(),
            content=content_rules_from_environment(),
            queue=DeliveryQueueConfig.from_environment(),
            review=ReviewConfig.from_environment(),
            progress=ProgressConfig.from_environment(),
            mail=MailConfig.from_environment(),
            llm=LLMProviderConfig.from_environment(),
            documents=DocumentServiceConfig.from_environment(),
            database_url=os.environ.get("DATABASE_URL") or None,
            admin_alert_webhook_url=os.environ.get("ADMIN_ALERT_WEBHOOK_URL") or None,
            environment=os.environ.get("ENVIRONMENT", "development"),
        )
