"""Unit tests for pipeline error classification and handling."""

from __future__ import annotations

import asyncio
import errno
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from submission_delivery.application.ports.admin_notifier import AlertSeverity
from submission_delivery.domain.errors.base import ErrorCode, ErrorType
from submission_delivery.domain.errors.content import EmojiContentError
from submission_delivery.domain.errors.delivery import MailDeliveryError
from submission_delivery.domain.errors.generation import ProviderError
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.errors.submission import TemplateNotConfiguredError
from submission_delivery.infrastructure.stubs import AdminNotifierStub
from submission_delivery.workers.error_handler import (
    PipelineErrorHandler,
    RecoveryStrategy,
    classify_error,
    is_retriable_error,
)
from tests.helpers import FakeTimeAuthority


def _http_status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.test/v1/generate")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.fixture
def handler(
    admin_notifier: AdminNotifierStub, fake_time_authority: FakeTimeAuthority
) -> PipelineErrorHandler:
    return PipelineErrorHandler(admin_notifier, fake_time_authority)


class TestIsRetriableError:
    """Verify which failures are worth repeating."""

    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            asyncio.TimeoutError(),
            ConnectionResetError(errno.ECONNRESET, "reset by peer"),
            httpx.ConnectError("connection refused"),
            _http_status_error(503),
            _http_status_error(429),
            _http_status_error(408),
            ProviderError("openai", "upstream failed", status_code=502),
            MailDeliveryError("421 try later", smtp_code=421, transient=True),
            Exception("Rate limit exceeded for model"),
            Exception("Service temporarily unavailable"),
        ],
    )
    def test_transient_failures_retried(self, error: BaseException) -> None:
        assert is_retriable_error(error) is True

    @pytest.mark.parametrize(
        "error",
        [
            CircuitOpenError("mail", 30.0),
            EmojiContentError(),
            TemplateNotConfiguredError(uuid4(), "cover"),
            _http_status_error(400),
            ProviderError("openai", "invalid api key", status_code=401),
            MailDeliveryError("550 mailbox unavailable", smtp_code=550),
            ValueError("bad input"),
        ],
    )
    def test_permanent_failures_not_retried(self, error: BaseException) -> None:
        assert is_retriable_error(error) is False


class TestClassifyError:
    """Verify type and code assignment."""

    def test_domain_errors_keep_their_classification(self) -> None:
        assert classify_error(TemplateNotConfiguredError(uuid4(), "cover")) == (
            ErrorType.SYSTEM,
            ErrorCode.CONFIGURATION_ERROR,
        )

    def test_provider_rate_limit_reclassified(self) -> None:
        error = ProviderError("anthropic", "slow down", status_code=429)

        assert classify_error(error) == (
            ErrorType.TEMPORARY,
            ErrorCode.RATE_LIMIT_EXCEEDED,
        )

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (TimeoutError(), (ErrorType.TEMPORARY, ErrorCode.TIMEOUT)),
            (
                ConnectionRefusedError(),
                (ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE),
            ),
            (
                OperationalError("SELECT 1", {}, Exception("server closed")),
                (ErrorType.SYSTEM, ErrorCode.DATABASE_ERROR),
            ),
            (
                _http_status_error(500),
                (ErrorType.TEMPORARY, ErrorCode.SERVICE_UNAVAILABLE),
            ),
            (
                Exception("monthly quota reached"),
                (ErrorType.INTEGRATION, ErrorCode.QUOTA_EXCEEDED),
            ),
            (ValueError("nope"), (ErrorType.USER, ErrorCode.VALIDATION_FAILED)),
            (RuntimeError("boom"), (ErrorType.SYSTEM, ErrorCode.UNKNOWN)),
        ],
    )
    def test_foreign_errors(
        self, error: BaseException, expected: tuple[ErrorType, ErrorCode]
    ) -> None:
        assert classify_error(error) == expected


class TestPipelineErrorHandler:
    """Verify logging context, recovery guidance and operator alerts."""

    def test_classify_includes_guidance(self, handler: PipelineErrorHandler) -> None:
        classified = handler.classify(ProviderError("openai", "upstream", 503))

        assert classified.error_code == ErrorCode.AI_PROVIDER_ERROR
        assert classified.retryable is True
        assert [a.strategy for a in classified.recovery_actions] == [
            RecoveryStrategy.RETRY,
            RecoveryStrategy.FALLBACK,
            RecoveryStrategy.GRACEFUL_DEGRADATION,
        ]
        assert "try again shortly" in classified.user_message

    @pytest.mark.asyncio
    async def test_configuration_error_alerts_high(
        self, handler: PipelineErrorHandler, admin_notifier: AdminNotifierStub
    ) -> None:
        submission_id = uuid4()

        classified = await handler.handle(
            TemplateNotConfiguredError(uuid4(), "grounds"),
            operation="process_submission",
            submission_id=submission_id,
            metadata={"pathway": "direct"},
        )

        [alert] = admin_notifier.alerts
        assert alert.severity == AlertSeverity.HIGH
        assert alert.context["error_id"] == classified.id
        assert alert.context["submission_id"] == str(submission_id)
        assert alert.context["pathway"] == "direct"

    @pytest.mark.asyncio
    async def test_database_error_alerts_critical(
        self, handler: PipelineErrorHandler, admin_notifier: AdminNotifierStub
    ) -> None:
        await handler.handle(
            OperationalError("SELECT 1", {}, Exception("server closed")),
            operation="drain",
        )

        assert admin_notifier.alerts[0].severity == AlertSeverity.CRITICAL

    @pytest.mark.asyncio
    async def test_integration_errors_do_not_alert(
        self, handler: PipelineErrorHandler, admin_notifier: AdminNotifierStub
    ) -> None:
        await handler.handle(
            MailDeliveryError("550 mailbox unavailable", smtp_code=550),
            operation="send",
        )

        assert admin_notifier.alerts == []

    @pytest.mark.asyncio
    async def test_no_notifier_configured(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        handler = PipelineErrorHandler(None, fake_time_authority)

        classified = await handler.handle(
            TemplateNotConfiguredError(uuid4(), "cover"), operation="process"
        )

        assert classified.requires_admin_alert is True
