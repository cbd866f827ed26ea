"""Unit tests for the webhook admin notifier."""

from __future__ import annotations

import pytest

from submission_delivery.application.ports.admin_notifier import (
    AdminAlert,
    AlertSeverity,
)
from submission_delivery.infrastructure.monitoring.admin_alert_client import (
    WebhookAdminNotifier,
)
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def alert(fake_time_authority: FakeTimeAuthority) -> AdminAlert:
    return AdminAlert(
        severity=AlertSeverity.HIGH,
        title="Delivery job dead-lettered",
        message="Max retries exceeded. Last error: 550 mailbox unavailable",
        timestamp=fake_time_authority.now(),
        context={"retry_count": 3},
    )


class TestWebhookAdminNotifier:
    """Tests for alert delivery."""

    @pytest.mark.asyncio
    async def test_without_webhook_reports_not_sent(self, alert: AdminAlert) -> None:
        assert await WebhookAdminNotifier(None).notify(alert) is False

    @pytest.mark.asyncio
    async def test_unreachable_webhook_never_raises(self, alert: AdminAlert) -> None:
        notifier = WebhookAdminNotifier("http://127.0.0.1:9/alerts", timeout_seconds=0.5)

        assert await notifier.notify(alert) is False

    def test_alert_payload_stringifies_context(self, alert: AdminAlert) -> None:
        body = alert.to_dict()

        assert body["severity"] == "high"
        assert body["context"] == {"retry_count": "3"}
        assert body["timestamp"] == "2026-03-02T09:00:00+00:00"
