"""Webhook admin notifier.

Posts AdminAlert payloads to an operator webhook. Delivery failures are
logged and reported as False; they never propagate into the pipeline.
"""

from __future__ import annotations

import httpx
import structlog

from submission_delivery.application.ports.admin_notifier import AdminAlert

log = structlog.get_logger(__name__)


class WebhookAdminNotifier:
    """AdminNotifierPort posting JSON to a webhook."""

    def __init__(
        self,
        webhook_url: str | None,
        service: str = "submission-delivery",
        timeout_seconds: float = 10.0,
    ) -> None:
        self._webhook_url = webhook_url
        self._service = service
        self._timeout = timeout_seconds

    async def notify(self, alert: AdminAlert) -> bool:
        if not self._webhook_url:
            log.warning(
                "no_alert_webhook_configured",
                severity=alert.severity.value,
                title=alert.title,
            )
            return False

        body = alert.to_dict()
        body["service"] = self._service

        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    self._webhook_url, json=body, timeout=self._timeout
                )
            except Exception as e:
                log.error("alert_send_error", error=str(e), title=alert.title)
                return False

        if response.status_code < 300:
            log.info("alert_sent", severity=alert.severity.value, title=alert.title)
            return True

        log.error(
            "alert_send_failed",
            status_code=response.status_code,
            title=alert.title,
        )
        return False
