"""In-memory stub for AdminNotifierPort."""

from __future__ import annotations

from submission_delivery.application.ports.admin_notifier import AdminAlert


class AdminNotifierStub:
    """Collects alerts instead of delivering them."""

    def __init__(self, accept: bool = True) -> None:
        """Initialize the stub.

        Args:
            accept: Value returned from notify().
        """
        self.accept = accept
        self.alerts: list[AdminAlert] = []

    async def notify(self, alert: AdminAlert) -> bool:
        self.alerts.append(alert)
        return self.accept

    def clear(self) -> None:
        self.alerts.clear()
