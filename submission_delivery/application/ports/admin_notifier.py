"""Admin notifier port.

Operators are alerted when a job is dead-lettered or a configuration or
database error stops a submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class AlertSeverity(str, Enum):
    """Alert severity levels.

    Values:
        CRITICAL: Page immediately.
        HIGH: Page during business hours.
        MEDIUM: Review the same day.
        LOW: Next business day.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class AdminAlert:
    """Alert sent to operators.

    Attributes:
        severity: Alert severity.
        title: Short title.
        message: Detailed message.
        timestamp: When the alert was raised.
        context: Identifiers needed to act (submission id, job id, code).
    """

    severity: AlertSeverity
    title: str
    message: str
    timestamp: datetime
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize alert for webhook delivery."""
        return {
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": {key: str(value) for key, value in self.context.items()},
        }


class AdminNotifierPort(Protocol):
    """Protocol for operator alerting."""

    async def notify(self, alert: AdminAlert) -> bool:
        """Deliver an alert.

        Implementations must not raise on delivery failure; an alert that
        cannot be delivered is logged and reported as False.

        Args:
            alert: The alert to deliver.

        Returns:
            True if the alert was accepted by the alert channel.
        """
        ...
