"""Mail transport port."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from submission_delivery.domain.models.delivery_job import EmailPayload


@dataclass(frozen=True)
class SendResult:
    """Transport acknowledgement.

    Attributes:
        message_id: Message-ID assigned to the email.
        accepted: Recipients the server accepted.
        rejected: Recipients the server refused.
    """

    message_id: str
    accepted: tuple[str, ...] = field(default_factory=tuple)
    rejected: tuple[str, ...] = field(default_factory=tuple)


class MailTransportPort(Protocol):
    """Outbound email transport.

    Called only by the delivery queue, inside the resilience registry
    under the operation name "mail_transport".
    """

    async def send(self, payload: EmailPayload) -> SendResult:
        """Send an email.

        Raises:
            MailDeliveryError: The message could not be sent.
        """
        ...
