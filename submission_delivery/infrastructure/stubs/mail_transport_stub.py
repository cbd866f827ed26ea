"""In-memory stub for MailTransportPort."""

from __future__ import annotations

from submission_delivery.application.ports.mail_transport import SendResult
from submission_delivery.domain.errors.delivery import MailDeliveryError
from submission_delivery.domain.models.delivery_job import EmailPayload


class MailTransportStub:
    """Records sent payloads; can fail a scripted number of sends.

    Attributes:
        sent: Payloads accepted so far.
        attempts: Total send calls, successful or not.
    """

    def __init__(self, fail_times: int = 0, transient: bool = True) -> None:
        """Initialize the stub.

        Args:
            fail_times: Number of upcoming sends that raise.
            transient: Whether injected failures are transient.
        """
        self.fail_times = fail_times
        self.fail_always = False
        self.transient = transient
        self.sent: list[EmailPayload] = []
        self.attempts = 0

    async def send(self, payload: EmailPayload) -> SendResult:
        self.attempts += 1
        if self.fail_always or self.fail_times > 0:
            if self.fail_times > 0:
                self.fail_times -= 1
            raise MailDeliveryError(
                "451 temporary local problem",
                recipient=payload.to,
                smtp_code=451,
                transient=self.transient,
            )
        self.sent.append(payload)
        return SendResult(
            message_id=f"<msg-{len(self.sent)}@stub.local>",
            accepted=(payload.to,),
        )

    def sent_to(self, address: str) -> list[EmailPayload]:
        return [p for p in self.sent if p.to == address]
