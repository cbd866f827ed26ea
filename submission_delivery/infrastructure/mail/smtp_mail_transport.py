"""SMTP mail transport (aiosmtplib).

Maps SMTP failures onto MailDeliveryError so the resilience layer can
classify them: 4xx replies and dropped connections are transient, 5xx
replies are not.
"""

from __future__ import annotations

from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import aiosmtplib
import structlog

from submission_delivery.application.ports.mail_transport import SendResult
from submission_delivery.config.pipeline_config import MailConfig
from submission_delivery.domain.errors.delivery import MailDeliveryError
from submission_delivery.domain.models.delivery_job import EmailPayload

logger = structlog.get_logger(__name__)


def build_message(payload: EmailPayload) -> EmailMessage:
    """Build a MIME message for a payload, with a fresh Message-ID."""
    message = EmailMessage()
    message["From"] = formataddr((payload.from_name, payload.from_address))
    message["To"] = payload.to
    message["Subject"] = payload.subject
    if payload.reply_to:
        message["Reply-To"] = payload.reply_to
    domain = payload.from_address.rpartition("@")[2] or None
    message["Message-ID"] = make_msgid(domain=domain)

    message.set_content(payload.text)
    if payload.html:
        message.add_alternative(payload.html, subtype="html")
    for attachment in payload.attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        message.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return message


def _is_transient_code(code: int | None) -> bool:
    return code is not None and 400 <= code < 500


class SmtpMailTransport:
    """MailTransportPort over SMTP."""

    def __init__(self, config: MailConfig) -> None:
        self._config = config

    async def send(self, payload: EmailPayload) -> SendResult:
        message = build_message(payload)
        message_id = str(message["Message-ID"])
        log = logger.bind(recipient=payload.to, message_id=message_id)

        try:
            errors, response = await aiosmtplib.send(
                message,
                hostname=self._config.host,
                port=self._config.port,
                username=self._config.username,
                password=self._config.password,
                use_tls=self._config.use_tls,
                start_tls=self._config.start_tls,
                timeout=self._config.timeout_seconds,
            )
        except aiosmtplib.SMTPRecipientsRefused as error:
            codes = [r.code for r in error.recipients]
            transient = bool(codes) and all(_is_transient_code(c) for c in codes)
            raise MailDeliveryError(
                f"Recipient refused: {payload.to}",
                recipient=payload.to,
                smtp_code=codes[0] if codes else None,
                transient=transient,
            ) from error
        except aiosmtplib.SMTPResponseException as error:
            raise MailDeliveryError(
                f"{error.code} {error.message}",
                recipient=payload.to,
                smtp_code=error.code,
                transient=_is_transient_code(error.code),
            ) from error
        except (
            aiosmtplib.SMTPConnectError,
            aiosmtplib.SMTPServerDisconnected,
            aiosmtplib.SMTPTimeoutError,
            OSError,
        ) as error:
            raise MailDeliveryError(
                f"SMTP connection failed: {error}",
                recipient=payload.to,
                transient=True,
            ) from error
        except aiosmtplib.SMTPException as error:
            raise MailDeliveryError(
                f"SMTP error: {error}", recipient=payload.to
            ) from error

        rejected = tuple(errors)
        accepted = tuple(
            address for address in (payload.to,) if address not in errors
        )
        log.info("smtp_message_sent", response=response, rejected=list(rejected))
        return SendResult(message_id=message_id, accepted=accepted, rejected=rejected)
