"""Outbound mail adapters."""

from submission_delivery.infrastructure.mail.smtp_mail_transport import (
    SmtpMailTransport,
    build_message,
)

__all__ = ["SmtpMailTransport", "build_message"]
