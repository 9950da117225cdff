"""Outbound email over SMTP.

STARTTLS on the submission port, implicit TLS on 465. Credentials come from
``RelayConfig``; the password is never logged.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from btcpay_relay.config import RelayConfig

logger = logging.getLogger(__name__)

_IMPLICIT_TLS_PORT = 465


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> bool: ...


class SmtpMailer:
    """Sends HTML mail through the configured SMTP account."""

    def __init__(self, config: RelayConfig):
        self._host = config.smtp_host
        self._port = config.smtp_port
        self._user = config.email_user
        self._password = config.email_password
        self._from = config.sender_address
        self._timeout = config.smtp_timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._from)

    def format_message(self, to: str, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._from or ""
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.is_configured:
            logger.warning("Email not configured (missing EMAIL_HOST/EMAIL_USER); dropping '%s'", subject)
            return False

        msg = self.format_message(to, subject, html)
        try:
            with self._connect() as server:
                if self._user and self._password:
                    server.login(self._user, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email sending error to %s (%s): %s", to, subject, e)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True

    def _connect(self) -> smtplib.SMTP:
        if self._port == _IMPLICIT_TLS_PORT:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            server.starttls()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server
