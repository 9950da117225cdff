"""Invoice notifications: fetch the invoice, render, send.

Each ``notify_*`` call fetches the invoice exactly once and returns whether
the admin email went out. Buyer delivery never changes the return value.
"""

import logging
from datetime import datetime, timezone

from btcpay_relay.config import RelayConfig
from btcpay_relay.models.invoice import Invoice
from btcpay_relay.models.notification import NotificationAttempt, NotificationStatus, RecipientRole
from btcpay_relay.notifications import templates
from btcpay_relay.notifications.log import NotificationLog
from btcpay_relay.notifications.mailer import Mailer
from btcpay_relay.processor.client import BTCPayClient, ProcessorError

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends admin and buyer emails for invoice lifecycle events."""

    def __init__(
        self,
        config: RelayConfig,
        client: BTCPayClient,
        mailer: Mailer,
        log: NotificationLog | None = None,
    ):
        self.config = config
        self.client = client
        self.mailer = mailer
        self.log = log if log is not None else NotificationLog()

    def notify_settled(self, invoice_id: str, event_kind: str) -> bool:
        """Notify about a settled, received or processing payment."""
        invoice = self._fetch(invoice_id)
        if invoice is None:
            return False

        admin_ok = self._send(
            invoice,
            event_kind,
            RecipientRole.ADMIN,
            self.config.admin_email,
            templates.admin_subject(invoice.invoice_id, event_kind),
            templates.admin_notification(invoice, event_kind, self.config.dashboard_url(invoice.invoice_id)),
        )

        buyer = invoice.buyer_email
        if self.config.notify_buyer and buyer:
            self._send(
                invoice,
                event_kind,
                RecipientRole.BUYER,
                buyer,
                templates.receipt_subject(invoice.invoice_id),
                templates.customer_receipt(invoice),
            )

        return admin_ok

    def notify_failed(self, invoice_id: str, reason: str) -> bool:
        """Notify the admin that an invoice expired or became invalid."""
        invoice = self._fetch(invoice_id)
        if invoice is None:
            return False

        return self._send(
            invoice,
            reason,
            RecipientRole.ADMIN,
            self.config.admin_email,
            templates.failed_subject(invoice.invoice_id, reason),
            templates.payment_failed(invoice, reason, self.config.dashboard_url(invoice.invoice_id)),
        )

    def _fetch(self, invoice_id: str) -> Invoice | None:
        try:
            return self.client.fetch_invoice(invoice_id)
        except ProcessorError as e:
            logger.error("Could not fetch invoice %s for notification: %s", invoice_id, e.details)
            return None

    def _send(
        self,
        invoice: Invoice,
        event_kind: str,
        role: RecipientRole,
        recipient: str | None,
        subject: str,
        html: str,
    ) -> bool:
        if not recipient:
            logger.warning("No %s address configured; skipping '%s'", role.value.lower(), subject)
            self._record(invoice, event_kind, role, None, subject, NotificationStatus.SKIPPED, "no recipient")
            return False

        sent = self.mailer.send(recipient, subject, html)
        if sent:
            self._record(invoice, event_kind, role, recipient, subject, NotificationStatus.SENT)
        else:
            logger.error("Failed to notify %s for invoice %s", role.value.lower(), invoice.invoice_id)
            self._record(invoice, event_kind, role, recipient, subject, NotificationStatus.FAILED, "send failed")
        return sent

    def _record(self, invoice, event_kind, role, recipient, subject, status, error=None) -> None:
        self.log.log(NotificationAttempt(
            invoice_id=invoice.invoice_id,
            event_kind=event_kind,
            role=role,
            recipient=recipient,
            subject=subject,
            status=status,
            timestamp=datetime.now(timezone.utc),
            error=error,
        ))
