"""Inbound BTCPay webhook handling.

Each delivery goes through three steps:
1. Verify the ``BTCPay-Sig`` header against the raw body (when a secret is set)
2. Parse the event and route it by ``type``
3. Run the notification synchronously and acknowledge

Only a signature failure produces a non-200 status. The processor redelivers
on any non-200, so downstream failures are logged and acknowledged.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from btcpay_relay.models.webhook import WebhookEvent, WebhookEventType
from btcpay_relay.notifications.dispatcher import NotificationDispatcher
from btcpay_relay.webhooks.signer import WebhookSigner

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "BTCPay-Sig"


class WebhookAction(Enum):
    REJECTED = "rejected"
    IGNORED = "ignored"
    NOTIFIED = "notified"
    FAILED = "failed"


@dataclass
class WebhookResult:
    status_code: int
    action: WebhookAction
    event_type: str | None = None
    invoice_id: str | None = None


# Events that confirm money moved: admin and (optionally) buyer are told.
_PAYMENT_EVENTS = {
    WebhookEventType.INVOICE_SETTLED,
    WebhookEventType.INVOICE_PAYMENT_SETTLED,
    WebhookEventType.INVOICE_RECEIVED_PAYMENT,
    WebhookEventType.INVOICE_PROCESSING,
}

# Events where the invoice ended without payment: admin only.
_FAILURE_REASONS = {
    WebhookEventType.INVOICE_EXPIRED: "Expired",
    WebhookEventType.INVOICE_INVALID: "Invalid",
}


class WebhookHandler:
    """Authenticates BTCPay webhook deliveries and routes them to notifications."""

    def __init__(self, dispatcher: NotificationDispatcher, secret: str | None = None):
        self.dispatcher = dispatcher
        self.signer = WebhookSigner(secret) if secret else None
        if self.signer is None:
            logger.warning("BTCPAY_WEBHOOK_SECRET is not set; webhook signatures will NOT be verified")

    def handle(self, body: bytes, signature_header: str | None) -> WebhookResult:
        if self.signer is not None and not self.signer.verify(body, signature_header):
            logger.warning("Rejected webhook with invalid signature (%d bytes)", len(body))
            return WebhookResult(401, WebhookAction.REJECTED)

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
            logger.error("Webhook body is not valid JSON; acknowledging without action")
            return WebhookResult(200, WebhookAction.IGNORED)
        if not isinstance(payload, dict):
            logger.error("Webhook body is not a JSON object; acknowledging without action")
            return WebhookResult(200, WebhookAction.IGNORED)

        event = WebhookEvent.from_payload(payload)
        logger.info(
            "Received BTCPay webhook: type=%s invoice=%s delivery=%s",
            event.event_type,
            event.invoice_id,
            event.delivery_id,
        )

        try:
            action = self._dispatch(event)
        except Exception:
            logger.exception("Error processing webhook %s for invoice %s", event.event_type, event.invoice_id)
            action = WebhookAction.FAILED

        return WebhookResult(200, action, event.event_type, event.invoice_id)

    def _dispatch(self, event: WebhookEvent) -> WebhookAction:
        event_type = event.known_type
        if event_type not in _PAYMENT_EVENTS and event_type not in _FAILURE_REASONS:
            logger.info("Unhandled event type: %s", event.event_type)
            return WebhookAction.IGNORED

        if not event.invoice_id:
            logger.warning("%s webhook without invoiceId; nothing to notify", event.event_type)
            return WebhookAction.IGNORED

        if event_type in _PAYMENT_EVENTS:
            logger.info("Payment %s for invoice %s", event.event_type, event.invoice_id)
            sent = self.dispatcher.notify_settled(event.invoice_id, event.event_type)
        else:
            reason = _FAILURE_REASONS[event_type]
            logger.info("Invoice %s: %s", reason.lower(), event.invoice_id)
            sent = self.dispatcher.notify_failed(event.invoice_id, reason)

        if not sent:
            logger.error("Admin notification for %s (%s) was not delivered", event.invoice_id, event.event_type)
            return WebhookAction.FAILED
        return WebhookAction.NOTIFIED
