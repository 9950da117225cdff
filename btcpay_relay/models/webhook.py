from dataclasses import dataclass
from enum import Enum


class WebhookEventType(Enum):
    INVOICE_CREATED = "InvoiceCreated"
    INVOICE_RECEIVED_PAYMENT = "InvoiceReceivedPayment"
    INVOICE_PROCESSING = "InvoiceProcessing"
    INVOICE_PAYMENT_SETTLED = "InvoicePaymentSettled"
    INVOICE_SETTLED = "InvoiceSettled"
    INVOICE_EXPIRED = "InvoiceExpired"
    INVOICE_INVALID = "InvoiceInvalid"


@dataclass
class WebhookEvent:
    event_type: str  # "InvoiceSettled", "InvoiceExpired", etc.
    invoice_id: str | None
    payload: dict
    delivery_id: str | None = None
    webhook_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "WebhookEvent":
        invoice_id = payload.get("invoiceId")
        return cls(
            event_type=str(payload.get("type", "")),
            invoice_id=str(invoice_id) if invoice_id else None,
            payload=payload,
            delivery_id=payload.get("deliveryId"),
            webhook_id=payload.get("webhookId"),
        )

    @property
    def known_type(self) -> WebhookEventType | None:
        try:
            return WebhookEventType(self.event_type)
        except ValueError:
            return None
