from .invoice import Invoice, InvoiceStatus
from .webhook import WebhookEvent, WebhookEventType
from .notification import NotificationAttempt, NotificationStatus, RecipientRole

__all__ = [
    "Invoice", "InvoiceStatus",
    "WebhookEvent", "WebhookEventType",
    "NotificationAttempt", "NotificationStatus", "RecipientRole",
]
