from .crypto import generate_signature, signature_header, verify_signature
from .factories import InvoiceFactory, WebhookFactory

__all__ = [
    "generate_signature", "signature_header", "verify_signature",
    "InvoiceFactory", "WebhookFactory",
]
