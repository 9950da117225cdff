from .handler import SIGNATURE_HEADER, WebhookAction, WebhookHandler, WebhookResult
from .signer import WebhookSigner

__all__ = [
    "SIGNATURE_HEADER",
    "WebhookAction",
    "WebhookHandler",
    "WebhookResult",
    "WebhookSigner",
]
