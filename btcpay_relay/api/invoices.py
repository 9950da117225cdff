import logging
import time
from decimal import Decimal, InvalidOperation

from btcpay_relay.config import RelayConfig
from btcpay_relay.processor.client import BTCPayClient, ProcessorError

logger = logging.getLogger(__name__)

INVOICE_EXPIRATION_MINUTES = 15
DEFAULT_CURRENCY = "USD"
DEFAULT_PAYMENT_METHOD = "BTC"


def parse_amount(value) -> Decimal | None:
    """Return a positive Decimal amount, or None if the value is unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def build_invoice_request(body: dict, amount: Decimal, client_url: str) -> dict:
    """Translate a storefront checkout request into a Greenfield invoice request."""
    product_id = body.get("productId")
    title = body.get("title")
    description = body.get("description") or f"Payment for product: {product_id or 'Item'}"
    item_desc = title or product_id or "Product Purchase"

    metadata = {
        "orderId": f"order-{product_id or int(time.time() * 1000)}",
        "itemCode": product_id or "product",
        "itemDesc": item_desc,
        "posData": {
            "title": item_desc,
            "description": description,
        },
    }
    if body.get("customerEmail"):
        metadata["buyerEmail"] = body["customerEmail"]

    return {
        "amount": str(amount),
        "currency": body.get("currency") or DEFAULT_CURRENCY,
        "metadata": metadata,
        "checkout": {
            "redirectURL": body.get("redirectUrl") or client_url,
            "defaultPaymentMethod": DEFAULT_PAYMENT_METHOD,
            "expirationMinutes": INVOICE_EXPIRATION_MINUTES,
        },
        "description": description,
    }


class InvoiceService:
    """Request/response shaping for the storefront invoice endpoints."""

    def __init__(self, config: RelayConfig, client: BTCPayClient):
        self.config = config
        self.client = client

    def create_invoice(self, body: dict) -> tuple[int, dict]:
        amount = parse_amount(body.get("amount"))
        if amount is None:
            return 400, {"error": "Valid amount is required"}

        request = build_invoice_request(body, amount, self.config.client_url)
        logger.info(
            "Creating invoice: amount=%s currency=%s order=%s",
            request["amount"],
            request["currency"],
            request["metadata"]["orderId"],
        )
        try:
            invoice = self.client.create_invoice(request)
        except ProcessorError as e:
            logger.error("Error creating invoice: %s", e.details)
            return 500, {"error": "Failed to create invoice", "details": e.details}

        return 200, {
            "invoiceId": invoice.invoice_id,
            "paymentUrl": invoice.checkout_link,
            "status": invoice.status,
            "expirationTime": invoice.expiration_timestamp,
        }

    def invoice_status(self, invoice_id: str) -> tuple[int, dict]:
        try:
            invoice = self.client.fetch_invoice(invoice_id)
        except ProcessorError as e:
            logger.error("Error fetching invoice %s: %s", invoice_id, e.details)
            return 500, {"error": "Failed to fetch invoice"}

        return 200, {
            "invoiceId": invoice.invoice_id,
            "status": invoice.status,
            "paymentReceived": invoice.payment_received,
            "paymentCompleted": invoice.payment_completed,
        }
