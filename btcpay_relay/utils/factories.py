import json
import time
import uuid

from btcpay_relay.models.invoice import Invoice
from btcpay_relay.models.webhook import WebhookEvent


class InvoiceFactory:
    """Factory for Greenfield invoice payloads and Invoice instances."""

    @staticmethod
    def payload(**overrides) -> dict:
        invoice_id = overrides.pop("id", f"INV{uuid.uuid4().hex[:12].upper()}")
        now = int(time.time())
        defaults = {
            "id": invoice_id,
            "storeId": "store_test",
            "amount": "25.00",
            "currency": "USD",
            "type": "Standard",
            "checkoutLink": f"https://btcpay.example.com/i/{invoice_id}",
            "status": "New",
            "additionalStatus": "None",
            "createdTime": now,
            "expirationTime": now + 15 * 60,
            "monitoringExpiration": now + 24 * 60 * 60,
            "archived": False,
            "metadata": {
                "orderId": "order-sku-1",
                "buyerEmail": "buyer@example.com",
                "itemCode": "sku-1",
                "itemDesc": "Sample product",
            },
            "checkout": {"redirectURL": "http://localhost:5173"},
        }
        metadata_overrides = overrides.pop("metadata", None)
        if metadata_overrides is not None:
            defaults["metadata"] = metadata_overrides
        defaults.update(overrides)
        return defaults

    @staticmethod
    def create(**overrides) -> Invoice:
        return Invoice.from_api(InvoiceFactory.payload(**overrides))


class WebhookFactory:
    """Factory for BTCPay webhook event payloads."""

    @staticmethod
    def payload(event_type: str = "InvoiceSettled", invoice_id: str = "INV1", **overrides) -> dict:
        base = {
            "deliveryId": f"dlv_{uuid.uuid4().hex[:16]}",
            "webhookId": "whk_test",
            "originalDeliveryId": None,
            "isRedelivery": False,
            "type": event_type,
            "timestamp": int(time.time()),
            "storeId": "store_test",
            "invoiceId": invoice_id,
            "metadata": {},
        }

        if event_type == "InvoiceSettled":
            base["manuallyMarked"] = False
            base["overPaid"] = False
        elif event_type == "InvoiceReceivedPayment":
            base["afterExpiration"] = False
            base["paymentMethod"] = "BTC-CHAIN"
        elif event_type == "InvoiceProcessing":
            base["overPaid"] = False
        elif event_type == "InvoiceExpired":
            base["partiallyPaid"] = False
        elif event_type == "InvoiceInvalid":
            base["manuallyMarked"] = False

        base.update(overrides)
        return base

    @staticmethod
    def body(event_type: str = "InvoiceSettled", invoice_id: str = "INV1", **overrides) -> bytes:
        return json.dumps(WebhookFactory.payload(event_type, invoice_id, **overrides)).encode("utf-8")

    @staticmethod
    def create_event(event_type: str = "InvoiceSettled", invoice_id: str = "INV1", **overrides) -> WebhookEvent:
        return WebhookEvent.from_payload(WebhookFactory.payload(event_type, invoice_id, **overrides))
