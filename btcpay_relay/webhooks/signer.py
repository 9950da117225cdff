from btcpay_relay.utils.crypto import signature_header, verify_signature


class WebhookSigner:
    """Signs and verifies BTCPay webhook bodies using HMAC-SHA256."""

    def __init__(self, secret: str):
        self.secret = secret

    def sign(self, body: bytes) -> str:
        return signature_header(body, self.secret)

    def verify(self, body: bytes, header: str | None) -> bool:
        return verify_signature(body, self.secret, header)
