import hashlib
import hmac

import pytest

from btcpay_relay.utils.crypto import generate_signature, verify_signature
from btcpay_relay.webhooks.signer import WebhookSigner


BODY = b'{"type":"InvoiceSettled","invoiceId":"INV1"}'


class TestSign:
    """Tests for WebhookSigner.sign()."""

    @pytest.mark.unit
    def test_sign_produces_prefixed_hex_digest(self, signer):
        header = signer.sign(BODY)
        assert header.startswith("sha256=")
        digest = header[len("sha256="):]
        # HMAC-SHA256 produces 64 hex chars
        assert len(digest) == 64
        int(digest, 16)  # Raises ValueError if not hex

    @pytest.mark.unit
    def test_sign_matches_reference_hmac(self):
        expected = hmac.new(b"abc", BODY, hashlib.sha256).hexdigest()
        assert WebhookSigner("abc").sign(BODY) == f"sha256={expected}"

    @pytest.mark.unit
    def test_sign_produces_deterministic_output(self, signer):
        assert signer.sign(BODY) == signer.sign(BODY)

    @pytest.mark.unit
    def test_different_secrets_produce_different_signatures(self):
        assert WebhookSigner("secret-a").sign(BODY) != WebhookSigner("secret-b").sign(BODY)

    @pytest.mark.unit
    def test_signature_covers_exact_bytes(self, webhook_secret):
        """Re-serialising the same JSON with different spacing changes the digest."""
        spaced = b'{"type": "InvoiceSettled", "invoiceId": "INV1"}'
        assert generate_signature(BODY, webhook_secret) != generate_signature(spaced, webhook_secret)

    @pytest.mark.unit
    def test_empty_body_produces_valid_signature(self, signer):
        assert len(signer.sign(b"")) == len("sha256=") + 64


class TestVerify:
    """Tests for WebhookSigner.verify()."""

    @pytest.mark.unit
    def test_verify_returns_true_for_valid_header(self, signer):
        assert signer.verify(BODY, signer.sign(BODY)) is True

    @pytest.mark.unit
    def test_verify_accepts_uppercase_hex(self, signer):
        digest = signer.sign(BODY)[len("sha256="):]
        assert signer.verify(BODY, "sha256=" + digest.upper()) is True

    @pytest.mark.unit
    def test_verify_accepts_bare_digest(self, signer):
        digest = signer.sign(BODY)[len("sha256="):]
        assert signer.verify(BODY, digest) is True

    @pytest.mark.unit
    def test_verify_returns_false_for_invalid_signature(self, signer):
        assert signer.verify(BODY, "sha256=deadbeef") is False

    @pytest.mark.unit
    @pytest.mark.parametrize("header", [None, "", "sha256="])
    def test_verify_returns_false_for_missing_signature(self, signer, header):
        assert signer.verify(BODY, header) is False

    @pytest.mark.unit
    def test_verify_returns_false_for_tampered_body(self, signer):
        header = signer.sign(BODY)
        tampered = b'{"type":"InvoiceSettled","invoiceId":"INV2"}'
        assert signer.verify(tampered, header) is False

    @pytest.mark.unit
    def test_verify_rejects_digest_embedded_in_longer_value(self, signer):
        """Containing the right digest is not enough; the whole value must match."""
        header = signer.sign(BODY)
        assert signer.verify(BODY, header + "00") is False
        assert signer.verify(BODY, "xx" + header) is False
        assert signer.verify(BODY, f"sha256=0000,{header}") is False

    @pytest.mark.unit
    def test_verify_rejects_non_ascii_header(self, signer):
        assert signer.verify(BODY, "sha256=ü" * 4) is False

    @pytest.mark.unit
    def test_verify_signature_with_wrong_secret(self):
        header = WebhookSigner("right-secret").sign(BODY)
        assert verify_signature(BODY, "wrong-secret", header) is False
