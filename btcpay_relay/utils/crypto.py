import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def generate_signature(body: bytes, secret: str) -> str:
    """Generate the HMAC-SHA256 hex digest of a raw webhook body."""
    return hmac.new(
        secret.encode("utf-8"),
        body,
        hashlib.sha256,
    ).hexdigest()


def signature_header(body: bytes, secret: str) -> str:
    """Header value in the form the processor sends it: ``sha256=<hex>``."""
    return SIGNATURE_PREFIX + generate_signature(body, secret)


def verify_signature(body: bytes, secret: str, header: str | None) -> bool:
    """Verify a ``sha256=<hex>`` header against the raw body.

    The whole digest must match; comparison is constant-time.
    """
    if not header:
        return False
    provided = header.strip()
    if provided[: len(SIGNATURE_PREFIX)].lower() == SIGNATURE_PREFIX:
        provided = provided[len(SIGNATURE_PREFIX):]
    expected = generate_signature(body, secret)
    # Bytes, since compare_digest rejects non-ASCII str.
    return hmac.compare_digest(expected.encode("ascii"), provided.lower().encode("utf-8"))
