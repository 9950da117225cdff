from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class InvoiceStatus(Enum):
    NEW = "New"
    PROCESSING = "Processing"
    SETTLED = "Settled"
    EXPIRED = "Expired"
    INVALID = "Invalid"


def to_datetime(value: Any) -> datetime | None:
    """Greenfield timestamps are unix seconds."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


@dataclass
class Invoice:
    invoice_id: str
    amount: str
    currency: str
    status: str
    metadata: dict = field(default_factory=dict)
    checkout_link: str | None = None
    created_time: datetime | None = None
    expiration_time: datetime | None = None
    additional_status: str | None = None
    description: str | None = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, payload: dict) -> "Invoice":
        """Build an Invoice from a Greenfield invoice response body."""
        metadata = payload.get("metadata") or {}
        checkout = payload.get("checkout") or {}
        additional = payload.get("additionalStatus")
        return cls(
            invoice_id=str(payload.get("id", "")),
            amount=str(payload.get("amount", "")),
            currency=str(payload.get("currency", "")),
            status=str(payload.get("status", "")),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
            checkout_link=payload.get("checkoutLink"),
            created_time=to_datetime(payload.get("createdTime")),
            expiration_time=to_datetime(payload.get("expirationTime")),
            # "None" is the processor's way of saying there is nothing extra.
            additional_status=additional if additional and additional != "None" else None,
            description=payload.get("description") or (
                checkout.get("description") if isinstance(checkout, dict) else None
            ),
            raw=payload,
        )

    @property
    def known_status(self) -> InvoiceStatus | None:
        try:
            return InvoiceStatus(self.status)
        except ValueError:
            return None

    @property
    def payment_received(self) -> bool:
        return self.known_status in (InvoiceStatus.SETTLED, InvoiceStatus.PROCESSING)

    @property
    def payment_completed(self) -> bool:
        return self.known_status is InvoiceStatus.SETTLED

    @property
    def buyer_email(self) -> str | None:
        email = self.metadata.get("buyerEmail")
        if isinstance(email, str) and email.strip():
            return email.strip()
        return None

    @property
    def expiration_timestamp(self) -> Any:
        """Expiration exactly as the processor reported it."""
        return self.raw.get("expirationTime")

    @property
    def payment_methods(self) -> list[dict]:
        """Payment method entries, when the invoice body carries them."""
        return _dict_entries(self.raw.get("paymentMethods"))

    @property
    def payments(self) -> list[dict]:
        return _dict_entries(self.raw.get("payments"))


def _dict_entries(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]
