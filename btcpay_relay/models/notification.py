from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationStatus(Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class RecipientRole(Enum):
    ADMIN = "ADMIN"
    BUYER = "BUYER"


@dataclass
class NotificationAttempt:
    invoice_id: str
    event_kind: str
    role: RecipientRole
    recipient: str | None
    subject: str
    status: NotificationStatus
    timestamp: datetime
    error: str | None = None
