import threading
from collections import deque

from btcpay_relay.models.notification import NotificationAttempt, NotificationStatus

DEFAULT_MAX_ATTEMPTS = 1000


class NotificationLog:
    """Thread-safe record of the most recent notification attempts.

    Only the last ``max_attempts`` entries are kept; older ones are dropped.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._attempts: deque[NotificationAttempt] = deque(maxlen=max_attempts)
        self._lock = threading.Lock()

    @property
    def max_attempts(self) -> int:
        return self._attempts.maxlen

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def log(self, attempt: NotificationAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def get_attempts(self, invoice_id: str | None = None) -> list[NotificationAttempt]:
        with self._lock:
            if invoice_id is None:
                return list(self._attempts)
            return [a for a in self._attempts if a.invoice_id == invoice_id]

    def get_failed_attempts(self) -> list[NotificationAttempt]:
        with self._lock:
            return [a for a in self._attempts if a.status is NotificationStatus.FAILED]

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
