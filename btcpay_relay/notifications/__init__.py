from .dispatcher import NotificationDispatcher
from .log import NotificationLog
from .mailer import Mailer, SmtpMailer

__all__ = [
    "NotificationDispatcher",
    "NotificationLog",
    "Mailer",
    "SmtpMailer",
]
