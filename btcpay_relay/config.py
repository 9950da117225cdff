"""Relay configuration.

Values come from the process environment, after python-dotenv has loaded an
optional ``.env`` file. The resulting ``RelayConfig`` is built once at start-up
and handed to every component that needs it.
"""

import os
from dataclasses import dataclass, field
from urllib.parse import quote

from dotenv import load_dotenv

DEFAULT_CLIENT_URL = "http://localhost:5173"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when required configuration is missing or malformed."""


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_number(name: str, value: str, cast):
    try:
        return cast(value)
    except ValueError:
        raise ConfigError(f"{name} must be numeric, got {value!r}") from None


@dataclass(frozen=True)
class RelayConfig:
    btcpay_url: str
    api_key: str
    store_id: str
    webhook_secret: str | None = None
    admin_email: str | None = None
    client_url: str = DEFAULT_CLIENT_URL
    notify_buyer: bool = True
    smtp_host: str | None = None
    smtp_port: int = 587
    email_user: str | None = None
    email_password: str | None = field(default=None, repr=False)
    email_from: str | None = None
    http_timeout: float = 10.0
    smtp_timeout: float = 15.0
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    def __post_init__(self):
        # Trailing slashes would produce "//api/v1" paths.
        object.__setattr__(self, "btcpay_url", self.btcpay_url.rstrip("/"))

    @classmethod
    def from_env(cls, environ=None, dotenv: bool = True) -> "RelayConfig":
        """Build a config from environment variables.

        ``environ`` defaults to ``os.environ``; pass a plain dict in tests.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def get(name: str) -> str | None:
            value = environ.get(name)
            if value is None or not value.strip():
                return None
            return value.strip()

        return cls(
            btcpay_url=get("SERVER_URL") or "",
            api_key=get("BTCPAY_API_KEY") or "",
            store_id=get("BTCPAY_STORE_ID") or "",
            webhook_secret=get("BTCPAY_WEBHOOK_SECRET"),
            admin_email=get("ADMIN_EMAIL"),
            client_url=get("CLIENT_URL") or DEFAULT_CLIENT_URL,
            notify_buyer=_parse_bool("NOTIFY_BUYER", get("NOTIFY_BUYER") or "true"),
            smtp_host=get("EMAIL_HOST"),
            smtp_port=_parse_number("EMAIL_PORT", get("EMAIL_PORT") or "587", int),
            email_user=get("EMAIL_USER"),
            email_password=get("EMAIL_PASSWORD"),
            email_from=get("EMAIL_FROM"),
            http_timeout=_parse_number("HTTP_TIMEOUT", get("HTTP_TIMEOUT") or "10", float),
            smtp_timeout=_parse_number("SMTP_TIMEOUT", get("SMTP_TIMEOUT") or "15", float),
            host=get("HOST") or "0.0.0.0",
            port=_parse_number("PORT", get("PORT") or "3000", int),
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
        )

    def validate(self) -> "RelayConfig":
        missing = [
            name
            for name, value in (
                ("SERVER_URL", self.btcpay_url),
                ("BTCPAY_API_KEY", self.api_key),
                ("BTCPAY_STORE_ID", self.store_id),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"missing required environment variables: {', '.join(missing)}")
        return self

    @property
    def verifies_signatures(self) -> bool:
        return bool(self.webhook_secret)

    @property
    def sender_address(self) -> str | None:
        return self.email_from or self.email_user

    def invoices_url(self, invoice_id: str | None = None) -> str:
        url = f"{self.btcpay_url}/api/v1/stores/{self.store_id}/invoices"
        if invoice_id is not None:
            url = f"{url}/{quote(invoice_id, safe='')}"
        return url

    def dashboard_url(self, invoice_id: str) -> str:
        return f"{self.btcpay_url}/stores/{self.store_id}/invoices/{quote(invoice_id, safe='')}"
