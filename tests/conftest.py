import json
import re
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from btcpay_relay.api.invoices import InvoiceService
from btcpay_relay.config import RelayConfig
from btcpay_relay.notifications.dispatcher import NotificationDispatcher
from btcpay_relay.notifications.log import NotificationLog
from btcpay_relay.processor.client import BTCPayClient
from btcpay_relay.server import build_server
from btcpay_relay.utils.factories import InvoiceFactory, WebhookFactory
from btcpay_relay.webhooks.handler import WebhookHandler
from btcpay_relay.webhooks.signer import WebhookSigner


WEBHOOK_SECRET = "test-secret-key-for-hmac"
API_KEY = "test-api-key"
STORE_ID = "store_test"
ADMIN_EMAIL = "admin@shop.example.com"

_INVOICE_PATH = re.compile(r"^/api/v1/stores/(?P<store>[^/]+)/invoices(?:/(?P<invoice>[^/]+))?$")


class _FakeBTCPayHandler(BaseHTTPRequestHandler):
    """Greenfield invoice endpoints backed by an in-memory dict."""

    def do_GET(self):
        self._handle("GET")

    def do_POST(self):
        self._handle("POST")

    def _handle(self, method):
        state = self.server.state  # type: ignore[attr-defined]
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length) if content_length else b""
        payload = json.loads(body) if body else None

        with state["lock"]:
            state["requests"].append({
                "method": method,
                "path": self.path,
                "headers": dict(self.headers),
                "json": payload,
            })

        if state["response_code"] is not None:
            self._send(state["response_code"], {"code": "server-error", "message": "forced failure"})
            return

        if self.headers.get("Authorization") != f"token {API_KEY}":
            self._send(401, {"code": "unauthenticated", "message": "bad API key"})
            return

        match = _INVOICE_PATH.match(self.path)
        if match is None or match.group("store") != STORE_ID:
            self._send(404, {"code": "store-not-found", "message": "not found"})
            return

        invoice_id = match.group("invoice")
        if method == "GET" and invoice_id:
            with state["lock"]:
                invoice = state["invoices"].get(invoice_id)
            if invoice is None:
                self._send(404, {"code": "invoice-not-found", "message": "Invoice not found"})
            else:
                self._send(200, invoice)
            return

        if method == "POST" and not invoice_id:
            invoice = InvoiceFactory.payload(
                amount=payload["amount"],
                currency=payload["currency"],
                metadata=payload.get("metadata", {}),
                checkout=payload.get("checkout", {}),
            )
            with state["lock"]:
                state["invoices"][invoice["id"]] = invoice
            self._send(200, invoice)
            return

        self._send(405, {"code": "method-not-allowed", "message": method})

    def _send(self, code, body):
        data = json.dumps(body).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class FakeBTCPayServer:
    """In-process stand-in for a BTCPay Server store."""

    def __init__(self):
        self._state = {
            "invoices": {},
            "requests": [],
            "response_code": None,
            "lock": threading.Lock(),
        }
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _FakeBTCPayHandler)
        self._server.state = self._state  # type: ignore[attr-defined]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=5)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self._server.server_address[1]}"

    def add_invoice(self, **overrides) -> dict:
        invoice = InvoiceFactory.payload(**overrides)
        with self._state["lock"]:
            self._state["invoices"][invoice["id"]] = invoice
        return invoice

    def fail_with(self, code: int | None) -> None:
        self._state["response_code"] = code

    def get_requests(self, method: str | None = None) -> list[dict]:
        with self._state["lock"]:
            requests_ = list(self._state["requests"])
        if method is None:
            return requests_
        return [r for r in requests_ if r["method"] == method]

    def fetch_count(self, invoice_id: str) -> int:
        return sum(1 for r in self.get_requests("GET") if r["path"].endswith(f"/invoices/{invoice_id}"))


class RecordingMailer:
    """Mailer that records messages instead of talking to SMTP."""

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent: list[dict] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, html: str) -> bool:
        with self._lock:
            self.sent.append({"to": to, "subject": subject, "html": html})
        return to not in self.fail_for

    def sent_to(self, address: str) -> list[dict]:
        with self._lock:
            return [m for m in self.sent if m["to"] == address]


def make_config(btcpay_url: str = "http://btcpay.invalid", **overrides) -> RelayConfig:
    values = {
        "btcpay_url": btcpay_url,
        "api_key": API_KEY,
        "store_id": STORE_ID,
        "webhook_secret": WEBHOOK_SECRET,
        "admin_email": ADMIN_EMAIL,
        "notify_buyer": True,
        "http_timeout": 5,
    }
    values.update(overrides)
    return RelayConfig(**values)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def signer():
    return WebhookSigner(WEBHOOK_SECRET)


@pytest.fixture
def btcpay_server():
    server = FakeBTCPayServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def config(btcpay_server):
    return make_config(btcpay_server.url)


@pytest.fixture
def client(config):
    return BTCPayClient(config)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def mailer_factory():
    return RecordingMailer


@pytest.fixture
def admin_email():
    return ADMIN_EMAIL


@pytest.fixture
def notification_log():
    return NotificationLog()


@pytest.fixture
def dispatcher(config, client, mailer, notification_log):
    return NotificationDispatcher(config, client, mailer, log=notification_log)


@pytest.fixture
def webhook_handler(dispatcher, webhook_secret):
    return WebhookHandler(dispatcher, secret=webhook_secret)


@pytest.fixture
def invoice_service(config, client):
    return InvoiceService(config, client)


@pytest.fixture
def relay_server(config, mailer, notification_log):
    server = build_server(config, mailer=mailer, notification_log=notification_log, host="127.0.0.1", port=0)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def relay_server_no_auth(btcpay_server, mailer):
    """Relay without a webhook secret: signatures are not checked."""
    config = make_config(btcpay_server.url, webhook_secret=None)
    server = build_server(config, mailer=mailer, host="127.0.0.1", port=0)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def invoice_factory():
    return InvoiceFactory


@pytest.fixture
def webhook_factory():
    return WebhookFactory
