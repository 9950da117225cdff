import json
import logging
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self
from urllib.parse import unquote, urlsplit

from btcpay_relay.api.invoices import InvoiceService
from btcpay_relay.config import RelayConfig
from btcpay_relay.notifications.dispatcher import NotificationDispatcher
from btcpay_relay.notifications.log import NotificationLog
from btcpay_relay.notifications.mailer import Mailer, SmtpMailer
from btcpay_relay.processor.client import BTCPayClient
from btcpay_relay.webhooks.handler import SIGNATURE_HEADER, WebhookHandler

logger = logging.getLogger(__name__)

_INVOICES_PREFIX = "/api/invoices/"


class _RelayRequestHandler(BaseHTTPRequestHandler):
    """Routes storefront and processor requests to the relay services."""

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        path = urlsplit(self.path).path

        if path == "/health":
            self._send_json(200, {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            })
            return

        if path.startswith(_INVOICES_PREFIX):
            invoice_id = unquote(path[len(_INVOICES_PREFIX):])
            if invoice_id and "/" not in invoice_id:
                code, body = self.server.invoices.invoice_status(invoice_id)  # type: ignore[attr-defined]
                self._send_json(code, body)
                return

        self._send_json(404, {"error": "not found"})

    def do_POST(self):
        path = urlsplit(self.path).path
        body = self._read_body()

        if path == "/api/webhook":
            signature = self.headers.get(SIGNATURE_HEADER)
            result = self.server.webhooks.handle(body, signature)  # type: ignore[attr-defined]
            self._send_empty(result.status_code)
            return

        if path == "/api/create-invoice":
            try:
                payload = json.loads(body or b"{}")
            except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
                self._send_json(400, {"error": "invalid JSON"})
                return
            if not isinstance(payload, dict):
                self._send_json(400, {"error": "invalid JSON"})
                return
            code, response = self.server.invoices.create_invoice(payload)  # type: ignore[attr-defined]
            self._send_json(code, response)
            return

        self._send_json(404, {"error": "not found"})

    def _read_body(self) -> bytes:
        try:
            content_length = int(self.headers.get("Content-Length", 0) or 0)
        except ValueError:
            content_length = 0
        if content_length <= 0:
            return b""
        return self.rfile.read(content_length)

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body, default=str).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _send_empty(self, code: int) -> None:
        self.send_response(code)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        """Route access lines through logging instead of stderr."""
        logger.debug("%s - %s", self.address_string(), format % args)


class RelayServer:
    """HTTP front end for the invoice relay and the BTCPay webhook receiver."""

    def __init__(
        self,
        webhooks: WebhookHandler,
        invoices: InvoiceService,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        self._host = host
        self._port = port
        self.webhooks = webhooks
        self.invoices = invoices
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def bind(self) -> Self:
        if self._server is None:
            self._server = ThreadingHTTPServer((self._host, self._port), _RelayRequestHandler)
            self._server.webhooks = self.webhooks  # type: ignore[attr-defined]
            self._server.invoices = self.invoices  # type: ignore[attr-defined]
            # Get the actual port (useful when port=0)
            self._port = self._server.server_address[1]
        return self

    def start(self) -> None:
        self.bind()
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Server running on %s:%d", self._host, self._port)

    def serve_forever(self) -> None:
        self.bind()
        logger.info("Server running on %s:%d", self._host, self._port)
        try:
            self._server.serve_forever()
        finally:
            self._server.server_close()
            self._server = None

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port


def build_server(
    config: RelayConfig,
    mailer: Mailer | None = None,
    notification_log: NotificationLog | None = None,
    host: str | None = None,
    port: int | None = None,
) -> RelayServer:
    """Wire every component from a single configuration object."""
    client = BTCPayClient(config)
    dispatcher = NotificationDispatcher(
        config,
        client,
        mailer or SmtpMailer(config),
        log=notification_log,
    )
    return RelayServer(
        webhooks=WebhookHandler(dispatcher, secret=config.webhook_secret if config.verifies_signatures else None),
        invoices=InvoiceService(config, client),
        host=config.host if host is None else host,
        port=config.port if port is None else port,
    )
