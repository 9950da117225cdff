import logging
from typing import Any

import requests

from btcpay_relay.config import RelayConfig
from btcpay_relay.models.invoice import Invoice

logger = logging.getLogger(__name__)


class ProcessorError(Exception):
    """A processor call failed: transport error or non-2xx response."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details if details is not None else message


class BTCPayClient:
    """Synchronous wrapper around the Greenfield invoice endpoints. No retries."""

    def __init__(self, config: RelayConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Authorization": f"token {config.api_key}",
        })

    def fetch_invoice(self, invoice_id: str) -> Invoice:
        data = self._request("GET", self.config.invoices_url(invoice_id))
        return Invoice.from_api(data)

    def create_invoice(self, request: dict) -> Invoice:
        data = self._request("POST", self.config.invoices_url(), json=request)
        logger.info("Invoice created: %s", data.get("id"))
        return Invoice.from_api(data)

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = self.session.request(
                method,
                url,
                timeout=self.config.http_timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout:
            raise ProcessorError(f"{method} {url} timed out") from None
        except requests.exceptions.ConnectionError as e:
            raise ProcessorError(f"{method} {url} connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ProcessorError(str(e)) from e

        if not 200 <= resp.status_code < 300:
            details = _error_details(resp)
            logger.warning("Processor returned %d for %s %s: %s", resp.status_code, method, url, details)
            raise ProcessorError(
                f"{method} {url} returned {resp.status_code}",
                status_code=resp.status_code,
                details=details,
            )

        try:
            data = resp.json()
        except ValueError:
            raise ProcessorError(
                f"{method} {url} returned a non-JSON body",
                status_code=resp.status_code,
            ) from None
        if not isinstance(data, dict):
            raise ProcessorError(f"{method} {url} returned unexpected JSON", status_code=resp.status_code)
        return data


def _error_details(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or resp.reason
