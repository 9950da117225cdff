"""HTML email bodies for payment notifications.

Every value taken from an invoice is escaped before it reaches the markup;
invoice metadata is buyer-supplied.
"""

import json
from datetime import datetime, timezone
from html import escape

from btcpay_relay.models.invoice import Invoice, to_datetime

_CELL = "padding: 5px; border-bottom: 1px solid #eee;"
_HEAD = "padding: 8px; text-align: left; border-bottom: 2px solid #ddd;"
_BOX = (
    "font-family: Arial, sans-serif; max-width: {width}px; margin: 0 auto; "
    "padding: 20px; border: 1px solid #eee; border-radius: 5px;"
)

# Event kind -> status label shown to the admin.
STATUS_LABELS = {
    "InvoiceSettled": "Settled",
    "InvoicePaymentSettled": "Settled",
    "InvoiceReceivedPayment": "Payment Received",
    "InvoiceProcessing": "Processing",
}


def status_label(event_kind: str) -> str:
    return STATUS_LABELS.get(event_kind, "Processing")


def format_time(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _row(label: str, value, raw_html: bool = False) -> str:
    cell = value if raw_html else escape(str(value))
    return (
        f'<tr><td style="{_CELL}"><strong>{escape(label)}</strong></td>'
        f'<td style="{_CELL}">{cell}</td></tr>'
    )


def _link(url: str) -> str:
    url = escape(url)
    return f'<a href="{url}">{url}</a>'


def _metadata_rows(metadata: dict) -> str:
    rows = []
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            value = json.dumps(value, sort_keys=True)
        rows.append(_row(str(key), value))
    return "".join(rows) or '<tr><td colspan="2">No metadata available</td></tr>'


def _table(headers: list[str], body: str) -> str:
    head = "".join(f'<th style="{_HEAD}">{escape(h)}</th>' for h in headers)
    return (
        '<table style="width: 100%; border-collapse: collapse;">'
        f'<thead><tr style="background-color: #f5f5f5;">{head}</tr></thead>'
        f"<tbody>{body}</tbody></table>"
    )


def _cells(*values) -> str:
    return "<tr>" + "".join(f'<td style="{_CELL}">{escape(str(v))}</td>' for v in values) + "</tr>"


def _payment_method_rows(invoice: Invoice, with_rate: bool = True) -> str:
    rows = []
    for method in invoice.payment_methods:
        cells = [
            method.get("paymentMethod", "N/A"),
            f"{method.get('amount', '')} {method.get('cryptoCode', '')}".strip(),
        ]
        if with_rate:
            rate = method.get("rate")
            cells.append(f"Rate: {rate} {invoice.currency}" if rate else "")
        rows.append(_cells(*cells))
    return "".join(rows)


def _payment_rows(invoice: Invoice) -> str:
    rows = []
    for payment in invoice.payments:
        rows.append(_cells(
            payment.get("id") or "N/A",
            f"{payment.get('value', '')} {payment.get('currency') or 'BTC'}",
            format_time(to_datetime(payment.get("receivedDate"))),
            payment.get("status") or "Unknown",
        ))
    return "".join(rows)


def _dashboard_footer(dashboard_url: str, text: str) -> str:
    return (
        '<div style="margin-top: 30px; padding-top: 15px; border-top: 1px solid #eee;">'
        f'<p>{text} <a href="{escape(dashboard_url)}" style="color: #0066cc; text-decoration: none;">'
        "BTCPay Server dashboard</a>.</p></div>"
    )


def admin_notification(invoice: Invoice, event_kind: str, dashboard_url: str,
                       now: datetime | None = None) -> str:
    """Admin view of a paid, received or processing invoice."""
    now = now or datetime.now(timezone.utc)
    status = status_label(event_kind)
    settled = status == "Settled"
    background, colour = ("#e8f5e9", "#2e7d32") if settled else ("#fff8e1", "#ff8f00")

    rows = [
        _row("Invoice ID", invoice.invoice_id),
        _row("Amount", f"{invoice.amount} {invoice.currency}"),
        _row("Created", format_time(invoice.created_time)),
        _row("Expiration", format_time(invoice.expiration_time)),
        _row("Current Status", invoice.status),
        _row("Description", invoice.description or "N/A"),
    ]
    if invoice.additional_status:
        rows.append(_row("Additional Status", invoice.additional_status))
    if invoice.checkout_link:
        rows.append(_row("Checkout Link", _link(invoice.checkout_link), raw_html=True))

    methods = _payment_method_rows(invoice) or '<tr><td colspan="3">No payment method details available</td></tr>'
    payments = _payment_rows(invoice) or '<tr><td colspan="4">No payment details available</td></tr>'

    return (
        f'<div style="{_BOX.format(width=800)}">'
        '<h2 style="color: #333; border-bottom: 1px solid #eee; padding-bottom: 10px;">'
        "Payment Notification</h2>"
        f'<div style="margin: 20px 0; background-color: {background}; padding: 15px; border-radius: 4px;">'
        f'<h3 style="margin-top: 0; color: {colour};">Status: {escape(status)}</h3></div>'
        '<h3 style="margin-top: 25px; color: #333;">Invoice Details</h3>'
        f'<table style="width: 100%; border-collapse: collapse;">{"".join(rows)}</table>'
        '<h3 style="margin-top: 25px; color: #333;">Payment Methods</h3>'
        f"{_table(['Method', 'Amount', 'Rate Info'], methods)}"
        '<h3 style="margin-top: 25px; color: #333;">Payment Details</h3>'
        f"{_table(['ID', 'Amount', 'Received Date', 'Status'], payments)}"
        '<h3 style="margin-top: 25px; color: #333;">Metadata</h3>'
        f"{_table(['Key', 'Value'], _metadata_rows(invoice.metadata))}"
        f"{_dashboard_footer(dashboard_url, 'View complete invoice details in your')}"
        '<div style="margin-top: 30px; font-size: 12px; color: #666; text-align: center;">'
        "<p>This is an automated notification from your payment system.<br>"
        f"Event Type: {escape(event_kind)}<br>Time: {format_time(now)}</p></div>"
        "</div>"
    )


def customer_receipt(invoice: Invoice, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    rows = [
        _row("Amount", f"{invoice.amount} {invoice.currency}"),
        _row("Invoice ID", invoice.invoice_id),
        _row("Date", format_time(now)),
        _row("Status", invoice.status),
    ]
    item = invoice.metadata.get("itemDesc")
    if item:
        rows.append(_row("Item", item))
    if invoice.description:
        rows.append(_row("Description", invoice.description))

    if invoice.payment_completed:
        message = "Thank you for your payment. We have received your payment and it has been processed successfully."
    else:
        message = "Thank you for your payment. We have received it and will confirm once it settles."

    methods = _payment_method_rows(invoice, with_rate=False)
    method_section = (
        '<h3 style="margin-top: 25px; color: #333;">Payment Method</h3>'
        f'<table style="width: 100%; border-collapse: collapse;"><tbody>{methods}</tbody></table>'
    ) if methods else ""

    return (
        f'<div style="{_BOX.format(width=600)}">'
        '<h2 style="color: #28a745; border-bottom: 1px solid #eee; padding-bottom: 10px;">'
        "Payment Confirmation</h2>"
        '<div style="margin: 20px 0; background-color: #e8f5e9; padding: 15px; border-radius: 4px;">'
        f'<p style="margin: 0;">{message}</p></div>'
        '<h3 style="margin-top: 25px; color: #333;">Payment Details</h3>'
        f'<table style="width: 100%; border-collapse: collapse;">{"".join(rows)}</table>'
        f"{method_section}"
        '<div style="margin-top: 30px; padding-top: 15px; border-top: 1px solid #eee; text-align: center;">'
        "<p>If you have any questions, please contact our support team.</p></div>"
        "</div>"
    )


def payment_failed(invoice: Invoice, reason: str, dashboard_url: str,
                   now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    rows = [
        _row("Invoice ID", invoice.invoice_id),
        _row("Amount", f"{invoice.amount} {invoice.currency}"),
        _row("Created", format_time(invoice.created_time)),
        _row("Expired", format_time(invoice.expiration_time)),
        _row("Time of Failure", format_time(now)),
    ]
    if invoice.buyer_email:
        rows.append(_row("Customer Email", invoice.buyer_email))
    order_id = invoice.metadata.get("orderId")
    if order_id:
        rows.append(_row("Order ID", order_id))
    if invoice.checkout_link:
        rows.append(_row("Checkout Link", _link(invoice.checkout_link), raw_html=True))

    return (
        f'<div style="{_BOX.format(width=600)}">'
        '<h2 style="color: #dc3545; border-bottom: 1px solid #eee; padding-bottom: 10px;">'
        "Payment Failed</h2>"
        '<div style="margin: 20px 0; background-color: #f8d7da; padding: 15px; border-radius: 4px;">'
        f'<h3 style="margin-top: 0; color: #721c24;">Status: Failed/{escape(reason)}</h3></div>'
        '<h3 style="margin-top: 25px; color: #333;">Invoice Details</h3>'
        f'<table style="width: 100%; border-collapse: collapse;">{"".join(rows)}</table>'
        f"{_dashboard_footer(dashboard_url, 'View invoice details in your')}"
        "</div>"
    )


def admin_subject(invoice_id: str, event_kind: str) -> str:
    label = status_label(event_kind)
    if not label.startswith("Payment"):
        label = f"Payment {label}"
    return f"{label} - Invoice {invoice_id}"


def failed_subject(invoice_id: str, reason: str) -> str:
    return f"Payment {reason} - Invoice {invoice_id}"


def receipt_subject(invoice_id: str) -> str:
    return f"Your payment confirmation - Invoice {invoice_id}"
