from .invoices import InvoiceService, build_invoice_request, parse_amount

__all__ = ["InvoiceService", "build_invoice_request", "parse_amount"]
