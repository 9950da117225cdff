"""Backend relay between a storefront and a BTCPay Server store."""

__version__ = "1.0.0"
