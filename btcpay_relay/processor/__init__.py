from .client import BTCPayClient, ProcessorError

__all__ = ["BTCPayClient", "ProcessorError"]
