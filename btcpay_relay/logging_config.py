"""Logging configuration for the relay process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_NOISY_LOGGERS = ("urllib3",)


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure the root logger with a single stdout handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Calling twice (tests, reloads) must not duplicate output.
    for handler in list(root_logger.handlers):
        if getattr(handler, "_btcpay_relay", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._btcpay_relay = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
