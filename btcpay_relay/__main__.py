import logging
import sys

from btcpay_relay.config import ConfigError, RelayConfig
from btcpay_relay.logging_config import setup_logging
from btcpay_relay.server import build_server

logger = logging.getLogger("btcpay_relay")


def main() -> int:
    try:
        config = RelayConfig.from_env().validate()
    except ConfigError as e:
        setup_logging()
        logger.error("Invalid configuration: %s", e)
        return 1

    setup_logging(config.log_level)
    if not config.admin_email:
        logger.warning("ADMIN_EMAIL is not set; admin notifications will be skipped")

    server = build_server(config)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
