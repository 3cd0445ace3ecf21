import argparse
import logging
import sys

from src.app_server.server import PaymentAppServer
from src.config import AppConfig, ConfigurationError, SignatureScheme, configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Cash-on-delivery payment app")
    parser.add_argument("--host", help="bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="bind port (overrides PORT)")
    args = parser.parse_args(argv)

    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Invalid configuration: %s", e)
        return 2

    configure_logging(config.log_level)
    logger.info("Using %s auth persistence", config.apl.value)
    if config.signature_scheme is SignatureScheme.HMAC:
        logger.warning("SIGNATURE_SCHEME=hmac only accepts deliveries from the platform simulator")

    server = PaymentAppServer(config, host=args.host, port=args.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
