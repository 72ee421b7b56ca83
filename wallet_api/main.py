"""
Wallet API entry point.
"""

import sys

from aiohttp import web
from loguru import logger

from wallet_api import __version__
from wallet_api.config.settings import Settings, get_settings
from wallet_api.http_server import create_app

LOG_FILE = "logs/wallet_api.log"


def setup_logging(settings: Settings) -> None:
    """Configure stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        LOG_FILE,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
    )


def main() -> None:
    """Initialize and run the API server."""
    settings = get_settings()
    setup_logging(settings)

    logger.info(
        f"Starting Wallet API v{__version__} "
        f"({settings.environment}, {settings.ethereum_network})"
    )

    try:
        web.run_app(
            create_app(settings),
            host=settings.host,
            port=settings.port,
            print=None,
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Server crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
