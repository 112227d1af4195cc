"""
main.py

Process entry point: load settings, configure logging, build the router and
the transport, then block in the transport's run loop.

Usage:
  - Copy `.env.example` to `.env` and set TELEGRAM_BOT_TOKEN
  - python -m bunder_bot   (or the `bunder-bot` console script)
"""
import logging
import sys

from .config import Settings
from .errors import ConfigError
from .logging_config import configure_logging
from .router import ConversationRouter
from .transport import build_transport

logger = logging.getLogger(__name__)


def build(settings: Settings):
    """Wire a router onto a fresh transport for `settings`; returns (router, transport)."""
    router = ConversationRouter.from_settings(settings)
    transport = router.register(build_transport(settings))
    return router, transport


def main():
    try:
        settings = Settings.from_env()
        configure_logging(settings.log_dir, settings.log_level)
        settings.validate()
    except ConfigError as e:
        configure_logging()  # no-op when the settings already configured it
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Starting Bunder Bot: %s", settings.describe())
    _, transport = build(settings)
    try:
        transport.run()
    except KeyboardInterrupt:
        logger.info("Stopping bot.")


if __name__ == "__main__":
    main()
