"""Entry point: ``python -m src.bot.main`` or the ``listing-tracker`` script."""
import sys

import structlog

from src.bot.bot import ListingTrackerBot
from src.config import settings
from src.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def main() -> None:
    configure_logging(settings.log_level, settings.log_json)
    if not settings.discord_token:
        logger.error("discord_token_missing")
        sys.exit(1)

    bot = ListingTrackerBot(settings)
    # structlog is already configured; keep discord.py on the stdlib root logger
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
