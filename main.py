"""
Discord Music Bot - Main Entry Point
Loads the environment, configures logging and starts the bot.
"""

import asyncio
import logging
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

# Environment must be loaded before config reads it
load_dotenv()

from config import DISCORD_CONFIG, LOGGING_CONFIG, validate_config  # noqa: E402
from bot import MusicBot  # noqa: E402

logging.basicConfig(
    level=LOGGING_CONFIG['level'],
    format=LOGGING_CONFIG['format'],
    handlers=[
        RotatingFileHandler(
            LOGGING_CONFIG['file'],
            maxBytes=LOGGING_CONFIG['max_file_size'],
            backupCount=LOGGING_CONFIG['backup_count'],
        ),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


async def main():
    """Main function to start the Discord music bot."""
    errors, warnings = validate_config()
    for warning in warnings:
        logger.warning(f"Configuration warning: {warning}")
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return

    bot = MusicBot()
    try:
        logger.info("Starting Discord Music Bot...")
        async with bot:
            await bot.start(DISCORD_CONFIG['token'])
    finally:
        logger.info("Bot shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Program interrupted by user")
