"""
Main entry point for pokeguess.

Logs in with DISCORD_BOT_TOKEN and answers the trigger command
(``!gtp`` by default) with a guessing round.
"""

import asyncio
import logging

from pokeguess.adapters.discord import run_bot
from pokeguess.config.logging import get_logger, init_logging
from pokeguess.config.settings import settings

logger = get_logger("pokeguess.main")


async def main():
    """Main entry point."""
    init_logging(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.info("Starting pokeguess bot...")

    await run_bot()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
