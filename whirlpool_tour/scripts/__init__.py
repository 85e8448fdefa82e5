"""
Tutorial scripts

Each script exposes ``async def run(config)`` taking an explicit Config and
``main()`` for command-line use:

    python -m whirlpool_tour.scripts.transfer_sol
    python -m whirlpool_tour.scripts.get_positions --log-level DEBUG

Scripts read ANCHOR_PROVIDER_URL, ANCHOR_WALLET and, where needed,
WHIRLPOOL_POSITION / WHIRLPOOL_POSITION_BUNDLE from the environment or .env.
"""

import argparse
import asyncio
import logging
from typing import Awaitable, Callable

from ..config import Config, reload_config, setup_logging
from ..errors import (
    WhirlpoolTourError,
    ConfigurationError,
    ConfirmationTimeoutError,
    ConfirmationFailedError,
)
from ..types import DEV_TOKENS

logger = logging.getLogger(__name__)


def require(value: str, env_name: str) -> str:
    """Return value or raise if the setting is empty"""
    if not value:
        raise ConfigurationError.missing(env_name)
    return value


def run_script(run: Callable[[Config], Awaitable[object]], description: str) -> int:
    """
    Command-line wrapper shared by the scripts

    Loads configuration, sets up logging and runs the coroutine. Errors are
    logged with their diagnostic and turned into a non-zero exit code.

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--log-level", type=str, default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", type=str, default=None, help="Override LOG_FILE path")
    parser.add_argument("--no-log-file", action="store_true", help="Log to console only")
    args = parser.parse_args()

    config = reload_config()
    if args.log_level:
        config.logging.log_level = args.log_level
    if args.log_file:
        config.logging.log_file = args.log_file
    if args.no_log_file:
        config.logging.log_file = ""
    setup_logging(config.logging)

    try:
        asyncio.run(run(config))
    except WhirlpoolTourError as e:
        logger.error(f"{type(e).__name__}: {e}")
        for line in e.details.get("logs") or []:
            logger.error(f"  {line}")
        if isinstance(e, (ConfirmationTimeoutError, ConfirmationFailedError)):
            logger.error(f"Outcome: {e.result}")
        return 1
    return 0


def format_amount(mint: str, raw_amount: int) -> str:
    """Render a raw amount in UI units for the known devnet tokens"""
    token = DEV_TOKENS.get(mint)
    if token is None:
        return f"{raw_amount} (raw, {mint})"
    return f"{token.format(raw_amount)} {token.symbol}"
