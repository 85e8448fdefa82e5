"""
Collect fees and rewards, withdraw everything and close a position

    WHIRLPOOL_POSITION=<address> python -m whirlpool_tour.scripts.close_position
"""

import logging
import sys

from . import run_script, require
from ..client import WhirlpoolClient
from ..config import Config
from ..types import TxResult

logger = logging.getLogger(__name__)

SLIPPAGE_BPS = 100  # 1%


async def run(config: Config) -> TxResult:
    position_address = require(config.whirlpool.position, "WHIRLPOOL_POSITION")

    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")
        logger.info(f"position address: {position_address}")

        position = await client.lp.get_position(position_address)
        logger.info(f"liquidity: {position.liquidity}")

        return await client.lp.close_position(position, SLIPPAGE_BPS)


def main() -> int:
    return run_script(run, "Close a Whirlpool position")


if __name__ == "__main__":
    sys.exit(main())
