"""
List the Whirlpool positions held by the wallet

    python -m whirlpool_tour.scripts.get_positions
"""

import logging
import sys
from typing import List

from . import run_script
from ..client import WhirlpoolClient
from ..config import Config
from ..types import Position

logger = logging.getLogger(__name__)


async def run(config: Config) -> List[Position]:
    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")

        positions = await client.lp.get_positions()
        for position in positions:
            logger.info(
                f"position: {position.address} whirlpool: {position.whirlpool} "
                f"range: [{position.tick_lower_index}, {position.tick_upper_index}) "
                f"liquidity: {position.liquidity}"
            )
        if not positions:
            logger.info("no positions found")
        return positions


def main() -> int:
    return run_script(run, "List Whirlpool positions")


if __name__ == "__main__":
    sys.exit(main())
