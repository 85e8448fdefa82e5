"""
Close every position of a bundle, one transaction per slot

Each transaction collects fees and rewards, withdraws all liquidity and
closes the bundled position, freeing its slot.

    WHIRLPOOL_POSITION_BUNDLE=<address> python -m whirlpool_tour.scripts.close_bundled_position
"""

import logging
import sys
from typing import List

from . import run_script, require
from ..client import WhirlpoolClient
from ..config import Config
from ..types import TxResult

logger = logging.getLogger(__name__)

SLIPPAGE_BPS = 100  # 1%


async def run(config: Config) -> List[TxResult]:
    bundle_address = require(config.whirlpool.position_bundle, "WHIRLPOOL_POSITION_BUNDLE")

    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")
        logger.info(f"position bundle address: {bundle_address}")

        bundle = await client.lp.get_position_bundle(bundle_address)
        logger.info(f"occupied bundle indexes(pre): {bundle.occupied_bundle_indexes}")

        results = await client.lp.close_all_bundled_positions(bundle, SLIPPAGE_BPS)

        bundle = await client.lp.get_position_bundle(bundle_address)
        logger.info(f"occupied bundle indexes(post): {bundle.occupied_bundle_indexes}")
        return results


def main() -> int:
    return run_script(run, "Close all bundled positions")


if __name__ == "__main__":
    sys.exit(main())
