"""
Withdraw 30% of the liquidity of the first two positions of a bundle, in one transaction

    WHIRLPOOL_POSITION_BUNDLE=<address> python -m whirlpool_tour.scripts.bundled_position_decrease_liquidity
"""

import logging
import sys

from . import run_script, require, format_amount
from ..client import WhirlpoolClient
from ..config import Config
from ..errors import ConfigurationError
from ..types import TxResult
from ..whirlpool import get_bundled_position_pda, decrease_liquidity_quote_by_liquidity

logger = logging.getLogger(__name__)

NUM_POSITIONS = 2
WITHDRAW_PERCENT = 30
SLIPPAGE_BPS = 100  # 1%


async def run(config: Config) -> TxResult:
    bundle_address = require(config.whirlpool.position_bundle, "WHIRLPOOL_POSITION_BUNDLE")

    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")
        logger.info(f"position bundle address: {bundle_address}")

        bundle = await client.lp.get_position_bundle(bundle_address)
        indexes = bundle.occupied_bundle_indexes
        logger.info(f"occupied bundle indexes (first 10): {indexes[:10]}")
        if len(indexes) < NUM_POSITIONS:
            raise ConfigurationError.invalid(
                "WHIRLPOOL_POSITION_BUNDLE", f"needs {NUM_POSITIONS} occupied slots, has {len(indexes)}"
            )

        positions = []
        for index in indexes[:NUM_POSITIONS]:
            address, _ = get_bundled_position_pda(bundle.position_bundle_mint, index)
            logger.info(f"bundled position ({index}) pubkey: {address}")

            position = await client.lp.get_position(str(address))
            whirlpool = await client.lp.get_whirlpool(position.whirlpool)
            delta = position.liquidity * WITHDRAW_PERCENT // 100
            quote = decrease_liquidity_quote_by_liquidity(
                delta, whirlpool,
                position.tick_lower_index, position.tick_upper_index,
                SLIPPAGE_BPS,
            )
            logger.info(f"liquidity ({index}): {position.liquidity}")
            logger.info(f"delta_liquidity ({index}): {delta}")
            logger.info(f"token A min output ({index}): {format_amount(whirlpool.token_mint_a, quote.token_min_a)}")
            logger.info(f"token B min output ({index}): {format_amount(whirlpool.token_mint_b, quote.token_min_b)}")

            positions.append((index, position))

        result = await client.lp.decrease_liquidity_many(
            [p for _, p in positions], WITHDRAW_PERCENT, SLIPPAGE_BPS
        )

        for index, position in positions:
            position = await client.lp.get_position(position.address)
            logger.info(f"liquidity(after) ({index}): {position.liquidity}")
        return result


def main() -> int:
    return run_script(run, "Decrease liquidity of two bundled positions")


if __name__ == "__main__":
    sys.exit(main())
