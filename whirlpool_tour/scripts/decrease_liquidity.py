"""
Withdraw 30% of a position's liquidity

    WHIRLPOOL_POSITION=<address> python -m whirlpool_tour.scripts.decrease_liquidity
"""

import logging
import sys

from . import run_script, require, format_amount
from ..client import WhirlpoolClient
from ..config import Config
from ..types import TxResult
from ..whirlpool import decrease_liquidity_quote_by_liquidity

logger = logging.getLogger(__name__)

WITHDRAW_PERCENT = 30
SLIPPAGE_BPS = 100  # 1%


async def run(config: Config) -> TxResult:
    position_address = require(config.whirlpool.position, "WHIRLPOOL_POSITION")

    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")
        logger.info(f"position address: {position_address}")

        position = await client.lp.get_position(position_address)
        whirlpool = await client.lp.get_whirlpool(position.whirlpool)

        delta = position.liquidity * WITHDRAW_PERCENT // 100
        quote = decrease_liquidity_quote_by_liquidity(
            delta,
            whirlpool,
            position.tick_lower_index,
            position.tick_upper_index,
            SLIPPAGE_BPS,
        )
        logger.info(f"token A min output: {format_amount(whirlpool.token_mint_a, quote.token_min_a)}")
        logger.info(f"token B min output: {format_amount(whirlpool.token_mint_b, quote.token_min_b)}")
        logger.info(f"liquidity(before): {position.liquidity}")

        result = await client.lp.decrease_liquidity(position, WITHDRAW_PERCENT, SLIPPAGE_BPS)

        position = await client.lp.get_position(position_address)
        logger.info(f"liquidity(after): {position.liquidity}")
        return result


def main() -> int:
    return run_script(run, "Decrease liquidity of a Whirlpool position")


if __name__ == "__main__":
    sys.exit(main())
