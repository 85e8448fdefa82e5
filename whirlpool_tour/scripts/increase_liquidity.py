"""
Deposit 1 devUSDC (plus the matching devSAMO) into a position

    WHIRLPOOL_POSITION=<address> python -m whirlpool_tour.scripts.increase_liquidity
"""

import logging
import sys

from . import run_script, require, format_amount
from ..client import WhirlpoolClient
from ..config import Config
from ..types import DEV_USDC, TxResult
from ..whirlpool import increase_liquidity_quote_by_input_token

logger = logging.getLogger(__name__)

DEPOSIT_UI_AMOUNT = "1"  # devUSDC
SLIPPAGE_BPS = 100  # 1%


async def run(config: Config) -> TxResult:
    position_address = require(config.whirlpool.position, "WHIRLPOOL_POSITION")

    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")
        logger.info(f"position address: {position_address}")

        position = await client.lp.get_position(position_address)
        whirlpool = await client.lp.get_whirlpool(position.whirlpool)

        amount = DEV_USDC.raw_amount(DEPOSIT_UI_AMOUNT)
        quote = increase_liquidity_quote_by_input_token(
            DEV_USDC.mint,
            amount,
            whirlpool,
            position.tick_lower_index,
            position.tick_upper_index,
            SLIPPAGE_BPS,
        )
        logger.info(f"token A max input: {format_amount(whirlpool.token_mint_a, quote.token_max_a)}")
        logger.info(f"token B max input: {format_amount(whirlpool.token_mint_b, quote.token_max_b)}")
        logger.info(f"liquidity(before): {position.liquidity}")

        result = await client.lp.increase_liquidity(position, DEV_USDC.mint, amount, SLIPPAGE_BPS)

        position = await client.lp.get_position(position_address)
        logger.info(f"liquidity(after): {position.liquidity}")
        return result


def main() -> int:
    return run_script(run, "Increase liquidity of a Whirlpool position")


if __name__ == "__main__":
    sys.exit(main())
