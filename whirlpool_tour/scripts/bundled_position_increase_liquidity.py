"""
Deposit 1 and 2 devUSDC into the first two positions of a bundle, in one transaction

    WHIRLPOOL_POSITION_BUNDLE=<address> python -m whirlpool_tour.scripts.bundled_position_increase_liquidity
"""

import logging
import sys

from . import run_script, require, format_amount
from ..client import WhirlpoolClient
from ..config import Config
from ..errors import ConfigurationError
from ..types import DEV_USDC, TxResult
from ..whirlpool import get_bundled_position_pda, increase_liquidity_quote_by_input_token

logger = logging.getLogger(__name__)

DEPOSIT_UI_AMOUNTS = ("1", "2")  # devUSDC, per position
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
        if len(indexes) < len(DEPOSIT_UI_AMOUNTS):
            raise ConfigurationError.invalid(
                "WHIRLPOOL_POSITION_BUNDLE", f"needs {len(DEPOSIT_UI_AMOUNTS)} occupied slots, has {len(indexes)}"
            )

        deposits = []
        positions = []
        for index, ui_amount in zip(indexes, DEPOSIT_UI_AMOUNTS):
            address, _ = get_bundled_position_pda(bundle.position_bundle_mint, index)
            logger.info(f"bundled position ({index}) pubkey: {address}")

            position = await client.lp.get_position(str(address))
            whirlpool = await client.lp.get_whirlpool(position.whirlpool)
            amount = DEV_USDC.raw_amount(ui_amount)
            quote = increase_liquidity_quote_by_input_token(
                DEV_USDC.mint, amount, whirlpool,
                position.tick_lower_index, position.tick_upper_index,
                SLIPPAGE_BPS,
            )
            logger.info(f"token A max input ({index}): {format_amount(whirlpool.token_mint_a, quote.token_max_a)}")
            logger.info(f"token B max input ({index}): {format_amount(whirlpool.token_mint_b, quote.token_max_b)}")
            logger.info(f"liquidity(before) ({index}): {position.liquidity}")

            deposits.append((position, DEV_USDC.mint, amount))
            positions.append((index, position.address))

        result = await client.lp.increase_liquidity_many(deposits, SLIPPAGE_BPS)

        for index, address in positions:
            position = await client.lp.get_position(address)
            logger.info(f"liquidity(after) ({index}): {position.liquidity}")
        return result


def main() -> int:
    return run_script(run, "Increase liquidity of two bundled positions")


if __name__ == "__main__":
    sys.exit(main())
