"""
Send 1 devSAMO to a fixed devnet address

The recipient's associated token account is created in the same
transaction if it does not exist.

    python -m whirlpool_tour.scripts.transfer_token
"""

import logging
import sys

from . import run_script
from ..client import WhirlpoolClient
from ..config import Config
from ..types import DEV_SAMO, TxResult

logger = logging.getLogger(__name__)

DESTINATION = "vQW71yo6X1FjTwt9gaWtHYeoGMu7W9ehSmNiib7oW5G"
AMOUNT = 1_000_000_000  # 1 devSAMO


async def run(config: Config) -> TxResult:
    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")

        result = await client.wallet.transfer_token(
            DEV_SAMO.mint,
            DEV_SAMO.decimals,
            DESTINATION,
            AMOUNT,
        )
        logger.info(f"confirmed: {result}")
        return result


def main() -> int:
    return run_script(run, "Transfer devSAMO")


if __name__ == "__main__":
    sys.exit(main())
