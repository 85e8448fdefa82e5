"""
Send 0.01 SOL to a fixed devnet address

    python -m whirlpool_tour.scripts.transfer_sol
"""

import logging
import sys

from . import run_script
from ..client import WhirlpoolClient
from ..config import Config
from ..types import TxResult

logger = logging.getLogger(__name__)

DESTINATION = "vQW71yo6X1FjTwt9gaWtHYeoGMu7W9ehSmNiib7oW5G"
AMOUNT_LAMPORTS = 10_000_000  # 0.01 SOL


async def run(config: Config) -> TxResult:
    async with WhirlpoolClient.from_config(config) as client:
        logger.info(f"endpoint: {client.rpc.endpoint}")
        logger.info(f"wallet pubkey: {client.pubkey}")

        result = await client.wallet.transfer_sol(DESTINATION, AMOUNT_LAMPORTS)
        logger.info(f"confirmed: {result}")
        return result


def main() -> int:
    return run_script(run, "Transfer SOL")


if __name__ == "__main__":
    sys.exit(main())
