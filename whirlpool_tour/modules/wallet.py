"""
Wallet Module

Provides balance queries and SOL / SPL token transfers.
"""

import logging
from typing import TYPE_CHECKING

from solders.pubkey import Pubkey

from ..types import TxResult
from ..errors import ConfigurationError
from ..spl import (
    build_transfer_sol_instruction,
    build_transfer_checked_instruction,
    detect_token_program,
    get_associated_token_address,
    resolve_or_create_ata,
)

if TYPE_CHECKING:
    from ..client import WhirlpoolClient

logger = logging.getLogger(__name__)


class WalletModule:
    """
    Wallet operations module

    Provides:
    - SOL and token balance queries
    - SOL transfers
    - SPL token transfers (creating the destination ATA when missing)

    Usage:
        async with WhirlpoolClient.from_config(config) as client:
            lamports = await client.wallet.sol_balance_lamports()
            result = await client.wallet.transfer_sol(dest, 10_000_000)
    """

    def __init__(self, client: "WhirlpoolClient"):
        """
        Initialize wallet module

        Args:
            client: WhirlpoolClient instance
        """
        self._client = client
        self._rpc = client.rpc

    @property
    def address(self) -> str:
        """Wallet address"""
        return self._client.pubkey

    async def sol_balance_lamports(self) -> int:
        """Get native SOL balance in lamports"""
        return await self._rpc.get_balance(self.address)

    async def token_balance(self, mint: str) -> int:
        """
        Get raw token balance summed over all of the wallet's accounts for a mint
        """
        accounts = await self._rpc.get_token_accounts_by_owner(self.address, mint=mint)

        total = 0
        for account in accounts:
            info = account.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
            amount_str = info.get("tokenAmount", {}).get("amount")
            if amount_str:
                total += int(amount_str)
        return total

    async def transfer_sol(self, destination: str, lamports: int) -> TxResult:
        """
        Transfer native SOL

        Args:
            destination: Recipient address
            lamports: Amount in lamports

        Returns:
            TxResult
        """
        if lamports <= 0:
            raise ConfigurationError.invalid("lamports", f"must be > 0, got {lamports}")

        ix = build_transfer_sol_instruction(self.address, destination, lamports)

        tx = self._client.new_transaction()
        tx.add(ix)
        return await tx.build_and_execute()

    async def transfer_token(
        self,
        mint: str,
        decimals: int,
        destination: str,
        amount: int,
    ) -> TxResult:
        """
        Transfer SPL tokens with TransferChecked

        The destination's associated token account is created in the same
        transaction when it does not exist yet.

        Args:
            mint: Token mint
            decimals: Mint decimals (checked on-chain)
            destination: Recipient wallet address
            amount: Raw amount

        Returns:
            TxResult
        """
        if amount <= 0:
            raise ConfigurationError.invalid("amount", f"must be > 0, got {amount}")

        token_program = await detect_token_program(self._rpc, mint)
        source_ata = get_associated_token_address(self.address, mint, token_program)
        dest_ata, create_ix = await resolve_or_create_ata(
            self._rpc,
            owner=destination,
            mint=mint,
            payer=self.address,
            token_program=token_program,
        )
        logger.debug(f"Transfer {amount} of {mint}: {source_ata} -> {dest_ata}")

        transfer_ix = build_transfer_checked_instruction(
            source=source_ata,
            mint=Pubkey.from_string(mint),
            destination=dest_ata,
            owner=self.address,
            amount=amount,
            decimals=decimals,
            token_program=token_program,
        )

        tx = self._client.new_transaction()
        tx.add(create_ix).add(transfer_ix)
        return await tx.build_and_execute()
