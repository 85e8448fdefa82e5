"""
WhirlpoolClient - Unified entry point for Whirlpool tour operations

Provides high-level interface to the Solana RPC, the wallet and Whirlpool
positions through functional modules (wallet, lp).
"""

from __future__ import annotations

from typing import Optional, Union, List, TYPE_CHECKING

from solders.keypair import Keypair

from .infra import (
    RpcClient,
    RpcClientConfig,
    TransactionAssembler,
    TxBuilderConfig,
    create_signer,
    Signer,
)
from .config import Config


class WhirlpoolClient:
    """
    Whirlpool tour client

    Provides access to operations through functional modules:
    - wallet: Balance queries, SOL and token transfers
    - lp: Position discovery, liquidity changes, closing positions

    Usage:
        async with WhirlpoolClient(
            rpc_url="https://api.devnet.solana.com",
            keypair_path="wallet.json",
        ) as client:
            result = await client.wallet.transfer_sol(dest, 10_000_000)
            positions = await client.lp.get_positions()

        # Or from a Config object
        async with WhirlpoolClient.from_config(config) as client:
            ...
    """

    def __init__(
        self,
        rpc_url: Union[str, List[str]],
        keypair: Optional[Keypair] = None,
        keypair_path: Optional[str] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_config: Optional[TxBuilderConfig] = None,
        signer: Optional[Signer] = None,
    ):
        """
        Initialize WhirlpoolClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs for fallback
            keypair: Optional Keypair for local signing
            keypair_path: Optional path to keypair file
            rpc_config: Optional RPC configuration
            tx_config: Optional transaction configuration
            signer: Optional ready-made signer (takes precedence over keypair args)
        """
        self._rpc = RpcClient(rpc_url, config=rpc_config)
        self._signer = signer or create_signer(keypair=keypair, keypair_path=keypair_path)
        self._tx_config = tx_config or TxBuilderConfig()

        # Lazy-loaded modules
        self._wallet: Optional["WalletModule"] = None
        self._lp: Optional["LiquidityModule"] = None

    @classmethod
    def from_config(cls, config: Config) -> "WhirlpoolClient":
        """
        Create a client from a Config object

        Uses config.rpc for the endpoint and transport settings,
        config.wallet for the keypair and config.tx for submission.
        """
        rpc_config = RpcClientConfig(
            timeout_seconds=config.rpc.timeout_seconds,
            max_retries=config.rpc.max_retries,
            retry_delay_seconds=config.rpc.retry_delay_seconds,
            commitment=config.rpc.commitment,
        )
        tx_config = TxBuilderConfig(
            skip_preflight=config.tx.skip_preflight,
            preflight_commitment=config.tx.preflight_commitment,
            commitment=config.rpc.commitment,
            poll_interval=config.tx.poll_interval,
        )
        return cls(
            config.rpc.url,
            keypair_path=config.wallet.keypair_path or None,
            rpc_config=rpc_config,
            tx_config=tx_config,
        )

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Signer:
        """Access to signer"""
        return self._signer

    @property
    def pubkey(self) -> str:
        """Owner's public key"""
        return self._signer.pubkey

    def new_transaction(self) -> TransactionAssembler:
        """Fresh transaction assembler signed by the client wallet"""
        return TransactionAssembler(self._rpc, self._signer, config=self._tx_config)

    @property
    def wallet(self) -> "WalletModule":
        """
        Wallet module

        Provides:
        - sol_balance_lamports(), token_balance(mint)
        - transfer_sol(destination, lamports)
        - transfer_token(mint, decimals, destination, amount)
        """
        if self._wallet is None:
            from .modules.wallet import WalletModule
            self._wallet = WalletModule(self)
        return self._wallet

    @property
    def lp(self) -> "LiquidityModule":
        """
        Liquidity module

        Provides:
        - get_positions(owner), get_position(address), get_whirlpool(address)
        - increase_liquidity / decrease_liquidity (and batched *_many variants)
        - close_position(position)
        - get_position_bundle, get_bundled_positions
        - close_bundled_position, close_all_bundled_positions
        """
        if self._lp is None:
            from .modules.liquidity import LiquidityModule
            self._lp = LiquidityModule(self)
        return self._lp

    async def close(self):
        """Close client connections and release resources"""
        await self._rpc.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"WhirlpoolClient(endpoint={self._rpc.endpoint}, pubkey={self.pubkey[:8]}...)"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.wallet import WalletModule
    from .modules.liquidity import LiquidityModule
