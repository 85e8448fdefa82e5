"""
Functional modules for WhirlpoolClient

Provides high-level operations:
- WalletModule: Balances, SOL and SPL token transfers
- LiquidityModule: Whirlpool position operations
"""

from .wallet import WalletModule
from .liquidity import LiquidityModule

__all__ = [
    "WalletModule",
    "LiquidityModule",
]
