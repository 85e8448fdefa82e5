"""
Common type definitions
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class Token:
    """
    Token information

    Attributes:
        mint: Token mint address (base58)
        symbol: Token symbol (e.g., "devUSDC")
        decimals: Number of decimal places
        name: Full token name (optional)
    """
    mint: str
    symbol: str
    decimals: int
    name: str = ""

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"Token({self.symbol}, {self.mint[:8]}...)"

    def ui_amount(self, raw_amount: int) -> Decimal:
        """
        Convert raw amount to UI amount with full precision

        Args:
            raw_amount: Raw token amount (smallest units)

        Returns:
            UI amount as Decimal for precision
        """
        return Decimal(raw_amount) / Decimal(10 ** self.decimals)

    def raw_amount(self, ui_amount: Union[Decimal, float, int, str]) -> int:
        """
        Convert UI amount to raw amount

        Args:
            ui_amount: UI amount (can be Decimal, float, int, or str)

        Returns:
            Raw token amount (smallest units)
        """
        if not isinstance(ui_amount, Decimal):
            ui_amount = Decimal(str(ui_amount))
        return int(ui_amount * Decimal(10 ** self.decimals))

    def format(self, raw_amount: int) -> str:
        """UI amount rendered with all decimal places"""
        return f"{self.ui_amount(raw_amount):.{self.decimals}f}"


LAMPORTS_PER_SOL = 1_000_000_000

# Devnet test tokens used by the tutorials
# https://everlastingsong.github.io/nebula/
DEV_USDC = Token(
    mint="BRjpCHtyQLNCo8gqRUr8jtdAj5AjPYQaoqbvcZiHok1k",
    symbol="devUSDC",
    decimals=6,
    name="Devnet USD Coin",
)

DEV_SAMO = Token(
    mint="Jd4M8bfJG3sAkd82RsGWyEXoaBXQP7njFzBwEaCTuDa",
    symbol="devSAMO",
    decimals=9,
    name="Devnet Samoyed Coin",
)

DEV_TOKENS = {
    DEV_USDC.mint: DEV_USDC,
    DEV_SAMO.mint: DEV_SAMO,
}
