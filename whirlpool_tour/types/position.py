"""
Whirlpool account type definitions

Token Naming Convention:
    - token_a / mint_a: The first token in the pool
    - token_b / mint_b: The second token in the pool
    - price: token A price in terms of token B
"""

from dataclasses import dataclass, field
from typing import List

# System program address marks an unused reward slot
_DEFAULT_PUBKEY = "11111111111111111111111111111111"


@dataclass(frozen=True)
class RewardInfo:
    """
    Whirlpool reward slot

    Attributes:
        mint: Reward token mint (default pubkey when the slot is unused)
        vault: Reward token vault
        authority: Reward authority
        emissions_per_second_x64: Emission rate in X64 fixed point
        growth_global_x64: Global reward growth in X64 fixed point
    """
    mint: str
    vault: str
    authority: str
    emissions_per_second_x64: int
    growth_global_x64: int

    @property
    def is_initialized(self) -> bool:
        return self.mint != _DEFAULT_PUBKEY


@dataclass
class Whirlpool:
    """
    Whirlpool (pool) account state
    """
    address: str
    whirlpools_config: str
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: str
    token_vault_a: str
    fee_growth_global_a: int
    token_mint_b: str
    token_vault_b: str
    fee_growth_global_b: int
    reward_last_updated_timestamp: int
    reward_infos: List[RewardInfo] = field(default_factory=list)

    @property
    def initialized_rewards(self) -> List[RewardInfo]:
        return [r for r in self.reward_infos if r.is_initialized]

    def __repr__(self) -> str:
        return f"Whirlpool({self.address[:8]}..., tick={self.tick_current_index})"


@dataclass(frozen=True)
class PositionRewardInfo:
    growth_inside_checkpoint: int
    amount_owed: int


@dataclass
class Position:
    """
    Whirlpool position account state

    Attributes:
        address: Position account address
        whirlpool: Pool the position belongs to
        position_mint: NFT mint (or bundle mint for bundled positions)
        liquidity: Position liquidity
        tick_lower_index: Lower tick bound
        tick_upper_index: Upper tick bound
        fee_owed_a: Uncollected fees in token A (as of last update)
        fee_owed_b: Uncollected fees in token B (as of last update)
    """
    address: str
    whirlpool: str
    position_mint: str
    liquidity: int
    tick_lower_index: int
    tick_upper_index: int
    fee_growth_checkpoint_a: int
    fee_owed_a: int
    fee_growth_checkpoint_b: int
    fee_owed_b: int
    reward_infos: List[PositionRewardInfo] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.liquidity == 0

    def is_in_range(self, tick_current_index: int) -> bool:
        return self.tick_lower_index <= tick_current_index < self.tick_upper_index

    def __repr__(self) -> str:
        return f"Position({self.address[:8]}..., liquidity={self.liquidity})"


@dataclass
class PositionBundle:
    """
    Position bundle account state

    A bundle multiplexes up to 256 positions under a single NFT mint.
    Bit i of the bitmap is set when bundle index i is occupied.
    """
    address: str
    position_bundle_mint: str
    position_bitmap: bytes

    @property
    def occupied_bundle_indexes(self) -> List[int]:
        from ..whirlpool.accounts import get_occupied_bundle_indexes
        return get_occupied_bundle_indexes(self.position_bitmap)

    def __repr__(self) -> str:
        return f"PositionBundle({self.address[:8]}..., occupied={len(self.occupied_bundle_indexes)})"
