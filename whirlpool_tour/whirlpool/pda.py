"""
Whirlpool program-derived addresses
"""

from typing import Tuple, Union

from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    POSITION_SEED,
    BUNDLED_POSITION_SEED,
    POSITION_BUNDLE_SEED,
    TICK_ARRAY_SEED,
    POSITION_BUNDLE_SIZE,
)
from .math import get_tick_array_start_index
from ..errors import ConfigurationError

PubkeyLike = Union[Pubkey, str]

_PROGRAM = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)


def _to_pubkey(value: PubkeyLike) -> Pubkey:
    return value if isinstance(value, Pubkey) else Pubkey.from_string(value)


def get_position_pda(position_mint: PubkeyLike) -> Tuple[Pubkey, int]:
    """Position account for a position NFT mint"""
    return Pubkey.find_program_address(
        [POSITION_SEED, bytes(_to_pubkey(position_mint))],
        _PROGRAM,
    )


def get_bundled_position_pda(position_bundle_mint: PubkeyLike, bundle_index: int) -> Tuple[Pubkey, int]:
    """
    Position account for slot ``bundle_index`` of a position bundle

    The index is encoded as its decimal string, not as an integer.
    """
    if not 0 <= bundle_index < POSITION_BUNDLE_SIZE:
        raise ConfigurationError.invalid(
            "bundle_index", f"must be in [0, {POSITION_BUNDLE_SIZE}), got {bundle_index}"
        )
    return Pubkey.find_program_address(
        [BUNDLED_POSITION_SEED, bytes(_to_pubkey(position_bundle_mint)), str(bundle_index).encode("utf-8")],
        _PROGRAM,
    )


def get_position_bundle_pda(position_bundle_mint: PubkeyLike) -> Tuple[Pubkey, int]:
    """Position bundle account for a bundle NFT mint"""
    return Pubkey.find_program_address(
        [POSITION_BUNDLE_SEED, bytes(_to_pubkey(position_bundle_mint))],
        _PROGRAM,
    )


def get_tick_array_pda(whirlpool: PubkeyLike, start_tick_index: int) -> Tuple[Pubkey, int]:
    """Tick array account starting at start_tick_index (decimal string seed)"""
    return Pubkey.find_program_address(
        [TICK_ARRAY_SEED, bytes(_to_pubkey(whirlpool)), str(start_tick_index).encode("utf-8")],
        _PROGRAM,
    )


def get_tick_array_pda_for_tick(whirlpool: PubkeyLike, tick: int, tick_spacing: int) -> Pubkey:
    """Tick array account containing ``tick``"""
    start = get_tick_array_start_index(tick, tick_spacing)
    address, _ = get_tick_array_pda(whirlpool, start)
    return address
