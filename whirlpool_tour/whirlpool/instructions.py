"""
Whirlpool Instruction Builders

Builds the position-management instructions of the Whirlpool program.
Account order matches the program's Anchor account structs.

Instruction data is the 8 byte Anchor discriminator followed by the
little-endian encoded arguments.
"""

import struct
from typing import Union

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    DISCRIMINATORS,
    MAX_UINT64,
    MAX_UINT128,
    NUM_REWARDS,
)
from ..errors import ConfigurationError

PubkeyLike = Union[Pubkey, str]

_PROGRAM = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)


def _pk(value: PubkeyLike) -> Pubkey:
    return value if isinstance(value, Pubkey) else Pubkey.from_string(value)


def _w(value: PubkeyLike) -> AccountMeta:
    return AccountMeta(_pk(value), is_signer=False, is_writable=True)


def _r(value: PubkeyLike) -> AccountMeta:
    return AccountMeta(_pk(value), is_signer=False, is_writable=False)


def _s(value: PubkeyLike, writable: bool = False) -> AccountMeta:
    return AccountMeta(_pk(value), is_signer=True, is_writable=writable)


def _u128(value: int) -> bytes:
    if not 0 <= value <= MAX_UINT128:
        raise ConfigurationError.invalid("liquidity", f"out of u128 range: {value}")
    return value.to_bytes(16, "little")


def _u64(name: str, value: int) -> bytes:
    if not 0 <= value <= MAX_UINT64:
        raise ConfigurationError.invalid(name, f"out of u64 range: {value}")
    return struct.pack("<Q", value)


def build_update_fees_and_rewards_instruction(
    whirlpool: PubkeyLike,
    position: PubkeyLike,
    tick_array_lower: PubkeyLike,
    tick_array_upper: PubkeyLike,
) -> Instruction:
    """
    Build update_fees_and_rewards instruction

    Refreshes the position's owed fees and rewards. Fails on-chain for a
    position with zero liquidity.
    """
    accounts = [
        _w(whirlpool),
        _w(position),
        _r(tick_array_lower),
        _r(tick_array_upper),
    ]
    return Instruction(_PROGRAM, DISCRIMINATORS["update_fees_and_rewards"], accounts)


def build_collect_fees_instruction(
    whirlpool: PubkeyLike,
    position_authority: PubkeyLike,
    position: PubkeyLike,
    position_token_account: PubkeyLike,
    token_owner_account_a: PubkeyLike,
    token_vault_a: PubkeyLike,
    token_owner_account_b: PubkeyLike,
    token_vault_b: PubkeyLike,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Build collect_fees instruction"""
    accounts = [
        _r(whirlpool),
        _s(position_authority),
        _w(position),
        _r(position_token_account),
        _w(token_owner_account_a),
        _w(token_vault_a),
        _w(token_owner_account_b),
        _w(token_vault_b),
        _r(token_program),
    ]
    return Instruction(_PROGRAM, DISCRIMINATORS["collect_fees"], accounts)


def build_collect_reward_instruction(
    whirlpool: PubkeyLike,
    position_authority: PubkeyLike,
    position: PubkeyLike,
    position_token_account: PubkeyLike,
    reward_owner_account: PubkeyLike,
    reward_vault: PubkeyLike,
    reward_index: int,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build collect_reward instruction

    Args:
        reward_index: Reward slot (0..2)
    """
    if not 0 <= reward_index < NUM_REWARDS:
        raise ConfigurationError.invalid("reward_index", f"must be in [0, {NUM_REWARDS}), got {reward_index}")

    accounts = [
        _r(whirlpool),
        _s(position_authority),
        _w(position),
        _r(position_token_account),
        _w(reward_owner_account),
        _w(reward_vault),
        _r(token_program),
    ]
    data = DISCRIMINATORS["collect_reward"] + struct.pack("<B", reward_index)
    return Instruction(_PROGRAM, data, accounts)


def _modify_liquidity_accounts(
    whirlpool: PubkeyLike,
    position_authority: PubkeyLike,
    position: PubkeyLike,
    position_token_account: PubkeyLike,
    token_owner_account_a: PubkeyLike,
    token_owner_account_b: PubkeyLike,
    token_vault_a: PubkeyLike,
    token_vault_b: PubkeyLike,
    tick_array_lower: PubkeyLike,
    tick_array_upper: PubkeyLike,
    token_program: PubkeyLike,
):
    return [
        _w(whirlpool),
        _r(token_program),
        _s(position_authority),
        _w(position),
        _r(position_token_account),
        _w(token_owner_account_a),
        _w(token_owner_account_b),
        _w(token_vault_a),
        _w(token_vault_b),
        _w(tick_array_lower),
        _w(tick_array_upper),
    ]


def build_increase_liquidity_instruction(
    whirlpool: PubkeyLike,
    position_authority: PubkeyLike,
    position: PubkeyLike,
    position_token_account: PubkeyLike,
    token_owner_account_a: PubkeyLike,
    token_owner_account_b: PubkeyLike,
    token_vault_a: PubkeyLike,
    token_vault_b: PubkeyLike,
    tick_array_lower: PubkeyLike,
    tick_array_upper: PubkeyLike,
    liquidity_amount: int,
    token_max_a: int,
    token_max_b: int,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build increase_liquidity instruction

    Data: discriminator, u128 liquidity_amount, u64 token_max_a, u64 token_max_b
    """
    accounts = _modify_liquidity_accounts(
        whirlpool, position_authority, position, position_token_account,
        token_owner_account_a, token_owner_account_b, token_vault_a, token_vault_b,
        tick_array_lower, tick_array_upper, token_program,
    )
    data = (
        DISCRIMINATORS["increase_liquidity"]
        + _u128(liquidity_amount)
        + _u64("token_max_a", token_max_a)
        + _u64("token_max_b", token_max_b)
    )
    return Instruction(_PROGRAM, data, accounts)


def build_decrease_liquidity_instruction(
    whirlpool: PubkeyLike,
    position_authority: PubkeyLike,
    position: PubkeyLike,
    position_token_account: PubkeyLike,
    token_owner_account_a: PubkeyLike,
    token_owner_account_b: PubkeyLike,
    token_vault_a: PubkeyLike,
    token_vault_b: PubkeyLike,
    tick_array_lower: PubkeyLike,
    tick_array_upper: PubkeyLike,
    liquidity_amount: int,
    token_min_a: int,
    token_min_b: int,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build decrease_liquidity instruction

    Data: discriminator, u128 liquidity_amount, u64 token_min_a, u64 token_min_b
    """
    accounts = _modify_liquidity_accounts(
        whirlpool, position_authority, position, position_token_account,
        token_owner_account_a, token_owner_account_b, token_vault_a, token_vault_b,
        tick_array_lower, tick_array_upper, token_program,
    )
    data = (
        DISCRIMINATORS["decrease_liquidity"]
        + _u128(liquidity_amount)
        + _u64("token_min_a", token_min_a)
        + _u64("token_min_b", token_min_b)
    )
    return Instruction(_PROGRAM, data, accounts)


def build_close_position_instruction(
    position_authority: PubkeyLike,
    receiver: PubkeyLike,
    position: PubkeyLike,
    position_mint: PubkeyLike,
    position_token_account: PubkeyLike,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build close_position instruction

    Position NFTs minted under Token-2022 are closed with
    close_position_with_token_extensions instead.
    """
    if str(token_program) == TOKEN_2022_PROGRAM_ID:
        return build_close_position_with_token_extensions_instruction(
            position_authority, receiver, position, position_mint, position_token_account,
        )

    accounts = [
        _s(position_authority),
        _w(receiver),
        _w(position),
        _w(position_mint),
        _w(position_token_account),
        _r(token_program),
    ]
    return Instruction(_PROGRAM, DISCRIMINATORS["close_position"], accounts)


def build_close_position_with_token_extensions_instruction(
    position_authority: PubkeyLike,
    receiver: PubkeyLike,
    position: PubkeyLike,
    position_mint: PubkeyLike,
    position_token_account: PubkeyLike,
) -> Instruction:
    """Build close_position_with_token_extensions instruction (Token-2022 position NFT)"""
    accounts = [
        _s(position_authority),
        _w(receiver),
        _w(position),
        _w(position_mint),
        _w(position_token_account),
        _r(TOKEN_2022_PROGRAM_ID),
    ]
    return Instruction(_PROGRAM, DISCRIMINATORS["close_position_with_token_extensions"], accounts)


def build_close_bundled_position_instruction(
    bundled_position: PubkeyLike,
    position_bundle: PubkeyLike,
    position_bundle_token_account: PubkeyLike,
    position_bundle_authority: PubkeyLike,
    receiver: PubkeyLike,
    bundle_index: int,
) -> Instruction:
    """
    Build close_bundled_position instruction

    Data: discriminator, u16 bundle_index
    """
    accounts = [
        _w(bundled_position),
        _w(position_bundle),
        _r(position_bundle_token_account),
        _s(position_bundle_authority),
        _w(receiver),
    ]
    data = DISCRIMINATORS["close_bundled_position"] + struct.pack("<H", bundle_index)
    return Instruction(_PROGRAM, data, accounts)
