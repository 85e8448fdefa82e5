"""
Whirlpool Account Parsers

Parses Whirlpool, Position and PositionBundle account data from chain
and fetches them over RPC.

Layouts follow the Anchor account structs; every account starts with an
8 byte discriminator.
"""

import logging
import struct
from typing import List, Optional, Sequence

import base58

from ..types import RewardInfo, Whirlpool, PositionRewardInfo, Position, PositionBundle
from ..infra import RpcClient, decode_account_data
from ..errors import AccountNotFound
from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    ACCOUNT_DISCRIMINATORS,
    NUM_REWARDS,
    POSITION_BUNDLE_SIZE,
    WHIRLPOOL_ACCOUNT_SIZE,
    POSITION_ACCOUNT_SIZE,
    POSITION_BUNDLE_ACCOUNT_SIZE,
)

logger = logging.getLogger(__name__)


def _pubkey_from_bytes(data: bytes) -> str:
    """Convert 32 bytes to base58 pubkey string"""
    return base58.b58encode(data).decode("ascii")


def _u128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")


def _check(kind: str, address: str, data: Optional[bytes], size: int):
    if data is None:
        raise AccountNotFound.not_found(kind, address)
    if len(data) < size:
        raise AccountNotFound.invalid_data(kind, address, f"expected {size} bytes, got {len(data)}")
    if data[:8] != ACCOUNT_DISCRIMINATORS[kind]:
        raise AccountNotFound.invalid_data(kind, address, "discriminator mismatch")


def parse_whirlpool(address: str, data: bytes) -> Whirlpool:
    """
    Parse Whirlpool account

    Layout:
    - blob(8): discriminator
    - publicKey(32): whirlpoolsConfig
    - u8: whirlpoolBump
    - u16: tickSpacing
    - blob(2): tickSpacingSeed
    - u16: feeRate
    - u16: protocolFeeRate
    - u128: liquidity
    - u128: sqrtPrice
    - i32: tickCurrentIndex
    - u64: protocolFeeOwedA
    - u64: protocolFeeOwedB
    - publicKey(32): tokenMintA
    - publicKey(32): tokenVaultA
    - u128: feeGrowthGlobalA
    - publicKey(32): tokenMintB
    - publicKey(32): tokenVaultB
    - u128: feeGrowthGlobalB
    - u64: rewardLastUpdatedTimestamp
    - RewardInfo[3]: mint, vault, authority, emissionsPerSecondX64, growthGlobalX64

    Raises:
        AccountNotFound: If data is missing or not a Whirlpool
    """
    _check("Whirlpool", address, data, WHIRLPOOL_ACCOUNT_SIZE)

    offset = 8

    whirlpools_config = _pubkey_from_bytes(data[offset:offset + 32])
    offset += 32

    # bump (1 byte)
    offset += 1

    tick_spacing = struct.unpack_from("<H", data, offset)[0]
    offset += 2

    # tickSpacingSeed (2 bytes)
    offset += 2

    fee_rate, protocol_fee_rate = struct.unpack_from("<HH", data, offset)
    offset += 4

    liquidity = _u128(data, offset)
    offset += 16

    sqrt_price = _u128(data, offset)
    offset += 16

    tick_current_index = struct.unpack_from("<i", data, offset)[0]
    offset += 4

    # protocolFeeOwedA / protocolFeeOwedB
    offset += 16

    token_mint_a = _pubkey_from_bytes(data[offset:offset + 32])
    offset += 32
    token_vault_a = _pubkey_from_bytes(data[offset:offset + 32])
    offset += 32
    fee_growth_global_a = _u128(data, offset)
    offset += 16

    token_mint_b = _pubkey_from_bytes(data[offset:offset + 32])
    offset += 32
    token_vault_b = _pubkey_from_bytes(data[offset:offset + 32])
    offset += 32
    fee_growth_global_b = _u128(data, offset)
    offset += 16

    reward_last_updated_timestamp = struct.unpack_from("<Q", data, offset)[0]
    offset += 8

    reward_infos = []
    for _ in range(NUM_REWARDS):
        mint = _pubkey_from_bytes(data[offset:offset + 32])
        vault = _pubkey_from_bytes(data[offset + 32:offset + 64])
        authority = _pubkey_from_bytes(data[offset + 64:offset + 96])
        emissions = _u128(data, offset + 96)
        growth = _u128(data, offset + 112)
        reward_infos.append(RewardInfo(mint, vault, authority, emissions, growth))
        offset += 128

    return Whirlpool(
        address=address,
        whirlpools_config=whirlpools_config,
        tick_spacing=tick_spacing,
        fee_rate=fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        liquidity=liquidity,
        sqrt_price=sqrt_price,
        tick_current_index=tick_current_index,
        token_mint_a=token_mint_a,
        token_vault_a=token_vault_a,
        fee_growth_global_a=fee_growth_global_a,
        token_mint_b=token_mint_b,
        token_vault_b=token_vault_b,
        fee_growth_global_b=fee_growth_global_b,
        reward_last_updated_timestamp=reward_last_updated_timestamp,
        reward_infos=reward_infos,
    )


def parse_position(address: str, data: bytes) -> Position:
    """
    Parse Position account

    Layout:
    - blob(8): discriminator
    - publicKey(32): whirlpool
    - publicKey(32): positionMint
    - u128: liquidity
    - i32: tickLowerIndex
    - i32: tickUpperIndex
    - u128: feeGrowthCheckpointA
    - u64: feeOwedA
    - u128: feeGrowthCheckpointB
    - u64: feeOwedB
    - PositionRewardInfo[3]: growthInsideCheckpoint (u128), amountOwed (u64)

    Raises:
        AccountNotFound: If data is missing or not a Position
    """
    _check("Position", address, data, POSITION_ACCOUNT_SIZE)

    whirlpool = _pubkey_from_bytes(data[8:40])
    position_mint = _pubkey_from_bytes(data[40:72])
    liquidity = _u128(data, 72)
    tick_lower, tick_upper = struct.unpack_from("<ii", data, 88)
    fee_growth_checkpoint_a = _u128(data, 96)
    fee_owed_a = struct.unpack_from("<Q", data, 112)[0]
    fee_growth_checkpoint_b = _u128(data, 120)
    fee_owed_b = struct.unpack_from("<Q", data, 136)[0]

    reward_infos = []
    offset = 144
    for _ in range(NUM_REWARDS):
        growth = _u128(data, offset)
        owed = struct.unpack_from("<Q", data, offset + 16)[0]
        reward_infos.append(PositionRewardInfo(growth, owed))
        offset += 24

    return Position(
        address=address,
        whirlpool=whirlpool,
        position_mint=position_mint,
        liquidity=liquidity,
        tick_lower_index=tick_lower,
        tick_upper_index=tick_upper,
        fee_growth_checkpoint_a=fee_growth_checkpoint_a,
        fee_owed_a=fee_owed_a,
        fee_growth_checkpoint_b=fee_growth_checkpoint_b,
        fee_owed_b=fee_owed_b,
        reward_infos=reward_infos,
    )


def parse_position_bundle(address: str, data: bytes) -> PositionBundle:
    """
    Parse PositionBundle account

    Layout:
    - blob(8): discriminator
    - publicKey(32): positionBundleMint
    - blob(32): positionBitmap

    Raises:
        AccountNotFound: If data is missing or not a PositionBundle
    """
    _check("PositionBundle", address, data, POSITION_BUNDLE_ACCOUNT_SIZE)

    return PositionBundle(
        address=address,
        position_bundle_mint=_pubkey_from_bytes(data[8:40]),
        position_bitmap=bytes(data[40:72]),
    )


def get_occupied_bundle_indexes(bitmap: bytes) -> List[int]:
    """
    Occupied slots of a position bundle bitmap, ascending

    Slot i is occupied when bit (i % 8) of byte (i // 8) is set.
    """
    indexes = []
    for i in range(min(POSITION_BUNDLE_SIZE, len(bitmap) * 8)):
        if bitmap[i // 8] & (1 << (i % 8)):
            indexes.append(i)
    return indexes


def is_reward_initialized(reward: RewardInfo) -> bool:
    return reward.is_initialized


async def fetch_whirlpool(rpc: RpcClient, address: str) -> Whirlpool:
    """Fetch and parse a Whirlpool account"""
    data = await rpc.get_account_data(address)
    return parse_whirlpool(address, data)


async def fetch_position(rpc: RpcClient, address: str) -> Position:
    """Fetch and parse a Position account"""
    data = await rpc.get_account_data(address)
    return parse_position(address, data)


async def fetch_position_bundle(rpc: RpcClient, address: str) -> PositionBundle:
    """Fetch and parse a PositionBundle account"""
    data = await rpc.get_account_data(address)
    return parse_position_bundle(address, data)


async def fetch_positions(rpc: RpcClient, addresses: Sequence[str]) -> List[Optional[Position]]:
    """
    Fetch several Position accounts with getMultipleAccounts

    Returns:
        Same order as addresses; None where the account is missing or is
        not a Whirlpool position
    """
    infos = await rpc.get_multiple_accounts(list(addresses))
    positions: List[Optional[Position]] = []
    for address, info in zip(addresses, infos):
        if not info or info.get("owner") != WHIRLPOOL_PROGRAM_ID:
            positions.append(None)
            continue
        try:
            positions.append(parse_position(address, decode_account_data(info)))
        except AccountNotFound as e:
            logger.debug(f"Skipping {address}: {e}")
            positions.append(None)
    return positions
