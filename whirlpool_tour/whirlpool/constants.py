"""
Orca Whirlpool Constants
"""

import hashlib


def _anchor_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for instruction name"""
    return hashlib.sha256(f"global:{name}".encode("utf-8")).digest()[:8]


def _anchor_account_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for account name"""
    return hashlib.sha256(f"account:{name}".encode("utf-8")).digest()[:8]


# Whirlpool Program ID (same on mainnet and devnet)
WHIRLPOOL_PROGRAM_ID = "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"

# Token Programs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

# Associated Token Program
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

# System Program
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Whirlpool tick arrays hold 88 ticks each
TICK_ARRAY_SIZE = 88

# Tick bounds
MIN_TICK = -443636
MAX_TICK = 443636

# Sqrt price bounds (X64)
MIN_SQRT_PRICE_X64 = 4295048016
MAX_SQRT_PRICE_X64 = 79226673515401279992447579055

# Q64 constant for fixed-point math
Q64 = 2 ** 64

# Max integers
MAX_UINT64 = 2 ** 64 - 1
MAX_UINT128 = 2 ** 128 - 1

# Whirlpools carry three reward slots
NUM_REWARDS = 3

# Position bundles hold up to 256 positions
POSITION_BUNDLE_SIZE = 256

# Account sizes (including the 8 byte discriminator)
WHIRLPOOL_ACCOUNT_SIZE = 653
POSITION_ACCOUNT_SIZE = 216
POSITION_BUNDLE_ACCOUNT_SIZE = 136

# Basis points denominator for slippage
BPS_DENOMINATOR = 10_000

# PDA seeds
POSITION_SEED = b"position"
BUNDLED_POSITION_SEED = b"bundled_position"
POSITION_BUNDLE_SEED = b"position_bundle"
TICK_ARRAY_SEED = b"tick_array"

# Anchor discriminators for instructions
# Computed as sha256("global:<instruction_name>")[0:8]
DISCRIMINATORS = {
    "update_fees_and_rewards": _anchor_discriminator("update_fees_and_rewards"),
    "collect_fees": _anchor_discriminator("collect_fees"),
    "collect_reward": _anchor_discriminator("collect_reward"),
    "increase_liquidity": _anchor_discriminator("increase_liquidity"),
    "decrease_liquidity": _anchor_discriminator("decrease_liquidity"),
    "close_position": _anchor_discriminator("close_position"),
    "close_position_with_token_extensions": _anchor_discriminator("close_position_with_token_extensions"),
    "close_bundled_position": _anchor_discriminator("close_bundled_position"),
}

# Anchor discriminators for accounts
ACCOUNT_DISCRIMINATORS = {
    "Whirlpool": _anchor_account_discriminator("Whirlpool"),
    "Position": _anchor_account_discriminator("Position"),
    "PositionBundle": _anchor_account_discriminator("PositionBundle"),
}
