"""
Type definitions for Whirlpool Tour
"""

from .common import Token, LAMPORTS_PER_SOL, DEV_USDC, DEV_SAMO, DEV_TOKENS
from .instruction import MaybeInstruction
from .position import RewardInfo, Whirlpool, PositionRewardInfo, Position, PositionBundle
from .result import TxResult, TxStatus

__all__ = [
    "Token",
    "LAMPORTS_PER_SOL",
    "DEV_USDC",
    "DEV_SAMO",
    "DEV_TOKENS",
    "MaybeInstruction",
    "RewardInfo",
    "Whirlpool",
    "PositionRewardInfo",
    "Position",
    "PositionBundle",
    "TxResult",
    "TxStatus",
]
