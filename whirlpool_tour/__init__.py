"""
Whirlpool Tour - Solana and Orca Whirlpool operations over JSON-RPC

Provides:
- SOL and SPL token transfers
- Whirlpool position discovery
- Increasing / decreasing liquidity, single and batched
- Closing positions and position bundle slots (fees and rewards collected first)

All network operations are asyncio coroutines.
"""

from .client import WhirlpoolClient
from .types import (
    Token,
    Whirlpool,
    Position,
    PositionBundle,
    MaybeInstruction,
    TxResult,
    TxStatus,
    DEV_USDC,
    DEV_SAMO,
)
from .errors import (
    WhirlpoolTourError,
    RpcError,
    AssemblyError,
    SubmissionError,
    ConfirmationTimeoutError,
    ConfirmationFailedError,
    AccountNotFound,
    SignerError,
    ConfigurationError,
    ErrorCode,
)
from .infra import TransactionAssembler

__version__ = "0.1.0"

__all__ = [
    # Client
    "WhirlpoolClient",
    "TransactionAssembler",
    # Types
    "Token",
    "Whirlpool",
    "Position",
    "PositionBundle",
    "MaybeInstruction",
    "TxResult",
    "TxStatus",
    "DEV_USDC",
    "DEV_SAMO",
    # Errors
    "WhirlpoolTourError",
    "RpcError",
    "AssemblyError",
    "SubmissionError",
    "ConfirmationTimeoutError",
    "ConfirmationFailedError",
    "AccountNotFound",
    "SignerError",
    "ConfigurationError",
    "ErrorCode",
]
