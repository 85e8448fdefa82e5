"""
Error definitions for Whirlpool Tour
"""

from .exceptions import (
    ErrorCode,
    WhirlpoolTourError,
    RpcError,
    AssemblyError,
    SubmissionError,
    ConfirmationTimeoutError,
    ConfirmationFailedError,
    AccountNotFound,
    SignerError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "WhirlpoolTourError",
    "RpcError",
    "AssemblyError",
    "SubmissionError",
    "ConfirmationTimeoutError",
    "ConfirmationFailedError",
    "AccountNotFound",
    "SignerError",
    "ConfigurationError",
]
