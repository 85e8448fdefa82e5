"""
Exception definitions for Whirlpool Tour
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes

    1xxx - RPC errors
    2xxx - Transaction errors
    5xxx - Account errors
    6xxx - Signer errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Transaction errors
    TX_ASSEMBLY_FAILED = "2000"
    TX_SIMULATION_FAILED = "2001"
    TX_SEND_FAILED = "2002"
    TX_CONFIRMATION_TIMEOUT = "2003"
    TX_CONFIRMATION_FAILED = "2004"

    # Account errors
    ACCOUNT_NOT_FOUND = "5001"
    ACCOUNT_INVALID_DATA = "5002"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"
    SIGNER_MISSING = "6003"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class WhirlpoolTourError(Exception):
    """
    Base exception for all errors raised by this package

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class RpcError(WhirlpoolTourError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node answers with a JSON-RPC error object
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @property
    def rpc_error_code(self) -> Optional[int]:
        """JSON-RPC error code reported by the node, if any"""
        return self.details.get("rpc_error_code")

    @property
    def rpc_error_data(self) -> Optional[dict]:
        """JSON-RPC error data reported by the node, if any"""
        return self.details.get("rpc_error_data")

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class AssemblyError(WhirlpoolTourError):
    """
    Malformed instruction sequence

    Raised when:
    - build() is called with no instructions
    - A null instruction is added
    - The message cannot be compiled
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.TX_ASSEMBLY_FAILED,
            recoverable=False,
            original_error=original_error,
        )

    @classmethod
    def empty(cls) -> "AssemblyError":
        return cls("Cannot build a transaction with zero instructions")

    @classmethod
    def null_instruction(cls) -> "AssemblyError":
        return cls("Instruction must not be None")


class SubmissionError(WhirlpoolTourError):
    """
    The transport or the program rejected the transaction before confirmation

    Raised when:
    - Preflight simulation fails
    - Fee payer has insufficient funds
    - An instruction is invalid
    - The node could not be reached while sending
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SEND_FAILED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def from_rpc_error(cls, error: RpcError, signature: Optional[str] = None) -> "SubmissionError":
        data = error.rpc_error_data or {}
        logs = data.get("logs") if isinstance(data, dict) else None
        code = ErrorCode.TX_SIMULATION_FAILED if logs else ErrorCode.TX_SEND_FAILED
        return cls(
            f"Transaction rejected: {error.message}",
            code=code,
            signature=signature,
            logs=logs,
            original_error=error,
        )


class ConfirmationTimeoutError(WhirlpoolTourError):
    """
    The block height passed the transaction's last valid block height
    before the signature was confirmed
    """

    def __init__(self, signature: str, last_valid_block_height: int, block_height: int):
        super().__init__(
            f"Transaction {signature} expired: block height {block_height} "
            f"exceeded last valid block height {last_valid_block_height}",
            ErrorCode.TX_CONFIRMATION_TIMEOUT,
            recoverable=True,
            details={
                "signature": signature,
                "last_valid_block_height": last_valid_block_height,
                "block_height": block_height,
            },
        )
        self.signature = signature
        self.last_valid_block_height = last_valid_block_height
        self.block_height = block_height

    @property
    def result(self) -> "TxResult":
        """Outcome as a TxResult with TIMEOUT status"""
        from ..types.result import TxResult
        return TxResult.timeout(self.signature, self.message)


class ConfirmationFailedError(WhirlpoolTourError):
    """
    The ledger executed the transaction and it failed
    """

    def __init__(self, signature: str, error: object, slot: Optional[int] = None):
        super().__init__(
            f"Transaction {signature} failed on-chain: {error}",
            ErrorCode.TX_CONFIRMATION_FAILED,
            recoverable=False,
            details={"signature": signature, "error": error, "slot": slot},
        )
        self.signature = signature
        self.error = error
        self.slot = slot

    @property
    def result(self) -> "TxResult":
        """Outcome as a TxResult with FAILED status"""
        from ..types.result import TxResult
        return TxResult.failed(self.signature, str(self.error), slot=self.slot)


class AccountNotFound(WhirlpoolTourError):
    """
    Account missing or not parseable as the expected type

    Raised when:
    - Position / whirlpool / position bundle address doesn't exist
    - Account data has the wrong discriminator or size
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        code: ErrorCode = ErrorCode.ACCOUNT_NOT_FOUND,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def not_found(cls, kind: str, address: str) -> "AccountNotFound":
        return cls(f"{kind} not found: {address}", address=address)

    @classmethod
    def invalid_data(cls, kind: str, address: str, reason: str) -> "AccountNotFound":
        return cls(
            f"{kind} account {address} has invalid data: {reason}",
            address=address,
            code=ErrorCode.ACCOUNT_INVALID_DATA,
        )


class SignerError(WhirlpoolTourError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    - A required signer was not supplied
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Set ANCHOR_WALLET or pass a keypair.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)

    @classmethod
    def missing(cls, pubkeys: list) -> "SignerError":
        return cls(
            f"Missing signatures for required signers: {', '.join(pubkeys)}",
            ErrorCode.SIGNER_MISSING,
        )


class ConfigurationError(WhirlpoolTourError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
