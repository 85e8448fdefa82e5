"""
Result type definitions for transactions
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class TxResult:
    """
    Transaction execution result

    Attributes:
        status: Transaction status
        signature: Transaction signature (base58)
        error: Error message if failed
        slot: Slot number when confirmed
        confirmation_status: Commitment reached (processed/confirmed/finalized)
    """
    status: TxStatus
    signature: Optional[str] = None
    error: Optional[str] = None
    slot: Optional[int] = None
    confirmation_status: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @classmethod
    def success(cls, signature: str, **kwargs) -> "TxResult":
        """Create successful result"""
        return cls(status=TxStatus.SUCCESS, signature=signature, **kwargs)

    @classmethod
    def failed(cls, signature: str, error: str, slot: Optional[int] = None) -> "TxResult":
        """Create result for a transaction the ledger executed and rejected"""
        return cls(status=TxStatus.FAILED, signature=signature, error=error, slot=slot)

    @classmethod
    def timeout(cls, signature: str, error: str) -> "TxResult":
        """Create result for a transaction that expired before confirming"""
        return cls(status=TxStatus.TIMEOUT, signature=signature, error=error)

    def __str__(self) -> str:
        if self.is_success:
            sig_display = f"{self.signature[:16]}..." if self.signature else "no signature"
            return f"TxResult(SUCCESS, {sig_display})"
        return f"TxResult({self.status.value}, error={self.error})"
