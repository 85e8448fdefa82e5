"""
Infrastructure layer for Whirlpool Tour

Provides:
- RpcClient: Async Solana JSON-RPC client with retry and endpoint fallback
- Signer / LocalSigner: Keypair-backed transaction signing
- TransactionAssembler: Build, sign, send and confirm transactions
"""

from .rpc import RpcClient, RpcClientConfig, decode_account_data
from .solana_signer import Signer, LocalSigner, create_signer, sign_message, message_bytes_for_signing
from .tx_builder import TransactionAssembler, TxBuilderConfig, BuiltTransaction

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "decode_account_data",
    "Signer",
    "LocalSigner",
    "create_signer",
    "sign_message",
    "message_bytes_for_signing",
    "TransactionAssembler",
    "TxBuilderConfig",
    "BuiltTransaction",
]
