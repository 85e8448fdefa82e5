"""
Transaction signing abstractions

Provides a signing interface over a local Solana keypair and helpers to
place signatures into the required-signer slots of a compiled message.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import SignerError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - pubkey: The signer's public key (base58)
    - sign(): Sign raw message bytes
    """

    @property
    def pubkey(self) -> str:
        """Signer's public key (base58)"""
        ...

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message

        Args:
            message: Message bytes to sign

        Returns:
            64-byte signature
        """
        ...


class LocalSigner:
    """
    Local signer using Solana keypair

    Usage:
        signer = LocalSigner.from_file("~/.config/solana/id.json")
        sig = signer.sign(message_bytes)
    """

    def __init__(self, keypair: Keypair):
        """
        Initialize with keypair

        Args:
            keypair: solders.keypair.Keypair instance
        """
        self._keypair = keypair

    @property
    def pubkey(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        return cls(Keypair.from_bytes(secret_key))

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Create signer from base58 secret key"""
        return cls.from_bytes(base58.b58decode(secret_key))

    @classmethod
    def from_file(cls, path: str) -> "LocalSigner":
        """
        Create signer from keypair file

        Supports:
        - JSON array format (Solana CLI): [1,2,3,...]
        - Raw bytes file (64 bytes)
        """
        path = os.path.expanduser(path)
        if not os.path.isfile(path):
            raise ConfigurationError.invalid("keypair_file", f"File not found: {path}")

        with open(path, "rb") as f:
            content = f.read()

        try:
            data = json.loads(content.decode("utf-8"))
            if isinstance(data, list):
                return cls.from_bytes(bytes(data))
        except (json.JSONDecodeError, UnicodeDecodeError):
            pass

        if len(content) == 64:
            return cls.from_bytes(content)

        raise ConfigurationError.invalid("keypair_file", f"Cannot parse keypair file: {path}")


def message_bytes_for_signing(message: MessageV0) -> bytes:
    """
    Bytes a signer must sign for a v0 message

    The serialized transaction carries a 0x80 version prefix before the
    message body and the signature covers it.
    """
    return bytes([0x80]) + bytes(message)


def sign_message(message: MessageV0, signers: Sequence[Signer]) -> VersionedTransaction:
    """
    Sign a compiled message with every signer it requires

    Each signer is matched to its slot among the first
    ``num_required_signatures`` account keys. Signers that the message does
    not require are ignored.

    Raises:
        SignerError: If any required slot is left unsigned
    """
    account_keys = list(message.account_keys)
    num_required = message.header.num_required_signatures
    required = [str(k) for k in account_keys[:num_required]]

    by_pubkey: Dict[str, Signer] = {s.pubkey: s for s in signers}
    payload = message_bytes_for_signing(message)

    signatures: List[Signature] = []
    missing: List[str] = []
    for pubkey in required:
        signer = by_pubkey.get(pubkey)
        if signer is None:
            missing.append(pubkey)
            signatures.append(Signature.default())
            continue
        try:
            signatures.append(Signature.from_bytes(signer.sign(payload)))
        except ValueError as e:
            raise SignerError.failed(str(e)) from e

    if missing:
        logger.error(f"Missing signers: {missing}")
        raise SignerError.missing(missing)

    for extra in set(by_pubkey) - set(required):
        logger.debug(f"Signer {extra} is not required by the message, ignoring")

    return VersionedTransaction.populate(message, signatures)


def create_signer(
    keypair: Optional[Keypair] = None,
    keypair_path: Optional[str] = None,
) -> Signer:
    """
    Create signer based on configuration

    Priority:
    1. keypair: Use LocalSigner with provided keypair
    2. keypair_path: Load keypair from file
    3. Environment: ANCHOR_WALLET

    Raises:
        SignerError: If no valid signer configuration found
    """
    if keypair is not None:
        return LocalSigner(keypair)

    if keypair_path:
        return LocalSigner.from_file(keypair_path)

    if global_config.wallet.keypair_path:
        return LocalSigner.from_file(global_config.wallet.keypair_path)

    raise SignerError.not_configured()
