"""
Transaction assembler and submitter

Provides utilities for:
- Collecting an ordered instruction sequence (with optional steps)
- Compiling a v0 message against a fresh blockhash
- Signing with every required signer
- Sending once and polling for confirmation until the blockhash expires
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from .solana_signer import LocalSigner, Signer, sign_message
from ..types import MaybeInstruction, TxResult
from ..errors import (
    AssemblyError,
    ConfirmationFailedError,
    ConfirmationTimeoutError,
    ErrorCode,
    RpcError,
    SubmissionError,
)
from ..config import COMMITMENT_LEVELS, config as global_config

logger = logging.getLogger(__name__)

InstructionLike = Union[Instruction, MaybeInstruction]


@dataclass
class TxBuilderConfig:
    """
    Transaction assembler runtime configuration

    Allows per-assembler overrides while pulling defaults from the global
    config (whirlpool_tour.config.TxConfig / RpcConfig).

    Usage:
        # Use all defaults from environment
        assembler = TransactionAssembler(rpc, signer)

        # Override specific settings
        config = TxBuilderConfig(skip_preflight=True, poll_interval=0.5)
        assembler = TransactionAssembler(rpc, signer, config=config)
    """
    skip_preflight: bool = None
    preflight_commitment: str = None
    commitment: str = None
    poll_interval: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment
        if self.poll_interval is None:
            self.poll_interval = global_config.tx.poll_interval


@dataclass
class BuiltTransaction:
    """
    Compiled, unsigned transaction

    Attributes:
        message: Compiled v0 message
        blockhash: Recent blockhash the message was compiled against
        last_valid_block_height: Block height after which the blockhash expires
        instructions: Instructions in the order they were compiled
    """
    message: MessageV0
    blockhash: str
    last_valid_block_height: int
    instructions: List[Instruction] = field(default_factory=list)

    @property
    def required_signers(self) -> List[str]:
        num = self.message.header.num_required_signatures
        return [str(k) for k in list(self.message.account_keys)[:num]]


def _commitment_rank(level: Optional[str]) -> int:
    if level not in COMMITMENT_LEVELS:
        return -1
    return COMMITMENT_LEVELS.index(level)


class TransactionAssembler:
    """
    Transaction assembler and submitter

    Handles:
    - Ordered instruction collection, with skipped optional steps filtered out
    - Building v0 messages with a fresh blockhash
    - Signing with the wallet plus any additional signers
    - Single submission and confirmation polling bounded by block height

    Usage:
        assembler = TransactionAssembler(rpc, signer)
        assembler.add(ix1).add(maybe_ix2)

        # All in one
        result = await assembler.build_and_execute()

        # Or step by step
        built = await assembler.build()
        signature = await assembler.sign_and_submit()
        result = await assembler.await_confirmation(signature)
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Signer,
        config: Optional[TxBuilderConfig] = None,
    ):
        """
        Initialize transaction assembler

        Args:
            rpc: RPC client
            signer: Wallet signer, also the default fee payer
            config: Transaction configuration
        """
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxBuilderConfig()
        self._entries: List[MaybeInstruction] = []
        self._built: Optional[BuiltTransaction] = None

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        return self._signer.pubkey

    @property
    def built(self) -> Optional[BuiltTransaction]:
        return self._built

    def add(self, instruction: InstructionLike) -> "TransactionAssembler":
        """
        Append an instruction to the sequence

        Args:
            instruction: Instruction, or MaybeInstruction for an optional step

        Returns:
            self, for chaining

        Raises:
            AssemblyError: If instruction is None or of an unsupported type
        """
        if instruction is None:
            raise AssemblyError.null_instruction()
        if isinstance(instruction, MaybeInstruction):
            entry = instruction
        elif isinstance(instruction, Instruction):
            entry = MaybeInstruction.of(instruction)
        else:
            raise AssemblyError(f"Unsupported instruction type: {type(instruction).__name__}")

        if entry.is_skip:
            logger.debug(f"Skipping optional step: {entry.reason}")
        self._entries.append(entry)
        self._built = None
        return self

    def add_all(self, instructions: Iterable[InstructionLike]) -> "TransactionAssembler":
        """Append several instructions in order"""
        for ix in instructions:
            self.add(ix)
        return self

    @property
    def instructions(self) -> List[Instruction]:
        """Non-skipped instructions in insertion order"""
        return [e.instruction for e in self._entries if not e.is_skip]

    async def build(self, payer: Optional[str] = None) -> BuiltTransaction:
        """
        Compile the sequence into an unsigned v0 message

        Args:
            payer: Fee payer pubkey (defaults to signer)

        Returns:
            BuiltTransaction holding the message and its expiry height

        Raises:
            AssemblyError: If no instructions remain after removing skips
        """
        instructions = self.instructions
        if not instructions:
            raise AssemblyError.empty()

        blockhash_info = await self._rpc.get_latest_blockhash(commitment=self._config.commitment)
        blockhash = blockhash_info.get("blockhash")
        last_valid_block_height = blockhash_info.get("lastValidBlockHeight")
        if not blockhash or last_valid_block_height is None:
            raise RpcError(
                "Failed to get recent blockhash",
                ErrorCode.RPC_INVALID_RESPONSE,
                endpoint=self._rpc.endpoint,
            )

        payer_pubkey = Pubkey.from_string(payer or self.pubkey)
        message = MessageV0.try_compile(
            payer_pubkey,
            instructions,
            [],  # Address lookup tables
            Hash.from_string(blockhash),
        )

        self._built = BuiltTransaction(
            message=message,
            blockhash=blockhash,
            last_valid_block_height=last_valid_block_height,
            instructions=instructions,
        )
        logger.debug(
            f"Built transaction: {len(instructions)} instructions, "
            f"blockhash={blockhash}, last_valid_block_height={last_valid_block_height}"
        )
        return self._built

    def sign(self, signers: Optional[Sequence[Union[Signer, Keypair]]] = None) -> VersionedTransaction:
        """
        Sign the built message with the wallet and any additional signers

        Raises:
            AssemblyError: If build() has not been called
            SignerError: If a required signer is missing
        """
        if self._built is None:
            raise AssemblyError("Transaction has not been built")

        all_signers: List[Signer] = [self._signer]
        for s in signers or []:
            all_signers.append(LocalSigner(s) if isinstance(s, Keypair) else s)

        return sign_message(self._built.message, all_signers)

    async def sign_and_submit(
        self,
        signers: Optional[Sequence[Union[Signer, Keypair]]] = None,
    ) -> Signature:
        """
        Sign and send the transaction exactly once

        Builds first if the sequence has not been built.

        Args:
            signers: Additional signers beyond the wallet

        Returns:
            The transaction signature

        Raises:
            SignerError: If a required signer is missing
            SubmissionError: If the node rejects the transaction
        """
        if self._built is None:
            await self.build()

        tx = self.sign(signers)
        signature = tx.signatures[0]

        try:
            sent = await self._rpc.send_transaction(
                bytes(tx),
                skip_preflight=self._config.skip_preflight,
                preflight_commitment=self._config.preflight_commitment,
            )
        except RpcError as e:
            logger.error(f"Transaction rejected: {e}")
            raise SubmissionError.from_rpc_error(e, signature=str(signature)) from e

        if sent and sent != str(signature):
            logger.warning(f"Node returned signature {sent}, expected {signature}")

        logger.info(f"signature: {signature}")
        return signature

    async def await_confirmation(
        self,
        signature: Union[Signature, str],
        last_valid_block_height: Optional[int] = None,
    ) -> TxResult:
        """
        Poll until the signature reaches the configured commitment

        Args:
            signature: Transaction signature
            last_valid_block_height: Expiry height (defaults to the one recorded by build)

        Returns:
            TxResult.success with slot and confirmation status

        Raises:
            ConfirmationFailedError: If the transaction executed with an error
            ConfirmationTimeoutError: If block height passes the expiry height
        """
        sig = str(signature)
        if last_valid_block_height is None:
            if self._built is None:
                raise AssemblyError("No last valid block height: transaction has not been built")
            last_valid_block_height = self._built.last_valid_block_height

        target = _commitment_rank(self._config.commitment)

        while True:
            statuses = await self._rpc.get_signature_statuses([sig])
            status = statuses[0] if statuses else None

            if status is not None:
                if status.get("err") is not None:
                    raise ConfirmationFailedError(sig, status["err"], status.get("slot"))

                reached = status.get("confirmationStatus")
                if _commitment_rank(reached) >= target:
                    logger.info(f"Transaction {sig} reached {reached} at slot {status.get('slot')}")
                    return TxResult.success(
                        sig,
                        slot=status.get("slot"),
                        confirmation_status=reached,
                    )

            block_height = await self._rpc.get_block_height(commitment=self._config.commitment)
            if block_height > last_valid_block_height:
                raise ConfirmationTimeoutError(sig, last_valid_block_height, block_height)

            await asyncio.sleep(self._config.poll_interval)

    async def build_and_execute(
        self,
        signers: Optional[Sequence[Union[Signer, Keypair]]] = None,
        payer: Optional[str] = None,
    ) -> TxResult:
        """
        Build, sign, send, and confirm in one call

        Returns:
            TxResult from confirmation
        """
        built = await self.build(payer=payer)
        signature = await self.sign_and_submit(signers)
        return await self.await_confirmation(signature, built.last_valid_block_height)
