"""
SPL Token and System Program Instruction Builders

Key features:
- Associated token account derivation for Tokenkeg and Token-2022
- Idempotent ATA creation
- TransferChecked and SOL transfers
- Auto-detection of a mint's token program
"""

import logging
import struct
from typing import Optional, Tuple, Union

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from .infra import RpcClient
from .types import MaybeInstruction
from .errors import AccountNotFound
from .whirlpool.constants import (
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
)

logger = logging.getLogger(__name__)

PubkeyLike = Union[Pubkey, str]

# SPL Token instruction tags
_TRANSFER_CHECKED = 12
# Associated Token Account instruction tags
_CREATE_IDEMPOTENT = 1


def _to_pubkey(value: PubkeyLike) -> Pubkey:
    return value if isinstance(value, Pubkey) else Pubkey.from_string(value)


def get_associated_token_address(
    owner: PubkeyLike,
    mint: PubkeyLike,
    token_program: Optional[PubkeyLike] = None,
) -> Pubkey:
    """
    Get associated token account address.

    Args:
        owner: Wallet owner
        mint: Token mint
        token_program: Token program (defaults to Tokenkeg)

    Returns:
        ATA address
    """
    ata_program = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
    program = _to_pubkey(token_program or TOKEN_PROGRAM_ID)

    address, _ = Pubkey.find_program_address(
        [bytes(_to_pubkey(owner)), bytes(program), bytes(_to_pubkey(mint))],
        ata_program,
    )
    return address


def build_create_ata_idempotent_instruction(
    payer: PubkeyLike,
    owner: PubkeyLike,
    mint: PubkeyLike,
    token_program: Optional[PubkeyLike] = None,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    Creates the ATA if it doesn't exist, or does nothing if it does.

    Returns:
        Instruction to create ATA
    """
    payer, owner, mint = _to_pubkey(payer), _to_pubkey(owner), _to_pubkey(mint)
    program = _to_pubkey(token_program or TOKEN_PROGRAM_ID)
    ata_address = get_associated_token_address(owner, mint, program)

    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(ata_address, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
        AccountMeta(program, is_signer=False, is_writable=False),
    ]

    return Instruction(Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID), bytes([_CREATE_IDEMPOTENT]), accounts)


def build_transfer_checked_instruction(
    source: PubkeyLike,
    mint: PubkeyLike,
    destination: PubkeyLike,
    owner: PubkeyLike,
    amount: int,
    decimals: int,
    token_program: Optional[PubkeyLike] = None,
) -> Instruction:
    """
    Build SPL Token TransferChecked instruction.

    Data layout: u8 tag (12), u64 amount, u8 decimals
    """
    data = struct.pack("<BQB", _TRANSFER_CHECKED, amount, decimals)
    accounts = [
        AccountMeta(_to_pubkey(source), is_signer=False, is_writable=True),
        AccountMeta(_to_pubkey(mint), is_signer=False, is_writable=False),
        AccountMeta(_to_pubkey(destination), is_signer=False, is_writable=True),
        AccountMeta(_to_pubkey(owner), is_signer=True, is_writable=False),
    ]
    return Instruction(_to_pubkey(token_program or TOKEN_PROGRAM_ID), data, accounts)


def build_transfer_sol_instruction(
    source: PubkeyLike,
    destination: PubkeyLike,
    lamports: int,
) -> Instruction:
    """Build System Program transfer instruction"""
    return transfer(TransferParams(
        from_pubkey=_to_pubkey(source),
        to_pubkey=_to_pubkey(destination),
        lamports=lamports,
    ))


async def detect_token_program(rpc: RpcClient, mint: PubkeyLike) -> Pubkey:
    """
    Detect the token program for a given mint by checking its owner.

    Returns:
        Token program ID (either Tokenkeg or Token-2022)

    Raises:
        AccountNotFound: If the mint does not exist or is not a token mint
    """
    account_info = await rpc.get_account_info(str(mint))
    if not account_info:
        raise AccountNotFound.not_found("Mint", str(mint))

    owner = account_info.get("owner")
    if owner not in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
        raise AccountNotFound.invalid_data("Mint", str(mint), f"owned by {owner}")
    return Pubkey.from_string(owner)


async def resolve_or_create_ata(
    rpc: RpcClient,
    owner: PubkeyLike,
    mint: PubkeyLike,
    payer: Optional[PubkeyLike] = None,
    token_program: Optional[PubkeyLike] = None,
) -> Tuple[Pubkey, MaybeInstruction]:
    """
    Resolve the owner's ATA for a mint, creating it if missing

    Args:
        rpc: RPC client
        owner: Token account owner
        mint: Token mint
        payer: Rent payer (defaults to owner)
        token_program: Token program (detected from the mint if not given)

    Returns:
        (ata_address, create instruction or skip when the account exists)
    """
    program = _to_pubkey(token_program) if token_program else await detect_token_program(rpc, mint)
    ata = get_associated_token_address(owner, mint, program)

    if await rpc.get_account_info(str(ata)):
        return ata, MaybeInstruction.skip(f"ATA {ata} exists")

    logger.debug(f"ATA {ata} for mint {mint} missing, adding create instruction")
    ix = build_create_ata_idempotent_instruction(payer or owner, owner, mint, program)
    return ata, MaybeInstruction.of(ix)
