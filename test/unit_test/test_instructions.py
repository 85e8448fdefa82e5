"""
Test Instruction Builders

Tests for Whirlpool PDAs and instructions, and the SPL Token / System
Program helpers.
"""

import sys
import asyncio
import hashlib
import struct
from pathlib import Path
from unittest.mock import Mock, AsyncMock

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _key():
    from solders.pubkey import Pubkey
    return Pubkey.new_unique()


def _modify_liquidity_args(**overrides):
    args = dict(
        whirlpool=_key(),
        position_authority=_key(),
        position=_key(),
        position_token_account=_key(),
        token_owner_account_a=_key(),
        token_owner_account_b=_key(),
        token_vault_a=_key(),
        token_vault_b=_key(),
        tick_array_lower=_key(),
        tick_array_upper=_key(),
        liquidity_amount=10 ** 20,
        token_max_a=1_000,
        token_max_b=2_000,
    )
    args.update(overrides)
    return args


def test_discriminators():
    """Test Anchor discriminators are sha256 prefixes of the names"""
    from whirlpool_tour.whirlpool.constants import DISCRIMINATORS, ACCOUNT_DISCRIMINATORS

    print("Testing discriminators...")

    for name, disc in DISCRIMINATORS.items():
        assert disc == hashlib.sha256(f"global:{name}".encode()).digest()[:8], name
    for name, disc in ACCOUNT_DISCRIMINATORS.items():
        assert disc == hashlib.sha256(f"account:{name}".encode()).digest()[:8], name

    assert len(set(DISCRIMINATORS.values())) == len(DISCRIMINATORS)

    print("  Discriminators: PASSED")


def test_position_pdas():
    """Test position, bundled position and bundle PDAs"""
    from solders.pubkey import Pubkey
    from whirlpool_tour.whirlpool import (
        WHIRLPOOL_PROGRAM_ID,
        get_position_pda,
        get_bundled_position_pda,
        get_position_bundle_pda,
    )
    from whirlpool_tour.errors import ConfigurationError

    print("Testing position PDAs...")

    program = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)
    mint = _key()

    expected = Pubkey.find_program_address([b"position", bytes(mint)], program)
    assert get_position_pda(mint) == expected
    assert get_position_pda(str(mint)) == expected

    # Bundle index is encoded as a decimal string
    expected = Pubkey.find_program_address([b"bundled_position", bytes(mint), b"17"], program)
    assert get_bundled_position_pda(mint, 17) == expected
    assert get_bundled_position_pda(mint, 0) != get_bundled_position_pda(mint, 1)

    expected = Pubkey.find_program_address([b"position_bundle", bytes(mint)], program)
    assert get_position_bundle_pda(mint) == expected

    for bad in (-1, 256):
        try:
            get_bundled_position_pda(mint, bad)
            assert False, f"Should reject bundle index {bad}"
        except ConfigurationError:
            pass

    print("  Position PDAs: PASSED")


def test_tick_array_pda():
    """Test tick array PDA uses the start tick as a decimal string"""
    from solders.pubkey import Pubkey
    from whirlpool_tour.whirlpool import WHIRLPOOL_PROGRAM_ID, get_tick_array_pda, get_tick_array_pda_for_tick

    print("Testing tick array PDA...")

    program = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)
    pool = _key()

    expected, _ = Pubkey.find_program_address([b"tick_array", bytes(pool), b"-5632"], program)
    assert get_tick_array_pda(pool, -5632)[0] == expected
    assert get_tick_array_pda_for_tick(pool, -1, 64) == expected
    assert get_tick_array_pda_for_tick(pool, -5632, 64) == expected
    assert get_tick_array_pda_for_tick(pool, 0, 64) != expected

    print("  Tick array PDA: PASSED")


def test_increase_liquidity_instruction():
    """Test increase_liquidity data layout and accounts"""
    from whirlpool_tour.whirlpool import WHIRLPOOL_PROGRAM_ID, build_increase_liquidity_instruction
    from whirlpool_tour.whirlpool.constants import DISCRIMINATORS, TOKEN_PROGRAM_ID

    print("Testing increase_liquidity instruction...")

    args = _modify_liquidity_args()
    ix = build_increase_liquidity_instruction(**args)

    assert str(ix.program_id) == WHIRLPOOL_PROGRAM_ID
    data = bytes(ix.data)
    assert data[:8] == DISCRIMINATORS["increase_liquidity"]
    assert int.from_bytes(data[8:24], "little") == 10 ** 20
    assert struct.unpack("<QQ", data[24:40]) == (1_000, 2_000)
    assert len(data) == 40

    accounts = ix.accounts
    assert len(accounts) == 11
    assert accounts[0].pubkey == args["whirlpool"] and accounts[0].is_writable
    assert str(accounts[1].pubkey) == TOKEN_PROGRAM_ID
    assert accounts[2].pubkey == args["position_authority"] and accounts[2].is_signer
    assert [a.is_signer for a in accounts].count(True) == 1
    assert accounts[9].pubkey == args["tick_array_lower"]
    assert accounts[10].pubkey == args["tick_array_upper"]

    print("  increase_liquidity instruction: PASSED")


def test_decrease_liquidity_instruction():
    """Test decrease_liquidity data and range checks"""
    from whirlpool_tour.whirlpool import build_decrease_liquidity_instruction
    from whirlpool_tour.whirlpool.constants import DISCRIMINATORS, MAX_UINT64
    from whirlpool_tour.errors import ConfigurationError

    print("Testing decrease_liquidity instruction...")

    args = _modify_liquidity_args()
    args["token_min_a"] = args.pop("token_max_a")
    args["token_min_b"] = args.pop("token_max_b")
    ix = build_decrease_liquidity_instruction(**args)
    assert bytes(ix.data)[:8] == DISCRIMINATORS["decrease_liquidity"]

    args["token_min_a"] = MAX_UINT64 + 1
    try:
        build_decrease_liquidity_instruction(**args)
        assert False, "Should reject u64 overflow"
    except ConfigurationError:
        pass

    args["token_min_a"] = 0
    args["liquidity_amount"] = -1
    try:
        build_decrease_liquidity_instruction(**args)
        assert False, "Should reject negative liquidity"
    except ConfigurationError:
        pass

    print("  decrease_liquidity instruction: PASSED")


def test_fee_and_reward_instructions():
    """Test update_fees_and_rewards, collect_fees and collect_reward"""
    from whirlpool_tour.whirlpool import (
        build_update_fees_and_rewards_instruction,
        build_collect_fees_instruction,
        build_collect_reward_instruction,
    )
    from whirlpool_tour.whirlpool.constants import DISCRIMINATORS
    from whirlpool_tour.errors import ConfigurationError

    print("Testing fee and reward instructions...")

    ix = build_update_fees_and_rewards_instruction(_key(), _key(), _key(), _key())
    assert bytes(ix.data) == DISCRIMINATORS["update_fees_and_rewards"]
    assert len(ix.accounts) == 4
    assert not any(a.is_signer for a in ix.accounts)

    authority = _key()
    ix = build_collect_fees_instruction(
        whirlpool=_key(),
        position_authority=authority,
        position=_key(),
        position_token_account=_key(),
        token_owner_account_a=_key(),
        token_vault_a=_key(),
        token_owner_account_b=_key(),
        token_vault_b=_key(),
    )
    assert bytes(ix.data) == DISCRIMINATORS["collect_fees"]
    assert len(ix.accounts) == 9
    assert ix.accounts[1].pubkey == authority and ix.accounts[1].is_signer

    reward_args = dict(
        whirlpool=_key(),
        position_authority=authority,
        position=_key(),
        position_token_account=_key(),
        reward_owner_account=_key(),
        reward_vault=_key(),
    )
    ix = build_collect_reward_instruction(reward_index=2, **reward_args)
    assert bytes(ix.data) == DISCRIMINATORS["collect_reward"] + b"\x02"
    assert len(ix.accounts) == 7

    try:
        build_collect_reward_instruction(reward_index=3, **reward_args)
        assert False, "Should reject reward index 3"
    except ConfigurationError:
        pass

    print("  Fee and reward instructions: PASSED")


def test_close_instructions():
    """Test close_position variants and close_bundled_position"""
    from whirlpool_tour.whirlpool import (
        build_close_position_instruction,
        build_close_bundled_position_instruction,
    )
    from whirlpool_tour.whirlpool.constants import DISCRIMINATORS, TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID

    print("Testing close instructions...")

    args = dict(
        position_authority=_key(),
        receiver=_key(),
        position=_key(),
        position_mint=_key(),
        position_token_account=_key(),
    )

    ix = build_close_position_instruction(**args)
    assert bytes(ix.data) == DISCRIMINATORS["close_position"]
    assert str(ix.accounts[5].pubkey) == TOKEN_PROGRAM_ID

    # Token-2022 position NFTs use the token extensions variant
    ix = build_close_position_instruction(token_program=TOKEN_2022_PROGRAM_ID, **args)
    assert bytes(ix.data) == DISCRIMINATORS["close_position_with_token_extensions"]
    assert str(ix.accounts[5].pubkey) == TOKEN_2022_PROGRAM_ID

    ix = build_close_bundled_position_instruction(
        bundled_position=_key(),
        position_bundle=_key(),
        position_bundle_token_account=_key(),
        position_bundle_authority=args["position_authority"],
        receiver=args["receiver"],
        bundle_index=44,
    )
    assert bytes(ix.data) == DISCRIMINATORS["close_bundled_position"] + struct.pack("<H", 44)
    assert len(ix.accounts) == 5
    assert ix.accounts[3].is_signer

    print("  Close instructions: PASSED")


def test_spl_instructions():
    """Test ATA derivation, idempotent creation and TransferChecked"""
    from solders.pubkey import Pubkey
    from whirlpool_tour.spl import (
        get_associated_token_address,
        build_create_ata_idempotent_instruction,
        build_transfer_checked_instruction,
    )
    from whirlpool_tour.whirlpool.constants import (
        ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID,
    )

    print("Testing SPL instructions...")

    owner, mint = _key(), _key()
    token_program = Pubkey.from_string(TOKEN_PROGRAM_ID)
    expected, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program), bytes(mint)],
        Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID),
    )
    assert get_associated_token_address(owner, mint) == expected
    assert get_associated_token_address(owner, mint, TOKEN_2022_PROGRAM_ID) != expected

    ix = build_create_ata_idempotent_instruction(owner, owner, mint)
    assert bytes(ix.data) == b"\x01"
    assert ix.accounts[1].pubkey == expected
    assert len(ix.accounts) == 6

    ix = build_transfer_checked_instruction(
        source=_key(), mint=mint, destination=_key(), owner=owner, amount=1_000_000_000, decimals=9,
    )
    assert bytes(ix.data) == struct.pack("<BQB", 12, 1_000_000_000, 9)
    assert ix.accounts[3].pubkey == owner and ix.accounts[3].is_signer
    assert ix.program_id == token_program

    print("  SPL instructions: PASSED")


def test_detect_token_program_and_resolve_ata():
    """Test token program detection and ATA create-or-skip"""
    from whirlpool_tour.spl import detect_token_program, resolve_or_create_ata
    from whirlpool_tour.whirlpool.constants import TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
    from whirlpool_tour.errors import AccountNotFound, ErrorCode

    print("Testing detect_token_program and resolve_or_create_ata...")

    rpc = Mock()
    rpc.get_account_info = AsyncMock(return_value={"owner": TOKEN_2022_PROGRAM_ID})
    program = asyncio.run(detect_token_program(rpc, _key()))
    assert str(program) == TOKEN_2022_PROGRAM_ID

    rpc.get_account_info = AsyncMock(return_value=None)
    try:
        asyncio.run(detect_token_program(rpc, _key()))
        assert False, "Should raise for missing mint"
    except AccountNotFound as e:
        assert e.code == ErrorCode.ACCOUNT_NOT_FOUND

    rpc.get_account_info = AsyncMock(return_value={"owner": "11111111111111111111111111111111"})
    try:
        asyncio.run(detect_token_program(rpc, _key()))
        assert False, "Should raise for non-token account"
    except AccountNotFound as e:
        assert e.code == ErrorCode.ACCOUNT_INVALID_DATA

    owner, mint = _key(), _key()

    # ATA exists: skip
    rpc.get_account_info = AsyncMock(return_value={"owner": TOKEN_PROGRAM_ID})
    ata, ix = asyncio.run(resolve_or_create_ata(rpc, owner, mint, token_program=TOKEN_PROGRAM_ID))
    assert ix.is_skip

    # ATA missing: create
    rpc.get_account_info = AsyncMock(return_value=None)
    ata2, ix = asyncio.run(resolve_or_create_ata(rpc, owner, mint, token_program=TOKEN_PROGRAM_ID))
    assert ata2 == ata
    assert not ix.is_skip
    assert ix.instruction.accounts[1].pubkey == ata

    print("  detect_token_program and resolve_or_create_ata: PASSED")


def main():
    """Run all tests"""
    print("=" * 60)
    print("Instruction Builder Tests")
    print("=" * 60)

    tests = [
        test_discriminators,
        test_position_pdas,
        test_tick_array_pda,
        test_increase_liquidity_instruction,
        test_decrease_liquidity_instruction,
        test_fee_and_reward_instructions,
        test_close_instructions,
        test_spl_instructions,
        test_detect_token_program_and_resolve_ata,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
