"""
Liquidity Module

Provides Whirlpool position operations: discovery, adding and removing
liquidity, and the full close workflow for single and bundled positions.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from solders.pubkey import Pubkey

from ..types import MaybeInstruction, Position, PositionBundle, TxResult, Whirlpool
from ..errors import ConfigurationError
from ..config import config
from ..spl import detect_token_program, get_associated_token_address, resolve_or_create_ata
from ..whirlpool import (
    NUM_REWARDS,
    get_position_pda,
    get_bundled_position_pda,
    get_tick_array_pda_for_tick,
    fetch_whirlpool,
    fetch_position,
    fetch_position_bundle,
    fetch_positions,
    build_update_fees_and_rewards_instruction,
    build_collect_fees_instruction,
    build_collect_reward_instruction,
    build_increase_liquidity_instruction,
    build_decrease_liquidity_instruction,
    build_close_position_instruction,
    build_close_bundled_position_instruction,
    increase_liquidity_quote_by_input_token,
    decrease_liquidity_quote_by_liquidity,
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
)
from ..whirlpool.constants import TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID

if TYPE_CHECKING:
    from ..client import WhirlpoolClient

logger = logging.getLogger(__name__)


@dataclass
class _PositionContext:
    """Everything needed to build instructions against one position"""
    position: Position
    whirlpool: Whirlpool
    position_token_account: Pubkey
    position_token_program: Pubkey
    tick_array_lower: Pubkey
    tick_array_upper: Pubkey


class LiquidityModule:
    """
    Liquidity operations module

    Provides Whirlpool position management:
    - Discover positions owned by the wallet
    - Increase/decrease liquidity (single or batched in one transaction)
    - Close positions, collecting fees and rewards first
    - Position bundle operations

    Usage:
        async with WhirlpoolClient.from_config(config) as client:
            positions = await client.lp.get_positions()
            result = await client.lp.increase_liquidity(position, DEV_USDC.mint, 1_000_000)
            result = await client.lp.decrease_liquidity(position, percent=30)
            result = await client.lp.close_position(position)
    """

    def __init__(self, client: "WhirlpoolClient"):
        """
        Initialize liquidity module

        Args:
            client: WhirlpoolClient instance
        """
        self._client = client
        self._rpc = client.rpc
        self._mint_programs: Dict[str, Pubkey] = {}

    @property
    def owner(self) -> str:
        """Owner wallet address"""
        return self._client.pubkey

    def _slippage(self, slippage_bps: Optional[int]) -> int:
        return config.trading.default_slippage_bps if slippage_bps is None else slippage_bps

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_whirlpool(self, address: str) -> Whirlpool:
        return await fetch_whirlpool(self._rpc, address)

    async def get_position(self, address: str) -> Position:
        return await fetch_position(self._rpc, address)

    async def get_positions(self, owner: Optional[str] = None) -> List[Position]:
        """
        Find Whirlpool positions held by a wallet

        Scans the owner's token accounts under both the Token and Token-2022
        programs, treats every account holding exactly 1 token as a
        candidate position NFT, derives the position address from its mint
        and keeps the ones that are Whirlpool positions.

        Args:
            owner: Wallet address (defaults to the client wallet)

        Returns:
            Positions in token-account order
        """
        owner = owner or self.owner

        candidates: List[str] = []
        seen_mints = set()
        for program_id in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            token_accounts = await self._rpc.get_token_accounts_by_owner(owner, program_id=program_id)
            for account in token_accounts:
                info = account.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
                if info.get("tokenAmount", {}).get("amount") != "1":
                    continue
                mint = info.get("mint")
                if not mint or mint in seen_mints:
                    continue
                seen_mints.add(mint)
                address, _ = get_position_pda(mint)
                candidates.append(str(address))

        logger.debug(f"{len(candidates)} candidate position mints for {owner}")

        positions = await fetch_positions(self._rpc, candidates)
        return [p for p in positions if p is not None]

    async def get_position_bundle(self, address: str) -> PositionBundle:
        return await fetch_position_bundle(self._rpc, address)

    async def get_bundled_positions(self, bundle: Union[PositionBundle, str]) -> Dict[int, Position]:
        """
        Fetch the positions in the occupied slots of a bundle

        Returns:
            bundle_index -> Position, ascending by index
        """
        if isinstance(bundle, str):
            bundle = await self.get_position_bundle(bundle)

        indexes = bundle.occupied_bundle_indexes
        addresses = [str(get_bundled_position_pda(bundle.position_bundle_mint, i)[0]) for i in indexes]
        positions = await fetch_positions(self._rpc, addresses)

        result = {}
        for index, address, position in zip(indexes, addresses, positions):
            if position is None:
                logger.warning(f"Bundle slot {index} is occupied but {address} is not a position")
                continue
            result[index] = position
        return result

    # ------------------------------------------------------------------
    # Instruction builders
    # ------------------------------------------------------------------

    async def _mint_program(self, mint: str) -> Pubkey:
        if mint not in self._mint_programs:
            self._mint_programs[mint] = await detect_token_program(self._rpc, mint)
        return self._mint_programs[mint]

    async def _pool_token_program(self, mint: str) -> Pubkey:
        program = await self._mint_program(mint)
        if str(program) != TOKEN_PROGRAM_ID:
            raise ConfigurationError.invalid(
                "token_program", f"mint {mint} uses {program}; only Token program mints are supported"
            )
        return program

    async def _context(
        self,
        position: Union[Position, str],
        whirlpools: Optional[Dict[str, Whirlpool]] = None,
    ) -> _PositionContext:
        if isinstance(position, str):
            position = await self.get_position(position)

        whirlpools = whirlpools if whirlpools is not None else {}
        if position.whirlpool not in whirlpools:
            whirlpools[position.whirlpool] = await self.get_whirlpool(position.whirlpool)
        whirlpool = whirlpools[position.whirlpool]

        # For bundled positions position_mint is the bundle mint
        nft_program = await self._mint_program(position.position_mint)
        nft_account = get_associated_token_address(self.owner, position.position_mint, nft_program)

        return _PositionContext(
            position=position,
            whirlpool=whirlpool,
            position_token_account=nft_account,
            position_token_program=nft_program,
            tick_array_lower=get_tick_array_pda_for_tick(
                whirlpool.address, position.tick_lower_index, whirlpool.tick_spacing
            ),
            tick_array_upper=get_tick_array_pda_for_tick(
                whirlpool.address, position.tick_upper_index, whirlpool.tick_spacing
            ),
        )

    async def _resolve_atas(
        self,
        mints: Sequence[str],
        created: Optional[set] = None,
    ) -> Tuple[Dict[str, Pubkey], List[MaybeInstruction]]:
        """
        Owner ATAs for mints, with create instructions for missing ones

        ``created`` tracks mints already handled in the same transaction.
        """
        created = created if created is not None else set()
        atas: Dict[str, Pubkey] = {}
        instructions: List[MaybeInstruction] = []
        for mint in mints:
            if mint in atas:
                continue
            program = await self._pool_token_program(mint)
            if mint in created:
                atas[mint] = get_associated_token_address(self.owner, mint, program)
                continue
            ata, ix = await resolve_or_create_ata(
                self._rpc, self.owner, mint, payer=self.owner, token_program=program
            )
            atas[mint] = ata
            created.add(mint)
            instructions.append(ix)
        return atas, instructions

    async def build_increase_liquidity(
        self,
        ctx: _PositionContext,
        input_mint: str,
        amount: int,
        slippage_bps: int,
        created_atas: Optional[set] = None,
    ) -> Tuple[List[MaybeInstruction], IncreaseLiquidityQuote]:
        """
        Instructions to deposit ``amount`` of ``input_mint`` into a position

        Returns:
            (instructions, quote)
        """
        if amount <= 0:
            raise ConfigurationError.invalid("amount", f"must be > 0, got {amount}")

        pool = ctx.whirlpool
        quote = increase_liquidity_quote_by_input_token(
            input_mint, amount, pool,
            ctx.position.tick_lower_index, ctx.position.tick_upper_index,
            slippage_bps,
        )
        if quote.liquidity_amount == 0:
            raise ConfigurationError.invalid(
                "amount", f"depositing {amount} of {input_mint} yields no liquidity in this range"
            )

        atas, instructions = await self._resolve_atas([pool.token_mint_a, pool.token_mint_b], created_atas)
        instructions.append(MaybeInstruction.of(build_increase_liquidity_instruction(
            whirlpool=pool.address,
            position_authority=self.owner,
            position=ctx.position.address,
            position_token_account=ctx.position_token_account,
            token_owner_account_a=atas[pool.token_mint_a],
            token_owner_account_b=atas[pool.token_mint_b],
            token_vault_a=pool.token_vault_a,
            token_vault_b=pool.token_vault_b,
            tick_array_lower=ctx.tick_array_lower,
            tick_array_upper=ctx.tick_array_upper,
            liquidity_amount=quote.liquidity_amount,
            token_max_a=quote.token_max_a,
            token_max_b=quote.token_max_b,
        )))
        return instructions, quote

    async def build_decrease_liquidity(
        self,
        ctx: _PositionContext,
        liquidity: int,
        slippage_bps: int,
        created_atas: Optional[set] = None,
    ) -> Tuple[List[MaybeInstruction], DecreaseLiquidityQuote]:
        """
        Instructions to withdraw ``liquidity`` from a position

        A zero liquidity delta produces a skip instead of an instruction.

        Returns:
            (instructions, quote)
        """
        pool = ctx.whirlpool
        quote = decrease_liquidity_quote_by_liquidity(
            liquidity, pool,
            ctx.position.tick_lower_index, ctx.position.tick_upper_index,
            slippage_bps,
        )

        atas, instructions = await self._resolve_atas([pool.token_mint_a, pool.token_mint_b], created_atas)
        if liquidity == 0:
            instructions.append(MaybeInstruction.skip(f"{ctx.position.address} has no liquidity to remove"))
            return instructions, quote

        instructions.append(MaybeInstruction.of(build_decrease_liquidity_instruction(
            whirlpool=pool.address,
            position_authority=self.owner,
            position=ctx.position.address,
            position_token_account=ctx.position_token_account,
            token_owner_account_a=atas[pool.token_mint_a],
            token_owner_account_b=atas[pool.token_mint_b],
            token_vault_a=pool.token_vault_a,
            token_vault_b=pool.token_vault_b,
            tick_array_lower=ctx.tick_array_lower,
            tick_array_upper=ctx.tick_array_upper,
            liquidity_amount=quote.liquidity_amount,
            token_min_a=quote.token_min_a,
            token_min_b=quote.token_min_b,
        )))
        return instructions, quote

    async def build_harvest_and_withdraw(
        self,
        ctx: _PositionContext,
        slippage_bps: int,
    ) -> List[MaybeInstruction]:
        """
        Instructions that empty a position before it is closed

        Order:
        1. Create missing ATAs for token A, token B and initialized rewards
        2. update_fees_and_rewards (skipped when liquidity is zero)
        3. collect_fees
        4. collect_reward for each of the three slots (skipped when uninitialized)
        5. decrease_liquidity of everything (skipped when liquidity is zero)
        """
        pool = ctx.whirlpool
        position = ctx.position

        mints = [pool.token_mint_a, pool.token_mint_b]
        mints += [r.mint for r in pool.initialized_rewards]
        created: set = set()
        atas, instructions = await self._resolve_atas(mints, created)

        if position.liquidity > 0:
            instructions.append(MaybeInstruction.of(build_update_fees_and_rewards_instruction(
                whirlpool=pool.address,
                position=position.address,
                tick_array_lower=ctx.tick_array_lower,
                tick_array_upper=ctx.tick_array_upper,
            )))
        else:
            instructions.append(MaybeInstruction.skip("update_fees_and_rewards: position has no liquidity"))

        instructions.append(MaybeInstruction.of(build_collect_fees_instruction(
            whirlpool=pool.address,
            position_authority=self.owner,
            position=position.address,
            position_token_account=ctx.position_token_account,
            token_owner_account_a=atas[pool.token_mint_a],
            token_vault_a=pool.token_vault_a,
            token_owner_account_b=atas[pool.token_mint_b],
            token_vault_b=pool.token_vault_b,
        )))

        for index in range(NUM_REWARDS):
            reward = pool.reward_infos[index] if index < len(pool.reward_infos) else None
            if reward is None or not reward.is_initialized:
                instructions.append(MaybeInstruction.skip(f"collect_reward: slot {index} uninitialized"))
                continue
            instructions.append(MaybeInstruction.of(build_collect_reward_instruction(
                whirlpool=pool.address,
                position_authority=self.owner,
                position=position.address,
                position_token_account=ctx.position_token_account,
                reward_owner_account=atas[reward.mint],
                reward_vault=reward.vault,
                reward_index=index,
            )))

        decrease, _ = await self.build_decrease_liquidity(ctx, position.liquidity, slippage_bps, created)
        instructions.extend(decrease)
        return instructions

    async def build_close_position(
        self,
        position: Union[Position, str],
        slippage_bps: Optional[int] = None,
    ) -> List[MaybeInstruction]:
        """Full close batch for a single (non-bundled) position"""
        ctx = await self._context(position)
        instructions = await self.build_harvest_and_withdraw(ctx, self._slippage(slippage_bps))
        instructions.append(MaybeInstruction.of(build_close_position_instruction(
            position_authority=self.owner,
            receiver=self.owner,
            position=ctx.position.address,
            position_mint=ctx.position.position_mint,
            position_token_account=ctx.position_token_account,
            token_program=ctx.position_token_program,
        )))
        return instructions

    async def build_close_bundled_position(
        self,
        bundle: PositionBundle,
        bundle_index: int,
        slippage_bps: Optional[int] = None,
    ) -> List[MaybeInstruction]:
        """Full close batch for one slot of a position bundle"""
        if bundle_index not in bundle.occupied_bundle_indexes:
            raise ConfigurationError.invalid("bundle_index", f"slot {bundle_index} of {bundle.address} is empty")

        address, _ = get_bundled_position_pda(bundle.position_bundle_mint, bundle_index)
        logger.info(f"bundled position ({bundle_index}) pubkey: {address}")
        ctx = await self._context(str(address))
        instructions = await self.build_harvest_and_withdraw(ctx, self._slippage(slippage_bps))
        instructions.append(MaybeInstruction.of(build_close_bundled_position_instruction(
            bundled_position=address,
            position_bundle=bundle.address,
            position_bundle_token_account=ctx.position_token_account,
            position_bundle_authority=self.owner,
            receiver=self.owner,
            bundle_index=bundle_index,
        )))
        return instructions

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def increase_liquidity(
        self,
        position: Union[Position, str],
        input_mint: str,
        amount: int,
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Deposit ``amount`` (raw) of ``input_mint`` into a position

        Args:
            position: Position object or address
            input_mint: Token A or B mint of the position's pool
            amount: Raw input amount
            slippage_bps: Slippage tolerance (default from config)

        Returns:
            TxResult
        """
        return await self.increase_liquidity_many([(position, input_mint, amount)], slippage_bps)

    async def increase_liquidity_many(
        self,
        deposits: Sequence[Tuple[Union[Position, str], str, int]],
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Deposit into several positions in one transaction

        Args:
            deposits: (position, input_mint, raw_amount) per position

        Returns:
            TxResult
        """
        slippage = self._slippage(slippage_bps)
        whirlpools: Dict[str, Whirlpool] = {}
        created: set = set()

        tx = self._client.new_transaction()
        for position, input_mint, amount in deposits:
            ctx = await self._context(position, whirlpools)
            instructions, quote = await self.build_increase_liquidity(ctx, input_mint, amount, slippage, created)
            logger.info(
                f"increase {ctx.position.address}: liquidity +{quote.liquidity_amount}, "
                f"max A {quote.token_max_a}, max B {quote.token_max_b}"
            )
            tx.add_all(instructions)

        return await tx.build_and_execute()

    async def decrease_liquidity(
        self,
        position: Union[Position, str],
        percent: int,
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Withdraw ``percent`` of a position's liquidity

        The delta is liquidity * percent // 100.

        Returns:
            TxResult
        """
        return await self.decrease_liquidity_many([position], percent, slippage_bps)

    async def decrease_liquidity_many(
        self,
        positions: Sequence[Union[Position, str]],
        percent: int,
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Withdraw the same percentage from several positions in one transaction

        Returns:
            TxResult
        """
        if not 0 < percent <= 100:
            raise ConfigurationError.invalid("percent", f"must be in (0, 100], got {percent}")

        slippage = self._slippage(slippage_bps)
        whirlpools: Dict[str, Whirlpool] = {}
        created: set = set()

        tx = self._client.new_transaction()
        for position in positions:
            ctx = await self._context(position, whirlpools)
            delta = ctx.position.liquidity * percent // 100
            instructions, quote = await self.build_decrease_liquidity(ctx, delta, slippage, created)
            logger.info(
                f"decrease {ctx.position.address}: liquidity -{delta}, "
                f"min A {quote.token_min_a}, min B {quote.token_min_b}"
            )
            tx.add_all(instructions)

        return await tx.build_and_execute()

    async def close_position(
        self,
        position: Union[Position, str],
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Collect fees and rewards, withdraw all liquidity and close a position

        Returns:
            TxResult
        """
        instructions = await self.build_close_position(position, slippage_bps)
        tx = self._client.new_transaction()
        tx.add_all(instructions)
        return await tx.build_and_execute()

    async def close_bundled_position(
        self,
        bundle: Union[PositionBundle, str],
        bundle_index: int,
        slippage_bps: Optional[int] = None,
    ) -> TxResult:
        """
        Close one position of a bundle, freeing its slot

        Returns:
            TxResult
        """
        if isinstance(bundle, str):
            bundle = await self.get_position_bundle(bundle)

        instructions = await self.build_close_bundled_position(bundle, bundle_index, slippage_bps)
        tx = self._client.new_transaction()
        tx.add_all(instructions)
        return await tx.build_and_execute()

    async def close_all_bundled_positions(
        self,
        bundle: Union[PositionBundle, str],
        slippage_bps: Optional[int] = None,
    ) -> List[TxResult]:
        """
        Close every occupied slot of a bundle, one transaction per slot

        Stops at the first failure; the error propagates.

        Returns:
            TxResult per closed slot, ascending by index
        """
        if isinstance(bundle, str):
            bundle = await self.get_position_bundle(bundle)

        results = []
        for index in bundle.occupied_bundle_indexes:
            logger.info(f"closing bundle index {index}")
            results.append(await self.close_bundled_position(bundle, index, slippage_bps))
        return results
