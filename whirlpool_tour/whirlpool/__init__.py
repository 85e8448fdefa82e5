"""
Orca Whirlpool protocol helpers

Constants, PDAs, account parsers, instruction builders, math and quotes
for the Whirlpool concentrated liquidity program.
"""

from .constants import WHIRLPOOL_PROGRAM_ID, TICK_ARRAY_SIZE, NUM_REWARDS
from .pda import (
    get_position_pda,
    get_bundled_position_pda,
    get_position_bundle_pda,
    get_tick_array_pda,
    get_tick_array_pda_for_tick,
)
from .accounts import (
    parse_whirlpool,
    parse_position,
    parse_position_bundle,
    get_occupied_bundle_indexes,
    is_reward_initialized,
    fetch_whirlpool,
    fetch_position,
    fetch_position_bundle,
    fetch_positions,
)
from .instructions import (
    build_update_fees_and_rewards_instruction,
    build_collect_fees_instruction,
    build_collect_reward_instruction,
    build_increase_liquidity_instruction,
    build_decrease_liquidity_instruction,
    build_close_position_instruction,
    build_close_position_with_token_extensions_instruction,
    build_close_bundled_position_instruction,
)
from .math import (
    tick_to_sqrt_price_x64,
    sqrt_price_x64_to_price,
    tick_to_price,
    get_token_amount_a_from_liquidity,
    get_token_amount_b_from_liquidity,
    get_amounts_from_liquidity,
    get_liquidity_from_amount_a,
    get_liquidity_from_amount_b,
    get_tick_array_start_index,
    adjust_for_slippage,
)
from .quote import (
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    increase_liquidity_quote_by_input_token,
    decrease_liquidity_quote_by_liquidity,
)

__all__ = [
    "tick_to_sqrt_price_x64",
    "sqrt_price_x64_to_price",
    "tick_to_price",
    "get_token_amount_a_from_liquidity",
    "get_token_amount_b_from_liquidity",
    "get_amounts_from_liquidity",
    "get_liquidity_from_amount_a",
    "get_liquidity_from_amount_b",
    "get_tick_array_start_index",
    "adjust_for_slippage",
    "WHIRLPOOL_PROGRAM_ID",
    "TICK_ARRAY_SIZE",
    "NUM_REWARDS",
    "get_position_pda",
    "get_bundled_position_pda",
    "get_position_bundle_pda",
    "get_tick_array_pda",
    "get_tick_array_pda_for_tick",
    "parse_whirlpool",
    "parse_position",
    "parse_position_bundle",
    "get_occupied_bundle_indexes",
    "is_reward_initialized",
    "fetch_whirlpool",
    "fetch_position",
    "fetch_position_bundle",
    "fetch_positions",
    "build_update_fees_and_rewards_instruction",
    "build_collect_fees_instruction",
    "build_collect_reward_instruction",
    "build_increase_liquidity_instruction",
    "build_decrease_liquidity_instruction",
    "build_close_position_instruction",
    "build_close_position_with_token_extensions_instruction",
    "build_close_bundled_position_instruction",
    "IncreaseLiquidityQuote",
    "DecreaseLiquidityQuote",
    "increase_liquidity_quote_by_input_token",
    "decrease_liquidity_quote_by_liquidity",
]
