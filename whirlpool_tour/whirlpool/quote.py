"""
Liquidity quotes

Estimates token amounts for a liquidity change and applies the slippage
tolerance to produce the bounds passed to increase/decrease instructions.
"""

import logging
from dataclasses import dataclass

from ..types import Whirlpool
from ..errors import ConfigurationError
from .math import (
    tick_to_sqrt_price_x64,
    get_amounts_from_liquidity,
    get_liquidity_from_amount_a,
    get_liquidity_from_amount_b,
    adjust_for_slippage,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncreaseLiquidityQuote:
    """
    Quote for adding liquidity

    Attributes:
        liquidity_amount: Liquidity to add
        token_est_a / token_est_b: Estimated deposit (rounded up)
        token_max_a / token_max_b: Maximum deposit including slippage
    """
    liquidity_amount: int
    token_est_a: int
    token_est_b: int
    token_max_a: int
    token_max_b: int


@dataclass(frozen=True)
class DecreaseLiquidityQuote:
    """
    Quote for removing liquidity

    Attributes:
        liquidity_amount: Liquidity to remove
        token_est_a / token_est_b: Estimated withdrawal (rounded down)
        token_min_a / token_min_b: Minimum withdrawal including slippage
    """
    liquidity_amount: int
    token_est_a: int
    token_est_b: int
    token_min_a: int
    token_min_b: int


def increase_liquidity_quote_by_input_token(
    input_mint: str,
    input_amount: int,
    whirlpool: Whirlpool,
    tick_lower_index: int,
    tick_upper_index: int,
    slippage_bps: int,
) -> IncreaseLiquidityQuote:
    """
    Quote the liquidity obtainable by depositing ``input_amount`` of one token

    Below the range only token A can be deposited, above it only token B;
    supplying the other token yields a zero quote.

    Args:
        input_mint: Mint of the token being deposited (A or B of the pool)
        input_amount: Raw amount of the input token
        whirlpool: Pool state
        tick_lower_index / tick_upper_index: Position range
        slippage_bps: Tolerance in basis points

    Returns:
        IncreaseLiquidityQuote
    """
    if input_mint == whirlpool.token_mint_a:
        is_a = True
    elif input_mint == whirlpool.token_mint_b:
        is_a = False
    else:
        raise ConfigurationError.invalid(
            "input_mint", f"{input_mint} is not a token of whirlpool {whirlpool.address}"
        )

    if tick_lower_index >= tick_upper_index:
        raise ConfigurationError.invalid(
            "tick_range", f"lower {tick_lower_index} must be below upper {tick_upper_index}"
        )

    sqrt_lower = tick_to_sqrt_price_x64(tick_lower_index)
    sqrt_upper = tick_to_sqrt_price_x64(tick_upper_index)
    sqrt_current = whirlpool.sqrt_price

    if sqrt_current <= sqrt_lower:
        liquidity = get_liquidity_from_amount_a(input_amount, sqrt_lower, sqrt_upper) if is_a else 0
    elif sqrt_current < sqrt_upper:
        if is_a:
            liquidity = get_liquidity_from_amount_a(input_amount, sqrt_current, sqrt_upper)
        else:
            liquidity = get_liquidity_from_amount_b(input_amount, sqrt_lower, sqrt_current)
    else:
        liquidity = 0 if is_a else get_liquidity_from_amount_b(input_amount, sqrt_lower, sqrt_upper)

    est_a, est_b = get_amounts_from_liquidity(liquidity, sqrt_current, sqrt_lower, sqrt_upper, round_up=True)

    quote = IncreaseLiquidityQuote(
        liquidity_amount=liquidity,
        token_est_a=est_a,
        token_est_b=est_b,
        token_max_a=adjust_for_slippage(est_a, slippage_bps, round_up=True),
        token_max_b=adjust_for_slippage(est_b, slippage_bps, round_up=True),
    )
    logger.debug(f"Increase quote: {quote}")
    return quote


def decrease_liquidity_quote_by_liquidity(
    liquidity: int,
    whirlpool: Whirlpool,
    tick_lower_index: int,
    tick_upper_index: int,
    slippage_bps: int,
) -> DecreaseLiquidityQuote:
    """
    Quote the tokens received for removing ``liquidity`` from a range

    Returns:
        DecreaseLiquidityQuote
    """
    if liquidity < 0:
        raise ConfigurationError.invalid("liquidity", f"must be >= 0, got {liquidity}")

    sqrt_lower = tick_to_sqrt_price_x64(tick_lower_index)
    sqrt_upper = tick_to_sqrt_price_x64(tick_upper_index)

    est_a, est_b = get_amounts_from_liquidity(
        liquidity, whirlpool.sqrt_price, sqrt_lower, sqrt_upper, round_up=False
    )

    quote = DecreaseLiquidityQuote(
        liquidity_amount=liquidity,
        token_est_a=est_a,
        token_est_b=est_b,
        token_min_a=adjust_for_slippage(est_a, slippage_bps, round_up=False),
        token_min_b=adjust_for_slippage(est_b, slippage_bps, round_up=False),
    )
    logger.debug(f"Decrease quote: {quote}")
    return quote
