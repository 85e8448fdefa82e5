"""
Whirlpool Math Utilities

Provides tick/price conversion and liquidity calculations.

All sqrt prices are X64 fixed-point integers. Amount helpers take a
``round_up`` flag: quotes for deposits round up (the program pulls at
least that much), quotes for withdrawals round down.
"""

from decimal import Decimal
from typing import Tuple

from .constants import Q64, MIN_TICK, MAX_TICK, TICK_ARRAY_SIZE, BPS_DENOMINATOR
from ..errors import ConfigurationError


# sqrt(1.0001)^(2^k) in Q96, for k = 1..18
_POSITIVE_TICK_FACTORS = [
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
]

# 1 / sqrt(1.0001)^(2^k) in Q64, for k = 1..18
_NEGATIVE_TICK_FACTORS = [
    18444899583751176498,
    18443055278223354162,
    18439367220385604838,
    18431993317065449817,
    18417254355718160513,
    18387811781193591352,
    18329067761203520168,
    18212142134806087854,
    17980523815641551639,
    17526086738831147013,
    16651378430235024244,
    15030750278693429944,
    12247334978882834399,
    8131365268884726200,
    3584323654723342297,
    696457651847595233,
    26294789957452057,
    37481735321082,
]


def _sqrt_price_positive_tick(tick: int) -> int:
    ratio = 79232123823359799118286999567 if tick & 1 else 1 << 96
    for i, factor in enumerate(_POSITIVE_TICK_FACTORS):
        if tick & (2 << i):
            ratio = (ratio * factor) >> 96
    return ratio >> 32


def _sqrt_price_negative_tick(tick: int) -> int:
    tick_abs = -tick
    ratio = 18445821805675392311 if tick_abs & 1 else Q64
    for i, factor in enumerate(_NEGATIVE_TICK_FACTORS):
        if tick_abs & (2 << i):
            ratio = (ratio * factor) >> 64
    return ratio


def tick_to_sqrt_price_x64(tick: int) -> int:
    """
    Convert tick to sqrt price in X64 fixed-point format

    Matches the on-chain conversion bit for bit, so MIN_TICK and MAX_TICK
    map exactly to MIN_SQRT_PRICE_X64 and MAX_SQRT_PRICE_X64.

    Args:
        tick: Tick index

    Returns:
        Sqrt price as X64 fixed-point integer
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ConfigurationError.invalid("tick", f"tick must be in [{MIN_TICK}, {MAX_TICK}], got {tick}")

    if tick >= 0:
        return _sqrt_price_positive_tick(tick)
    return _sqrt_price_negative_tick(tick)


def sqrt_price_x64_to_price(
    sqrt_price_x64: int,
    decimals_a: int,
    decimals_b: int,
) -> Decimal:
    """
    Convert sqrt price X64 to human-readable price

    Returns:
        Price of token A in terms of token B
    """
    sqrt_price = Decimal(sqrt_price_x64) / Decimal(Q64)
    price = sqrt_price * sqrt_price
    return price * (Decimal(10) ** (decimals_a - decimals_b))


def tick_to_price(tick: int, decimals_a: int, decimals_b: int) -> Decimal:
    """Convert tick to human-readable price of token A in token B"""
    return sqrt_price_x64_to_price(tick_to_sqrt_price_x64(tick), decimals_a, decimals_b)


def _div_round(numerator: int, denominator: int, round_up: bool) -> int:
    if round_up:
        return -(-numerator // denominator)
    return numerator // denominator


def get_token_amount_a_from_liquidity(
    liquidity: int,
    sqrt_price_x64_a: int,
    sqrt_price_x64_b: int,
    round_up: bool = False,
) -> int:
    """
    Calculate token A amount from liquidity

    Formula: liquidity * (sqrtPriceB - sqrtPriceA) * Q64 / (sqrtPriceA * sqrtPriceB)
    """
    if sqrt_price_x64_a > sqrt_price_x64_b:
        sqrt_price_x64_a, sqrt_price_x64_b = sqrt_price_x64_b, sqrt_price_x64_a

    if liquidity == 0 or sqrt_price_x64_a == sqrt_price_x64_b:
        return 0

    numerator = liquidity * (sqrt_price_x64_b - sqrt_price_x64_a) * Q64
    denominator = sqrt_price_x64_a * sqrt_price_x64_b
    return _div_round(numerator, denominator, round_up)


def get_token_amount_b_from_liquidity(
    liquidity: int,
    sqrt_price_x64_a: int,
    sqrt_price_x64_b: int,
    round_up: bool = False,
) -> int:
    """
    Calculate token B amount from liquidity

    Formula: liquidity * (sqrtPriceB - sqrtPriceA) / 2^64
    """
    if sqrt_price_x64_a > sqrt_price_x64_b:
        sqrt_price_x64_a, sqrt_price_x64_b = sqrt_price_x64_b, sqrt_price_x64_a

    if liquidity == 0 or sqrt_price_x64_a == sqrt_price_x64_b:
        return 0

    numerator = liquidity * (sqrt_price_x64_b - sqrt_price_x64_a)
    return _div_round(numerator, Q64, round_up)


def get_amounts_from_liquidity(
    liquidity: int,
    sqrt_price_current_x64: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
    round_up: bool = False,
) -> Tuple[int, int]:
    """
    Calculate token amounts from liquidity and price range

    Args:
        liquidity: Liquidity amount
        sqrt_price_current_x64: Current sqrt price
        sqrt_price_x64_lower: Lower bound sqrt price
        sqrt_price_x64_upper: Upper bound sqrt price
        round_up: Round amounts up (deposits) instead of down (withdrawals)

    Returns:
        (amount_a, amount_b) raw token amounts
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if sqrt_price_current_x64 <= sqrt_price_x64_lower:
        # Below range: only token A
        amount_a = get_token_amount_a_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_x64_upper, round_up
        )
        amount_b = 0
    elif sqrt_price_current_x64 < sqrt_price_x64_upper:
        # In range: both tokens
        amount_a = get_token_amount_a_from_liquidity(
            liquidity, sqrt_price_current_x64, sqrt_price_x64_upper, round_up
        )
        amount_b = get_token_amount_b_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_current_x64, round_up
        )
    else:
        # Above range: only token B
        amount_a = 0
        amount_b = get_token_amount_b_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_x64_upper, round_up
        )

    return amount_a, amount_b


def get_liquidity_from_amount_a(
    amount_a: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
) -> int:
    """
    Calculate liquidity from token A amount

    Formula: amount * sqrtPriceA * sqrtPriceB / ((sqrtPriceB - sqrtPriceA) * Q64)
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if amount_a == 0 or sqrt_price_x64_lower == sqrt_price_x64_upper:
        return 0

    numerator = amount_a * sqrt_price_x64_lower * sqrt_price_x64_upper
    denominator = (sqrt_price_x64_upper - sqrt_price_x64_lower) * Q64
    return numerator // denominator


def get_liquidity_from_amount_b(
    amount_b: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
) -> int:
    """
    Calculate liquidity from token B amount

    Formula: amount * 2^64 / (sqrtPriceB - sqrtPriceA)
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if amount_b == 0 or sqrt_price_x64_lower == sqrt_price_x64_upper:
        return 0

    return (amount_b * Q64) // (sqrt_price_x64_upper - sqrt_price_x64_lower)


def get_tick_array_start_index(tick: int, tick_spacing: int) -> int:
    """
    Calculate tick array start index for a given tick

    Args:
        tick: Tick index
        tick_spacing: Pool tick spacing

    Returns:
        Start tick of the tick array containing this tick
    """
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing

    # Floor division rounds towards negative infinity, matching on-chain indexing
    return (tick // ticks_in_array) * ticks_in_array


def adjust_for_slippage(amount: int, slippage_bps: int, round_up: bool) -> int:
    """
    Widen an amount by a slippage tolerance

    Args:
        amount: Estimated raw amount
        slippage_bps: Tolerance in basis points (100 = 1%)
        round_up: True for a maximum (amount * (1 + s)), False for a
            minimum (amount / (1 + s))

    Returns:
        Adjusted raw amount
    """
    if slippage_bps < 0:
        raise ConfigurationError.invalid("slippage_bps", f"must be >= 0, got {slippage_bps}")

    if round_up:
        return amount * (BPS_DENOMINATOR + slippage_bps) // BPS_DENOMINATOR
    return amount * BPS_DENOMINATOR // (BPS_DENOMINATOR + slippage_bps)
