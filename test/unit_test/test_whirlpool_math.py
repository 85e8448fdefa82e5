"""
Test Whirlpool Math

Tests for tick/sqrt price conversion, liquidity amounts, slippage and quotes.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

MINT_A = "Jd4M8bfJG3sAkd82RsGWyEXoaBXQP7njFzBwEaCTuDa"
MINT_B = "BRjpCHtyQLNCo8gqRUr8jtdAj5AjPYQaoqbvcZiHok1k"


def _pool(sqrt_price, tick_current_index=0, tick_spacing=64):
    from whirlpool_tour.types import Whirlpool

    return Whirlpool(
        address="b3D36rfrihrvLmwfvAzbnX9qF1aJ4hVguZFmjqsxVbV",
        whirlpools_config="FcrweFY1G9HJAHG5inkGB6pKg1HZ6x9UC2WioAfWrGkR",
        tick_spacing=tick_spacing,
        fee_rate=3000,
        protocol_fee_rate=300,
        liquidity=10 ** 12,
        sqrt_price=sqrt_price,
        tick_current_index=tick_current_index,
        token_mint_a=MINT_A,
        token_vault_a="3xxgYc3jXPdjqpMdrRyKtcddh4ZdtqpaN33fwaWJ2uQD",
        fee_growth_global_a=0,
        token_mint_b=MINT_B,
        token_vault_b="8xKCx3SGwWR6BUr9mZFm3xwZmCVMuLjXn9iLEU6784FS",
        fee_growth_global_b=0,
        reward_last_updated_timestamp=0,
        reward_infos=[],
    )


def test_tick_to_sqrt_price_x64():
    """Test tick to sqrt price conversion"""
    from whirlpool_tour.whirlpool import tick_to_sqrt_price_x64
    from whirlpool_tour.whirlpool.constants import Q64

    print("Testing tick_to_sqrt_price_x64...")

    # Tick 0 is price 1.0
    assert tick_to_sqrt_price_x64(0) == Q64

    # Single-tick steps on either side of zero
    assert tick_to_sqrt_price_x64(1) == 18447666387855959850
    assert tick_to_sqrt_price_x64(-1) == 18445821805675392311

    # sqrt(1.0001)^tick
    for tick in (1, -1, 64, -64, 1000, -1000, 20000, -20000):
        expected = Decimal("1.0001") ** (Decimal(tick) / 2) * Q64
        actual = Decimal(tick_to_sqrt_price_x64(tick))
        assert abs(actual - expected) / expected < Decimal("1e-12"), f"tick {tick}: {actual} vs {expected}"

    # Monotonic
    ticks = [-5000, -64, -1, 0, 1, 64, 5000]
    prices = [tick_to_sqrt_price_x64(t) for t in ticks]
    assert prices == sorted(prices)
    assert len(set(prices)) == len(prices)

    print("  tick_to_sqrt_price_x64: PASSED")


def test_tick_bounds():
    """Test the bounds of the tick range"""
    from whirlpool_tour.whirlpool import tick_to_sqrt_price_x64
    from whirlpool_tour.whirlpool.constants import (
        MIN_TICK, MAX_TICK, MIN_SQRT_PRICE_X64, MAX_SQRT_PRICE_X64,
    )
    from whirlpool_tour.errors import ConfigurationError

    print("Testing tick bounds...")

    low = tick_to_sqrt_price_x64(MIN_TICK)
    high = tick_to_sqrt_price_x64(MAX_TICK)
    assert low == MIN_SQRT_PRICE_X64
    assert high == MAX_SQRT_PRICE_X64

    # Neighbouring ticks stay inside the bounds
    assert tick_to_sqrt_price_x64(MAX_TICK - 1) < MAX_SQRT_PRICE_X64
    assert tick_to_sqrt_price_x64(MIN_TICK + 1) > MIN_SQRT_PRICE_X64

    for tick in (MIN_TICK - 1, MAX_TICK + 1):
        try:
            tick_to_sqrt_price_x64(tick)
            assert False, f"Should reject tick {tick}"
        except ConfigurationError:
            pass

    print("  Tick bounds: PASSED")


def test_tick_to_price():
    """Test human-readable price with decimal adjustment"""
    from whirlpool_tour.whirlpool import tick_to_price

    print("Testing tick_to_price...")

    assert tick_to_price(0, 6, 6) == Decimal(1)

    # devSAMO (9 decimals) priced in devUSDC (6 decimals)
    price = tick_to_price(0, 9, 6)
    assert abs(price - Decimal(1000)) < Decimal("1e-9")

    price = tick_to_price(6932, 6, 6)  # ~2.0
    assert abs(price - Decimal(2)) < Decimal("0.001")

    print("  tick_to_price: PASSED")


def test_amounts_from_liquidity():
    """Test token amounts for positions below, in and above range"""
    from whirlpool_tour.whirlpool import tick_to_sqrt_price_x64, get_amounts_from_liquidity

    print("Testing get_amounts_from_liquidity...")

    lower = tick_to_sqrt_price_x64(-128)
    upper = tick_to_sqrt_price_x64(128)
    liquidity = 10 ** 9

    # Below range: only token A
    a, b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(-256), lower, upper)
    assert a > 0 and b == 0

    # Above range: only token B
    a, b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(256), lower, upper)
    assert a == 0 and b > 0

    # In range: both
    a_down, b_down = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(0), lower, upper)
    a_up, b_up = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(0), lower, upper, round_up=True)
    assert a_down > 0 and b_down > 0
    assert a_up in (a_down, a_down + 1)
    assert b_up in (b_down, b_down + 1)

    # Zero liquidity
    assert get_amounts_from_liquidity(0, tick_to_sqrt_price_x64(0), lower, upper) == (0, 0)

    print("  get_amounts_from_liquidity: PASSED")


def test_liquidity_from_amounts():
    """Test liquidity derived from an amount never overdraws that amount"""
    from whirlpool_tour.whirlpool import (
        tick_to_sqrt_price_x64,
        get_liquidity_from_amount_a,
        get_liquidity_from_amount_b,
        get_token_amount_a_from_liquidity,
        get_token_amount_b_from_liquidity,
    )

    print("Testing liquidity from amounts...")

    lower = tick_to_sqrt_price_x64(-640)
    upper = tick_to_sqrt_price_x64(640)

    liquidity_a = get_liquidity_from_amount_a(1_000_000, lower, upper)
    assert liquidity_a > 0
    assert get_token_amount_a_from_liquidity(liquidity_a, lower, upper, round_up=True) <= 1_000_000

    liquidity_b = get_liquidity_from_amount_b(1_000_000, lower, upper)
    assert liquidity_b > 0
    assert get_token_amount_b_from_liquidity(liquidity_b, lower, upper, round_up=True) <= 1_000_000

    # Argument order of the bounds does not matter
    assert get_liquidity_from_amount_b(1_000_000, upper, lower) == liquidity_b
    assert get_liquidity_from_amount_a(0, lower, upper) == 0

    print("  Liquidity from amounts: PASSED")


def test_tick_array_start_index():
    """Test tick array start index for positive and negative ticks"""
    from whirlpool_tour.whirlpool import get_tick_array_start_index

    print("Testing get_tick_array_start_index...")

    # 88 ticks * spacing 64 = 5632 per array
    assert get_tick_array_start_index(0, 64) == 0
    assert get_tick_array_start_index(5631, 64) == 0
    assert get_tick_array_start_index(5632, 64) == 5632
    assert get_tick_array_start_index(-1, 64) == -5632
    assert get_tick_array_start_index(-5632, 64) == -5632
    assert get_tick_array_start_index(-5633, 64) == -11264
    assert get_tick_array_start_index(100, 1) == 88

    print("  get_tick_array_start_index: PASSED")


def test_adjust_for_slippage():
    """Test slippage bounds in both directions"""
    from whirlpool_tour.whirlpool import adjust_for_slippage
    from whirlpool_tour.errors import ConfigurationError

    print("Testing adjust_for_slippage...")

    assert adjust_for_slippage(10_000, 100, round_up=True) == 10_100
    assert adjust_for_slippage(10_000, 100, round_up=False) == 9_900
    assert adjust_for_slippage(10_000, 0, round_up=True) == 10_000
    assert adjust_for_slippage(10_000, 0, round_up=False) == 10_000
    assert adjust_for_slippage(0, 100, round_up=True) == 0

    try:
        adjust_for_slippage(10_000, -1, round_up=True)
        assert False, "Should reject negative slippage"
    except ConfigurationError:
        pass

    print("  adjust_for_slippage: PASSED")


def test_increase_liquidity_quote():
    """Test increase quote by input token"""
    from whirlpool_tour.whirlpool import increase_liquidity_quote_by_input_token, tick_to_sqrt_price_x64
    from whirlpool_tour.errors import ConfigurationError

    print("Testing increase_liquidity_quote_by_input_token...")

    pool = _pool(tick_to_sqrt_price_x64(0))

    quote = increase_liquidity_quote_by_input_token(MINT_B, 1_000_000, pool, -128, 128, 100)
    assert quote.liquidity_amount > 0
    assert 0 < quote.token_est_b <= 1_000_000
    assert quote.token_est_a > 0
    assert quote.token_max_b == quote.token_est_b * 10_100 // 10_000
    assert quote.token_max_a >= quote.token_est_a

    # Token B cannot be deposited below the range
    out_of_range = _pool(tick_to_sqrt_price_x64(-1000), tick_current_index=-1000)
    quote = increase_liquidity_quote_by_input_token(MINT_B, 1_000_000, out_of_range, -128, 128, 100)
    assert quote.liquidity_amount == 0
    assert quote.token_est_a == 0 and quote.token_est_b == 0

    try:
        increase_liquidity_quote_by_input_token("So11111111111111111111111111111111111111112", 1, pool, -128, 128, 100)
        assert False, "Should reject a mint outside the pool"
    except ConfigurationError:
        pass

    try:
        increase_liquidity_quote_by_input_token(MINT_A, 1, pool, 128, -128, 100)
        assert False, "Should reject an inverted range"
    except ConfigurationError:
        pass

    print("  increase_liquidity_quote_by_input_token: PASSED")


def test_decrease_liquidity_quote():
    """Test decrease quote applies slippage downwards"""
    from whirlpool_tour.whirlpool import decrease_liquidity_quote_by_liquidity, tick_to_sqrt_price_x64

    print("Testing decrease_liquidity_quote_by_liquidity...")

    pool = _pool(tick_to_sqrt_price_x64(0))

    quote = decrease_liquidity_quote_by_liquidity(10 ** 9, pool, -128, 128, 100)
    assert quote.liquidity_amount == 10 ** 9
    assert quote.token_est_a > 0 and quote.token_est_b > 0
    assert quote.token_min_a <= quote.token_est_a
    assert quote.token_min_b <= quote.token_est_b

    zero = decrease_liquidity_quote_by_liquidity(0, pool, -128, 128, 100)
    assert zero.token_min_a == 0 and zero.token_min_b == 0

    print("  decrease_liquidity_quote_by_liquidity: PASSED")


def main():
    """Run all tests"""
    print("=" * 60)
    print("Whirlpool Math Tests")
    print("=" * 60)

    tests = [
        test_tick_to_sqrt_price_x64,
        test_tick_bounds,
        test_tick_to_price,
        test_amounts_from_liquidity,
        test_liquidity_from_amounts,
        test_tick_array_start_index,
        test_adjust_for_slippage,
        test_increase_liquidity_quote,
        test_decrease_liquidity_quote,
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
