# [TESTER] v1

from __future__ import annotations

import pytest

from poolsettle.core.curves import Direction, step_down, step_up, total_price_and_next_price, unit_prices
from poolsettle.errors import ErrorCode, NumericOverflowError, ValidationError
from poolsettle.state.balances import U64_MAX
from poolsettle.state.pools import CurveKind

LINEAR = CurveKind.LINEAR
EXP = CurveKind.EXPONENTIAL
BUY = Direction.BUYER_BUYS
SELL = Direction.BUYER_SELLS


class TestLinear:
    def test_buyer_buys_steps_up_before_each_unit(self) -> None:
        assert unit_prices(100, LINEAR, 10, 3, BUY) == [110, 120, 130]
        assert total_price_and_next_price(100, LINEAR, 10, 3, BUY) == (360, 130)

    def test_buyer_sells_pays_spot_first(self) -> None:
        assert unit_prices(100, LINEAR, 10, 3, SELL) == [100, 90, 80]
        assert total_price_and_next_price(100, LINEAR, 10, 3, SELL) == (270, 70)

    def test_closed_forms_match_unit_sums(self) -> None:
        for n in range(1, 12):
            for direction in (BUY, SELL):
                total, _ = total_price_and_next_price(5_000, LINEAR, 37, n, direction)
                assert total == sum(unit_prices(5_000, LINEAR, 37, n, direction))

    def test_reference_prices(self) -> None:
        assert total_price_and_next_price(1_000_000, LINEAR, 10_000, 1, SELL) == (1_000_000, 990_000)
        assert total_price_and_next_price(1_000_000, LINEAR, 10_000, 1, BUY) == (1_010_000, 1_010_000)

    def test_selling_into_a_nearly_empty_pool_saturates_next_price(self) -> None:
        assert total_price_and_next_price(15, LINEAR, 10, 2, SELL) == (20, 0)

    def test_negative_paid_unit_price_is_an_overflow(self) -> None:
        with pytest.raises(NumericOverflowError):
            total_price_and_next_price(15, LINEAR, 10, 3, SELL)

    def test_zero_spot_zero_delta(self) -> None:
        assert total_price_and_next_price(0, LINEAR, 0, 5, SELL) == (0, 0)
        assert total_price_and_next_price(0, LINEAR, 0, 5, BUY) == (0, 0)

    def test_u64_overflow(self) -> None:
        with pytest.raises(NumericOverflowError):
            total_price_and_next_price(U64_MAX, LINEAR, 1, 1, BUY)
        with pytest.raises(NumericOverflowError):
            total_price_and_next_price(U64_MAX // 2, LINEAR, 0, 3, BUY)


class TestExponential:
    def test_buyer_buys(self) -> None:
        assert unit_prices(1_000, EXP, 1_000, 2, BUY) == [1_100, 1_210]
        assert total_price_and_next_price(1_000, EXP, 1_000, 2, BUY) == (2_310, 1_210)

    def test_buyer_sells_divides_by_one_plus_delta(self) -> None:
        assert unit_prices(1_000, EXP, 1_000, 2, SELL) == [1_000, 909]
        assert total_price_and_next_price(1_000, EXP, 1_000, 2, SELL) == (1_909, 826)

    def test_single_unit_floors_once(self) -> None:
        assert step_up(999, EXP, 333) == (999 * 10_333) // 10_000
        assert step_down(999, EXP, 333) == (999 * 10_000) // 10_333

    def test_zero_delta_is_flat(self) -> None:
        assert total_price_and_next_price(700, EXP, 0, 4, BUY) == (2_800, 700)
        assert total_price_and_next_price(700, EXP, 0, 4, SELL) == (2_800, 700)

    def test_selling_never_goes_negative(self) -> None:
        total, next_price = total_price_and_next_price(3, EXP, 10_000, 5, SELL)
        assert unit_prices(3, EXP, 10_000, 5, SELL) == [3, 1, 0, 0, 0]
        assert (total, next_price) == (4, 0)

    def test_pinned_price_prices_huge_batches(self) -> None:
        n = 10**12
        assert total_price_and_next_price(700, EXP, 0, n, BUY) == (700 * n, 700)
        assert total_price_and_next_price(700, EXP, 0, n, SELL) == (700 * n, 700)
        assert total_price_and_next_price(3, EXP, 10_000, 10**15, SELL) == (4, 0)

    def test_floor_pins_small_prices_on_the_way_up(self) -> None:
        # 5 * 1.01 floors back to 5
        assert unit_prices(5, EXP, 100, 6, BUY) == [5] * 6
        assert total_price_and_next_price(5, EXP, 100, 6, BUY) == (30, 5)
        assert total_price_and_next_price(5, EXP, 100, 10**12, BUY) == (5 * 10**12, 5)

    def test_pinned_batch_total_still_checked(self) -> None:
        with pytest.raises(NumericOverflowError):
            total_price_and_next_price(U64_MAX // 2, EXP, 0, 3, BUY)


class TestInputs:
    @pytest.mark.parametrize("n", [0, -1])
    def test_unit_count_must_be_positive(self, n: int) -> None:
        with pytest.raises(ValidationError) as exc:
            total_price_and_next_price(100, LINEAR, 1, n, BUY)
        assert exc.value.code is ErrorCode.INVALID_ASSET_AMOUNT

    def test_negative_spot_rejected(self) -> None:
        with pytest.raises(NumericOverflowError):
            total_price_and_next_price(-1, LINEAR, 1, 1, SELL)
