import pytest

from tokencurve_core.common.errors import ArithmeticOverflow
from tokencurve_core.common.math import U256_MAX
from tokencurve_core.curves.utils.linear_curve_helper import LinearCurveHelper


@pytest.mark.parametrize(
    "start, end, base_price, slope, scale, down, up",
    [
        # 1) Whole-token scale, exact division
        #    numer = 2*1*10*5 + 2*(25 - 0) = 100 + 50 = 150, denominator = 2
        #    cost = 75 both ways
        (0, 5, 10, 2, 1, 75, 75),

        # 2) Remainder forces the rounding directions apart
        #    numer = 2*1*1*1 + 1*1 = 3, denominator = 2 => 1.5
        (0, 1, 1, 1, 1, 1, 2),

        # 3) Ten base units per token
        #    numer = 2*10*100*10 + 10*100 = 21000, denominator = 200 => 105
        (0, 10, 100, 10, 10, 105, 105),

        # 4) Same width higher up the curve costs more
        #    numer = 2*10*100*10 + 10*(400 - 100) = 23000 => 115
        (10, 20, 100, 10, 10, 115, 115),

        # 5) start == end => nothing to integrate
        (7, 7, 100, 10, 10, 0, 0),
    ],
)
def test_cost_between(start, end, base_price, slope, scale, down, up):
    assert LinearCurveHelper.cost_between_down(start, end, base_price, slope, scale) == down
    assert LinearCurveHelper.cost_between_up(start, end, base_price, slope, scale) == up


def test_cost_numerator_rejects_reversed_range():
    with pytest.raises(ArithmeticOverflow):
        LinearCurveHelper.cost_numerator(5, 4, 10, 2, 1)


@pytest.mark.parametrize(
    "supply, budget, base_price, slope, scale, expected",
    [
        # 20*dt + 2*dt^2 <= 150 => dt = 5 exactly
        (0, 75, 10, 2, 1, 5),
        # one unit short of the exact cost drops a token
        (0, 74, 10, 2, 1, 4),
        (0, 0, 10, 2, 1, 0),
        # from supply 5: 40*dt + 2*dt^2 <= 2*budget
        (5, 21, 10, 2, 1, 1),
        (5, 20, 10, 2, 1, 0),
        # flat curve: budget * 2*S^2 / (2*S*base)
        (0, 100, 10, 0, 1, 10),
        (0, 100, 10, 0, 10, 100),
    ],
)
def test_tokens_for_reserve(supply, budget, base_price, slope, scale, expected):
    assert LinearCurveHelper.tokens_for_reserve(supply, budget, base_price, slope, scale) == expected


@pytest.mark.parametrize(
    "supply, budget, base_price, slope, scale",
    [
        (0, 1_000_000_000, 1_000_000, 100, 10 ** 9),
        (954_451_150_103, 123_456_789, 1_000_000, 100, 10 ** 9),
        (10 ** 15, 10 ** 18, 1, 10 ** 12, 10 ** 9),
        (3, 999_999_999_999, 7, 3, 10 ** 6),
    ],
)
def test_tokens_for_reserve_is_largest_affordable(supply, budget, base_price, slope, scale):
    """
    The issued amount must be affordable and one more base unit must not be.
    """
    dt = LinearCurveHelper.tokens_for_reserve(supply, budget, base_price, slope, scale)
    budget_numer = budget * LinearCurveHelper.denominator(scale)
    assert LinearCurveHelper.cost_numerator(supply, supply + dt, base_price, slope, scale) <= budget_numer
    assert LinearCurveHelper.cost_numerator(supply, supply + dt + 1, base_price, slope, scale) > budget_numer


def test_denominator_bounds():
    assert LinearCurveHelper.denominator(10 ** 9) == 2 * 10 ** 18
    with pytest.raises(ArithmeticOverflow):
        LinearCurveHelper.denominator(U256_MAX)


@pytest.mark.parametrize(
    "supply, base_price, slope, scale, expected",
    [
        (0, 100, 10, 10, 100),
        (25, 100, 10, 10, 125),
        # 100 + floor(10*5/10) = 105
        (5, 100, 10, 10, 105),
        (954_451_150_103, 1_000_000, 100, 10 ** 9, 1_095_445),
    ],
)
def test_spot_price(supply, base_price, slope, scale, expected):
    assert LinearCurveHelper.spot_price(supply, base_price, slope, scale) == expected
