from tokencurve_core.common.math import checked_add, checked_mul, checked_sub, div_down, div_up, isqrt, U256_MAX


class LinearCurveHelper:
    """
    Integer math for the linear curve

        price(s) = base_price + slope * s / S        (reserve units per whole token)

    where s is supply in base units and S = 10 ** decimals. The reserve
    needed to move supply from s0 to s1 is the integral

        cost(s0, s1) = numer(s0, s1) / (2 * S^2)
        numer(s0, s1) = 2*S*base_price*(s1 - s0) + slope*(s1^2 - s0^2)

    which is kept as an exact integer numerator and only divided at the end,
    with the rounding direction chosen by the caller.
    """

    @staticmethod
    def denominator(scale: int) -> int:
        return checked_mul(2, checked_mul(scale, scale, U256_MAX), U256_MAX)

    @staticmethod
    def cost_numerator(start: int, end: int, base_price: int, slope: int, scale: int) -> int:
        """
        numer(start, end) for start <= end.
        """
        width = checked_sub(end, start, U256_MAX)
        base_term = checked_mul(checked_mul(2 * scale, base_price, U256_MAX), width, U256_MAX)
        squares = checked_sub(
            checked_mul(end, end, U256_MAX),
            checked_mul(start, start, U256_MAX),
            U256_MAX,
        )
        return checked_add(base_term, checked_mul(slope, squares, U256_MAX), U256_MAX)

    @staticmethod
    def cost_between_down(start: int, end: int, base_price: int, slope: int, scale: int) -> int:
        """Reserve released when supply falls from end to start, rounded down."""
        numer = LinearCurveHelper.cost_numerator(start, end, base_price, slope, scale)
        return div_down(numer, LinearCurveHelper.denominator(scale))

    @staticmethod
    def cost_between_up(start: int, end: int, base_price: int, slope: int, scale: int) -> int:
        """Reserve required to raise supply from start to end, rounded up."""
        numer = LinearCurveHelper.cost_numerator(start, end, base_price, slope, scale)
        return div_up(numer, LinearCurveHelper.denominator(scale))

    @staticmethod
    def tokens_for_reserve(supply: int, budget: int, base_price: int, slope: int, scale: int) -> int:
        """
        Largest dt such that cost(supply, supply + dt) <= budget.

        Solves slope*dt^2 + b*dt - c <= 0 with b = 2*(S*base_price + slope*supply)
        and c = budget * 2*S^2. The integer square root gives a lower bound on
        the real root; the result is then nudged until it is exact.
        """
        if slope == 0:
            return div_down(
                checked_mul(budget, LinearCurveHelper.denominator(scale), U256_MAX),
                checked_mul(2 * scale, base_price, U256_MAX),
            )

        c = checked_mul(budget, LinearCurveHelper.denominator(scale), U256_MAX)
        b = checked_mul(
            2,
            checked_add(
                checked_mul(scale, base_price, U256_MAX),
                checked_mul(slope, supply, U256_MAX),
                U256_MAX,
            ),
            U256_MAX,
        )
        discriminant = checked_add(
            checked_mul(b, b, U256_MAX),
            checked_mul(4 * slope, c, U256_MAX),
            U256_MAX,
        )
        root = isqrt(discriminant)
        dt = div_down(checked_sub(root, b, U256_MAX), 2 * slope)

        def fits(width: int) -> bool:
            numer = LinearCurveHelper.cost_numerator(supply, supply + width, base_price, slope, scale)
            return numer <= c

        while fits(dt + 1):
            dt += 1
        while dt > 0 and not fits(dt):
            dt -= 1
        return dt

    @staticmethod
    def spot_price(supply: int, base_price: int, slope: int, scale: int) -> int:
        """Marginal price per whole token at the given supply, rounded down."""
        return checked_add(base_price, div_down(checked_mul(slope, supply, U256_MAX), scale), U256_MAX)
