from typing import Tuple

from tokencurve_core.common.errors import ConsistencyFault, InsufficientSupply
from tokencurve_core.common.math import checked_add, checked_mul, checked_sub, div_up, mul_div_down, U256_MAX


class ConstantProductCurveHelper:
    """
    Integer math for a constant-product curve over virtual reserves.

    The curve starts from virtual reserves

        X0 = base_price * depth        (reserve units)
        Y0 = depth * S                 (token base units)

    so the opening price X0 / (Y0 / S) equals base_price per whole token.
    Live reserves are x = X0 + reserve_balance and y = Y0 - token_supply,
    and every trade keeps x * y from decreasing.
    """

    @staticmethod
    def virtual_reserves(base_price: int, depth: int, scale: int) -> Tuple[int, int]:
        return checked_mul(base_price, depth, U256_MAX), checked_mul(depth, scale, U256_MAX)

    @staticmethod
    def live_reserves(
        base_price: int, depth: int, scale: int, reserve_balance: int, token_supply: int
    ) -> Tuple[int, int]:
        """Returns (x, y). Raises ConsistencyFault if supply has eaten the whole virtual depth."""
        x0, y0 = ConstantProductCurveHelper.virtual_reserves(base_price, depth, scale)
        if token_supply >= y0:
            raise ConsistencyFault(f"Token supply {token_supply} exhausts virtual depth {y0}")
        return checked_add(x0, reserve_balance, U256_MAX), y0 - token_supply

    @staticmethod
    def tokens_out(x: int, y: int, amount_in: int) -> int:
        """floor(y * amount_in / (x + amount_in)); always < y."""
        return mul_div_down(y, amount_in, checked_add(x, amount_in, U256_MAX))

    @staticmethod
    def reserve_out(x: int, y: int, tokens_in: int) -> int:
        """floor(x * tokens_in / (y + tokens_in)); always < x."""
        return mul_div_down(x, tokens_in, checked_add(y, tokens_in, U256_MAX))

    @staticmethod
    def reserve_in_for(x: int, y: int, tokens_wanted: int) -> int:
        """
        Smallest amount_in with tokens_out(x, y, amount_in) >= tokens_wanted:
        ceil(tokens_wanted * x / (y - tokens_wanted)).
        """
        if tokens_wanted >= y:
            raise InsufficientSupply(f"Cannot issue {tokens_wanted} tokens from a depth of {y}")
        return div_up(checked_mul(tokens_wanted, x, U256_MAX), checked_sub(y, tokens_wanted, U256_MAX))

    @staticmethod
    def spot_price(x: int, y: int, scale: int) -> int:
        """Marginal price per whole token, rounded down."""
        return mul_div_down(x, scale, y)
