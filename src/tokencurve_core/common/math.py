"""
Checked integer arithmetic for everything that affects settlement.

Values that are persisted or moved on the ledger are unsigned 64-bit
integers. Intermediate products in the pricing formulas may grow up to
256 bits. Leaving either range raises ArithmeticOverflow instead of
wrapping or silently promoting.

Rounding rules:
  - amounts paid out by the curve round DOWN (div_down / mul_div_down)
  - amounts required from the caller, including fees, round UP
"""
import math
from decimal import Decimal

from tokencurve_core.common.errors import ArithmeticOverflow, InvalidAmount


U8_MAX = (1 << 8) - 1
U16_MAX = (1 << 16) - 1
U64_MAX = (1 << 64) - 1
U256_MAX = (1 << 256) - 1

BPS_DENOMINATOR = 10_000


def _require_int(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{label} must be an integer, got {type(value).__name__}")
    return value


def require_uint(value: int, limit: int = U64_MAX, label: str = "value") -> int:
    """
    Returns value if 0 <= value <= limit, raises ArithmeticOverflow otherwise.
    Non-integers (bool included) raise InvalidAmount.
    """
    _require_int(value, label)
    if value < 0:
        raise ArithmeticOverflow(f"{label} is negative: {value}")
    if value > limit:
        raise ArithmeticOverflow(f"{label} exceeds {limit.bit_length()}-bit range: {value}")
    return value


def require_u64(value: int, label: str = "value") -> int:
    return require_uint(value, U64_MAX, label)


def checked_add(a: int, b: int, limit: int = U64_MAX) -> int:
    require_uint(a, limit, "lhs")
    require_uint(b, limit, "rhs")
    return require_uint(a + b, limit, "sum")


def checked_sub(a: int, b: int, limit: int = U64_MAX) -> int:
    require_uint(a, limit, "lhs")
    require_uint(b, limit, "rhs")
    if b > a:
        raise ArithmeticOverflow(f"subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int, limit: int = U64_MAX) -> int:
    require_uint(a, limit, "lhs")
    require_uint(b, limit, "rhs")
    return require_uint(a * b, limit, "product")


def div_down(a: int, b: int) -> int:
    require_uint(a, U256_MAX, "dividend")
    require_uint(b, U256_MAX, "divisor")
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return a // b


def div_up(a: int, b: int) -> int:
    require_uint(a, U256_MAX, "dividend")
    require_uint(b, U256_MAX, "divisor")
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return -(-a // b)


def mul_div_down(a: int, b: int, d: int) -> int:
    """floor(a * b / d) with a 256-bit bound on the intermediate product."""
    return div_down(checked_mul(a, b, U256_MAX), d)


def mul_div_up(a: int, b: int, d: int) -> int:
    """ceil(a * b / d) with a 256-bit bound on the intermediate product."""
    return div_up(checked_mul(a, b, U256_MAX), d)


def isqrt(n: int) -> int:
    """floor(sqrt(n)) for a non-negative integer."""
    require_uint(n, U256_MAX, "radicand")
    return math.isqrt(n)


def apply_bps_up(amount: int, bps: int) -> int:
    """Fee on amount at bps basis points, rounded up so the curve never undercharges."""
    require_uint(bps, BPS_DENOMINATOR, "bps")
    return mul_div_up(amount, bps, BPS_DENOMINATOR)


def to_ui_amount(amount: int, decimals: int) -> Decimal:
    """Converts a base-unit amount into a Decimal for display. Never used for settlement."""
    return Decimal(amount).scaleb(-decimals)
