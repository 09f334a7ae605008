"""
Pricing engine: pure quote functions over a CurveState.

Nothing here mutates state. Each function branches once on the curve's
shape and routes every settlement-affecting value through the checked
integer kernel. Quotes always price against the state exactly as given.
"""
import logging

from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.errors import (
    AmountTooSmall,
    InsufficientReserve,
    InsufficientSupply,
    InvalidAmount,
)
from tokencurve_core.common.math import (
    BPS_DENOMINATOR,
    apply_bps_up,
    checked_add,
    checked_sub,
    mul_div_up,
    require_u64,
)
from tokencurve_core.common.model import BuyQuote, CurveState, SellQuote
from tokencurve_core.curves.utils.constant_product_curve_helper import ConstantProductCurveHelper as cp_helper
from tokencurve_core.curves.utils.linear_curve_helper import LinearCurveHelper as linear_helper


logger = logging.getLogger(__name__)


def _live_reserves(state: CurveState):
    return cp_helper.live_reserves(
        state.base_price, state.slope, state.token_scale, state.reserve_balance, state.token_supply
    )


def _tokens_for(state: CurveState, net_in: int) -> int:
    if state.shape == CurveShape.LINEAR:
        return linear_helper.tokens_for_reserve(
            state.token_supply, net_in, state.base_price, state.slope, state.token_scale
        )
    x, y = _live_reserves(state)
    return cp_helper.tokens_out(x, y, net_in)


def _reserve_for(state: CurveState, tokens_in: int) -> int:
    if state.shape == CurveShape.LINEAR:
        return linear_helper.cost_between_down(
            state.token_supply - tokens_in, state.token_supply, state.base_price, state.slope, state.token_scale
        )
    x, y = _live_reserves(state)
    return cp_helper.reserve_out(x, y, tokens_in)


def spot_price(state: CurveState) -> int:
    """Marginal price of the next whole token, in reserve units, rounded down."""
    if state.shape == CurveShape.LINEAR:
        return linear_helper.spot_price(state.token_supply, state.base_price, state.slope, state.token_scale)
    x, y = _live_reserves(state)
    return cp_helper.spot_price(x, y, state.token_scale)


def quote_buy(state: CurveState, reserve_in: int) -> BuyQuote:
    """
    Prices spending reserve_in on the curve.

    The fee is withheld from the pricing input but the whole reserve_in is
    credited to the reserve, so the curve keeps both the fee and any
    rounding remainder.

    :raises InvalidAmount: reserve_in is zero
    :raises AmountTooSmall: reserve_in does not buy one base unit
    :raises ArithmeticOverflow: the new balances leave the u64 range
    """
    require_u64(reserve_in, "reserve_in")
    if reserve_in == 0:
        raise InvalidAmount("Amount must be greater than 0")

    fee = apply_bps_up(reserve_in, state.fee_bps)
    net_in = reserve_in - fee
    tokens_out = _tokens_for(state, net_in)
    if tokens_out == 0:
        raise AmountTooSmall(f"{reserve_in} does not buy a single unit at the current price")

    quote = BuyQuote(
        tokens_out=require_u64(tokens_out, "tokens_out"),
        fee=fee,
        new_reserve_balance=checked_add(state.reserve_balance, reserve_in),
        new_supply=checked_add(state.token_supply, tokens_out),
    )
    logger.debug("Buy quote for %d reserve: %s", reserve_in, quote)
    return quote


def quote_sell(state: CurveState, tokens_in: int) -> SellQuote:
    """
    Prices returning tokens_in to the curve. The exact inverse of quote_buy,
    with the payout rounded down and the fee rounded up.

    :raises InvalidAmount: tokens_in is zero
    :raises InsufficientSupply: tokens_in exceeds the circulating supply
    :raises AmountTooSmall: the payout rounds to zero
    :raises InsufficientReserve: the payout exceeds the reserve balance
    """
    require_u64(tokens_in, "tokens_in")
    if tokens_in == 0:
        raise InvalidAmount("Amount must be greater than 0")
    if tokens_in > state.token_supply:
        raise InsufficientSupply(f"Cannot sell {tokens_in} tokens, supply is {state.token_supply}")

    gross = _reserve_for(state, tokens_in)
    fee = apply_bps_up(gross, state.fee_bps)
    reserve_out = gross - fee
    if reserve_out == 0:
        raise AmountTooSmall(f"Selling {tokens_in} tokens returns nothing at the current price")
    if reserve_out > state.reserve_balance:
        raise InsufficientReserve(
            f"Payout {reserve_out} exceeds reserve balance {state.reserve_balance}"
        )

    quote = SellQuote(
        reserve_out=reserve_out,
        fee=fee,
        new_reserve_balance=checked_sub(state.reserve_balance, reserve_out),
        new_supply=checked_sub(state.token_supply, tokens_in),
    )
    logger.debug("Sell quote for %d tokens: %s", tokens_in, quote)
    return quote


def cost_to_buy(state: CurveState, tokens_out: int) -> int:
    """
    Smallest reserve amount, fee included, for which quote_buy issues at
    least tokens_out. Rounded up so the caller never underpays.
    """
    require_u64(tokens_out, "tokens_out")
    if tokens_out == 0:
        raise InvalidAmount("Amount must be greater than 0")

    if state.shape == CurveShape.LINEAR:
        net = linear_helper.cost_between_up(
            state.token_supply, state.token_supply + tokens_out, state.base_price, state.slope, state.token_scale
        )
    else:
        x, y = _live_reserves(state)
        net = cp_helper.reserve_in_for(x, y, tokens_out)

    if state.fee_bps == 0:
        return require_u64(net, "reserve_in")
    gross = mul_div_up(net, BPS_DENOMINATOR, BPS_DENOMINATOR - state.fee_bps)
    while gross - apply_bps_up(gross, state.fee_bps) < net:
        gross += 1
    return require_u64(gross, "reserve_in")
