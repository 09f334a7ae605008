import dataclasses

import pytest
from solders.pubkey import Pubkey

from tokencurve_core.common.enums import CurveShape, OrderSide
from tokencurve_core.common.model import BuyQuote, CurveState, TransactionResult


def _make_state(**overrides) -> CurveState:
    fields = dict(
        authority=Pubkey.new_unique(),
        token_mint=Pubkey.new_unique(),
        shape=CurveShape.LINEAR,
        base_price=1_000_000,
        slope=100,
        decimals=9,
    )
    fields.update(overrides)
    return CurveState(**fields)


class TestCurveState:
    def test_defaults(self):
        """A fresh curve holds nothing and has issued nothing."""
        state = _make_state()
        assert state.reserve_balance == 0
        assert state.token_supply == 0
        assert state.fees_collected == 0
        assert state.fee_bps == 0
        assert state.paused is False

    @pytest.mark.parametrize("decimals, scale", [(0, 1), (6, 10 ** 6), (9, 10 ** 9)])
    def test_token_scale(self, decimals, scale):
        assert _make_state(decimals=decimals).token_scale == scale

    def test_frozen(self):
        state = _make_state()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.reserve_balance = 5

    def test_replace_leaves_original(self):
        state = _make_state()
        updated = dataclasses.replace(state, reserve_balance=10, token_supply=3)
        assert state.reserve_balance == 0
        assert updated.reserve_balance == 10
        assert updated.token_supply == 3
        assert updated.authority == state.authority


def test_quote_and_result_are_values():
    assert BuyQuote(1, 0, 2, 3) == BuyQuote(tokens_out=1, fee=0, new_reserve_balance=2, new_supply=3)
    result = TransactionResult(OrderSide.SELL, 10, 9, 1, 100, 50)
    assert result.side == OrderSide.SELL
    assert result.amount_out == 9
