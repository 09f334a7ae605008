import dataclasses
import hashlib

import pytest
from solders.pubkey import Pubkey

from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.errors import ArithmeticOverflow, InvalidAccountData
from tokencurve_core.common.math import U64_MAX
from tokencurve_core.common.model import CurveState
from tokencurve_core.state.layout import (
    CURVE_STATE_SIZE,
    DISCRIMINATOR,
    decode_curve_state,
    encode_curve_state,
)


@pytest.fixture
def state():
    return CurveState(
        authority=Pubkey.new_unique(),
        token_mint=Pubkey.new_unique(),
        shape=CurveShape.CONSTANT_PRODUCT,
        base_price=1_000_000,
        slope=100,
        decimals=9,
        fee_bps=30,
        reserve_balance=U64_MAX,
        token_supply=954_451_150_103,
        fees_collected=7,
        paused=True,
        bump=254,
        escrow_bump=251,
    )


def test_size_is_fixed():
    assert CURVE_STATE_SIZE == 119


def test_discriminator():
    assert DISCRIMINATOR == hashlib.sha256(b"account:BondingCurve").digest()[:8]


def test_encode_decode(state):
    data = encode_curve_state(state)
    assert len(data) == CURVE_STATE_SIZE
    assert decode_curve_state(data) == state


def test_field_offsets(state):
    """Field order and widths are part of the persisted contract."""
    data = encode_curve_state(state)
    assert data[:8] == DISCRIMINATOR
    assert data[8:40] == bytes(state.authority)
    assert data[40:72] == bytes(state.token_mint)
    assert data[72] == CurveShape.CONSTANT_PRODUCT.tag
    assert data[73] == 9
    assert data[74] == 1
    assert int.from_bytes(data[75:77], "little") == 30
    assert int.from_bytes(data[77:85], "little") == 1_000_000
    assert int.from_bytes(data[85:93], "little") == 100
    assert int.from_bytes(data[93:101], "little") == U64_MAX
    assert int.from_bytes(data[101:109], "little") == 954_451_150_103
    assert int.from_bytes(data[109:117], "little") == 7
    assert data[117] == 254
    assert data[-1] == 251


def test_encode_rejects_out_of_range(state):
    with pytest.raises(ArithmeticOverflow):
        encode_curve_state(dataclasses.replace(state, token_supply=U64_MAX + 1))
    with pytest.raises(ArithmeticOverflow):
        encode_curve_state(dataclasses.replace(state, reserve_balance=-1))


def test_decode_wrong_length(state):
    with pytest.raises(InvalidAccountData):
        decode_curve_state(encode_curve_state(state)[:-1])


def test_decode_wrong_discriminator(state):
    data = bytearray(encode_curve_state(state))
    data[0] ^= 0xFF
    with pytest.raises(InvalidAccountData):
        decode_curve_state(bytes(data))


@pytest.mark.parametrize("offset, value", [(72, 9), (74, 2)])
def test_decode_rejects_bad_tags(state, offset, value):
    data = bytearray(encode_curve_state(state))
    data[offset] = value
    with pytest.raises(InvalidAccountData):
        decode_curve_state(bytes(data))
