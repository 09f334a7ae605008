"""
Fixed binary layout of a persisted CurveState.

All integers are little endian, fields in this exact order:

    discriminator    8 bytes   sha256(b"account:BondingCurve")[:8]
    authority       32 bytes
    token_mint      32 bytes
    shape            u8        CurveShape.tag
    decimals         u8
    paused           u8        0 or 1
    fee_bps          u16
    base_price       u64
    slope            u64
    reserve_balance  u64
    token_supply     u64
    fees_collected   u64
    bump             u8
    escrow_bump      u8
"""
import hashlib
import struct

from solders.pubkey import Pubkey

from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.errors import InvalidAccountData
from tokencurve_core.common.math import U8_MAX, U16_MAX, require_u64, require_uint
from tokencurve_core.common.model import CurveState


DISCRIMINATOR = hashlib.sha256(b"account:BondingCurve").digest()[:8]

_LAYOUT = struct.Struct("<8s32s32sBBBHQQQQQBB")
CURVE_STATE_SIZE = _LAYOUT.size


def encode_curve_state(state: CurveState) -> bytes:
    """
    Serializes a CurveState. Out-of-range fields raise ArithmeticOverflow.
    """
    return _LAYOUT.pack(
        DISCRIMINATOR,
        bytes(state.authority),
        bytes(state.token_mint),
        state.shape.tag,
        require_uint(state.decimals, U8_MAX, "decimals"),
        1 if state.paused else 0,
        require_uint(state.fee_bps, U16_MAX, "fee_bps"),
        require_u64(state.base_price, "base_price"),
        require_u64(state.slope, "slope"),
        require_u64(state.reserve_balance, "reserve_balance"),
        require_u64(state.token_supply, "token_supply"),
        require_u64(state.fees_collected, "fees_collected"),
        require_uint(state.bump, U8_MAX, "bump"),
        require_uint(state.escrow_bump, U8_MAX, "escrow_bump"),
    )


def decode_curve_state(data: bytes) -> CurveState:
    if len(data) != CURVE_STATE_SIZE:
        raise InvalidAccountData(f"Expected {CURVE_STATE_SIZE} bytes, got {len(data)}")

    (
        discriminator,
        authority,
        token_mint,
        shape_tag,
        decimals,
        paused,
        fee_bps,
        base_price,
        slope,
        reserve_balance,
        token_supply,
        fees_collected,
        bump,
        escrow_bump,
    ) = _LAYOUT.unpack(data)

    if discriminator != DISCRIMINATOR:
        raise InvalidAccountData("Account discriminator does not match a bonding curve")
    if paused not in (0, 1):
        raise InvalidAccountData(f"Invalid paused flag {paused}")
    try:
        shape = CurveShape.from_tag(shape_tag)
    except ValueError as exc:
        raise InvalidAccountData(str(exc)) from exc

    return CurveState(
        authority=Pubkey(authority),
        token_mint=Pubkey(token_mint),
        shape=shape,
        base_price=base_price,
        slope=slope,
        decimals=decimals,
        fee_bps=fee_bps,
        reserve_balance=reserve_balance,
        token_supply=token_supply,
        fees_collected=fees_collected,
        paused=bool(paused),
        bump=bump,
        escrow_bump=escrow_bump,
    )
