from dataclasses import dataclass

from solders.pubkey import Pubkey

from tokencurve_core.common.enums import CurveShape, OrderSide


@dataclass(frozen=True)
class CurveState:
    """
    The single persisted record of a bonding curve.

    Instances are never mutated; the settlement orchestrator builds a
    replacement with dataclasses.replace and commits it as a whole.
    Amounts are integers in base units of their asset.
    """
    authority: Pubkey
    token_mint: Pubkey
    shape: CurveShape
    base_price: int
    slope: int
    decimals: int
    fee_bps: int = 0
    reserve_balance: int = 0
    token_supply: int = 0
    fees_collected: int = 0
    paused: bool = False
    bump: int = 0
    escrow_bump: int = 0

    @property
    def token_scale(self) -> int:
        """Base units per whole issued token."""
        return 10 ** self.decimals


@dataclass(frozen=True)
class BuyQuote:
    """Outcome of pricing a buy against a given CurveState."""
    tokens_out: int
    fee: int
    new_reserve_balance: int
    new_supply: int


@dataclass(frozen=True)
class SellQuote:
    """Outcome of pricing a sell against a given CurveState."""
    reserve_out: int
    fee: int
    new_reserve_balance: int
    new_supply: int


@dataclass(frozen=True)
class InitializeAccounts:
    """Addresses supplied by the caller of initialize."""
    curve: Pubkey
    escrow: Pubkey
    token_mint: Pubkey
    authority: Pubkey


@dataclass(frozen=True)
class TradeAccounts:
    """Addresses supplied by the caller of buy or sell. None of them is trusted as given."""
    curve: Pubkey
    escrow: Pubkey
    token_mint: Pubkey
    trader: Pubkey
    trader_token_account: Pubkey


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a settled buy or sell."""
    side: OrderSide
    amount_in: int
    amount_out: int
    fee: int
    new_reserve_balance: int
    new_supply: int
