from typing import Optional


class BondingCurveError(Exception):
    """Base class for every failure a curve operation can report to its caller."""

    @property
    def code(self) -> str:
        return type(self).__name__


class AlreadyInitialized(BondingCurveError):
    """A curve record already exists at the derived address."""


class InvalidParameters(BondingCurveError):
    """Curve parameters are outside their accepted bounds."""


class ArithmeticOverflow(BondingCurveError):
    """A checked operation left its representable range (or divided by zero)."""


class InvalidAmount(BondingCurveError):
    """The requested amount is zero or otherwise unusable."""


class AmountTooSmall(BondingCurveError):
    """The amount does not buy (or redeem) a single minimum unit."""


class InsufficientSupply(BondingCurveError):
    """More tokens were offered than are in circulation."""


class InsufficientReserve(BondingCurveError):
    """The computed payout exceeds the reserve held by the curve."""


class SlippageExceeded(BondingCurveError):
    """The settled amount is less favorable than the caller's bound."""


class Unauthorized(BondingCurveError):
    """The caller is not the curve authority."""


class TradingPaused(BondingCurveError):
    """The authority has halted buys and sells on this curve."""


class InvalidAccount(BondingCurveError):
    """A caller-supplied address does not match its deterministic derivation."""


class CurveNotFound(BondingCurveError):
    """No curve record exists at the requested address."""


class InvalidAccountData(BondingCurveError):
    """A stored record could not be decoded."""


class StaleAccount(BondingCurveError):
    """The record changed between load and commit."""


class LedgerError(BondingCurveError):
    """The ledger collaborator rejected or failed an instruction."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConsistencyFault(BondingCurveError):
    """
    Curve bookkeeping and the ledger disagree.

    This is never repaired automatically; the operation aborts and the
    condition must be investigated out of band.
    """
