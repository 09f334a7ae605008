import logging

from solders.pubkey import Pubkey

from tokencurve_core.common.errors import TradingPaused, Unauthorized
from tokencurve_core.common.model import CurveState


logger = logging.getLogger(__name__)


class AuthorityGuard:
    """
    Access rules for a curve.

    Buys and sells are open to anyone while the curve is not paused. Every
    administrative operation requires the caller to be the curve authority.
    Initialize has no check: whoever creates the record becomes its authority.
    """

    @staticmethod
    def require_authority(state: CurveState, caller: Pubkey) -> None:
        if caller != state.authority:
            logger.warning("Rejected administrative call by %s on mint %s", caller, state.token_mint)
            raise Unauthorized(f"{caller} is not the authority of this curve")

    @staticmethod
    def require_trading_open(state: CurveState) -> None:
        if state.paused:
            raise TradingPaused(f"Trading is paused for mint {state.token_mint}")
