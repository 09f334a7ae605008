import logging
from typing import Any, Dict, List

from solders.pubkey import Pubkey

from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.errors import ConsistencyFault
from tokencurve_core.common.math import U64_MAX
from tokencurve_core.common.model import CurveState
from tokencurve_core.curves.utils.constant_product_curve_helper import ConstantProductCurveHelper as cp_helper
from tokencurve_core.curves.utils.linear_curve_helper import LinearCurveHelper as linear_helper
from tokencurve_core.ledger.addresses import NATIVE_MINT
from tokencurve_core.ledger.base import Ledger


logger = logging.getLogger(__name__)


class CurveInvariantValidator:
    """
    Checks a CurveState against the invariants that must hold after every operation:
      1) balances are non-negative and representable
      2) the reserve covers selling the whole supply back (solvency)
      3) tracked supply equals the ledger's supply, and the escrow holds the reserve
    """

    @staticmethod
    def check_state(state: CurveState) -> Dict[str, Any]:
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        for name in ("reserve_balance", "token_supply", "fees_collected"):
            value = getattr(state, name)
            if value < 0 or value > U64_MAX:
                errors.append(f"Curve: '{name}' out of range: {value}.")
        if errors:
            return {"errors": errors, "warnings": warnings, "info": info}

        if state.shape == CurveShape.LINEAR:
            owed = linear_helper.cost_between_down(
                0, state.token_supply, state.base_price, state.slope, state.token_scale
            )
            if state.reserve_balance < owed:
                errors.append(
                    f"LinearCurve: reserve {state.reserve_balance} does not cover redeeming supply ({owed})."
                )
            info["redeem_value"] = owed
        else:
            x0, y0 = cp_helper.virtual_reserves(state.base_price, state.slope, state.token_scale)
            if state.token_supply >= y0:
                errors.append(f"ConstantProductCurve: supply {state.token_supply} exhausts depth {y0}.")
            elif (x0 + state.reserve_balance) * (y0 - state.token_supply) < x0 * y0:
                errors.append("ConstantProductCurve: live reserve product fell below the virtual product.")

        return {"errors": errors, "warnings": warnings, "info": info}

    @staticmethod
    def check_ledger(state: CurveState, ledger: Ledger, escrow: Pubkey) -> Dict[str, Any]:
        errors: List[str] = []
        info: Dict[str, Any] = {}

        ledger_supply = ledger.total_supply(state.token_mint)
        if ledger_supply != state.token_supply:
            errors.append(
                f"Ledger supply {ledger_supply} differs from tracked supply {state.token_supply}."
            )
        escrow_balance = ledger.balance_of(NATIVE_MINT, escrow)
        if escrow_balance < state.reserve_balance:
            errors.append(
                f"Escrow balance {escrow_balance} is below tracked reserve {state.reserve_balance}."
            )
        info["ledger_supply"] = ledger_supply
        info["escrow_balance"] = escrow_balance
        return {"errors": errors, "warnings": [], "info": info}

    @staticmethod
    def run_all_validations(state: CurveState, ledger: Ledger, escrow: Pubkey) -> Dict[str, Any]:
        results = {
            "errors": [],
            "warnings": [],
            "info": {}
        }
        for check in (
            CurveInvariantValidator.check_state(state),
            CurveInvariantValidator.check_ledger(state, ledger, escrow),
        ):
            results["errors"].extend(check["errors"])
            results["warnings"].extend(check["warnings"])
            results["info"].update(check["info"])
        return results

    @staticmethod
    def require_consistent(state: CurveState, ledger: Ledger, escrow: Pubkey) -> None:
        """Raises ConsistencyFault listing every violated invariant."""
        results = CurveInvariantValidator.run_all_validations(state, ledger, escrow)
        if results["errors"]:
            logger.critical("Consistency fault on curve for mint %s: %s", state.token_mint, results["errors"])
            raise ConsistencyFault("; ".join(results["errors"]))
