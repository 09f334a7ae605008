from typing import Any, Dict, List

from tokencurve_core.common.config import CurveConfig
from tokencurve_core.common.enums import CurveShape
from tokencurve_core.common.math import U64_MAX


class CurveParamsValidator:
    """
    Checks curve parameters before a curve is created or its fee is changed.

    Each check returns a dict with:
      {
        "errors": [str...],
        "warnings": [str...],
        "info": {...}
      }
    Any error means the parameters must be rejected.
    """

    @staticmethod
    def validate_params(
        shape: CurveShape,
        base_price: int,
        slope: int,
        fee_bps: int,
        decimals: int,
        config: CurveConfig,
    ) -> Dict[str, Any]:
        """
        Checks that:
          - base_price > 0 and within config.max_base_price
          - slope > 0 and within config.max_slope
          - fee_bps within config.max_fee_bps
          - constant-product virtual reserves fit the u64 range
        and warns when a linear curve is too flat for its price to double
        within the u64 supply range.
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        for name, value in (("base_price", base_price), ("slope", slope), ("fee_bps", fee_bps)):
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"Curve: '{name}' must be an integer.")
        if errors:
            return {"errors": errors, "warnings": warnings, "info": info}

        if base_price <= 0:
            errors.append("Curve: 'base_price' must be > 0.")
        elif base_price > config.max_base_price:
            errors.append(f"Curve: 'base_price' must be <= {config.max_base_price}.")

        if slope <= 0:
            errors.append("Curve: 'slope' must be > 0.")
        elif slope > config.max_slope:
            errors.append(f"Curve: 'slope' must be <= {config.max_slope}.")

        fee_errors = CurveParamsValidator.validate_fee(fee_bps, config)["errors"]
        errors.extend(fee_errors)

        if shape == CurveShape.CONSTANT_PRODUCT and not errors:
            virtual_reserve = base_price * slope
            virtual_tokens = slope * 10 ** decimals
            if virtual_reserve > U64_MAX:
                errors.append("ConstantProductCurve: 'base_price * slope' (virtual reserve) exceeds u64.")
            if virtual_tokens > U64_MAX:
                errors.append("ConstantProductCurve: virtual token depth exceeds u64.")
            info["virtual_reserve"] = virtual_reserve
            info["virtual_tokens"] = virtual_tokens

        if shape == CurveShape.LINEAR and not errors:
            # base units of supply over which the price doubles
            doubling_supply = base_price * 10 ** decimals // slope
            info["doubling_supply"] = doubling_supply
            if doubling_supply > U64_MAX:
                warnings.append(
                    "LinearCurve: price cannot double before supply leaves the u64 range; the curve is effectively flat."
                )

        info["param_summary"] = {
            "shape": str(shape),
            "base_price": str(base_price),
            "slope": str(slope),
            "fee_bps": str(fee_bps),
            "decimals": str(decimals),
        }

        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def validate_fee(fee_bps: int, config: CurveConfig) -> Dict[str, Any]:
        errors: List[str] = []
        if isinstance(fee_bps, bool) or not isinstance(fee_bps, int):
            errors.append("Curve: 'fee_bps' must be an integer.")
        elif fee_bps < 0:
            errors.append("Curve: 'fee_bps' cannot be negative.")
        elif fee_bps > config.max_fee_bps:
            errors.append(f"Curve: 'fee_bps' must be <= {config.max_fee_bps}.")
        return {"errors": errors, "warnings": [], "info": {}}
