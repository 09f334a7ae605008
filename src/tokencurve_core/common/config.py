import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from solders.pubkey import Pubkey

from tokencurve_core.common.math import BPS_DENOMINATOR, U64_MAX


DEFAULT_PROGRAM_ID = "ExiyW5RS1e4XxjxeZHktijRhnYF6sJYzfmdzU85gFbS4"
ENV_PREFIX = "TOKENCURVE_"


class CurveConfig(BaseModel):
    """Deployment-wide settings shared by every curve the orchestrator serves."""
    model_config = ConfigDict(frozen=True)

    program_id: str = Field(DEFAULT_PROGRAM_ID, description="Program identity used for address derivation")
    curve_seed: str = Field("bonding_curve", min_length=1, max_length=32)
    escrow_seed: str = Field("escrow", min_length=1, max_length=32)
    token_decimals: int = Field(9, ge=0, le=18, description="Decimals of newly created mints")
    max_base_price: int = Field(U64_MAX, gt=0, le=U64_MAX)
    max_slope: int = Field(10 ** 12, gt=0, le=U64_MAX)
    default_fee_bps: int = Field(0, ge=0, lt=BPS_DENOMINATOR)
    max_fee_bps: int = Field(1_000, ge=0, lt=BPS_DENOMINATOR)
    log_level: str = Field("INFO")

    @field_validator("program_id")
    @classmethod
    def _check_program_id(cls, value: str) -> str:
        try:
            Pubkey.from_string(value)
        except Exception as exc:
            raise ValueError(f"Invalid program id {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level {value}")
        return value

    @property
    def program_pubkey(self) -> Pubkey:
        return Pubkey.from_string(self.program_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CurveConfig":
        """
        Builds a config from TOKENCURVE_<FIELD> variables; unset fields keep their defaults.
        :param environ: mapping to read instead of os.environ
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        return cls(**values)


def configure_logging(config: CurveConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
