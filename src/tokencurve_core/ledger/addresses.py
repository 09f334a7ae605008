from functools import lru_cache
from typing import Tuple

from solders.pubkey import Pubkey

from tokencurve_core.common.config import CurveConfig
from tokencurve_core.common.errors import InvalidAccount


TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNJ1fzFZt")
# The reserve asset. Native balances are held directly by the owner's address.
NATIVE_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")


@lru_cache(maxsize=4096)
def _find_program_address(seeds: Tuple[bytes, ...], program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(list(seeds), program_id)


class AddressDeriver:
    """
    Deterministic addresses for the curve, its escrow and holders' token accounts.

    Caller-supplied addresses are never trusted; every one is re-derived here
    and compared before it is used.
    """

    def __init__(self, config: CurveConfig):
        self.program_id = config.program_pubkey
        self.curve_seed = config.curve_seed.encode()
        self.escrow_seed = config.escrow_seed.encode()

    def curve_address(self, token_mint: Pubkey) -> Tuple[Pubkey, int]:
        """Curve record address and bump, from (curve_seed, mint)."""
        return _find_program_address((self.curve_seed, bytes(token_mint)), self.program_id)

    def escrow_address(self, curve: Pubkey) -> Tuple[Pubkey, int]:
        """Escrow address and bump, from (escrow_seed, curve)."""
        return _find_program_address((self.escrow_seed, bytes(curve)), self.program_id)

    @staticmethod
    def token_account(owner: Pubkey, token_mint: Pubkey) -> Pubkey:
        """Associated token account of owner for token_mint."""
        address, _ = _find_program_address(
            (bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(token_mint)),
            ASSOCIATED_TOKEN_PROGRAM_ID,
        )
        return address

    @staticmethod
    def require_match(label: str, expected: Pubkey, supplied: Pubkey) -> None:
        if expected != supplied:
            raise InvalidAccount(f"{label} {supplied} does not match derived address {expected}")

    def verify_curve(self, token_mint: Pubkey, curve: Pubkey, escrow: Pubkey, bump: int, escrow_bump: int) -> None:
        """
        Re-derives curve and escrow for token_mint and checks both addresses and
        the bumps recorded in the curve state.
        """
        expected_curve, expected_bump = self.curve_address(token_mint)
        self.require_match("Curve account", expected_curve, curve)
        if expected_bump != bump:
            raise InvalidAccount(f"Curve bump {bump} does not match derived bump {expected_bump}")

        expected_escrow, expected_escrow_bump = self.escrow_address(curve)
        self.require_match("Escrow account", expected_escrow, escrow)
        if expected_escrow_bump != escrow_bump:
            raise InvalidAccount(f"Escrow bump {escrow_bump} does not match derived bump {expected_escrow_bump}")
