import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Iterator, Tuple

from solders.pubkey import Pubkey

from tokencurve_core.common.errors import ArithmeticOverflow, InvalidAmount, LedgerError
from tokencurve_core.common.math import checked_add, require_u64
from tokencurve_core.ledger.addresses import NATIVE_MINT
from tokencurve_core.ledger.base import Ledger


logger = logging.getLogger(__name__)


@dataclass
class MintRecord:
    authority: Pubkey
    decimals: int
    supply: int = 0


class InMemoryLedger(Ledger):
    """
    A process-local ledger with snapshot/restore transactions.

    Used in tests and for local simulation. Nested transactions join the
    outermost one.
    """

    def __init__(self):
        self._mints: Dict[Pubkey, MintRecord] = {}
        self._balances: Dict[Tuple[Pubkey, Pubkey], int] = {}
        self._depth = 0

    def airdrop(self, account: Pubkey, amount: int) -> None:
        """Credits native reserve asset out of thin air; test and simulation helper."""
        self._credit(NATIVE_MINT, account, amount)

    def create_mint(self, token: Pubkey, authority: Pubkey, decimals: int) -> None:
        if token == NATIVE_MINT or token in self._mints:
            raise LedgerError(f"Mint {token} already exists")
        self._mints[token] = MintRecord(authority=authority, decimals=decimals)

    def mint(self, token: Pubkey, to: Pubkey, amount: int, authority: Pubkey) -> None:
        record = self._mint_record(token)
        if record.authority != authority:
            raise LedgerError(f"{authority} is not the mint authority of {token}")
        new_supply = self._checked(checked_add, record.supply, amount)
        self._credit(token, to, amount)
        record.supply = new_supply

    def burn(self, token: Pubkey, from_: Pubkey, amount: int) -> None:
        record = self._mint_record(token)
        self._debit(token, from_, amount)
        record.supply -= amount

    def transfer(self, asset: Pubkey, from_: Pubkey, to: Pubkey, amount: int) -> None:
        if asset != NATIVE_MINT:
            self._mint_record(asset)
        self._debit(asset, from_, amount)
        try:
            self._credit(asset, to, amount)
        except LedgerError:
            self._credit(asset, from_, amount)
            raise

    def balance_of(self, asset: Pubkey, account: Pubkey) -> int:
        return self._balances.get((asset, account), 0)

    def total_supply(self, token: Pubkey) -> int:
        return self._mint_record(token).supply

    def decimals(self, token: Pubkey) -> int:
        return self._mint_record(token).decimals

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            yield
            return

        saved = ({token: replace(record) for token, record in self._mints.items()}, dict(self._balances))
        self._depth += 1
        try:
            yield
        except BaseException:
            self._mints, self._balances = saved
            logger.debug("Ledger transaction rolled back")
            raise
        finally:
            self._depth -= 1

    def _mint_record(self, token: Pubkey) -> MintRecord:
        try:
            return self._mints[token]
        except KeyError:
            raise LedgerError(f"Unknown mint {token}") from None

    @staticmethod
    def _checked(op, *args) -> int:
        try:
            return op(*args)
        except (ArithmeticOverflow, InvalidAmount) as exc:
            raise LedgerError(str(exc), cause=exc) from exc

    def _credit(self, asset: Pubkey, account: Pubkey, amount: int) -> None:
        self._checked(require_u64, amount)
        key = (asset, account)
        self._balances[key] = self._checked(checked_add, self._balances.get(key, 0), amount)

    def _debit(self, asset: Pubkey, account: Pubkey, amount: int) -> None:
        self._checked(require_u64, amount)
        key = (asset, account)
        balance = self._balances.get(key, 0)
        if balance < amount:
            raise LedgerError(f"Insufficient funds in {account}: {balance} < {amount}")
        self._balances[key] = balance - amount
