from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from solders.pubkey import Pubkey


class Ledger(ABC):
    """
    The token ledger the curve settles against.

    Implementations apply each instruction atomically and raise LedgerError
    instead of partially applying it. Native reserve balances are addressed
    with NATIVE_MINT as the asset and the owner's address as the account;
    issued tokens live in token accounts.
    """

    @abstractmethod
    def create_mint(self, token: Pubkey, authority: Pubkey, decimals: int) -> None:
        """
        Creates a mint record with zero supply and the given mint authority.

        :param token: Pubkey - mint address
        :param authority: Pubkey - the only signer allowed to mint
        :param decimals: int - base units per whole token, as a power of ten
        """
        pass

    @abstractmethod
    def mint(self, token: Pubkey, to: Pubkey, amount: int, authority: Pubkey) -> None:
        pass

    @abstractmethod
    def burn(self, token: Pubkey, from_: Pubkey, amount: int) -> None:
        pass

    @abstractmethod
    def transfer(self, asset: Pubkey, from_: Pubkey, to: Pubkey, amount: int) -> None:
        pass

    @abstractmethod
    def balance_of(self, asset: Pubkey, account: Pubkey) -> int:
        pass

    @abstractmethod
    def total_supply(self, token: Pubkey) -> int:
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Groups instructions so they commit together or not at all.

        The default relies on the host environment's transaction atomicity and
        adds nothing; in-process ledgers override it with real rollback.
        """
        yield
