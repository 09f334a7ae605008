from dataclasses import dataclass
from typing import Dict

from solders.pubkey import Pubkey

from tokencurve_core.common.errors import AlreadyInitialized, CurveNotFound, StaleAccount


@dataclass(frozen=True)
class StoredAccount:
    """Raw account data at an address, plus the version it was read at."""
    address: Pubkey
    data: bytes
    version: int


class AccountStore:
    """
    In-memory, versioned account storage keyed by address.

    Every commit must name the version it read; a mismatch means another
    operation committed in between and the caller's view is stale.
    """

    def __init__(self):
        self._accounts: Dict[Pubkey, StoredAccount] = {}

    def exists(self, address: Pubkey) -> bool:
        return address in self._accounts

    def create(self, address: Pubkey, data: bytes) -> StoredAccount:
        if address in self._accounts:
            raise AlreadyInitialized(f"Account {address} already exists")
        account = StoredAccount(address=address, data=bytes(data), version=1)
        self._accounts[address] = account
        return account

    def load(self, address: Pubkey) -> StoredAccount:
        try:
            return self._accounts[address]
        except KeyError:
            raise CurveNotFound(f"No account at {address}") from None

    def commit(self, address: Pubkey, data: bytes, expected_version: int) -> StoredAccount:
        current = self.load(address)
        if current.version != expected_version:
            raise StaleAccount(
                f"Account {address} is at version {current.version}, expected {expected_version}"
            )
        account = StoredAccount(address=address, data=bytes(data), version=current.version + 1)
        self._accounts[address] = account
        return account
