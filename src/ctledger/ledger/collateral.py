"""Collateral asset interface and an in-memory fungible token for hosts and tests."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog

from ctledger.errors import InsufficientBalance, InvalidAmount
from ctledger.ids.hashing import normalize_address

log = structlog.get_logger(__name__)

# Account that holds escrowed collateral unless configured otherwise
DEFAULT_ESCROW_ADDRESS = "0x" + "c7" * 20


@runtime_checkable
class CollateralAsset(Protocol):
    """External fungible ledger the engines pull collateral from and release it to."""

    @property
    def address(self) -> str: ...

    def transfer_in(self, sender: str, amount: int) -> None: ...

    def transfer_out(self, recipient: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


class InMemoryCollateral:
    """Mintable fungible token. Escrowed funds sit under ``escrow``."""

    def __init__(self, address: str, escrow: str = DEFAULT_ESCROW_ADDRESS) -> None:
        self._address = normalize_address(address)
        self.escrow = normalize_address(escrow)
        self._balances: dict[str, int] = {}

    @property
    def address(self) -> str:
        return self._address

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"negative mint: {amount}")
        account = normalize_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"negative transfer: {amount}")
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        have = self._balances.get(sender, 0)
        if have < amount:
            raise InsufficientBalance(
                f"{sender} holds {have} of collateral {self._address}, needs {amount}"
            )
        remaining = have - amount
        if remaining:
            self._balances[sender] = remaining
        else:
            self._balances.pop(sender, None)
        if amount:
            self._balances[recipient] = self._balances.get(recipient, 0) + amount

    def transfer_in(self, sender: str, amount: int) -> None:
        self.transfer(sender, self.escrow, amount)

    def transfer_out(self, recipient: str, amount: int) -> None:
        self.transfer(self.escrow, recipient, amount)

    @property
    def escrowed(self) -> int:
        return self.balance_of(self.escrow)
