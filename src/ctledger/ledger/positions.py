"""Multi-asset balance table keyed by (account, positionId)."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ctledger.errors import InsufficientBalance, InvalidAmount
from ctledger.ids.hashing import normalize_address, normalize_id

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

EmitFn = Callable[..., Any]


def _noop_emit(event_type: str, **kwargs: Any) -> None:
    pass


class PositionLedger:
    """Fungible balances per position id. Zero balances are not stored.

    Mutations check every leg before touching state, so a failing batch
    leaves balances unchanged.
    """

    __slots__ = ("_balances", "_supply", "_emit")

    def __init__(self, emit: EmitFn | None = None) -> None:
        # (account, position_id) -> balance
        self._balances: dict[tuple[str, str], int] = {}
        self._supply: dict[str, int] = {}
        self._emit = emit or _noop_emit

    def balance_of(self, account: str, position_id: str | int) -> int:
        return self._balances.get((normalize_address(account), normalize_id(position_id)), 0)

    def balance_of_batch(self, accounts: Sequence[str], position_ids: Sequence[str | int]) -> list[int]:
        if len(accounts) != len(position_ids):
            raise ValueError("accounts and position_ids length mismatch")
        return [self.balance_of(a, p) for a, p in zip(accounts, position_ids)]

    def total_supply(self, position_id: str | int) -> int:
        return self._supply.get(normalize_id(position_id), 0)

    def holders(self, position_id: str | int) -> dict[str, int]:
        pid = normalize_id(position_id)
        return {acct: bal for (acct, p), bal in self._balances.items() if p == pid}

    # --- internal primitives (no validation of sign, no events) ---

    def _add(self, account: str, pid: str, amount: int) -> None:
        if not amount:
            return
        key = (account, pid)
        self._balances[key] = self._balances.get(key, 0) + amount
        self._supply[pid] = self._supply.get(pid, 0) + amount

    def _sub(self, account: str, pid: str, amount: int) -> None:
        if not amount:
            return
        key = (account, pid)
        remaining = self._balances[key] - amount
        if remaining:
            self._balances[key] = remaining
        else:
            del self._balances[key]
        supply = self._supply[pid] - amount
        if supply:
            self._supply[pid] = supply
        else:
            del self._supply[pid]

    def _check_debits(self, account: str, pids: Sequence[str], amounts: Sequence[int]) -> None:
        need: dict[str, int] = {}
        for pid, amount in zip(pids, amounts):
            if amount < 0:
                raise InvalidAmount(f"negative amount {amount} for position {pid}")
            need[pid] = need.get(pid, 0) + amount
        for pid, total in need.items():
            have = self._balances.get((account, pid), 0)
            if have < total:
                raise InsufficientBalance(f"{account} holds {have} of position {pid}, needs {total}")

    def require_balances(self, account: str, position_ids: Sequence[str | int], amounts: Sequence[int]) -> None:
        """Raise unless ``account`` could burn every amount at once. Touches nothing."""
        if len(position_ids) != len(amounts):
            raise ValueError("position_ids and amounts length mismatch")
        self._check_debits(normalize_address(account), [normalize_id(p) for p in position_ids], amounts)

    # --- public mutations ---

    def mint(self, account: str, position_id: str | int, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"negative mint: {amount}")
        account = normalize_address(account)
        pid = normalize_id(position_id)
        self._add(account, pid, amount)
        self._emit("TransferSingle", account=account, sender=ZERO_ADDRESS, recipient=account, id=pid, value=amount)

    def mint_batch(self, account: str, position_ids: Sequence[str | int], amounts: Sequence[int]) -> None:
        if len(position_ids) != len(amounts):
            raise ValueError("position_ids and amounts length mismatch")
        if any(a < 0 for a in amounts):
            raise InvalidAmount("negative mint in batch")
        account = normalize_address(account)
        pids = [normalize_id(p) for p in position_ids]
        for pid, amount in zip(pids, amounts):
            self._add(account, pid, amount)
        self._emit("TransferBatch", account=account, sender=ZERO_ADDRESS, recipient=account, ids=pids, values=list(amounts))

    def burn(self, account: str, position_id: str | int, amount: int) -> None:
        self.burn_batch(account, [position_id], [amount])

    def burn_batch(self, account: str, position_ids: Sequence[str | int], amounts: Sequence[int]) -> None:
        """Burn from every position or from none."""
        if len(position_ids) != len(amounts):
            raise ValueError("position_ids and amounts length mismatch")
        account = normalize_address(account)
        pids = [normalize_id(p) for p in position_ids]
        self._check_debits(account, pids, amounts)
        for pid, amount in zip(pids, amounts):
            self._sub(account, pid, amount)
        if len(pids) == 1:
            self._emit("TransferSingle", account=account, sender=account, recipient=ZERO_ADDRESS, id=pids[0], value=amounts[0])
        else:
            self._emit("TransferBatch", account=account, sender=account, recipient=ZERO_ADDRESS, ids=pids, values=list(amounts))

    def transfer(self, sender: str, recipient: str, position_id: str | int, amount: int) -> None:
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        pid = normalize_id(position_id)
        self._check_debits(sender, [pid], [amount])
        self._sub(sender, pid, amount)
        self._add(recipient, pid, amount)
        self._emit("TransferSingle", account=sender, sender=sender, recipient=recipient, id=pid, value=amount)

    def batch_transfer(
        self,
        sender: str,
        recipient: str,
        position_ids: Sequence[str | int],
        amounts: Sequence[int],
    ) -> None:
        """Atomic multi-position transfer."""
        if len(position_ids) != len(amounts):
            raise ValueError("position_ids and amounts length mismatch")
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        pids = [normalize_id(p) for p in position_ids]
        self._check_debits(sender, pids, amounts)
        for pid, amount in zip(pids, amounts):
            self._sub(sender, pid, amount)
            self._add(recipient, pid, amount)
        self._emit("TransferBatch", account=sender, sender=sender, recipient=recipient, ids=pids, values=list(amounts))
