"""Per-account claim state: one idempotent claim, withdrawn whole or in parts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ctledger.errors import AlreadyRedeemed, ArithmeticUnderflow, InvalidAmount


class ClaimStatus(str, Enum):
    UNCLAIMED = "unclaimed"
    LOCKED = "locked"
    EXHAUSTED = "exhausted"


@dataclass
class ClaimState:
    """Unclaimed -> Locked(remaining) -> Exhausted."""

    status: ClaimStatus = ClaimStatus.UNCLAIMED
    locked: int = 0
    remaining: int = 0

    def lock(self, amount: int) -> None:
        if self.status is not ClaimStatus.UNCLAIMED:
            raise AlreadyRedeemed("Already redeemed.")
        self.locked = amount
        self.remaining = amount
        self.status = ClaimStatus.LOCKED if amount else ClaimStatus.EXHAUSTED

    def withdraw(self, amount: int | None = None) -> int:
        """Take ``amount`` (everything left when None) out of the locked balance."""
        if amount is None:
            if self.status is not ClaimStatus.LOCKED:
                raise AlreadyRedeemed("Already redeemed.")
            amount = self.remaining
        if amount < 0:
            raise InvalidAmount(f"negative withdrawal: {amount}")
        if amount > self.remaining:
            raise ArithmeticUnderflow(f"withdrawal {amount} exceeds remaining {self.remaining}")
        self.remaining -= amount
        if self.status is ClaimStatus.LOCKED and self.remaining == 0:
            self.status = ClaimStatus.EXHAUSTED
        return amount
