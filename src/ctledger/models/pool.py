"""Pool market and oracle records for the registration-based variant."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PoolMarket(BaseModel):
    """Market customers register to. Ids are sequential from 0."""

    market_id: int = Field(..., ge=0)
    creator: str
    customers: set[str] = Field(default_factory=set)


class PoolOracle(BaseModel):
    """Oracle reporting one numerator per customer, then locking the denominator."""

    oracle_id: int = Field(..., ge=0)
    owner: str
    numerators: dict[str, int] = Field(default_factory=dict)  # customer -> numerator
    payout_denominator: int = 0
    finished: bool = False


class Deposit(BaseModel):
    """Donor or staker contribution to a pot."""

    account: str
    amount: int = Field(..., ge=0)
    kind: str = Field(..., pattern="^(donation|stake)$")
