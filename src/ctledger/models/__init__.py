"""Ledger records (Pydantic) - Condition, LedgerEvent, pool market/oracle."""

from ctledger.models.condition import Condition
from ctledger.models.events import LedgerEvent
from ctledger.models.pool import Deposit, PoolMarket, PoolOracle

__all__ = [
    "Condition",
    "LedgerEvent",
    "PoolMarket",
    "PoolOracle",
    "Deposit",
]
