"""Ledger state: position balances, collateral escrow, shared store."""

from ctledger.ledger.collateral import DEFAULT_ESCROW_ADDRESS, CollateralAsset, InMemoryCollateral
from ctledger.ledger.positions import ZERO_ADDRESS, PositionLedger
from ctledger.ledger.store import LedgerStore

__all__ = [
    "DEFAULT_ESCROW_ADDRESS",
    "CollateralAsset",
    "InMemoryCollateral",
    "LedgerStore",
    "PositionLedger",
    "ZERO_ADDRESS",
]
