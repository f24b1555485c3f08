"""ctledger - combinatorial outcome-token ledger."""

from ctledger.conditions.registry import ConditionRegistry
from ctledger.engine.redemption import RedemptionEngine
from ctledger.engine.split_merge import SplitMergeEngine
from ctledger.engine.tokens import ConditionalTokens
from ctledger.ledger.collateral import CollateralAsset, InMemoryCollateral
from ctledger.ledger.positions import PositionLedger
from ctledger.ledger.store import LedgerStore
from ctledger.pool.engine import INITIAL_CUSTOMER_BALANCE, ProportionalPoolEngine

__version__ = "0.1.0"

__all__ = [
    "INITIAL_CUSTOMER_BALANCE",
    "CollateralAsset",
    "ConditionRegistry",
    "ConditionalTokens",
    "InMemoryCollateral",
    "LedgerStore",
    "PositionLedger",
    "ProportionalPoolEngine",
    "RedemptionEngine",
    "SplitMergeEngine",
]
