"""Registration-based proportional payout pools."""

from ctledger.pool.claims import ClaimState, ClaimStatus
from ctledger.pool.engine import INITIAL_CUSTOMER_BALANCE, ProportionalPoolEngine

__all__ = [
    "INITIAL_CUSTOMER_BALANCE",
    "ClaimState",
    "ClaimStatus",
    "ProportionalPoolEngine",
]
