"""Split/merge and redemption engines."""

from ctledger.engine.redemption import RedemptionEngine, index_set_numerator
from ctledger.engine.split_merge import SplitMergeEngine, validate_partition
from ctledger.engine.tokens import ConditionalTokens

__all__ = [
    "ConditionalTokens",
    "RedemptionEngine",
    "SplitMergeEngine",
    "index_set_numerator",
    "validate_partition",
]
