"""Identifier derivation: conditions, collections, positions, pool tokens."""

from ctledger.ids.collections import (
    collection_id,
    combine_collection_ids,
    leaf_collection_id,
)
from ctledger.ids.hashing import (
    ZERO_ID,
    collateral_donated_token_id,
    collateral_staked_token_id,
    condition_id,
    conditional_token_id,
    normalize_address,
    normalize_id,
    position_id,
)

__all__ = [
    "ZERO_ID",
    "collateral_donated_token_id",
    "collateral_staked_token_id",
    "collection_id",
    "combine_collection_ids",
    "condition_id",
    "conditional_token_id",
    "leaf_collection_id",
    "normalize_address",
    "normalize_id",
    "position_id",
]
