"""Collection id algebra: outcome constraints as points, conjunction as point addition."""

from __future__ import annotations

from collections.abc import Iterable

from ctledger.ids import curve
from ctledger.ids.hashing import id_to_int, int_to_id, keccak, pack_bytes32, pack_uint


def leaf_seed(condition_id: str | int | bytes, index_set: int) -> int:
    """keccak256(abi.encodePacked(conditionId, indexSet))"""
    return keccak(pack_bytes32(condition_id) + pack_uint(index_set))


def leaf_collection_id(condition_id: str | int | bytes, index_set: int) -> str:
    """Collection for a single condition collapsed to ``index_set``."""
    return int_to_id(curve.pack(curve.encode(leaf_seed(condition_id, index_set))))


def combine_collection_ids(collection_ids: Iterable[str | int | bytes]) -> str:
    """Collection representing all constraints at once.

    Commutative and associative; the zero id is the identity. Raises
    InvalidCollectionId if any id is not a curve point.
    """
    points = [curve.decode(id_to_int(cid)) for cid in collection_ids]
    acc = curve.INFINITY
    for point in points:
        acc = curve.add_affine(acc, point)
    return int_to_id(curve.pack(curve.to_affine(acc)))


def collection_id(
    parent_collection_id: str | int | bytes,
    condition_id: str | int | bytes,
    index_set: int,
) -> str:
    """Child of ``parent_collection_id`` restricted to ``index_set`` of ``condition_id``."""
    return combine_collection_ids([parent_collection_id, leaf_collection_id(condition_id, index_set)])
