"""SplitMergeEngine - convert a parent asset into partition positions and back."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from ctledger.errors import ConditionNotFound, InvalidAmount, InvalidPartition
from ctledger.ids.collections import collection_id
from ctledger.ids.hashing import id_to_int, normalize_address, normalize_id, position_id
from ctledger.ledger.store import LedgerStore
from ctledger.models.condition import Condition

log = structlog.get_logger(__name__)


def validate_partition(partition: Sequence[int], outcome_slot_count: int) -> int:
    """Check entries are in [1, full) and pairwise disjoint. Return their union."""
    full = (1 << outcome_slot_count) - 1
    if not partition:
        raise InvalidPartition("got empty partition")
    free = full
    for index_set in partition:
        if not 0 < index_set < full:
            raise InvalidPartition(f"got invalid index set {index_set:#b} for {outcome_slot_count} outcome slots")
        if free & index_set != index_set:
            raise InvalidPartition(f"partition not disjoint at index set {index_set:#b}")
        free ^= index_set
    return full ^ free


class SplitMergeEngine:
    """Split and merge over the shared PositionLedger. Mint and burn amounts always match."""

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def _condition(self, condition_id: str) -> Condition:
        condition = self.store.get_condition(condition_id)
        if condition is None:
            raise ConditionNotFound(f"condition not prepared yet: {condition_id}")
        return condition

    def _child_positions(
        self, collateral_token: str, parent: str, condition_id: str, partition: Sequence[int]
    ) -> list[str]:
        return [
            position_id(collateral_token, collection_id(parent, condition_id, index_set))
            for index_set in partition
        ]

    def split(
        self,
        account: str,
        collateral_token: str,
        parent_collection_id: str | int,
        condition_id: str | int,
        partition: Sequence[int],
        amount: int,
    ) -> list[str]:
        """Burn ``amount`` of the parent asset and mint ``amount`` of each partition position.

        The parent asset is raw collateral when the partition covers every slot
        and the parent collection is the identity, the parent collection's
        position when it covers every slot otherwise, and the position of the
        partition's union when it covers only some slots. A single partial entry
        is its own union and leaves balances unchanged.
        Returns the minted position ids in partition order.
        """
        account = normalize_address(account)
        collateral_token = normalize_address(collateral_token)
        parent = normalize_id(parent_collection_id)
        cid = normalize_id(condition_id)
        partition = list(partition)
        if amount < 0:
            raise InvalidAmount(f"negative split amount: {amount}")
        with self.store.transaction():
            condition = self._condition(cid)
            try:
                covered = validate_partition(partition, condition.outcome_slot_count)
            except InvalidPartition:
                log.warning("split_rejected", reason="invalid_partition", condition_id=cid, partition=partition)
                raise
            children = self._child_positions(collateral_token, parent, cid, partition)

            if covered == condition.full_index_set:
                if id_to_int(parent) == 0:
                    self.store.collateral(collateral_token).transfer_in(account, amount)
                else:
                    self.store.positions.burn(account, position_id(collateral_token, parent), amount)
                self.store.positions.mint_batch(account, children, [amount] * len(children))
            elif len(children) > 1:
                union = position_id(collateral_token, collection_id(parent, cid, covered))
                self.store.positions.burn(account, union, amount)
                self.store.positions.mint_batch(account, children, [amount] * len(children))
            # A single entry is its own union, so splitting on it moves nothing

            self.store.emit(
                "PositionSplit",
                condition_id=cid,
                account=account,
                collateral_token=collateral_token,
                parent_collection_id=parent,
                partition=partition,
                amount=amount,
            )
        log.info("position_split", account=account, condition_id=cid, partition=partition, amount=amount)
        return children

    def merge(
        self,
        account: str,
        collateral_token: str,
        parent_collection_id: str | int,
        condition_id: str | int,
        partition: Sequence[int],
        amount: int,
    ) -> None:
        """Exact inverse of ``split``. All partition positions are burned or none are."""
        account = normalize_address(account)
        collateral_token = normalize_address(collateral_token)
        parent = normalize_id(parent_collection_id)
        cid = normalize_id(condition_id)
        partition = list(partition)
        if amount < 0:
            raise InvalidAmount(f"negative merge amount: {amount}")
        with self.store.transaction():
            condition = self._condition(cid)
            try:
                covered = validate_partition(partition, condition.outcome_slot_count)
            except InvalidPartition:
                log.warning("merge_rejected", reason="invalid_partition", condition_id=cid, partition=partition)
                raise
            children = self._child_positions(collateral_token, parent, cid, partition)
            full = covered == condition.full_index_set
            self.store.positions.require_balances(account, children, [amount] * len(children))
            if full and id_to_int(parent) == 0:
                # Paid out before the burn; balances were checked above
                self.store.collateral(collateral_token).transfer_out(account, amount)
            self.store.positions.burn_batch(account, children, [amount] * len(children))

            if full:
                if id_to_int(parent) != 0:
                    self.store.positions.mint(account, position_id(collateral_token, parent), amount)
            else:
                union = position_id(collateral_token, collection_id(parent, cid, covered))
                self.store.positions.mint(account, union, amount)

            self.store.emit(
                "PositionsMerge",
                condition_id=cid,
                account=account,
                collateral_token=collateral_token,
                parent_collection_id=parent,
                partition=partition,
                amount=amount,
            )
        log.info("positions_merged", account=account, condition_id=cid, partition=partition, amount=amount)
