"""ConditionalTokens - one store, the registry and both engines behind a single object."""

from __future__ import annotations

from collections.abc import Sequence

from ctledger.conditions.registry import ConditionRegistry
from ctledger.engine.redemption import RedemptionEngine
from ctledger.engine.split_merge import SplitMergeEngine
from ctledger.ids.hashing import ZERO_ID
from ctledger.ledger.collateral import CollateralAsset
from ctledger.ledger.store import LedgerStore
from ctledger.models.condition import Condition


class ConditionalTokens:
    """Convenience composition used by hosts and tests."""

    def __init__(self, store: LedgerStore | None = None) -> None:
        self.store = store or LedgerStore()
        self.conditions = ConditionRegistry(self.store)
        self.splitter = SplitMergeEngine(self.store)
        self.redeemer = RedemptionEngine(self.store)

    def register_collateral(self, asset: CollateralAsset) -> None:
        self.store.register_collateral(asset)

    def prepare_condition(self, oracle: str, question_id: str | int, outcome_slot_count: int) -> Condition:
        return self.conditions.prepare(oracle, question_id, outcome_slot_count)

    def report_payouts(self, oracle: str, question_id: str | int, numerators: Sequence[int]) -> Condition:
        return self.conditions.report(oracle, question_id, numerators)

    def split_position(
        self,
        account: str,
        collateral_token: str,
        condition_id: str | int,
        partition: Sequence[int],
        amount: int,
        parent_collection_id: str | int = ZERO_ID,
    ) -> list[str]:
        return self.splitter.split(account, collateral_token, parent_collection_id, condition_id, partition, amount)

    def merge_positions(
        self,
        account: str,
        collateral_token: str,
        condition_id: str | int,
        partition: Sequence[int],
        amount: int,
        parent_collection_id: str | int = ZERO_ID,
    ) -> None:
        self.splitter.merge(account, collateral_token, parent_collection_id, condition_id, partition, amount)

    def redeem_positions(
        self,
        account: str,
        collateral_token: str,
        condition_id: str | int,
        index_sets: Sequence[int],
        parent_collection_id: str | int = ZERO_ID,
    ) -> int:
        return self.redeemer.redeem(account, collateral_token, parent_collection_id, condition_id, index_sets)

    def balance_of(self, account: str, position_id: str | int) -> int:
        return self.store.positions.balance_of(account, position_id)

    def safe_transfer_from(self, sender: str, recipient: str, position_id: str | int, amount: int) -> None:
        with self.store.transaction():
            self.store.positions.transfer(sender, recipient, position_id, amount)

    def safe_batch_transfer_from(
        self, sender: str, recipient: str, position_ids: Sequence[str | int], amounts: Sequence[int]
    ) -> None:
        with self.store.transaction():
            self.store.positions.batch_transfer(sender, recipient, position_ids, amounts)

    def get_outcome_slot_count(self, condition_id: str | int) -> int:
        return self.conditions.outcome_slot_count(condition_id)

    def payout_denominator(self, condition_id: str | int) -> int:
        return self.conditions.payout_denominator(condition_id)

    def payout_numerators(self, condition_id: str | int) -> list[int]:
        return self.conditions.payout_numerators(condition_id)
