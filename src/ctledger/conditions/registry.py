"""ConditionRegistry - prepare conditions and record oracle payouts."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from ctledger.errors import (
    AllZeroPayout,
    AlreadyPrepared,
    AlreadyReported,
    ConditionNotFound,
    InvalidOutcomeCount,
    InvalidPayout,
)
from ctledger.ids.hashing import condition_id as derive_condition_id
from ctledger.ids.hashing import normalize_address, normalize_id
from ctledger.ledger.store import LedgerStore
from ctledger.models.condition import Condition

log = structlog.get_logger(__name__)


class ConditionRegistry:
    """Conditions keyed by keccak(oracle, questionId, outcomeSlotCount)."""

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def prepare(self, oracle: str, question_id: str | int, outcome_slot_count: int) -> Condition:
        """Create a condition. Identity is immutable; payout starts empty."""
        if outcome_slot_count < 2:
            log.warning("prepare_rejected", reason="outcome_slot_count", outcome_slot_count=outcome_slot_count)
            raise InvalidOutcomeCount(f"there should be at least two outcome slots, got {outcome_slot_count}")
        # Index sets are uint256 bitmasks
        if outcome_slot_count > 256:
            raise InvalidOutcomeCount(f"too many outcome slots: {outcome_slot_count}")
        oracle = normalize_address(oracle)
        qid = normalize_id(question_id)
        cid = derive_condition_id(oracle, qid, outcome_slot_count)
        with self.store.transaction():
            if cid in self.store.conditions:
                log.warning("prepare_rejected", reason="already_prepared", condition_id=cid)
                raise AlreadyPrepared(f"condition already prepared: {cid}")
            condition = Condition(
                condition_id=cid,
                oracle=oracle,
                question_id=qid,
                outcome_slot_count=outcome_slot_count,
            )
            self.store.conditions[cid] = condition
            self.store.emit(
                "ConditionPreparation",
                condition_id=cid,
                account=oracle,
                oracle=oracle,
                question_id=qid,
                outcome_slot_count=outcome_slot_count,
            )
        log.info("condition_prepared", condition_id=cid, oracle=oracle, outcome_slot_count=outcome_slot_count)
        return condition

    def report(self, oracle: str, question_id: str | int, numerators: Sequence[int]) -> Condition:
        """Record payout numerators. Single-shot: there is no update path."""
        oracle = normalize_address(oracle)
        qid = normalize_id(question_id)
        cid = derive_condition_id(oracle, qid, len(numerators))
        with self.store.transaction():
            condition = self.store.get_condition(cid)
            if condition is None:
                log.warning("report_rejected", reason="not_found", condition_id=cid)
                raise ConditionNotFound(f"condition not prepared or found: {cid}")
            if any(n < 0 for n in numerators):
                raise InvalidPayout(f"negative payout numerator in {list(numerators)}")
            denominator = sum(numerators)
            if denominator == 0:
                log.warning("report_rejected", reason="all_zero", condition_id=cid)
                raise AllZeroPayout(f"payout is all zeroes for {cid}")
            if condition.payout_denominator != 0:
                log.warning("report_rejected", reason="already_reported", condition_id=cid)
                raise AlreadyReported(f"payout denominator already set for {cid}")
            condition.payout_numerators = list(numerators)
            condition.payout_denominator = denominator
            self.store.emit(
                "ConditionResolution",
                condition_id=cid,
                account=oracle,
                oracle=oracle,
                question_id=qid,
                outcome_slot_count=condition.outcome_slot_count,
                payout_numerators=list(numerators),
            )
        log.info("condition_resolved", condition_id=cid, payout_numerators=list(numerators))
        return condition

    def get(self, condition_id: str | int) -> Condition:
        condition = self.store.get_condition(condition_id)
        if condition is None:
            raise ConditionNotFound(f"condition not prepared yet: {normalize_id(condition_id)}")
        return condition

    def outcome_slot_count(self, condition_id: str | int) -> int:
        """0 for unknown conditions."""
        condition = self.store.get_condition(condition_id)
        return condition.outcome_slot_count if condition else 0

    def payout_numerators(self, condition_id: str | int) -> list[int]:
        return list(self.get(condition_id).payout_numerators)

    def payout_denominator(self, condition_id: str | int) -> int:
        condition = self.store.get_condition(condition_id)
        return condition.payout_denominator if condition else 0
