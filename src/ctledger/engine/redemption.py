"""RedemptionEngine - pay out resolved positions proportionally to reported numerators."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from ctledger.errors import ConditionNotFound, ConditionNotResolved, InvalidIndexSet
from ctledger.ids.collections import collection_id
from ctledger.ids.hashing import id_to_int, normalize_address, normalize_id, position_id
from ctledger.ledger.store import LedgerStore

log = structlog.get_logger(__name__)


def index_set_numerator(index_set: int, numerators: Sequence[int]) -> int:
    """Sum of payout numerators for every slot set in ``index_set``."""
    return sum(n for slot, n in enumerate(numerators) if index_set >> slot & 1)


class RedemptionEngine:
    """Burns the caller's full balance of each listed position and credits the parent asset.

    Payout is ``sum(balance * indexSetNumerator) // denominator``; the floor
    loses at most one unit per listed index set.
    """

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def redeem(
        self,
        account: str,
        collateral_token: str,
        parent_collection_id: str | int,
        condition_id: str | int,
        index_sets: Sequence[int],
    ) -> int:
        """Redeem and return the payout. Zero balances are skipped, not rejected."""
        account = normalize_address(account)
        collateral_token = normalize_address(collateral_token)
        parent = normalize_id(parent_collection_id)
        cid = normalize_id(condition_id)
        index_sets = list(index_sets)
        with self.store.transaction():
            condition = self.store.get_condition(cid)
            if condition is None:
                raise ConditionNotFound(f"condition not prepared yet: {cid}")
            if not condition.resolved:
                log.warning("redeem_rejected", reason="not_resolved", condition_id=cid)
                raise ConditionNotResolved(f"result for condition not received yet: {cid}")
            full = condition.full_index_set
            to_burn: dict[str, int] = {}
            total = 0
            for index_set in index_sets:
                if not 0 < index_set < full:
                    raise InvalidIndexSet(f"got invalid index set {index_set:#b}")
                pid = position_id(collateral_token, collection_id(parent, cid, index_set))
                if pid in to_burn:
                    continue
                balance = self.store.positions.balance_of(account, pid)
                to_burn[pid] = balance
                total += balance * index_set_numerator(index_set, condition.payout_numerators)
            payout = total // condition.payout_denominator

            nested = id_to_int(parent) != 0
            if payout and not nested:
                # Burns below cover exactly the balances just read, so they cannot fail after this
                self.store.collateral(collateral_token).transfer_out(account, payout)
            burns = {pid: bal for pid, bal in to_burn.items() if bal}
            if burns:
                self.store.positions.burn_batch(account, list(burns), list(burns.values()))
            if payout and nested:
                self.store.positions.mint(account, position_id(collateral_token, parent), payout)
            self.store.emit(
                "PayoutRedemption",
                condition_id=cid,
                account=account,
                collateral_token=collateral_token,
                parent_collection_id=parent,
                index_sets=index_sets,
                payout=payout,
            )
        log.info("payout_redeemed", account=account, condition_id=cid, index_sets=index_sets, payout=payout)
        return payout
