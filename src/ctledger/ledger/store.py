"""LedgerStore - shared state owned by every engine: positions, conditions, collateral, events."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from threading import RLock
from typing import Any

import structlog

from ctledger.errors import UnknownCollateral
from ctledger.ids.hashing import normalize_address, normalize_id
from ctledger.ledger.collateral import DEFAULT_ESCROW_ADDRESS, CollateralAsset
from ctledger.ledger.positions import PositionLedger
from ctledger.models.condition import Condition
from ctledger.models.events import LedgerEvent

log = structlog.get_logger(__name__)

EventSubscriber = Callable[[LedgerEvent], None]


class LedgerStore:
    """Single mutual-exclusion boundary for all ledger mutations.

    Engines wrap each operation in ``transaction()``. Events emitted inside a
    transaction are published only when the outermost transaction exits
    without an exception.
    """

    def __init__(self, escrow_address: str = DEFAULT_ESCROW_ADDRESS) -> None:
        self.escrow_address = normalize_address(escrow_address)
        self.positions = PositionLedger(emit=self.emit)
        self.conditions: dict[str, Condition] = {}
        self.events: list[LedgerEvent] = []
        self._collaterals: dict[str, CollateralAsset] = {}
        self._subscribers: list[EventSubscriber] = []
        self._pending: list[LedgerEvent] = []
        self._depth = 0
        self._seq = 0
        self._lock = RLock()

    @contextmanager
    def transaction(self) -> Iterator[LedgerStore]:
        with self._lock:
            self._depth += 1
            try:
                yield self
            except BaseException:
                if self._depth == 1:
                    self._pending.clear()
                raise
            finally:
                self._depth -= 1
            if self._depth == 0:
                self._publish()

    def _publish(self) -> None:
        pending, self._pending = self._pending, []
        for event in pending:
            self.events.append(event)
            for subscriber in self._subscribers:
                subscriber(event)

    def emit(
        self,
        event_type: str,
        *,
        condition_id: str | None = None,
        account: str | None = None,
        **payload: Any,
    ) -> LedgerEvent:
        with self._lock:
            event = LedgerEvent(
                seq=self._seq,
                event_type=event_type,
                ts=int(time.time() * 1000),
                condition_id=condition_id,
                account=account,
                payload=payload,
            )
            self._seq += 1
            self._pending.append(event)
            if self._depth == 0:
                self._publish()
            return event

    def subscribe(self, subscriber: EventSubscriber) -> None:
        self._subscribers.append(subscriber)

    # --- collateral registry ---

    def register_collateral(self, asset: CollateralAsset) -> None:
        with self._lock:
            address = normalize_address(asset.address)
            self._collaterals[address] = asset
            log.debug("collateral_registered", collateral=address)

    def collateral(self, address: str) -> CollateralAsset:
        asset = self._collaterals.get(normalize_address(address))
        if asset is None:
            raise UnknownCollateral(f"no collateral asset registered for {address}")
        return asset

    # --- conditions ---

    def get_condition(self, condition_id: str | int | bytes) -> Condition | None:
        return self.conditions.get(normalize_id(condition_id))
