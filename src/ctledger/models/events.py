"""LedgerEvent - append-only record of a state transition."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class LedgerEvent(BaseModel):
    """One emitted event (ConditionPreparation, PositionSplit, TransferSingle, ...)."""

    seq: int = Field(..., ge=0)
    event_type: str
    ts: int  # ms epoch
    condition_id: str | None = None
    account: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
