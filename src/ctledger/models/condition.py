"""Condition - oracle-bound question with a fixed number of outcome slots."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Condition(BaseModel):
    """Prepared condition. Payout fields are set exactly once by the oracle."""

    condition_id: str
    oracle: str
    question_id: str
    outcome_slot_count: int = Field(..., ge=2)
    payout_numerators: list[int] = Field(default_factory=list)
    payout_denominator: int = 0

    @property
    def full_index_set(self) -> int:
        return (1 << self.outcome_slot_count) - 1

    @property
    def resolved(self) -> bool:
        return self.payout_denominator > 0
