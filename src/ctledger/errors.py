"""Ledger error taxonomy. Every error is a synchronous, atomic rejection."""

from __future__ import annotations


class LedgerError(Exception):
    """Base for all rejected ledger operations."""


class InvalidOutcomeCount(LedgerError, ValueError):
    """Condition prepared with fewer than two outcome slots."""


class AlreadyPrepared(LedgerError):
    """Condition (oracle, questionId, outcomeSlotCount) already exists."""


class ConditionNotFound(LedgerError, LookupError):
    """Condition was never prepared."""


class AllZeroPayout(LedgerError, ValueError):
    """Oracle reported only zero numerators."""


class InvalidPayout(LedgerError, ValueError):
    """Oracle reported a negative numerator."""


class AlreadyReported(LedgerError):
    """Condition payout was already reported."""


class InvalidPartition(LedgerError, ValueError):
    """Partition entries are out of range, overlapping or trivial."""


class InvalidIndexSet(InvalidPartition):
    """Index set outside [1, 2^outcomeSlotCount - 1)."""


class InvalidAmount(LedgerError, ValueError):
    """Negative token amount."""


class InsufficientBalance(LedgerError):
    """Account holds less than the amount to burn or transfer."""


class ConditionNotResolved(LedgerError):
    """Payout denominator is still zero."""


class InvalidCollectionId(LedgerError, ValueError):
    """Collection id does not decode to a point on the curve."""


class UnknownCollateral(LedgerError, LookupError):
    """No collateral asset registered under that address."""


class MarketNotFound(LedgerError, LookupError):
    """Pool market id was never created."""


class OracleNotFound(LedgerError, LookupError):
    """Pool oracle id was never created."""


class Unauthorized(LedgerError, PermissionError):
    """Caller is not the owner of the oracle."""


class AlreadyRegistered(LedgerError):
    """Customer already registered for the market."""


class AlreadyFinished(LedgerError):
    """Oracle already locked its denominator."""


class AlreadyRedeemed(LedgerError):
    """Claim was already activated or fully withdrawn."""


class ArithmeticUnderflow(LedgerError, ArithmeticError):
    """Withdrawal larger than the remaining withdrawable balance."""
