"""Shared test helpers."""

import pytest

from ctledger.errors import LedgerError
from ctledger.ledger.collateral import InMemoryCollateral


class RefusingCollateral(InMemoryCollateral):
    """Collateral whose payouts can be switched off."""

    refuse = False

    def transfer_out(self, recipient, amount):
        if self.refuse:
            raise LedgerError("collateral transfer refused")
        super().transfer_out(recipient, amount)


@pytest.fixture
def refusing_collateral():
    return RefusingCollateral
