"""Split / merge state machine and conservation."""

import pytest

from ctledger.engine.split_merge import validate_partition
from ctledger.engine.tokens import ConditionalTokens
from ctledger.errors import (
    ConditionNotFound,
    InsufficientBalance,
    InvalidAmount,
    InvalidPartition,
    LedgerError,
    UnknownCollateral,
)
from ctledger.ids import ZERO_ID, collection_id, combine_collection_ids, condition_id, leaf_collection_id, position_id
from ctledger.ledger.collateral import InMemoryCollateral

ORACLE = "0x" + "11" * 20
TRADER = "0x" + "21" * 20
OTHER = "0x" + "22" * 20
COLLATERAL = "0x" + "0c" * 20
Q1 = "0x" + "1234987612349876" * 4
Q2 = "0x" + "cafebabecafebabe" * 4
Q3 = "0x" + "ab12ab12ab12ab12" * 4
E19 = 10**19


@pytest.fixture
def ledger():
    tokens = ConditionalTokens()
    collateral = InMemoryCollateral(COLLATERAL, escrow=tokens.store.escrow_address)
    collateral.mint(TRADER, E19)
    tokens.register_collateral(collateral)
    c1 = tokens.prepare_condition(ORACLE, Q1, 2).condition_id
    c2 = tokens.prepare_condition(ORACLE, Q2, 3).condition_id
    c3 = tokens.prepare_condition(ORACLE, Q3, 4).condition_id
    return tokens, collateral, c1, c2, c3


def _pos(cond, index_set, parent=ZERO_ID):
    return position_id(COLLATERAL, collection_id(parent, cond, index_set))


def test_validate_partition_union():
    assert validate_partition([0b01, 0b10], 2) == 0b11
    assert validate_partition([0b100, 0b010], 3) == 0b110
    assert validate_partition([0b001], 3) == 0b001


@pytest.mark.parametrize(
    "partition",
    [[], [0b11], [0b01, 0b11], [0b01, 0b01], [0b01, 0b111], [0b01, 0b11, 0b0], [0, 0b01]],
)
def test_validate_partition_rejects(partition):
    with pytest.raises(InvalidPartition):
        validate_partition(partition, 2)


def test_split_and_merge_on_outcome_slots(ledger):
    tokens, collateral, c1, _, _ = ledger
    for _ in range(10):
        tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], E19 // 10)
    assert collateral.escrowed == E19
    assert collateral.balance_of(TRADER) == 0
    assert tokens.balance_of(TRADER, _pos(c1, 0b01)) == E19
    assert tokens.balance_of(TRADER, _pos(c1, 0b10)) == E19

    tokens.merge_positions(TRADER, COLLATERAL, c1, [0b01, 0b10], E19)
    assert collateral.balance_of(TRADER) == E19
    assert collateral.escrowed == 0
    assert tokens.balance_of(TRADER, _pos(c1, 0b01)) == 0
    assert tokens.balance_of(TRADER, _pos(c1, 0b10)) == 0


def test_split_returns_minted_positions(ledger):
    tokens, _, c1, _, _ = ledger
    minted = tokens.split_position(TRADER, COLLATERAL, c1, [0b10, 0b01], 5)
    assert minted == [_pos(c1, 0b10), _pos(c1, 0b01)]


def test_split_without_collateral_fails_atomically(ledger):
    tokens, collateral, c1, _, _ = ledger
    with pytest.raises(InsufficientBalance):
        tokens.split_position(OTHER, COLLATERAL, c1, [0b01, 0b10], 1)
    assert tokens.balance_of(OTHER, _pos(c1, 0b01)) == 0
    assert collateral.escrowed == 0


def test_invalid_partitions_leave_balances(ledger):
    tokens, collateral, c1, _, _ = ledger
    for partition in ([0b01, 0b111], [0b01, 0b11], [0b01, 0b11, 0b0], [0b11], []):
        with pytest.raises(InvalidPartition):
            tokens.split_position(TRADER, COLLATERAL, c1, partition, E19)
    assert collateral.balance_of(TRADER) == E19
    assert tokens.store.positions.total_supply(_pos(c1, 0b01)) == 0


def test_split_on_unknown_condition(ledger):
    tokens, _, _, _, _ = ledger
    with pytest.raises(ConditionNotFound):
        tokens.split_position(TRADER, COLLATERAL, condition_id(ORACLE, Q1, 5), [1, 2], 1)


def test_split_unknown_collateral(ledger):
    tokens, _, c1, _, _ = ledger
    with pytest.raises(UnknownCollateral):
        tokens.split_position(TRADER, "0x" + "0d" * 20, c1, [0b01, 0b10], 1)


def test_negative_amount_rejected(ledger):
    tokens, _, c1, _, _ = ledger
    with pytest.raises(InvalidAmount):
        tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], -1)


def test_merge_without_positions_fails(ledger):
    tokens, collateral, c1, _, _ = ledger
    with pytest.raises(InsufficientBalance):
        tokens.merge_positions(OTHER, COLLATERAL, c1, [0b01, 0b10], 1)
    assert collateral.escrowed == 0


def test_merge_is_all_or_nothing(ledger):
    tokens, collateral, c1, _, _ = ledger
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], 100)
    tokens.safe_transfer_from(TRADER, OTHER, _pos(c1, 0b10), 60)
    with pytest.raises(InsufficientBalance):
        tokens.merge_positions(TRADER, COLLATERAL, c1, [0b01, 0b10], 50)
    assert tokens.balance_of(TRADER, _pos(c1, 0b01)) == 100
    assert tokens.balance_of(TRADER, _pos(c1, 0b10)) == 40
    tokens.merge_positions(TRADER, COLLATERAL, c1, [0b01, 0b10], 40)
    assert tokens.balance_of(TRADER, _pos(c1, 0b01)) == 60
    assert collateral.escrowed == 60


def test_partial_split_requires_union_position(ledger):
    tokens, _, c1, c2, _ = ledger
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], E19)
    parent = leaf_collection_id(c1, 0b10)

    # full split of c2 under parent burns the parent position
    with pytest.raises(InsufficientBalance):
        tokens.split_position(TRADER, COLLATERAL, c2, [0b100, 0b010], 1000, parent_collection_id=parent)

    tokens.split_position(TRADER, COLLATERAL, c2, [0b110, 0b001], E19, parent_collection_id=parent)
    pos3 = _pos(c2, 0b110, parent)
    pos4 = _pos(c2, 0b001, parent)
    assert tokens.balance_of(TRADER, pos3) == E19
    assert tokens.balance_of(TRADER, pos4) == E19
    assert tokens.balance_of(TRADER, position_id(COLLATERAL, parent)) == 0

    # partial split of the 0b110 position
    tokens.split_position(TRADER, COLLATERAL, c2, [0b100, 0b010], E19, parent_collection_id=parent)
    pos5 = _pos(c2, 0b100, parent)
    pos6 = _pos(c2, 0b010, parent)
    assert tokens.balance_of(TRADER, pos3) == 0
    assert tokens.balance_of(TRADER, pos4) == E19
    assert tokens.balance_of(TRADER, pos5) == E19
    assert tokens.balance_of(TRADER, pos6) == E19

    # partial merge mints the union position; untouched sets stay
    tokens.merge_positions(TRADER, COLLATERAL, c2, [0b001, 0b010], E19, parent_collection_id=parent)
    assert tokens.balance_of(TRADER, pos4) == 0
    assert tokens.balance_of(TRADER, pos6) == 0
    assert tokens.balance_of(TRADER, pos5) == E19
    assert tokens.balance_of(TRADER, _pos(c2, 0b011, parent)) == E19

    # merging back to the full set restores the parent position
    tokens.merge_positions(TRADER, COLLATERAL, c2, [0b011, 0b100], E19, parent_collection_id=parent)
    assert tokens.balance_of(TRADER, position_id(COLLATERAL, parent)) == E19


def test_nested_split_then_partial_merge_only_touches_merged(ledger):
    tokens, collateral, c1, _, c3 = ledger
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], 1000)
    parent = leaf_collection_id(c1, 0b01)
    tokens.split_position(TRADER, COLLATERAL, c3, [0b0001, 0b0010, 0b0100, 0b1000], 600, parent_collection_id=parent)
    assert tokens.balance_of(TRADER, position_id(COLLATERAL, parent)) == 400

    tokens.merge_positions(TRADER, COLLATERAL, c3, [0b0001, 0b0010], 250, parent_collection_id=parent)
    assert tokens.balance_of(TRADER, _pos(c3, 0b0001, parent)) == 350
    assert tokens.balance_of(TRADER, _pos(c3, 0b0010, parent)) == 350
    assert tokens.balance_of(TRADER, _pos(c3, 0b0100, parent)) == 600
    assert tokens.balance_of(TRADER, _pos(c3, 0b1000, parent)) == 600
    assert tokens.balance_of(TRADER, _pos(c3, 0b0011, parent)) == 250
    assert tokens.balance_of(TRADER, position_id(COLLATERAL, parent)) == 400
    assert tokens.balance_of(TRADER, _pos(c1, 0b10)) == 1000
    assert collateral.escrowed == 1000


def test_single_partial_entry_is_balance_neutral(ledger):
    tokens, collateral, c1, c2, _ = ledger
    tokens.split_position(TRADER, COLLATERAL, c2, [0b001, 0b110], 10)
    tokens.split_position(TRADER, COLLATERAL, c2, [0b110], 10)
    assert tokens.balance_of(TRADER, _pos(c2, 0b110)) == 10
    assert tokens.balance_of(TRADER, _pos(c2, 0b001)) == 10
    assert collateral.escrowed == 10


def test_single_partial_entry_without_holdings_changes_nothing(ledger):
    tokens, collateral, c1, _, _ = ledger
    tokens.split_position(OTHER, COLLATERAL, c1, [0b10], 1)
    tokens.split_position(OTHER, COLLATERAL, c1, [0b01], 1)
    assert tokens.balance_of(OTHER, _pos(c1, 0b01)) == 0
    assert tokens.balance_of(OTHER, _pos(c1, 0b10)) == 0
    assert collateral.balance_of(TRADER) == E19
    assert collateral.escrowed == 0
    assert tokens.store.events[-1].event_type == "PositionSplit"


def test_positions_created_in_opposite_orders_are_equal(ledger):
    tokens, _, c1, c2, _ = ledger
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], 100)
    tokens.split_position(TRADER, COLLATERAL, c2, [0b001, 0b010, 0b100], 50, parent_collection_id=leaf_collection_id(c1, 0b01))

    tokens.split_position(TRADER, COLLATERAL, c2, [0b001, 0b110], 100, parent_collection_id=ZERO_ID)
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], 30, parent_collection_id=leaf_collection_id(c2, 0b001))

    both = combine_collection_ids([leaf_collection_id(c1, 0b01), leaf_collection_id(c2, 0b001)])
    assert tokens.balance_of(TRADER, position_id(COLLATERAL, both)) == 80


def test_round_trip_conservation_for_many_partitions(ledger):
    tokens, collateral, _, c2, c3 = ledger
    cases = [
        (c2, [0b001, 0b010, 0b100]),
        (c2, [0b011, 0b100]),
        (c3, [0b0101, 0b1010]),
        (c3, [0b0001, 0b0110, 0b1000]),
    ]
    for cond, partition in cases:
        tokens.split_position(TRADER, COLLATERAL, cond, partition, 777)
        tokens.merge_positions(TRADER, COLLATERAL, cond, partition, 777)
        assert collateral.balance_of(TRADER) == E19
        assert collateral.escrowed == 0
        for index_set in partition:
            assert tokens.balance_of(TRADER, _pos(cond, index_set)) == 0


def test_split_emits_events_after_commit(ledger):
    tokens, _, c1, _, _ = ledger
    before = len(tokens.store.events)
    tokens.split_position(TRADER, COLLATERAL, c1, [0b01, 0b10], 5)
    new = [e.event_type for e in tokens.store.events[before:]]
    assert new == ["TransferBatch", "PositionSplit"]
    before = len(tokens.store.events)
    with pytest.raises(InsufficientBalance):
        tokens.merge_positions(TRADER, COLLATERAL, c1, [0b01, 0b10], 6)
    assert len(tokens.store.events) == before


def test_refused_payout_leaves_merge_positions_in_place(refusing_collateral):
    tokens = ConditionalTokens()
    collateral = refusing_collateral(COLLATERAL, escrow=tokens.store.escrow_address)
    collateral.mint(TRADER, 100)
    tokens.register_collateral(collateral)
    cond = tokens.prepare_condition(ORACLE, Q1, 2).condition_id
    tokens.split_position(TRADER, COLLATERAL, cond, [0b01, 0b10], 100)
    before = len(tokens.store.events)

    collateral.refuse = True
    with pytest.raises(LedgerError):
        tokens.merge_positions(TRADER, COLLATERAL, cond, [0b01, 0b10], 100)
    assert tokens.balance_of(TRADER, _pos(cond, 0b01)) == 100
    assert tokens.balance_of(TRADER, _pos(cond, 0b10)) == 100
    assert collateral.escrowed == 100
    assert len(tokens.store.events) == before

    collateral.refuse = False
    tokens.merge_positions(TRADER, COLLATERAL, cond, [0b01, 0b10], 100)
    assert collateral.balance_of(TRADER) == 100
