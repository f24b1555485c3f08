"""Condition, collection and position id derivation."""

import pytest
from web3 import Web3

from ctledger.errors import InvalidCollectionId
from ctledger.ids import (
    ZERO_ID,
    collateral_donated_token_id,
    collateral_staked_token_id,
    collection_id,
    combine_collection_ids,
    condition_id,
    conditional_token_id,
    leaf_collection_id,
    position_id,
)
from ctledger.ids import curve
from ctledger.ids.hashing import id_to_int, normalize_id

ORACLE = "0x" + "11" * 20
COLLATERAL = "0x" + "0c" * 20
QUESTION = "0x" + "cafebabe" * 8


def _keccak_int(packed: bytes) -> int:
    return int.from_bytes(Web3.keccak(packed), "big")


@pytest.fixture
def cond():
    return condition_id(ORACLE, QUESTION, 3)


def test_condition_id_packs_address_bytes32_uint256():
    packed = bytes.fromhex("11" * 20) + bytes.fromhex("cafebabe" * 8) + (3).to_bytes(32, "big")
    assert id_to_int(condition_id(ORACLE, QUESTION, 3)) == _keccak_int(packed)
    # checksum and lowercase oracle give the same id
    assert condition_id(Web3.to_checksum_address(ORACLE), QUESTION, 3) == condition_id(ORACLE, QUESTION, 3)


def test_condition_id_depends_on_slot_count():
    assert condition_id(ORACLE, QUESTION, 2) != condition_id(ORACLE, QUESTION, 3)


def test_position_id_packs_address_and_collection():
    coll = leaf_collection_id(condition_id(ORACLE, QUESTION, 2), 0b01)
    packed = bytes.fromhex("0c" * 20) + id_to_int(coll).to_bytes(32, "big")
    assert id_to_int(position_id(COLLATERAL, coll)) == _keccak_int(packed)
    assert position_id(COLLATERAL, coll) != position_id("0x" + "0d" * 20, coll)


def test_ids_are_0x_64_hex(cond):
    for value in (cond, leaf_collection_id(cond, 1), position_id(COLLATERAL, ZERO_ID)):
        assert value.startswith("0x")
        assert len(value) == 66
        assert value == value.lower()


def test_leaf_is_curve_encoding_of_hash(cond):
    seed = _keccak_int(id_to_int(cond).to_bytes(32, "big") + (0b101).to_bytes(32, "big"))
    assert id_to_int(leaf_collection_id(cond, 0b101)) == curve.pack(curve.encode(seed))
    assert curve.is_on_curve(curve.decode(id_to_int(leaf_collection_id(cond, 0b101))))


def test_known_id_vectors():
    # Values from the JavaScript id helpers: seed for 0b01 has bit 255 set, seed for 0b10 does not
    cond = condition_id("0x" + "01" * 20, QUESTION, 2)
    assert cond == "0x819e39caf71bd53b7ab5cd3adf8ef948ce6ac3a191bb6e08cf43acc307d1f208"
    odd = leaf_collection_id(cond, 0b01)
    even = leaf_collection_id(cond, 0b10)
    assert odd == "0x6ab5628fdf6ed3217f6c8299e9aedceead30b6d76bb5d63269bb77108fab8b2b"
    assert even == "0x19565857d0d5ddd25b3bdc16379d4729266274fd7a5ca354e070e0c90cb6342d"
    assert leaf_collection_id(cond, 0b11) == "0x4028536f1079d4dfea17114b3b93efe6c9f44144388c5a293d9899bec3e5efc2"
    combined = "0x2c22d49667ff1520f423da9b8bd797c461fe20c22c8b91fae81a00b137dd51da"
    assert combine_collection_ids([odd, even]) == combined
    assert combine_collection_ids([even, odd]) == combined
    assert collection_id(odd, cond, 0b10) == combined


def test_combine_empty_and_single(cond):
    a = leaf_collection_id(cond, 0b001)
    assert combine_collection_ids([]) == ZERO_ID
    assert combine_collection_ids([a]) == a
    assert combine_collection_ids([a, ZERO_ID]) == a
    assert combine_collection_ids([ZERO_ID, ZERO_ID]) == ZERO_ID


def test_combine_commutative_and_associative(cond):
    other = condition_id(ORACLE, "0x" + "ab12" * 16, 2)
    a = leaf_collection_id(cond, 0b001)
    b = leaf_collection_id(cond, 0b110)
    c = leaf_collection_id(other, 0b01)
    assert combine_collection_ids([a, b]) == combine_collection_ids([b, a])
    left = combine_collection_ids([combine_collection_ids([a, b]), c])
    right = combine_collection_ids([a, combine_collection_ids([b, c])])
    assert left == right
    assert combine_collection_ids([a, b, c]) == left
    assert combine_collection_ids([c, a, b]) == left


def test_combine_with_inverse_is_identity(cond):
    a = leaf_collection_id(cond, 0b011)
    # same x, opposite parity bit is the negated point
    negated = normalize_id(id_to_int(a) ^ curve.ODD_TOGGLE)
    assert combine_collection_ids([a, negated]) == ZERO_ID


def test_combine_same_id_twice_doubles(cond):
    a = leaf_collection_id(cond, 0b010)
    doubled = combine_collection_ids([a, a])
    assert doubled != a
    assert curve.decode(id_to_int(doubled)) == curve.add(curve.decode(id_to_int(a)), curve.decode(id_to_int(a)))


def test_combine_rejects_invalid_id(cond):
    x = 1
    while curve.sqrt_mod((x**3 + 3) % curve.P) is not None:
        x += 1
    with pytest.raises(InvalidCollectionId):
        combine_collection_ids([leaf_collection_id(cond, 1), x])
    with pytest.raises(InvalidCollectionId):
        collection_id(normalize_id(x), cond, 1)


def test_collection_id_order_independent(cond):
    other = condition_id(ORACLE, "0x" + "ab12" * 16, 2)
    via_first = collection_id(collection_id(ZERO_ID, cond, 0b001), other, 0b10)
    via_second = collection_id(collection_id(ZERO_ID, other, 0b10), cond, 0b001)
    assert via_first == via_second
    assert collection_id(ZERO_ID, cond, 0b001) == leaf_collection_id(cond, 0b001)


def test_distinct_index_sets_give_distinct_ids(cond):
    ids = {leaf_collection_id(cond, s) for s in range(1, 8)}
    assert len(ids) == 7


def test_pool_token_ids():
    customer = "0x" + "22" * 20
    packed = (0).to_bytes(1, "big") + (5).to_bytes(8, "big") + bytes.fromhex("22" * 20)
    assert id_to_int(conditional_token_id(5, customer)) == _keccak_int(packed)
    assert conditional_token_id(5, customer) != conditional_token_id(6, customer)
    assert collateral_donated_token_id(COLLATERAL, 0, 1) != collateral_staked_token_id(COLLATERAL, 0, 1)


def test_id_to_int_accepts_forms():
    assert id_to_int("0x10") == 16
    assert id_to_int(b"\x01\x00") == 256
    assert id_to_int(7) == 7
    assert normalize_id(0) == ZERO_ID
    with pytest.raises(ValueError):
        id_to_int(2**256)
