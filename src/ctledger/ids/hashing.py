"""Keccak-256 over tightly packed fields (abi.encodePacked) and id formatting."""

from __future__ import annotations

from web3 import Web3

ZERO_ID = "0x" + "0" * 64

# Claim/receipt token kinds for the proportional pool
TOKEN_CONDITIONAL = 0
TOKEN_DONATED = 1
TOKEN_STAKED = 2


def normalize_address(address: str) -> str:
    """Return EIP-55 checksum form. Raises ValueError for malformed input."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def id_to_int(value: str | int | bytes) -> int:
    """Accept 0x-hex, raw bytes or int; return the 256-bit integer."""
    if isinstance(value, bool):
        raise TypeError("bool is not an id")
    if isinstance(value, int):
        n = value
    elif isinstance(value, (bytes, bytearray)):
        n = int.from_bytes(value, "big")
    elif isinstance(value, str):
        s = value.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        n = int(s, 16) if s else 0
    else:
        raise TypeError(f"unsupported id type: {type(value).__name__}")
    if n < 0 or n >> 256:
        raise ValueError("id out of 256-bit range")
    return n


def int_to_id(n: int) -> str:
    """Render a 256-bit integer as 0x + 64 lowercase hex."""
    return "0x" + format(n, "064x")


def normalize_id(value: str | int | bytes) -> str:
    return int_to_id(id_to_int(value))


def pack_address(address: str) -> bytes:
    return bytes.fromhex(normalize_address(address)[2:])


def pack_uint(value: int, bits: int = 256) -> bytes:
    if value < 0 or value >> bits:
        raise ValueError(f"value does not fit uint{bits}")
    return value.to_bytes(bits // 8, "big")


def pack_bytes32(value: str | int | bytes) -> bytes:
    return id_to_int(value).to_bytes(32, "big")


def keccak(packed: bytes) -> int:
    return int.from_bytes(Web3.keccak(packed), "big")


def condition_id(oracle: str, question_id: str | int | bytes, outcome_slot_count: int) -> str:
    """
    conditionId = keccak256(oracle, questionId, outcomeSlotCount)

    abi.encodePacked(address, bytes32, uint256)
    """
    packed = pack_address(oracle) + pack_bytes32(question_id) + pack_uint(outcome_slot_count)
    return int_to_id(keccak(packed))


def position_id(collateral_token: str, collection_id: str | int | bytes) -> str:
    """positionId = keccak256(collateralToken, collectionId) - abi.encodePacked(address, uint256)."""
    packed = pack_address(collateral_token) + pack_bytes32(collection_id)
    return int_to_id(keccak(packed))


def conditional_token_id(market_id: int, customer: str) -> str:
    """Claim-token id for (market, customer): encodePacked(uint8, uint64, address)."""
    packed = pack_uint(TOKEN_CONDITIONAL, 8) + pack_uint(market_id, 64) + pack_address(customer)
    return int_to_id(keccak(packed))


def _pool_receipt_id(kind: int, collateral_token: str, market_id: int, oracle_id: int) -> str:
    packed = (
        pack_uint(kind, 8)
        + pack_address(collateral_token)
        + pack_uint(market_id, 64)
        + pack_uint(oracle_id, 64)
    )
    return int_to_id(keccak(packed))


def collateral_donated_token_id(collateral_token: str, market_id: int, oracle_id: int) -> str:
    return _pool_receipt_id(TOKEN_DONATED, collateral_token, market_id, oracle_id)


def collateral_staked_token_id(collateral_token: str, market_id: int, oracle_id: int) -> str:
    return _pool_receipt_id(TOKEN_STAKED, collateral_token, market_id, oracle_id)
