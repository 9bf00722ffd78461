"""Base58check hashes and addresses.

Tezos encodes every hash as `base58check(prefix || digest)`. The prefix
bytes select the human readable leader (`B`, `o`, `tz1`, `KT1`, ...), so a
value is only valid if both the checksum and the prefix/length agree with
the expected hash type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import base58

from tzdecode.core.errors import InvalidEncoding


class HashType(Enum):
    """Known hash kinds: (binary prefix, digest length)."""

    BLOCK = (b"\x01\x34", 32)  # B
    OPERATION = (b"\x05\x74", 32)  # o
    PROTOCOL = (b"\x02\xaa", 32)  # P
    EXPR = (b"\x0d\x2c\x40\x1b", 32)  # expr
    CHAIN_ID = (b"\x57\x52\x00", 4)  # Net
    ED25519_PKH = (b"\x06\xa1\x9f", 20)  # tz1
    SECP256K1_PKH = (b"\x06\xa1\xa1", 20)  # tz2
    P256_PKH = (b"\x06\xa1\xa4", 20)  # tz3
    BLS12_381_PKH = (b"\x06\xa1\xa6", 20)  # tz4
    CONTRACT = (b"\x02\x5a\x79", 20)  # KT1
    TX_ROLLUP = (b"\x01\x80\x78\x1f", 20)  # txr1
    SMART_ROLLUP = (b"\x06\x7c\x75", 20)  # sr1
    ED25519_PK = (b"\x0d\x0f\x25\xd9", 32)  # edpk
    SECP256K1_PK = (b"\x03\xfe\xe2\x56", 33)  # sppk
    P256_PK = (b"\x03\xb2\x8b\x7f", 33)  # p2pk
    BLS12_381_PK = (b"\x06\x95\x87\xcc", 48)  # BLpk
    SIGNATURE = (b"\x04\x82\x2b", 64)  # sig

    @property
    def prefix(self) -> bytes:
        return self.value[0]

    @property
    def length(self) -> int:
        return self.value[1]


# address binary tags → hash type (implicit accounts carry a curve byte)
_IMPLICIT_BY_CURVE = (
    HashType.ED25519_PKH,
    HashType.SECP256K1_PKH,
    HashType.P256_PKH,
    HashType.BLS12_381_PKH,
)
_ORIGINATED_BY_TAG = {
    1: HashType.CONTRACT,
    2: HashType.TX_ROLLUP,
    3: HashType.SMART_ROLLUP,
}
_PUBKEY_BY_CURVE = (
    HashType.ED25519_PK,
    HashType.SECP256K1_PK,
    HashType.P256_PK,
    HashType.BLS12_381_PK,
)
ADDRESS_TYPES = frozenset(_IMPLICIT_BY_CURVE) | frozenset(_ORIGINATED_BY_TAG.values())


def encode_base58(typ: HashType, digest: bytes) -> str:
    if len(digest) != typ.length:
        raise InvalidEncoding(f"{typ.name.lower()} digest must be {typ.length} bytes, got {len(digest)}")
    return base58.b58encode_check(typ.prefix + digest).decode("ascii")


def decode_base58(text: str, *types: HashType) -> tuple[HashType, bytes]:
    """Decode a base58check string and match it against the allowed hash types."""
    try:
        raw = base58.b58decode_check(text)
    except ValueError as e:
        raise InvalidEncoding(f"invalid base58check: {e}", value=text) from e
    for typ in types:
        if raw.startswith(typ.prefix) and len(raw) == len(typ.prefix) + typ.length:
            return typ, raw[len(typ.prefix) :]
    names = ", ".join(t.name.lower() for t in types)
    raise InvalidEncoding(f"unexpected prefix or length (want {names})", value=text)


@dataclass(frozen=True, slots=True)
class Hash:
    """A typed digest (block, operation, expression, chain id, ...)."""

    type: HashType
    digest: bytes

    def __str__(self) -> str:
        return encode_base58(self.type, self.digest)

    def __repr__(self) -> str:
        return f"Hash({self})"

    @classmethod
    def parse(cls, text: str, typ: HashType) -> Hash:
        _, digest = decode_base58(text, typ)
        return cls(typ, digest)


def parse_block_hash(text: str) -> Hash:
    return Hash.parse(text, HashType.BLOCK)


def parse_op_hash(text: str) -> Hash:
    return Hash.parse(text, HashType.OPERATION)


def parse_expr_hash(text: str) -> Hash:
    return Hash.parse(text, HashType.EXPR)


@dataclass(frozen=True, slots=True)
class Address:
    """Implicit (tz1..tz4) or originated (KT1, txr1, sr1) account address."""

    type: HashType
    hash: bytes

    def __str__(self) -> str:
        return encode_base58(self.type, self.hash)

    def __repr__(self) -> str:
        return f"Address({self})"

    @property
    def is_contract(self) -> bool:
        return self.type is HashType.CONTRACT

    @classmethod
    def parse(cls, text: str) -> Address:
        typ, digest = decode_base58(text, *ADDRESS_TYPES)
        return cls(typ, digest)

    @classmethod
    def from_binary(cls, data: bytes) -> Address:
        """Decode the 22-byte binary address encoding used inside Micheline values."""
        if len(data) != 22:
            raise InvalidEncoding(f"binary address must be 22 bytes, got {len(data)}", value=data.hex())
        tag = data[0]
        if tag == 0:
            return cls(_curve_type(_IMPLICIT_BY_CURVE, data[1], data), data[2:])
        typ = _ORIGINATED_BY_TAG.get(tag)
        if typ is None:
            raise InvalidEncoding(f"unknown address tag {tag}", value=data.hex())
        return cls(typ, data[1:21])


def contract_from_binary(data: bytes) -> str:
    """Render a binary address value; bytes past the 22-byte address are an entrypoint (`KT1...%name`)."""
    if len(data) <= 22:
        return str(Address.from_binary(data))
    try:
        entrypoint = data[22:].decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidEncoding("entrypoint suffix is not valid UTF-8", value=data.hex()) from e
    return f"{Address.from_binary(data[:22])}%{entrypoint}"


def key_hash_from_binary(data: bytes) -> Address:
    """Decode a 21-byte key hash (curve byte + 20 byte digest)."""
    if len(data) != 21:
        raise InvalidEncoding(f"binary key hash must be 21 bytes, got {len(data)}", value=data.hex())
    return Address(_curve_type(_IMPLICIT_BY_CURVE, data[0], data), data[1:])


def public_key_from_binary(data: bytes) -> str:
    """Render a tagged binary public key as its base58 form (edpk, sppk, ...)."""
    if not data:
        raise InvalidEncoding("empty public key")
    typ = _curve_type(_PUBKEY_BY_CURVE, data[0], data)
    return encode_base58(typ, data[1:])


def _curve_type(table: tuple[HashType, ...], curve: int, data: bytes) -> HashType:
    if curve >= len(table):
        raise InvalidEncoding(f"unknown curve {curve}", value=data.hex())
    return table[curve]
