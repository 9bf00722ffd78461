"""Tezos domain values: base58check hashes and addresses."""

from tzdecode.tezos.hashes import (
    Address,
    Hash,
    HashType,
    decode_base58,
    encode_base58,
    parse_block_hash,
    parse_expr_hash,
    parse_op_hash,
)

__all__ = [
    "Address",
    "Hash",
    "HashType",
    "decode_base58",
    "encode_base58",
    "parse_block_hash",
    "parse_expr_hash",
    "parse_op_hash",
]
