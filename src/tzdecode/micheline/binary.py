"""Micheline binary codec.

Wire format (big-endian lengths):

    0x00  int            signed zarith
    0x01  string         u32 length + utf-8
    0x02  sequence       u32 byte length + nodes
    0x03  prim           opcode
    0x04  prim + annots  opcode, annots string
    0x05  prim 1 arg     opcode, node
    0x06  + annots       opcode, node, annots string
    0x07  prim 2 args    opcode, node, node
    0x08  + annots       opcode, node, node, annots string
    0x09  prim n args    opcode, u32 byte length + nodes, annots string
    0x0a  bytes          u32 length + raw bytes
"""

from __future__ import annotations

import struct

from eth_utils import decode_hex

from tzdecode.core.errors import BinaryDecodeError
from tzdecode.micheline.prim import Prim, Prims

# Michelson primitive table, indexed by binary opcode.
OPCODES: tuple[str, ...] = (
    "parameter", "storage", "code", "False", "Elt", "Left", "None", "Pair",
    "Right", "Some", "True", "Unit", "PACK", "UNPACK", "BLAKE2B", "SHA256",
    "SHA512", "ABS", "ADD", "AMOUNT", "AND", "BALANCE", "CAR", "CDR",
    "CHECK_SIGNATURE", "COMPARE", "CONCAT", "CONS", "CREATE_ACCOUNT", "CREATE_CONTRACT", "IMPLICIT_ACCOUNT", "DIP",
    "DROP", "DUP", "EDIV", "EMPTY_MAP", "EMPTY_SET", "EQ", "EXEC", "FAILWITH",
    "GE", "GET", "GT", "HASH_KEY", "IF", "IF_CONS", "IF_LEFT", "IF_NONE",
    "INT", "LAMBDA", "LE", "LEFT", "LOOP", "LSL", "LSR", "LT",
    "MAP", "MEM", "MUL", "NEG", "NEQ", "NIL", "NONE", "NOT",
    "NOW", "OR", "PAIR", "PUSH", "RIGHT", "SIZE", "SOME", "SOURCE",
    "SENDER", "SELF", "STEPS_TO_QUOTA", "SUB", "SWAP", "TRANSFER_TOKENS", "SET_DELEGATE", "UNIT",
    "UPDATE", "XOR", "ITER", "LOOP_LEFT", "ADDRESS", "CONTRACT", "ISNAT", "CAST",
    "RENAME", "bool", "contract", "int", "key", "key_hash", "lambda", "list",
    "map", "big_map", "nat", "option", "or", "pair", "set", "signature",
    "string", "bytes", "mutez", "timestamp", "unit", "operation", "address", "SLICE",
    "DIG", "DUG", "EMPTY_BIG_MAP", "APPLY", "chain_id", "CHAIN_ID", "LEVEL", "SELF_ADDRESS",
    "never", "NEVER", "UNPAIR", "VOTING_POWER", "TOTAL_VOTING_POWER", "KECCAK", "SHA3", "PAIRING_CHECK",
    "bls12_381_g1", "bls12_381_g2", "bls12_381_fr", "sapling_state", "sapling_transaction_deprecated",
    "SAPLING_EMPTY_STATE", "SAPLING_VERIFY_UPDATE", "ticket",
    "TICKET_DEPRECATED", "READ_TICKET", "SPLIT_TICKET", "JOIN_TICKETS", "GET_AND_UPDATE", "chest", "chest_key", "OPEN_CHEST",
    "VIEW", "view", "constant", "SUB_MUTEZ", "tx_rollup_l2_address", "MIN_BLOCK_TIME", "sapling_transaction", "EMIT",
    "Lambda_rec", "LAMBDA_REC", "TICKET", "BYTES", "NAT",
)  # fmt: skip

OPCODE_BY_NAME: dict[str, int] = {name: i for i, name in enumerate(OPCODES)}

T_INT, T_STRING, T_SEQ = 0x00, 0x01, 0x02
T_PRIM, T_PRIM_ANNO = 0x03, 0x04
T_PRIM_1, T_PRIM_1_ANNO = 0x05, 0x06
T_PRIM_2, T_PRIM_2_ANNO = 0x07, 0x08
T_PRIM_N, T_BYTES = 0x09, 0x0A


def hex_to_bytes(text: str) -> bytes:
    """Decode a (optionally 0x-prefixed) hex payload."""
    try:
        return decode_hex(text)
    except (ValueError, TypeError) as e:
        raise BinaryDecodeError(f"invalid hex: {e}", value=text) from e


class Reader:
    """Cursor over a byte buffer; every read is bounds checked."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def take(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise BinaryDecodeError(f"short buffer: need {n} bytes at offset {self.pos}")
        out = self.data[self.pos : self.pos + n]
        self.pos += n
        return out

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def i64(self) -> int:
        return struct.unpack(">q", self.take(8))[0]

    def zarith(self) -> int:
        """Signed zarith: 6 value bits + sign in the first byte, then 7 bits per byte."""
        b = self.u8()
        negative = bool(b & 0x40)
        value = b & 0x3F
        shift = 6
        while b & 0x80:
            b = self.u8()
            value |= (b & 0x7F) << shift
            shift += 7
        return -value if negative else value

    def sized(self) -> Reader:
        """Sub-reader over the next u32-length-prefixed block."""
        return Reader(self.take(self.u32()))

    def expect_end(self) -> None:
        if self.remaining:
            raise BinaryDecodeError(f"{self.remaining} trailing bytes at offset {self.pos}")


def read_prim(r: Reader) -> Prim:
    tag = r.u8()
    if tag == T_INT:
        return Prims.Int(r.zarith())
    if tag == T_STRING:
        raw = r.take(r.u32())
        try:
            return Prims.String(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise BinaryDecodeError(f"invalid utf-8 string: {e}") from e
    if tag == T_BYTES:
        return Prims.Bytes(r.take(r.u32()))
    if tag == T_SEQ:
        sub = r.sized()
        items: list[Prim] = []
        while sub.remaining:
            items.append(read_prim(sub))
        return Prims.Seq(tuple(items))
    if T_PRIM <= tag <= T_PRIM_N:
        name = _opcode(r.u8())
        if tag == T_PRIM_N:
            sub = r.sized()
            args: list[Prim] = []
            while sub.remaining:
                args.append(read_prim(sub))
            return Prims.App(name, tuple(args), _read_annots(r))
        nargs = (tag - T_PRIM) // 2
        args = [read_prim(r) for _ in range(nargs)]
        annots = _read_annots(r) if (tag - T_PRIM) % 2 else ()
        return Prims.App(name, tuple(args), annots)
    raise BinaryDecodeError(f"unknown micheline tag 0x{tag:02x} at offset {r.pos - 1}")


def _opcode(code: int) -> str:
    if code >= len(OPCODES):
        raise BinaryDecodeError(f"unknown opcode {code}")
    return OPCODES[code]


def _read_annots(r: Reader) -> tuple[str, ...]:
    raw = r.take(r.u32())
    try:
        return tuple(raw.decode("utf-8").split())
    except UnicodeDecodeError as e:
        raise BinaryDecodeError(f"invalid annotation bytes: {e}") from e


def decode_prim(data: bytes) -> Prim:
    """Decode one complete primitive tree; trailing bytes are an error."""
    r = Reader(data)
    p = read_prim(r)
    r.expect_end()
    return p


# ---------- encoder ----------


def encode_prim(p: Prim) -> bytes:
    out = bytearray()
    _write_prim(out, p)
    return bytes(out)


def _write_sized(out: bytearray, data: bytes) -> None:
    out += struct.pack(">I", len(data))
    out += data


def write_zarith(out: bytearray, value: int) -> None:
    n = abs(value)
    first = n & 0x3F
    if value < 0:
        first |= 0x40
    n >>= 6
    if n:
        first |= 0x80
    out.append(first)
    while n:
        b = n & 0x7F
        n >>= 7
        if n:
            b |= 0x80
        out.append(b)


def _write_prim(out: bytearray, p: Prim) -> None:
    match p:
        case Prims.Int():
            out.append(T_INT)
            write_zarith(out, p.value)
        case Prims.String():
            out.append(T_STRING)
            _write_sized(out, p.value.encode("utf-8"))
        case Prims.Bytes():
            out.append(T_BYTES)
            _write_sized(out, p.value)
        case Prims.Seq():
            out.append(T_SEQ)
            _write_sized(out, b"".join(encode_prim(x) for x in p.items))
        case Prims.App():
            code = OPCODE_BY_NAME.get(p.name)
            if code is None:
                raise ValueError(f"unknown primitive {p.name!r}")
            if len(p.args) > 2:
                out.append(T_PRIM_N)
                out.append(code)
                _write_sized(out, b"".join(encode_prim(x) for x in p.args))
                _write_sized(out, " ".join(p.annots).encode("utf-8"))
                return
            out.append(T_PRIM + 2 * len(p.args) + (1 if p.annots else 0))
            out.append(code)
            for x in p.args:
                _write_prim(out, x)
            if p.annots:
                _write_sized(out, " ".join(p.annots).encode("utf-8"))
        case _:
            raise TypeError(f"not a primitive: {p!r}")
