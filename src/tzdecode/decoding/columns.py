"""Column specifications and table-mode scalar parsers.

Defines lightweight primitives describing how to decode columnar rows:
- one parser per `ColumnKind` (table-mode wire conventions)
- `ColumnSpec`: one column rule (alias → record attribute + parser)
- `ColumnRegistry`: mapping from alias → ColumnSpec for a record type
- `ColumnPlan`: a column list compiled against a registry, reused by every
  row of a batch so that dispatch happens once per column, not once per cell
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from tzdecode.core.enums import OpStatus, OpType, VotingPeriodKind
from tzdecode.core.errors import MalformedField
from tzdecode.core.models import Block, ColumnKind, Op, record_columns
from tzdecode.micheline.binary import decode_prim, hex_to_bytes
from tzdecode.tezos.hashes import Address, Hash, HashType

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

TableParser = Callable[[Any], Any]


# ---------- table-mode parsers ----------


def _number(v: Any) -> int:
    # bool is an int subclass but never a valid table number
    if isinstance(v, bool) or not isinstance(v, int):
        raise MalformedField(f"expected integer, got {type(v).__name__}", value=v)
    return v


def parse_uint(v: Any) -> int:
    n = _number(v)
    if not 0 <= n < 2**64:
        raise MalformedField("unsigned integer out of range", value=v)
    return n


def parse_int(v: Any) -> int:
    n = _number(v)
    if not -(2**63) <= n < 2**63:
        raise MalformedField("integer out of range", value=v)
    return n


def parse_float(v: Any) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise MalformedField(f"expected number, got {type(v).__name__}", value=v)
    return float(v)


def parse_bool(v: Any) -> bool:
    """Table booleans are the numbers 0/1, never JSON true/false."""
    if isinstance(v, bool):
        raise MalformedField("expected numeric boolean 0/1, got JSON boolean", value=v)
    if isinstance(v, int) and v in (0, 1):
        return v == 1
    if isinstance(v, str) and v in ("0", "1"):
        return v == "1"
    raise MalformedField("expected numeric boolean 0/1", value=v)


def parse_time(v: Any) -> datetime:
    """Milliseconds since the epoch → UTC instant."""
    ms = _number(v)
    try:
        return EPOCH + timedelta(milliseconds=ms)
    except OverflowError as e:
        raise MalformedField("timestamp out of range", value=v) from e


def parse_string(v: Any) -> str:
    if not isinstance(v, str):
        raise MalformedField(f"expected string, got {type(v).__name__}", value=v)
    return v


def parse_address(v: Any) -> Address | None:
    s = parse_string(v)
    return Address.parse(s) if s else None


def _hash_parser(typ: HashType) -> TableParser:
    def parse(v: Any) -> Hash | None:
        s = parse_string(v)
        return Hash.parse(s, typ) if s else None

    return parse


def _enum_parser(enum: type) -> TableParser:
    def parse(v: Any) -> Any:
        return enum(parse_string(v))

    return parse


def parse_json(v: Any) -> Any:
    return v


def parse_prim_hex(v: Any) -> Any:
    data = hex_to_bytes(parse_string(v))
    return decode_prim(data) if data else None


TABLE_PARSERS: dict[ColumnKind, TableParser] = {
    ColumnKind.UINT: parse_uint,
    ColumnKind.INT: parse_int,
    ColumnKind.FLOAT: parse_float,
    ColumnKind.OPT_FLOAT: parse_float,
    ColumnKind.BOOL: parse_bool,
    ColumnKind.TIME: parse_time,
    ColumnKind.STRING: parse_string,
    ColumnKind.ADDRESS: parse_address,
    ColumnKind.BLOCK_HASH: _hash_parser(HashType.BLOCK),
    ColumnKind.OP_HASH: _hash_parser(HashType.OPERATION),
    ColumnKind.OP_TYPE: _enum_parser(OpType),
    ColumnKind.OP_STATUS: _enum_parser(OpStatus),
    ColumnKind.VOTING_PERIOD: _enum_parser(VotingPeriodKind),
    ColumnKind.JSON: parse_json,
    ColumnKind.PRIM: parse_prim_hex,
    ColumnKind.ENTRYPOINT: parse_string,
}

# Contract-data kinds need the row's script types; they run after all scalars.
CONTRACT_KINDS = frozenset({ColumnKind.PARAMETERS, ColumnKind.STORAGE, ColumnKind.BIGMAP_DIFF})


# ---------- specs & registry ----------


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One table column: explorer alias, record attribute, kind and parser."""

    alias: str
    attr: str
    kind: ColumnKind
    parse: TableParser | None  # None → contract-data column (second pass)

    @property
    def deferred(self) -> bool:
        return self.parse is None


# The full registry keyed by column alias.
ColumnRegistry = dict[str, ColumnSpec]


def make_registry(record_type: type) -> ColumnRegistry:
    """Build the table-mode registry of a record type from its column fields."""
    reg: ColumnRegistry = {}
    for c in record_columns(record_type):
        if c.kind in CONTRACT_KINDS:
            reg[c.alias] = ColumnSpec(c.alias, c.attr, c.kind, None)
        elif c.kind in TABLE_PARSERS:
            reg[c.alias] = ColumnSpec(c.alias, c.attr, c.kind, TABLE_PARSERS[c.kind])
    return reg


BLOCK_COLUMNS: ColumnRegistry = make_registry(Block)
OP_COLUMNS: ColumnRegistry = make_registry(Op)


@dataclass(frozen=True, slots=True)
class ColumnPlan:
    """A column list resolved against a registry; `None` marks unknown columns."""

    columns: tuple[str, ...]
    specs: tuple[ColumnSpec | None, ...]

    def position(self, alias: str) -> int | None:
        try:
            return self.columns.index(alias)
        except ValueError:
            return None


def compile_columns(columns: Sequence[str], registry: ColumnRegistry) -> ColumnPlan:
    """Select each column's parser once; unknown names are ignored at decode time."""
    cols = tuple(columns)
    return ColumnPlan(cols, tuple(registry.get(c) for c in cols))
