"""Object-form codec: explorer JSON objects ↔ records.

Object-form responses use JSON-native conventions (booleans as `true`/`false`,
times as ISO-8601 text, nested objects for contract data), so they bypass
the table-mode parsers. `encode_object` is the exact inverse of
`decode_object` for every record either decode path produces.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from tzdecode.core.enums import BigmapAction, OpStatus, OpType, VotingPeriodKind
from tzdecode.core.errors import DecodeError, MalformedField
from tzdecode.core.models import (
    BigmapMeta,
    BigmapUpdate,
    ColumnKind,
    ContractParameters,
    ContractValue,
    Op,
    record_columns,
)
from tzdecode.decoding.columns import parse_float, parse_int, parse_string, parse_uint
from tzdecode.micheline.prim import Prim, from_json, to_json
from tzdecode.tezos.hashes import Address, Hash, HashType

R = TypeVar("R")


# ---------- scalars ----------


def _bool(v: Any) -> bool:
    if not isinstance(v, bool):
        raise MalformedField(f"expected boolean, got {type(v).__name__}", value=v)
    return v


def parse_iso_time(v: Any) -> datetime:
    if isinstance(v, int) and not isinstance(v, bool):
        return datetime.fromtimestamp(v / 1000, tz=UTC)
    try:
        dt = datetime.fromisoformat(parse_string(v))
    except ValueError as e:
        raise MalformedField(f"invalid timestamp: {e}", value=v) from e
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def format_time(dt: datetime) -> str:
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _opt(parse: Callable[[str], Any]) -> Callable[[Any], Any]:
    def inner(v: Any) -> Any:
        s = parse_string(v)
        return parse(s) if s else None

    return inner


def _address(v: Any) -> Address | None:
    return _opt(Address.parse)(v)


def _hash(typ: HashType) -> Callable[[Any], Hash | None]:
    return _opt(lambda s: Hash.parse(s, typ))


def _prim(v: Any) -> Prim | None:
    return from_json(v) if v is not None else None


def _int_or_none(v: Any) -> int | None:
    return parse_int(v) if v is not None else None


# ---------- contract data ----------


def _mapping(v: Any) -> Mapping[str, Any]:
    if not isinstance(v, Mapping):
        raise MalformedField(f"expected object, got {type(v).__name__}", value=v)
    return v


def _parameters(v: Any) -> ContractParameters:
    obj = _mapping(v)
    return ContractParameters(
        entrypoint=parse_string(obj.get("entrypoint", "")),
        value=obj.get("value"),
        prim=_prim(obj.get("prim")),
    )


def _storage(v: Any) -> ContractValue:
    obj = _mapping(v)
    return ContractValue(value=obj.get("value"), prim=_prim(obj.get("prim")))


def _bigmap_meta(v: Any) -> BigmapMeta | None:
    if v is None:
        return None
    obj = _mapping(v)
    t = obj.get("time")
    return BigmapMeta(
        contract=_address(obj.get("contract", "")),
        bigmap_id=parse_int(obj.get("bigmap_id", 0)),
        time=parse_iso_time(t) if t is not None else None,
        height=parse_int(obj.get("height", 0)),
    )


def _bigmap_update(v: Any) -> BigmapUpdate:
    obj = _mapping(v)
    kh = obj.get("key_hash")
    return BigmapUpdate(
        action=BigmapAction(parse_string(obj.get("action", ""))),
        bigmap_id=parse_int(obj.get("bigmap_id", 0)),
        key=obj.get("key"),
        key_hash=_hash(HashType.EXPR)(kh) if kh is not None else None,
        value=obj.get("value"),
        meta=_bigmap_meta(obj.get("meta")),
        key_prim=_prim(obj.get("key_prim")),
        value_prim=_prim(obj.get("value_prim")),
        key_type=obj.get("key_type"),
        value_type=obj.get("value_type"),
        key_type_prim=_prim(obj.get("key_type_prim")),
        value_type_prim=_prim(obj.get("value_type_prim")),
        source_id=_int_or_none(obj.get("source_big_map")),
        dest_id=_int_or_none(obj.get("destination_big_map")),
    )


def _list(item: Callable[[Any], Any]) -> Callable[[Any], tuple[Any, ...]]:
    def inner(v: Any) -> tuple[Any, ...]:
        if not isinstance(v, list):
            raise MalformedField(f"expected array, got {type(v).__name__}", value=v)
        return tuple(item(x) for x in v)

    return inner


OBJECT_PARSERS: dict[ColumnKind, Callable[[Any], Any]] = {
    ColumnKind.UINT: parse_uint,
    ColumnKind.INT: parse_int,
    ColumnKind.FLOAT: parse_float,
    ColumnKind.OPT_FLOAT: parse_float,
    ColumnKind.BOOL: _bool,
    ColumnKind.TIME: parse_iso_time,
    ColumnKind.STRING: parse_string,
    ColumnKind.ADDRESS: _address,
    ColumnKind.BLOCK_HASH: _hash(HashType.BLOCK),
    ColumnKind.OP_HASH: _hash(HashType.OPERATION),
    ColumnKind.OP_TYPE: lambda v: OpType(parse_string(v)),
    ColumnKind.OP_STATUS: lambda v: OpStatus(parse_string(v)),
    ColumnKind.VOTING_PERIOD: lambda v: VotingPeriodKind(parse_string(v)),
    ColumnKind.JSON: lambda v: v,
    ColumnKind.PRIM: _prim,
    ColumnKind.ENTRYPOINT: parse_string,
    ColumnKind.PARAMETERS: _parameters,
    ColumnKind.STORAGE: _storage,
    ColumnKind.BIGMAP_DIFF: _list(_bigmap_update),
    ColumnKind.OPS: _list(lambda v: decode_object(Op, v)),
}


def decode_object(record_type: type[R], obj: Any) -> R:
    """Decode one explorer JSON object into a record; unknown keys are ignored."""
    fields = _mapping(obj)
    values: dict[str, Any] = {}
    for c in record_columns(record_type):
        raw = fields.get(c.alias)
        if raw is None:
            continue
        try:
            values[c.attr] = OBJECT_PARSERS[c.kind](raw)
        except DecodeError as e:
            reason = e.reason if e.column is None else f"{e.column}: {e.reason}"
            raise type(e)(reason, column=c.alias, value=raw) from e
    return record_type(**values)


# ---------- encoder ----------


def encode_value(v: Any) -> Any:
    """Render one field value in object form (JSON-native types only)."""
    match v:
        case None | bool() | int() | float() | str():
            return v
        case Enum():
            return v.value
        case datetime():
            return format_time(v)
        case Hash() | Address():
            return str(v)
        case ContractParameters():
            return _drop_none({"entrypoint": v.entrypoint, "value": v.value, "prim": _encode_prim(v.prim)})
        case ContractValue():
            return _drop_none({"value": v.value, "prim": _encode_prim(v.prim)})
        case BigmapMeta():
            return _drop_none(
                {
                    "contract": encode_value(v.contract),
                    "bigmap_id": v.bigmap_id,
                    "time": encode_value(v.time),
                    "height": v.height,
                }
            )
        case BigmapUpdate():
            return _drop_none(
                {
                    "action": v.action.value,
                    "bigmap_id": v.bigmap_id,
                    "key": v.key,
                    "key_hash": encode_value(v.key_hash),
                    "value": v.value,
                    "meta": encode_value(v.meta),
                    "key_prim": _encode_prim(v.key_prim),
                    "value_prim": _encode_prim(v.value_prim),
                    "key_type": v.key_type,
                    "value_type": v.value_type,
                    "key_type_prim": _encode_prim(v.key_type_prim),
                    "value_type_prim": _encode_prim(v.value_type_prim),
                    "source_big_map": v.source_id,
                    "destination_big_map": v.dest_id,
                }
            )
        case tuple():
            return [encode_value(x) for x in v]
    if hasattr(v, "__dataclass_fields__"):
        return encode_object(v)
    return v


def _encode_prim(p: Prim | None) -> Any:
    return to_json(p) if p is not None else None


def _drop_none(obj: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in obj.items() if v is not None}


def encode_object(record: Any) -> dict[str, Any]:
    """Render a record in the explorer's object form (None fields omitted)."""
    out: dict[str, Any] = {}
    for c in record_columns(type(record)):
        v = getattr(record, c.attr)
        if v is None:
            continue
        out[c.alias] = _encode_prim(v) if c.kind is ColumnKind.PRIM else encode_value(v)
    return out
