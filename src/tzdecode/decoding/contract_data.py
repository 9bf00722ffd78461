"""Contract-data interpreter for table-mode operation rows.

Turns the hex-encoded `parameters`, `storage` and `big_map_diff` columns into
records, projecting values through the contract's resolved types when they
are known and falling back to untyped (primitive-only) results when not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tzdecode.core.config import DecodeOptions
from tzdecode.core.enums import BigmapAction
from tzdecode.core.errors import MalformedField
from tzdecode.core.models import BigmapMeta, BigmapUpdate, ContractParameters, ContractValue
from tzdecode.micheline.bigmap import BigmapEvent, decode_bigmap_events, is_empty_bigmap_key
from tzdecode.micheline.binary import decode_prim, hex_to_bytes
from tzdecode.micheline.params import decode_parameters, map_entrypoint
from tzdecode.micheline.script import ScriptTypes
from tzdecode.micheline.types import build_type, typedef
from tzdecode.micheline.value import project
from tzdecode.tezos.hashes import Address, Hash, HashType


@dataclass(frozen=True, slots=True)
class ContractContext:
    """Per-row decode context: the target contract's types (if resolved) and options."""

    types: ScriptTypes | None = None
    options: DecodeOptions = field(default_factory=DecodeOptions)


def _payload(raw: Any) -> bytes:
    if not isinstance(raw, str):
        raise MalformedField(f"expected hex string, got {type(raw).__name__}", value=raw)
    return hex_to_bytes(raw)


def decode_parameters_hex(raw: Any, ctx: ContractContext) -> ContractParameters | None:
    data = _payload(raw)
    if not data:
        return None
    params = decode_parameters(data)
    opts = ctx.options
    prim = params.value if opts.with_prim else None
    types = ctx.types
    if types is None or types.param_type is None:
        return ContractParameters(entrypoint=params.entrypoint, prim=prim)

    ep, value = map_entrypoint(params, types.entrypoints)
    if ep is None:
        typ, name = types.param_type, params.entrypoint
    else:
        typ, name = ep.type, ep.name
    return ContractParameters(entrypoint=name, value=project(typ, value, opts.on_error), prim=prim)


def decode_storage_hex(raw: Any, ctx: ContractContext) -> ContractValue | None:
    data = _payload(raw)
    if not data:
        return None
    prim = decode_prim(data)
    types = ctx.types
    if types is None or types.storage_type is None:
        # untyped: the primitive tree is all we can offer
        return ContractValue(prim=prim)
    value = project(types.storage_type, prim, ctx.options.on_error)
    return ContractValue(value=value, prim=prim if ctx.options.with_prim else None)


def decode_bigmap_diff_hex(
    raw: Any,
    ctx: ContractContext,
    *,
    contract: Address | None = None,
    height: int = 0,
    time: datetime | None = None,
) -> tuple[BigmapUpdate, ...] | None:
    data = _payload(raw)
    if not data:
        return None
    return tuple(
        decode_bigmap_event(ev, ctx, contract=contract, height=height, time=time)
        for ev in decode_bigmap_events(data)
    )


def decode_bigmap_event(
    ev: BigmapEvent,
    ctx: ContractContext,
    *,
    contract: Address | None = None,
    height: int = 0,
    time: datetime | None = None,
) -> BigmapUpdate:
    opts = ctx.options
    if ev.action in (BigmapAction.ALLOC, BigmapAction.COPY):
        return BigmapUpdate(
            action=ev.action,
            bigmap_id=ev.id,
            key_type=typedef(ev.key_type, "@key") if ev.key_type is not None else None,
            value_type=typedef(ev.value_type, "@value") if ev.value_type is not None else None,
            key_type_prim=ev.key_type if opts.with_prim else None,
            value_type_prim=ev.value_type if opts.with_prim else None,
            source_id=ev.source_id,
            dest_id=ev.dest_id,
        )

    bigmap_type = ctx.types.bigmaps.get(ev.id) if ctx.types is not None else None
    key = key_hash = None
    has_key = ev.key is not None and not is_empty_bigmap_key(ev.key)
    if has_key:
        key_type = bigmap_type.key_type if bigmap_type is not None else build_type(ev.key)
        key = project(key_type, ev.key, opts.on_error)
        key_hash = Hash(HashType.EXPR, ev.key_hash) if ev.key_hash else None

    value = None
    if ev.action is BigmapAction.UPDATE and bigmap_type is not None and ev.value is not None:
        value = project(bigmap_type.value_type, ev.value, opts.on_error)

    meta = BigmapMeta(contract=contract, bigmap_id=ev.id, time=time, height=height) if opts.with_meta else None
    return BigmapUpdate(
        action=ev.action,
        bigmap_id=ev.id,
        key=key,
        key_hash=key_hash,
        value=value,
        meta=meta,
        key_prim=ev.key if opts.with_prim and has_key else None,
        value_prim=ev.value if opts.with_prim and ev.action is BigmapAction.UPDATE else None,
    )
