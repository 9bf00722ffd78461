"""Big-map diff events: the explorer's binary encoding of big-map mutations.

Each event starts with an action byte and the big-map id (i64):

    update  0   key hash (32 bytes), key prim, value prim
    remove  1   key hash (32 bytes), key prim
    alloc   2   key type prim, value type prim
    copy    3   source id (i64), destination id (i64)

A remove whose key is the `EMPTY_BIG_MAP` placeholder deletes the whole map.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from tzdecode.core.enums import BigmapAction
from tzdecode.core.errors import BinaryDecodeError
from tzdecode.micheline.binary import Reader, encode_prim, read_prim
from tzdecode.micheline.prim import Prim, app, is_app

_ACTIONS = (BigmapAction.UPDATE, BigmapAction.REMOVE, BigmapAction.ALLOC, BigmapAction.COPY)
KEY_HASH_LEN = 32

EMPTY_BIGMAP_KEY = app("EMPTY_BIG_MAP")


@dataclass(frozen=True, slots=True)
class BigmapEvent:
    action: BigmapAction
    id: int
    key_hash: bytes | None = None
    key: Prim | None = None
    value: Prim | None = None
    key_type: Prim | None = None
    value_type: Prim | None = None
    source_id: int | None = None
    dest_id: int | None = None


def is_empty_bigmap_key(key: Prim | None) -> bool:
    return key is not None and is_app(key, "EMPTY_BIG_MAP") and not key.args  # type: ignore[union-attr]


def decode_bigmap_events(data: bytes) -> list[BigmapEvent]:
    r = Reader(data)
    out: list[BigmapEvent] = []
    while r.remaining:
        code = r.u8()
        if code >= len(_ACTIONS):
            raise BinaryDecodeError(f"unknown big-map action {code} at offset {r.pos - 1}")
        action = _ACTIONS[code]
        bid = r.i64()
        match action:
            case BigmapAction.UPDATE | BigmapAction.REMOVE:
                key_hash = r.take(KEY_HASH_LEN)
                key = read_prim(r)
                value = read_prim(r) if action is BigmapAction.UPDATE else None
                out.append(BigmapEvent(action, bid, key_hash=key_hash, key=key, value=value))
            case BigmapAction.ALLOC:
                key_type = read_prim(r)
                value_type = read_prim(r)
                out.append(BigmapEvent(action, bid, key_type=key_type, value_type=value_type))
            case BigmapAction.COPY:
                source_id = r.i64()
                dest_id = r.i64()
                out.append(BigmapEvent(action, bid, source_id=source_id, dest_id=dest_id))
    return out


def encode_bigmap_events(events: list[BigmapEvent]) -> bytes:
    out = bytearray()
    for ev in events:
        out.append(_ACTIONS.index(ev.action))
        out += struct.pack(">q", ev.id)
        match ev.action:
            case BigmapAction.UPDATE | BigmapAction.REMOVE:
                out += (ev.key_hash or b"").ljust(KEY_HASH_LEN, b"\x00")[:KEY_HASH_LEN]
                out += encode_prim(ev.key if ev.key is not None else EMPTY_BIGMAP_KEY)
                if ev.action is BigmapAction.UPDATE:
                    out += encode_prim(ev.value if ev.value is not None else app("Unit"))
            case BigmapAction.ALLOC:
                out += encode_prim(ev.key_type or app("unit"))
                out += encode_prim(ev.value_type or app("unit"))
            case BigmapAction.COPY:
                out += struct.pack(">qq", ev.source_id or 0, ev.dest_id or 0)
    return bytes(out)
