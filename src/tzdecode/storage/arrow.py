"""Arrow/Parquet export of decoded record lists.

Every non-nested column of a record type becomes one typed Arrow column.
Raw JSON and contract data are stored as JSON text; nested operation lists
(`ops`, `batch`, `internal`) are not exported.
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from tzdecode.core.models import ColumnKind, record_columns
from tzdecode.decoding.objects import encode_value
from tzdecode.micheline.prim import to_json

K = ColumnKind

ARROW_TYPES: dict[ColumnKind, pa.DataType] = {
    K.UINT: pa.uint64(),
    K.INT: pa.int64(),
    K.FLOAT: pa.float64(),
    K.OPT_FLOAT: pa.float64(),
    K.BOOL: pa.bool_(),
    K.TIME: pa.timestamp("ms", tz="UTC"),
    K.STRING: pa.string(),
    K.ADDRESS: pa.string(),
    K.BLOCK_HASH: pa.string(),
    K.OP_HASH: pa.string(),
    K.OP_TYPE: pa.string(),
    K.OP_STATUS: pa.string(),
    K.VOTING_PERIOD: pa.string(),
    K.ENTRYPOINT: pa.string(),
    K.JSON: pa.string(),
    K.PRIM: pa.string(),
    K.PARAMETERS: pa.string(),
    K.STORAGE: pa.string(),
    K.BIGMAP_DIFF: pa.string(),
}

_JSON_KINDS = frozenset({K.JSON, K.PARAMETERS, K.STORAGE, K.BIGMAP_DIFF})


def _cell(kind: ColumnKind, v: Any) -> Any:
    if v is None:
        return None
    if kind in _JSON_KINDS:
        return json.dumps(encode_value(v), separators=(",", ":"))
    if kind is K.PRIM:
        return json.dumps(to_json(v), separators=(",", ":"))
    if kind is K.TIME:
        return v
    if kind in (K.ADDRESS, K.BLOCK_HASH, K.OP_HASH):
        return str(v)
    return encode_value(v)


def to_arrow_table(records: Sequence[Any], record_type: type | None = None) -> pa.Table:
    """Build a typed Arrow table over the non-nested columns of `records`.

    `record_type` is needed only to shape an empty table.
    """
    rows = list(records)
    cls = record_type or (type(rows[0]) if rows else None)
    if cls is None:
        return pa.table({})
    arrays: dict[str, pa.Array] = {}
    for c in record_columns(cls):
        if c.kind not in ARROW_TYPES:
            continue
        arrays[c.alias] = pa.array([_cell(c.kind, getattr(r, c.attr)) for r in rows], type=ARROW_TYPES[c.kind])
    return pa.table(arrays)


def write_parquet(table: pa.Table, path: str | Path, *, codec: str = "zstd") -> Path:
    """Write Parquet atomically (tmp + replace) and return the final path."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = out_path.with_suffix(".tmp")
    pq.write_table(table, tmp, compression=codec)
    os.replace(tmp, out_path)
    return out_path
