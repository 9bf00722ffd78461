"""Row/list assembler.

Turns an explorer response batch (a JSON array of object-form or table-mode
rows) into an ordered, immutable record list with a pagination cursor.

- rows are decoded strictly in input order; the first failure aborts the batch
- table-mode contract calls resolve the receiver's types before decoding
- `NotFound` from the resolver falls back to untyped contract data
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, overload

from tzdecode.core.config import DecodeOptions
from tzdecode.core.errors import DecodeError, MalformedField, NotFound
from tzdecode.core.interfaces import IContractResolver
from tzdecode.core.models import Block, Op
from tzdecode.decoding.columns import BLOCK_COLUMNS, OP_COLUMNS, ColumnPlan, compile_columns
from tzdecode.decoding.contract_data import ContractContext
from tzdecode.decoding.objects import decode_object
from tzdecode.decoding.rows import decode_row
from tzdecode.tezos.hashes import Address

R = TypeVar("R")


def load_rows(raw: bytes | str | Sequence[Any]) -> list[Any]:
    """Parse a response body into its list of rows."""
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedField(f"invalid JSON response: {e}") from e
    if not isinstance(raw, list):
        raise MalformedField(f"expected JSON array of rows, got {type(raw).__name__}")
    return raw


@dataclass(frozen=True, slots=True)
class _RecordList(Generic[R]):
    rows: tuple[R, ...] = ()
    columns: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[R]:
        return iter(self.rows)

    @overload
    def __getitem__(self, i: int) -> R: ...

    @overload
    def __getitem__(self, i: slice) -> tuple[R, ...]: ...

    def __getitem__(self, i: int | slice) -> R | tuple[R, ...]:
        return self.rows[i]


@dataclass(frozen=True, slots=True)
class BlockList(_RecordList[Block]):
    @property
    def cursor(self) -> int | None:
        """Row id of the last block, or None for an empty list."""
        return self.rows[-1].row_id if self.rows else None


@dataclass(frozen=True, slots=True)
class OpList(_RecordList[Op]):
    @property
    def cursor(self) -> int | None:
        """Id of the last operation's deepest last child, or None for an empty list."""
        return self.rows[-1].cursor if self.rows else None


def _decode_plain(record_type: type[R], row: Any, plan: ColumnPlan, ctx: ContractContext | None = None) -> R:
    if row is None:
        return record_type()
    if isinstance(row, dict):
        return decode_object(record_type, row)
    if isinstance(row, list):
        return decode_row(record_type, row, plan, ctx)
    raise MalformedField(f"expected object or array row, got {type(row).__name__}", value=row)


def decode_block_list(raw: bytes | str | Sequence[Any], columns: Sequence[str]) -> BlockList:
    """Decode a block batch; blocks carry no contract data, so this never suspends."""
    plan = compile_columns(columns, BLOCK_COLUMNS)
    return BlockList(tuple(_decode_plain(Block, row, plan) for row in load_rows(raw)), plan.columns)


def _contract_receiver(row: list[Any], plan: ColumnPlan) -> Address | None:
    """Receiver of a table-mode contract call, or None when the row is not one."""
    pos_flag, pos_recv = plan.position("is_contract"), plan.position("receiver")
    if pos_flag is None or pos_recv is None or max(pos_flag, pos_recv) >= len(row):
        return None
    flag, recv = row[pos_flag], row[pos_recv]
    # numeric boolean, never JSON true
    if isinstance(flag, bool) or flag not in (1, "1"):
        return None
    if not isinstance(recv, str) or not recv:
        return None
    try:
        return Address.parse(recv)
    except DecodeError as e:
        raise type(e)(e.reason, column="receiver", value=recv) from e


async def _op_context(
    row: list[Any],
    plan: ColumnPlan,
    resolver: IContractResolver | None,
    options: DecodeOptions,
) -> ContractContext:
    address = _contract_receiver(row, plan) if resolver is not None else None
    if address is None:
        return ContractContext(options=options)
    try:
        types = await resolver.resolve(address)
    except NotFound:
        types = None
    return ContractContext(types=types, options=options)


async def decode_op_list(
    raw: bytes | str | Sequence[Any],
    columns: Sequence[str],
    *,
    resolver: IContractResolver | None = None,
    options: DecodeOptions | None = None,
) -> OpList:
    """Decode an operation batch, resolving contract types for table-mode contract calls.

    The resolver is awaited row by row, so rows later in the batch observe
    cache entries populated by earlier ones. Cancellation during a fetch
    propagates unchanged and discards the batch.
    """
    options = options or DecodeOptions()
    plan = compile_columns(columns, OP_COLUMNS)
    out: list[Op] = []
    for row in load_rows(raw):
        if isinstance(row, list) and row:
            ctx = await _op_context(row, plan, resolver, options)
            out.append(decode_row(Op, row, plan, ctx))
        else:
            out.append(_decode_plain(Op, row, plan))
    return OpList(tuple(out), plan.columns)
