"""Column-driven row decoder.

Decodes one table-mode row (a positional JSON array) into a record using a
compiled `ColumnPlan`:

- null cells and unknown columns are skipped
- scalar columns run their kind's parser
- contract-data columns run afterwards, with the row's scalars available
- the first failure aborts the row; nothing partial is ever returned
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any, TypeVar

from tzdecode.core.errors import DecodeError, MalformedField
from tzdecode.core.models import ColumnKind, ContractParameters
from tzdecode.decoding.columns import ColumnPlan, ColumnSpec
from tzdecode.decoding.contract_data import (
    ContractContext,
    decode_bigmap_diff_hex,
    decode_parameters_hex,
    decode_storage_hex,
)

R = TypeVar("R")

_NO_CONTEXT = ContractContext()


def _with_column(e: DecodeError, spec: ColumnSpec, raw: Any) -> DecodeError:
    reason = e.reason if e.column is None else f"{e.column}: {e.reason}"
    return type(e)(reason, column=spec.alias, value=raw)


def _decode_contract_column(spec: ColumnSpec, raw: Any, scratch: dict[str, Any], ctx: ContractContext) -> Any:
    match spec.kind:
        case ColumnKind.PARAMETERS:
            return decode_parameters_hex(raw, ctx)
        case ColumnKind.STORAGE:
            return decode_storage_hex(raw, ctx)
        case ColumnKind.BIGMAP_DIFF:
            return decode_bigmap_diff_hex(
                raw,
                ctx,
                contract=scratch.get("receiver"),
                height=scratch.get("height", 0),
                time=scratch.get("timestamp"),
            )
    raise RuntimeError(f"unsupported contract column kind {spec.kind}")


def decode_row(
    record_type: type[R],
    values: Sequence[Any],
    plan: ColumnPlan,
    ctx: ContractContext | None = None,
) -> R:
    """Decode positional `values` into a new `record_type` instance."""
    if len(values) > len(plan.specs):
        raise MalformedField(f"row has {len(values)} values but only {len(plan.specs)} columns", value=list(values))
    ctx = ctx or _NO_CONTEXT

    scratch: dict[str, Any] = {}
    deferred: list[tuple[ColumnSpec, Any]] = []
    # zip stops at the shorter side: missing trailing cells count as null
    for spec, raw in zip(plan.specs, values):
        if spec is None or raw is None:
            continue
        if spec.parse is None:
            deferred.append((spec, raw))
            continue
        try:
            scratch[spec.attr] = spec.parse(raw)
        except DecodeError as e:
            raise _with_column(e, spec, raw) from e

    for spec, raw in deferred:
        try:
            decoded = _decode_contract_column(spec, raw, scratch, ctx)
        except DecodeError as e:
            raise _with_column(e, spec, raw) from e
        if decoded is not None:
            scratch[spec.attr] = decoded

    # the explorer's resolved entrypoint name wins over the binary one
    entrypoint = scratch.get("entrypoint")
    if entrypoint:
        params = scratch.get("parameters") or ContractParameters()
        scratch["parameters"] = replace(params, entrypoint=entrypoint)

    return record_type(**scratch)
