"""Contract type schema extracted from a contract script."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tzdecode.micheline.prim import Prim, Prims, from_json
from tzdecode.micheline.types import BigmapType, Entrypoint, entrypoints, find_bigmap_types


@dataclass(frozen=True, slots=True)
class ScriptTypes:
    """Parameter/storage types, entrypoint table and big-map value types of one contract."""

    param_type: Prim | None = None
    storage_type: Prim | None = None
    entrypoints: Mapping[str, Entrypoint] = field(default_factory=dict)
    bigmaps: Mapping[int, BigmapType] = field(default_factory=dict)


def script_section(code: Prim, name: str) -> Prim | None:
    """Return the single argument of the `parameter`/`storage`/`code` section."""
    items = code.items if isinstance(code, Prims.Seq) else (code,)
    for item in items:
        if isinstance(item, Prims.App) and item.name == name and item.args:
            return item.args[0]
    return None


def script_types(code: Any, bigmap_ids: Mapping[str, int] | None = None) -> ScriptTypes:
    """Build `ScriptTypes` from a script's Micheline JSON `code` section.

    `bigmap_ids` is the explorer's name → id table of the contract's live big maps.
    """
    prim = code if isinstance(code, (Prims.Seq, Prims.App)) else from_json(code)
    param = script_section(prim, "parameter")
    store = script_section(prim, "storage")
    return ScriptTypes(
        param_type=param,
        storage_type=store,
        entrypoints=entrypoints(param),
        bigmaps=find_bigmap_types(store, bigmap_ids or {}),
    )
