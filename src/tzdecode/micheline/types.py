"""Type helpers: entrypoints, structural type inference and typedef rendering."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tzdecode.micheline.prim import Prim, Prims, app, is_app, label

DEFAULT = "default"
ROOT = "root"


@dataclass(frozen=True, slots=True)
class Entrypoint:
    """A named entry into a parameter type; `branch` is its Left/Right path."""

    id: int
    name: str
    branch: str
    type: Prim


Entrypoints = Mapping[str, Entrypoint]


@dataclass(frozen=True, slots=True)
class BigmapType:
    key_type: Prim
    value_type: Prim


def entrypoints(param_type: Prim | None) -> dict[str, Entrypoint]:
    """List the entrypoints of a parameter type.

    Every `or` node or leaf carrying a field annotation is an entrypoint;
    unannotated leaves of the `or` tree get synthetic `@entrypoint_N` names.
    A type that is not an `or` tree has a single `default` entrypoint.
    """
    if param_type is None:
        return {}
    out: dict[str, Entrypoint] = {}
    if not is_app(param_type, "or"):
        out[DEFAULT] = Entrypoint(0, DEFAULT, "", param_type)
        return out

    def walk(node: Prim, branch: str) -> None:
        name = node.field_name if isinstance(node, Prims.App) else None
        if name:
            out[name] = Entrypoint(len(out), name, branch, node)
        if is_app(node, "or") and len(node.args) == 2:
            walk(node.args[0], branch + "L")
            walk(node.args[1], branch + "R")
        elif not name:
            synth = f"@entrypoint_{len(out)}"
            out[synth] = Entrypoint(len(out), synth, branch, node)

    walk(param_type, "")
    return out


def find_branch(eps: Entrypoints, branch: str) -> Entrypoint | None:
    for ep in eps.values():
        if ep.branch == branch:
            return ep
    return None


def build_type(value: Prim) -> Prim:
    """Infer a type from a value's own structure (used when no schema is known)."""
    match value:
        case Prims.Int():
            return app("int")
        case Prims.String():
            return app("string")
        case Prims.Bytes():
            return app("bytes")
        case Prims.Seq():
            if value.items and all(is_app(x, "Elt") for x in value.items):
                elt = value.items[0]
                assert isinstance(elt, Prims.App)
                return app("map", *(build_type(a) for a in elt.args))
            inner = build_type(value.items[0]) if value.items else app("unit")
            return app("list", inner)
        case Prims.App():
            match value.name:
                case "Pair":
                    return app("pair", *(build_type(a) for a in value.args))
                case "True" | "False":
                    return app("bool")
                case "Unit":
                    return app("unit")
                case "Some" if value.args:
                    return app("option", build_type(value.args[0]))
                case "None":
                    return app("option", app("unit"))
                case "Left" if value.args:
                    return app("or", build_type(value.args[0]), app("unit"))
                case "Right" if value.args:
                    return app("or", app("unit"), build_type(value.args[0]))
    return app("unit")


def find_bigmap_types(storage_type: Prim | None, ids: Mapping[str, int]) -> dict[int, BigmapType]:
    """Pair the named `big_map` nodes of a storage type with their on-chain ids.

    `ids` maps the big map's field name to its id; unnamed big maps are matched
    by their position among all big maps (`"0"`, `"1"`, ...).
    """
    if storage_type is None or not ids:
        return {}
    found: list[Prims.App] = []

    def walk(node: Prim) -> None:
        if not isinstance(node, Prims.App):
            return
        if node.name == "big_map" and len(node.args) == 2:
            found.append(node)
            return
        for a in node.args:
            walk(a)

    walk(storage_type)
    out: dict[int, BigmapType] = {}
    for pos, node in enumerate(found):
        name = label(node) or str(pos)
        bid = ids.get(name)
        if bid is not None:
            out[int(bid)] = BigmapType(node.args[0], node.args[1])
    return out


def typedef(typ: Prim, name: str = "") -> dict[str, Any]:
    """Render a type as a JSON description (`name`, `type`, `args`, `optional`)."""
    if not isinstance(typ, Prims.App):
        return {"name": name, "type": "unknown"}
    name = label(typ) or name
    match typ.name:
        case "pair":
            return {"name": name, "type": "struct", "args": [typedef(a, str(i)) for i, a in enumerate(_comb(typ))]}
        case "or":
            return {"name": name, "type": "union", "args": [typedef(a, str(i)) for i, a in enumerate(typ.args)]}
        case "option":
            inner = typedef(typ.args[0], name) if typ.args else {"name": name, "type": "unknown"}
            inner["optional"] = True
            return inner
        case "list" | "set" | "contract" | "ticket":
            return {"name": name, "type": typ.name, "args": [typedef(a) for a in typ.args]}
        case "map" | "big_map":
            return {"name": name, "type": typ.name, "args": [typedef(typ.args[0], "@key"), typedef(typ.args[1], "@value")]}
        case "lambda":
            return {"name": name, "type": "lambda"}
    return {"name": name, "type": typ.name}


def _comb(typ: Prims.App) -> list[Prim]:
    """Flatten right-comb pairs without field names into one argument list."""
    args = list(typ.args)
    while args and is_app(args[-1], "pair") and label(args[-1]) is None:
        last = args.pop()
        assert isinstance(last, Prims.App)
        args.extend(last.args)
    return args
