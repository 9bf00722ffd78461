"""Primitive tree: the literal structure of a Micheline value or type.

A tree is one of five variants (see `Prims`): integer, string and bytes
literals, a sequence, or a primitive application (`App`) with child nodes and
annotations. The projector and codecs match on these variants exhaustively.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from tzdecode.core.errors import MalformedField


class Prims:
    @dataclass(frozen=True, slots=True)
    class Int:
        value: int

    @dataclass(frozen=True, slots=True)
    class String:
        value: str

    @dataclass(frozen=True, slots=True)
    class Bytes:
        value: bytes

    @dataclass(frozen=True, slots=True)
    class Seq:
        items: tuple[Prim, ...] = ()

    @dataclass(frozen=True, slots=True)
    class App:
        name: str
        args: tuple[Prim, ...] = ()
        annots: tuple[str, ...] = ()

        def annot(self, leader: str) -> str | None:
            """First annotation with the given leader (`%`, `:` or `@`), stripped."""
            for a in self.annots:
                if a.startswith(leader) and len(a) > 1:
                    return a[1:]
            return None

        @property
        def field_name(self) -> str | None:
            return self.annot("%")

        @property
        def type_name(self) -> str | None:
            return self.annot(":")


Prim = Prims.Int | Prims.String | Prims.Bytes | Prims.Seq | Prims.App


def app(name: str, *args: Prim, annots: Iterable[str] = ()) -> Prims.App:
    """Shorthand constructor for primitive applications."""
    return Prims.App(name, tuple(args), tuple(annots))


def is_app(p: Prim, *names: str) -> bool:
    return isinstance(p, Prims.App) and p.name in names


def label(p: Prim) -> str | None:
    """Field annotation of a type node, falling back to its type annotation."""
    if isinstance(p, Prims.App):
        return p.field_name or p.type_name
    return None


# ---------- Micheline JSON ----------


def to_json(p: Prim) -> Any:
    """Render a tree in the Micheline JSON notation used by the explorer."""
    match p:
        case Prims.Int():
            return {"int": str(p.value)}
        case Prims.String():
            return {"string": p.value}
        case Prims.Bytes():
            return {"bytes": p.value.hex()}
        case Prims.Seq():
            return [to_json(x) for x in p.items]
        case Prims.App():
            out: dict[str, Any] = {"prim": p.name}
            if p.args:
                out["args"] = [to_json(x) for x in p.args]
            if p.annots:
                out["annots"] = list(p.annots)
            return out
    raise TypeError(f"not a primitive: {p!r}")


def from_json(obj: Any) -> Prim:
    """Parse Micheline JSON into a primitive tree."""
    if isinstance(obj, list):
        return Prims.Seq(tuple(from_json(x) for x in obj))
    if not isinstance(obj, dict):
        raise MalformedField("invalid micheline node", value=obj)
    if "prim" in obj:
        return Prims.App(
            str(obj["prim"]),
            tuple(from_json(x) for x in obj.get("args") or ()),
            tuple(str(a) for a in obj.get("annots") or ()),
        )
    try:
        if "int" in obj:
            return Prims.Int(int(obj["int"]))
        if "string" in obj:
            return Prims.String(str(obj["string"]))
        if "bytes" in obj:
            return Prims.Bytes(bytes.fromhex(obj["bytes"]))
    except (TypeError, ValueError) as e:
        raise MalformedField(f"invalid micheline node: {e}", value=obj) from e
    raise MalformedField("invalid micheline node", value=obj)
