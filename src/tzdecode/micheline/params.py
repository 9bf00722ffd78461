"""Contract call parameters: binary codec and entrypoint matching."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from tzdecode.core.errors import BinaryDecodeError
from tzdecode.micheline.binary import Reader, encode_prim, read_prim
from tzdecode.micheline.prim import Prim, Prims, is_app
from tzdecode.micheline.types import DEFAULT, ROOT, Entrypoint, Entrypoints, find_branch

# reserved entrypoint tags; 0xff introduces a named entrypoint
_RESERVED = ("default", "root", "do", "set_delegate", "remove_delegate", "deposit")
_NAMED = 0xFF


@dataclass(frozen=True, slots=True)
class Parameters:
    entrypoint: str
    value: Prim


def decode_parameters(data: bytes) -> Parameters:
    r = Reader(data)
    tag = r.u8()
    if tag < len(_RESERVED):
        name = _RESERVED[tag]
    elif tag == _NAMED:
        try:
            name = r.take(r.u8()).decode("utf-8")
        except UnicodeDecodeError as e:
            raise BinaryDecodeError(f"invalid entrypoint name: {e}") from e
    else:
        raise BinaryDecodeError(f"unknown entrypoint tag {tag}")
    sub = r.sized()
    value = read_prim(sub)
    sub.expect_end()
    r.expect_end()
    return Parameters(name, value)


def encode_parameters(params: Parameters) -> bytes:
    out = bytearray()
    if params.entrypoint in _RESERVED:
        out.append(_RESERVED.index(params.entrypoint))
    else:
        name = params.entrypoint.encode("utf-8")
        out.append(_NAMED)
        out.append(len(name))
        out += name
    body = encode_prim(params.value)
    out += struct.pack(">I", len(body))
    out += body
    return bytes(out)


def map_entrypoint(params: Parameters, eps: Entrypoints) -> tuple[Entrypoint | None, Prim]:
    """Find the entrypoint a call targets and the value to project through it.

    Named calls look up the entrypoint table directly. Calls to `default` on a
    contract without an explicit `%default` follow the Left/Right wrappers of
    the value down to the first entrypoint branch and unwrap them. Returns
    `(None, value)` when nothing matches.
    """
    name = params.entrypoint
    if name == ROOT:
        return find_branch(eps, ""), params.value
    if name != DEFAULT or DEFAULT in eps:
        return eps.get(name), params.value

    branch = ""
    node = params.value
    while True:
        ep = find_branch(eps, branch)
        if ep is not None and branch:
            return ep, node
        if not is_app(node, "Left", "Right") or not node.args:  # type: ignore[union-attr]
            break
        assert isinstance(node, Prims.App)
        branch += "L" if node.name == "Left" else "R"
        node = node.args[0]
    return None, params.value
