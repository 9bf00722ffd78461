"""Type-guided projection of primitive trees into JSON-native values.

`project(type, value)` walks both trees in parallel and produces the
human-meaningful rendering of a contract value: pairs become mappings keyed
by field annotation (or position), maps become string-keyed dicts, binary
addresses and keys become base58 strings, timestamps become ISO-8601 text.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from tzdecode.core.errors import InvalidEncoding, ValueProjectionError
from tzdecode.micheline.prim import Prim, Prims, app, is_app, label, to_json
from tzdecode.tezos.hashes import (
    HashType,
    contract_from_binary,
    encode_base58,
    key_hash_from_binary,
    public_key_from_binary,
)


class OnError(IntEnum):
    """What to do when a value does not match its type."""

    FAIL = 0  # raise ValueProjectionError
    RENDER = 1  # render the offending node as Micheline JSON and keep going


ERRORS_KEY = "@errors"
VALUE_KEY = "@value"

_INT_TYPES = frozenset({"int", "nat", "mutez"})
_BYTES_TYPES = frozenset(
    {"bytes", "bls12_381_g1", "bls12_381_g2", "bls12_381_fr", "chest", "chest_key", "sapling_transaction"}
)


def project(typ: Prim, value: Prim, on_error: OnError = OnError.FAIL) -> Any:
    """Project `value` through `typ`.

    In `OnError.RENDER` mode mismatches are collected under the `@errors` key of
    the returned mapping; non-mapping results are wrapped as `{"@value": ...}`.
    """
    p = _Projector(on_error)
    out = p.node(typ, value, "")
    if p.errors:
        if isinstance(out, dict) and not p.root_failed:
            out = {**out, ERRORS_KEY: p.errors}
        else:
            out = {VALUE_KEY: out, ERRORS_KEY: p.errors}
    return out


def iso_time(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def map_key(rendered: Any) -> str:
    """Render a projected map key as a dict key."""
    if isinstance(rendered, bool):
        return "true" if rendered else "false"
    if isinstance(rendered, dict):
        return ",".join(map_key(v) for v in rendered.values())
    if isinstance(rendered, list):
        return ",".join(map_key(v) for v in rendered)
    if rendered is None:
        return "Unit"
    return str(rendered)


class _Projector:
    def __init__(self, on_error: OnError) -> None:
        self.on_error = on_error
        self.errors: list[str] = []
        self.root_failed = False  # the top node itself was rendered as Micheline JSON

    def fail(self, message: str, value: Prim, path: str) -> Any:
        if self.on_error is OnError.FAIL:
            raise ValueProjectionError(message, column=path or "$", value=to_json(value))
        if not path:
            self.root_failed = True
        self.errors.append(f"{path or '$'}: {message}")
        return to_json(value)

    def mismatch(self, typ: Prims.App, value: Prim, path: str) -> Any:
        return self.fail(f"value does not match type {typ.name}", value, path)

    def node(self, typ: Prim, value: Prim, path: str) -> Any:
        if not isinstance(typ, Prims.App):
            return self.fail("invalid type node", value, path)
        t = typ.name
        try:
            if t in _INT_TYPES:
                return value.value if isinstance(value, Prims.Int) else self.mismatch(typ, value, path)
            if t == "string":
                return value.value if isinstance(value, Prims.String) else self.mismatch(typ, value, path)
            if t in _BYTES_TYPES:
                return value.value.hex() if isinstance(value, Prims.Bytes) else self.mismatch(typ, value, path)
            match t:
                case "bool":
                    if is_app(value, "True", "False"):
                        return value.name == "True"  # type: ignore[union-attr]
                case "unit":
                    if is_app(value, "Unit"):
                        return None
                case "never":
                    pass
                case "timestamp":
                    if isinstance(value, Prims.Int):
                        try:
                            return iso_time(value.value)
                        except (OverflowError, OSError, ValueError):
                            return self.fail("timestamp out of range", value, path)
                    if isinstance(value, Prims.String):
                        return value.value
                case "address" | "contract" | "tx_rollup_l2_address":
                    if isinstance(value, Prims.Bytes):
                        return contract_from_binary(value.value)
                    if isinstance(value, Prims.String):
                        return value.value
                case "key_hash":
                    if isinstance(value, Prims.Bytes):
                        return str(key_hash_from_binary(value.value))
                    if isinstance(value, Prims.String):
                        return value.value
                case "key":
                    if isinstance(value, Prims.Bytes):
                        return public_key_from_binary(value.value)
                    if isinstance(value, Prims.String):
                        return value.value
                case "signature":
                    if isinstance(value, Prims.Bytes):
                        return encode_base58(HashType.SIGNATURE, value.value)
                    if isinstance(value, Prims.String):
                        return value.value
                case "chain_id":
                    if isinstance(value, Prims.Bytes):
                        return encode_base58(HashType.CHAIN_ID, value.value)
                    if isinstance(value, Prims.String):
                        return value.value
                case "option":
                    if is_app(value, "None"):
                        return None
                    if is_app(value, "Some") and value.args and typ.args:  # type: ignore[union-attr]
                        return self.node(typ.args[0], value.args[0], path)  # type: ignore[union-attr]
                case "or":
                    if is_app(value, "Left", "Right") and value.args and len(typ.args) == 2:  # type: ignore[union-attr]
                        left = value.name == "Left"  # type: ignore[union-attr]
                        branch = typ.args[0 if left else 1]
                        key = label(branch) or ("@left" if left else "@right")
                        return {key: self.node(branch, value.args[0], _join(path, key))}  # type: ignore[union-attr]
                case "pair":
                    if _pair_args(value) is not None:
                        out: dict[str, Any] = {}
                        self.pair(typ, value, path, out)
                        return out
                case "ticket":
                    if typ.args and _pair_args(value) is not None:
                        ticket = app("pair", app("address", annots=["%ticketer"]), _named(typ.args[0], "value"),
                                     app("nat", annots=["%amount"]))  # fmt: skip
                        out = {}
                        self.pair(ticket, value, path, out)
                        return out
                case "list" | "set":
                    if isinstance(value, Prims.Seq) and typ.args:
                        return [self.node(typ.args[0], x, _join(path, str(i))) for i, x in enumerate(value.items)]
                case "map" | "big_map":
                    if t == "big_map" and isinstance(value, Prims.Int):
                        return value.value
                    if isinstance(value, Prims.Seq) and len(typ.args) == 2:
                        return self.map(typ, value, path)
                case "lambda" | "operation" | "sapling_state":
                    return to_json(value)
                case _:
                    return to_json(value)
        except InvalidEncoding as e:
            return self.fail(e.reason, value, path)
        return self.mismatch(typ, value, path)

    def pair(self, typ: Prims.App, value: Prim, path: str, out: dict[str, Any]) -> None:
        """Flatten a pair comb into `out`, descending into unnamed nested pairs."""
        targs = list(typ.args)
        vargs = _pair_args(value)
        if vargs is None or len(targs) < 2 or len(vargs) < 2:
            key = str(len(out))
            self._put(out, key, self.mismatch(typ, value, _join(path, key)))
            return
        # normalize n-ary combs to (first, rest) on both sides
        parts = [
            (targs[0], vargs[0]),
            (
                targs[1] if len(targs) == 2 else app("pair", *targs[1:]),
                vargs[1] if len(vargs) == 2 else app("Pair", *vargs[1:]),
            ),
        ]
        for t, v in parts:
            name = label(t)
            if name is None and is_app(t, "pair"):
                self.pair(t, v, path, out)  # type: ignore[arg-type]
                continue
            key = name or str(len(out))
            self._put(out, key, self.node(t, v, _join(path, key)))

    def map(self, typ: Prims.App, value: Prims.Seq, path: str) -> dict[str, Any]:
        ktyp, vtyp = typ.args
        out: dict[str, Any] = {}
        for i, elt in enumerate(value.items):
            if not is_app(elt, "Elt") or len(elt.args) != 2:  # type: ignore[union-attr]
                self._put(out, str(i), self.fail("map entry is not an Elt", elt, _join(path, str(i))))
                continue
            k = map_key(self.node(ktyp, elt.args[0], _join(path, str(i))))  # type: ignore[union-attr]
            out[k] = self.node(vtyp, elt.args[1], _join(path, k))  # type: ignore[union-attr]
        return out

    @staticmethod
    def _put(out: dict[str, Any], key: str, value: Any) -> None:
        if key in out:
            key = f"{key}_{len(out)}"
        out[key] = value


def _pair_args(value: Prim) -> tuple[Prim, ...] | None:
    if is_app(value, "Pair"):
        return value.args  # type: ignore[union-attr]
    if isinstance(value, Prims.Seq):
        return value.items
    return None


def _named(typ: Prim, name: str) -> Prim:
    if isinstance(typ, Prims.App) and label(typ) is None:
        return Prims.App(typ.name, typ.args, typ.annots + (f"%{name}",))
    return typ


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key
