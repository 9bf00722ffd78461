"""Micheline contract data.

This package provides:
- The primitive tree (`Prim`, `Prims`) and its Micheline JSON notation
- The binary codec for values, call parameters and big-map diff events
- Type helpers (entrypoints, big-map types, typedefs, structural inference)
- `project`: type-guided rendering of a tree into JSON-native values
"""

from tzdecode.micheline.bigmap import BigmapEvent, decode_bigmap_events, encode_bigmap_events, is_empty_bigmap_key
from tzdecode.micheline.binary import decode_prim, encode_prim, hex_to_bytes
from tzdecode.micheline.params import Parameters, decode_parameters, encode_parameters, map_entrypoint
from tzdecode.micheline.prim import Prim, Prims, app, from_json, to_json
from tzdecode.micheline.script import ScriptTypes, script_types
from tzdecode.micheline.types import BigmapType, Entrypoint, build_type, entrypoints, typedef
from tzdecode.micheline.value import OnError, project

__all__ = [
    "BigmapEvent",
    "BigmapType",
    "Entrypoint",
    "OnError",
    "Parameters",
    "Prim",
    "Prims",
    "ScriptTypes",
    "app",
    "build_type",
    "decode_bigmap_events",
    "decode_parameters",
    "decode_prim",
    "encode_bigmap_events",
    "encode_parameters",
    "encode_prim",
    "entrypoints",
    "from_json",
    "hex_to_bytes",
    "is_empty_bigmap_key",
    "map_entrypoint",
    "project",
    "script_types",
    "to_json",
    "typedef",
]
