from __future__ import annotations

from .core.config import ClientConfig, DecodeOptions, load_config
from .core.errors import BinaryDecodeError, DecodeError, InvalidEncoding, MalformedField, NotFound, ValueProjectionError
from .core.models import BigmapUpdate, Block, ContractParameters, ContractValue, Op
from .decoding.assembler import BlockList, OpList, decode_block_list, decode_op_list
from .decoding.objects import decode_object, encode_object
from .micheline.value import OnError

__all__ = [
    "ClientConfig",
    "DecodeOptions",
    "load_config",
    "OnError",
    "Block",
    "Op",
    "ContractValue",
    "ContractParameters",
    "BigmapUpdate",
    "BlockList",
    "OpList",
    "decode_block_list",
    "decode_op_list",
    "decode_object",
    "encode_object",
    "DecodeError",
    "MalformedField",
    "InvalidEncoding",
    "BinaryDecodeError",
    "ValueProjectionError",
    "NotFound",
]
