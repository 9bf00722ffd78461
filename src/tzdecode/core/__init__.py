"""Core records, configuration, errors and collaborator interfaces.

This package provides:
- Records (Block, Op, ContractValue, ContractParameters, BigmapUpdate)
- Configuration classes (ClientConfig, DecodeOptions)
- The decode error taxonomy
- The contract resolver protocol
"""

from tzdecode.core.config import ClientConfig, DecodeOptions, load_config
from tzdecode.core.errors import (
    BinaryDecodeError,
    DecodeError,
    InvalidEncoding,
    MalformedField,
    NotFound,
    ValueProjectionError,
)
from tzdecode.core.models import (
    BigmapMeta,
    BigmapUpdate,
    Block,
    BlockId,
    ContractParameters,
    ContractValue,
    Op,
    default_columns,
)

__all__ = [
    "ClientConfig",
    "DecodeOptions",
    "load_config",
    "BinaryDecodeError",
    "DecodeError",
    "InvalidEncoding",
    "MalformedField",
    "NotFound",
    "ValueProjectionError",
    "BigmapMeta",
    "BigmapUpdate",
    "Block",
    "BlockId",
    "ContractParameters",
    "ContractValue",
    "Op",
    "default_columns",
]
