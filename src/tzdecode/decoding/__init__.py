"""Explorer row decoding.

This package provides:
- Column specs, the per-kind parsers and compiled column plans
- `decode_row`: the table-mode row decoder
- `decode_object` / `encode_object`: the object-form codec
- The contract-data interpreter for parameters, storage and big-map diffs
- `decode_block_list` / `decode_op_list`: batch assembly with cursors
"""

from tzdecode.decoding.assembler import BlockList, OpList, decode_block_list, decode_op_list, load_rows
from tzdecode.decoding.columns import (
    BLOCK_COLUMNS,
    OP_COLUMNS,
    ColumnPlan,
    ColumnRegistry,
    ColumnSpec,
    compile_columns,
    make_registry,
)
from tzdecode.decoding.contract_data import (
    ContractContext,
    decode_bigmap_diff_hex,
    decode_parameters_hex,
    decode_storage_hex,
)
from tzdecode.decoding.objects import decode_object, encode_object
from tzdecode.decoding.rows import decode_row

__all__ = [
    "BLOCK_COLUMNS",
    "OP_COLUMNS",
    "BlockList",
    "ColumnPlan",
    "ColumnRegistry",
    "ColumnSpec",
    "ContractContext",
    "OpList",
    "compile_columns",
    "decode_bigmap_diff_hex",
    "decode_block_list",
    "decode_object",
    "decode_op_list",
    "decode_parameters_hex",
    "decode_row",
    "decode_storage_hex",
    "encode_object",
    "load_rows",
    "make_registry",
]
