from datetime import UTC, datetime

import pytest

from tzdecode.core.enums import OpStatus, OpType, VotingPeriodKind
from tzdecode.core.errors import InvalidEncoding, MalformedField
from tzdecode.core.models import Block, Op, default_columns
from tzdecode.decoding.columns import BLOCK_COLUMNS, OP_COLUMNS, compile_columns
from tzdecode.decoding.objects import decode_object, encode_object
from tzdecode.decoding.rows import decode_row
from tzdecode.tezos.hashes import Address, Hash, HashType

T0_MS = 1_600_000_000_000
T0 = datetime(2020, 9, 13, 12, 26, 40, tzinfo=UTC)


def _op(columns: list[str], row: list) -> Op:
    return decode_row(Op, row, compile_columns(columns, OP_COLUMNS))


def _block(columns: list[str], row: list) -> Block:
    return decode_row(Block, row, compile_columns(columns, BLOCK_COLUMNS))


def test_decode_scalar_columns(kt1: str) -> None:
    op = _op(
        ["id", "type", "time", "height", "status", "is_success", "receiver", "fee", "gas_used"],
        [42, "transaction", T0_MS, 100, "applied", 1, kt1, 0.0015, 1520],
    )
    assert op.id == 42
    assert op.type is OpType.TRANSACTION
    assert op.timestamp == T0
    assert op.height == 100
    assert op.status is OpStatus.APPLIED
    assert op.is_success is True
    assert op.receiver == Address.parse(kt1)
    assert op.fee == 0.0015
    assert op.gas_used == 1520


def test_null_cells_keep_defaults() -> None:
    op = _op(["id", "height", "receiver", "parameters"], [7, None, None, None])
    assert op == Op(id=7)


def test_unknown_columns_are_ignored() -> None:
    op = _op(["id", "brand_new_column", "height"], [7, {"anything": True}, 9])
    assert op == Op(id=7, height=9)


def test_short_row_counts_missing_cells_as_null() -> None:
    assert _op(["id", "height", "cycle"], [7]) == Op(id=7)


def test_long_row_is_malformed() -> None:
    with pytest.raises(MalformedField):
        _op(["id"], [7, 8])


def test_empty_column_list_yields_default_record() -> None:
    assert _op([], []) == Op()


@pytest.mark.parametrize("raw,expected", [(1, True), (0, False), ("1", True), ("0", False)])
def test_numeric_booleans(raw, expected: bool) -> None:
    assert _op(["is_contract"], [raw]).is_contract is expected


@pytest.mark.parametrize("raw", [True, False, 2, "true", 1.0])
def test_json_booleans_are_rejected_in_table_mode(raw) -> None:
    with pytest.raises(MalformedField) as exc:
        _op(["is_contract"], [raw])
    assert exc.value.column == "is_contract"
    assert exc.value.value == raw


@pytest.mark.parametrize("column,raw", [("id", "42"), ("height", 1.5), ("height", True), ("time", "2020-01-01"), ("id", -1)])
def test_wrong_kind_is_malformed(column: str, raw) -> None:
    with pytest.raises(MalformedField) as exc:
        _op([column], [raw])
    assert exc.value.column == column
    assert str(exc.value).startswith(f"{column}: ")


def test_bad_address_is_invalid_encoding() -> None:
    with pytest.raises(InvalidEncoding) as exc:
        _op(["id", "sender"], [1, "tz1notbase58OIl"])
    assert exc.value.column == "sender"


def test_empty_hash_string_is_absent() -> None:
    assert _op(["hash", "sender"], ["", ""]) == Op()


def test_unknown_enum_value_maps_to_sentinel() -> None:
    op = _op(["type", "status"], ["smart_rollup_publish", "pending"])
    assert op.type is OpType.UNKNOWN
    assert op.status is OpStatus.UNKNOWN


def test_raw_json_columns_pass_through() -> None:
    errors = [{"id": "proto.gas_exhausted", "kind": "temporary"}]
    assert _op(["errors"], [errors]).errors == errors


def test_block_columns(block_hash: str, tz1: str) -> None:
    block = _block(
        ["row_id", "hash", "height", "time", "is_orphan", "voting_period_kind", "baker", "slot_mask", "volume"],
        [1001, block_hash, 1000, T0_MS, 0, "proposal", tz1, "c0", 12.5],
    )
    assert block.row_id == 1001
    assert block.hash == Hash.parse(block_hash, HashType.BLOCK)
    assert block.timestamp == T0
    assert block.is_orphan is False
    assert block.voting_period_kind is VotingPeriodKind.PROPOSAL
    assert block.baker == Address.parse(tz1)
    assert block.endorsed_slots() == [0, 1]
    assert block.block_id.is_same_block(block)


def test_first_failure_aborts_row() -> None:
    with pytest.raises(MalformedField) as exc:
        _op(["id", "height", "cycle"], [1, "bad", "also bad"])
    assert exc.value.column == "height"


def test_row_and_object_forms_agree(kt1: str, block_hash: str) -> None:
    from_row = _op(
        ["id", "type", "block", "time", "height", "is_success", "receiver", "volume"],
        [42, "transaction", block_hash, T0_MS, 100, 1, kt1, 1.5],
    )
    from_object = decode_object(
        Op,
        {
            "id": 42,
            "type": "transaction",
            "block": block_hash,
            "time": "2020-09-13T12:26:40Z",
            "height": 100,
            "is_success": True,
            "receiver": kt1,
            "volume": 1.5,
        },
    )
    assert from_row == from_object
    assert decode_object(Op, encode_object(from_row)) == from_row


def test_object_form_rejects_numeric_booleans() -> None:
    with pytest.raises(MalformedField) as exc:
        decode_object(Op, {"is_success": 1})
    assert exc.value.column == "is_success"


def test_nested_ops_in_object_form() -> None:
    op = decode_object(
        Op,
        {"id": 1, "is_batch": True, "batch": [{"id": 2}, {"id": 3, "internal": [{"id": 4}]}]},
    )
    assert [o.id for o in op.content()] == [2, 3, 4]
    assert op.cursor == 4
    assert decode_object(Op, encode_object(op)) == op


def test_default_columns_skip_notable_fields() -> None:
    cols = default_columns(Op)
    assert "parameters" in cols and "big_map_diff" in cols
    assert not {"batch", "internal", "metadata", "entrypoint", "source"} & set(cols)
    assert "successor" not in default_columns(Block)


def test_block_id_links_parent_and_child() -> None:
    parent_hash = Hash(HashType.BLOCK, bytes(32))
    child = Block(height=11, hash=Hash(HashType.BLOCK, b"\x01" * 32), parent_hash=parent_hash)
    parent = Block(height=10, hash=parent_hash)
    assert parent.block_id.is_next_block(child)
    assert not child.block_id.is_next_block(parent)
    assert not parent.block_id.is_next_block(None)
