from datetime import UTC, datetime

import pytest

from tzdecode.core.config import DecodeOptions
from tzdecode.core.enums import BigmapAction
from tzdecode.core.errors import BinaryDecodeError, MalformedField, ValueProjectionError
from tzdecode.core.models import BigmapMeta, ContractParameters, ContractValue, Op
from tzdecode.decoding.columns import OP_COLUMNS, compile_columns
from tzdecode.decoding.contract_data import (
    ContractContext,
    decode_bigmap_diff_hex,
    decode_parameters_hex,
    decode_storage_hex,
)
from tzdecode.decoding.rows import decode_row
from tzdecode.micheline.bigmap import EMPTY_BIGMAP_KEY, BigmapEvent, encode_bigmap_events
from tzdecode.micheline.binary import encode_prim
from tzdecode.micheline.params import Parameters, encode_parameters
from tzdecode.micheline.prim import Prims, app
from tzdecode.micheline.value import ERRORS_KEY, VALUE_KEY, OnError
from tzdecode.tezos.hashes import Address, Hash, HashType

T0_MS = 1_600_000_000_000
T0 = datetime(2020, 9, 13, 12, 26, 40, tzinfo=UTC)


def _params_hex(entrypoint: str, value) -> str:
    return encode_parameters(Parameters(entrypoint, value)).hex()


def _diff_hex(*events: BigmapEvent) -> str:
    return encode_bigmap_events(list(events)).hex()


@pytest.fixture
def typed(token_types) -> ContractContext:
    return ContractContext(types=token_types)


# ---------- parameters ----------


def test_parameters_with_schema(typed: ContractContext, tz1: str) -> None:
    raw = _params_hex("transfer", app("Pair", Prims.String(tz1), Prims.Int(5)))
    assert decode_parameters_hex(raw, typed) == ContractParameters(
        entrypoint="transfer", value={"to": tz1, "amount": 5}
    )


def test_default_call_resolves_entrypoint_branch(typed: ContractContext) -> None:
    raw = _params_hex("default", app("Right", Prims.Int(3)))
    assert decode_parameters_hex(raw, typed) == ContractParameters(entrypoint="burn", value=3)


def test_unmatched_entrypoint_uses_parameter_type(typed: ContractContext) -> None:
    raw = _params_hex("mint", app("Left", app("Pair", Prims.String("x"), Prims.Int(1))))
    params = decode_parameters_hex(raw, typed)
    assert params.entrypoint == "mint"
    assert params.value == {"transfer": {"to": "x", "amount": 1}}


def test_parameters_without_schema_keep_entrypoint_only() -> None:
    value = app("Right", Prims.Int(3))
    raw = _params_hex("burn", value)
    assert decode_parameters_hex(raw, ContractContext()) == ContractParameters(entrypoint="burn")
    with_prim = ContractContext(options=DecodeOptions(with_prim=True))
    assert decode_parameters_hex(raw, with_prim) == ContractParameters(entrypoint="burn", prim=value)


def test_parameters_projection_mismatch(token_types) -> None:
    raw = _params_hex("burn", Prims.String("lots"))
    with pytest.raises(ValueProjectionError):
        decode_parameters_hex(raw, ContractContext(types=token_types))

    lenient = ContractContext(types=token_types, options=DecodeOptions(on_error=OnError.RENDER))
    params = decode_parameters_hex(raw, lenient)
    assert params == ContractParameters(
        entrypoint="burn",
        value={VALUE_KEY: {"string": "lots"}, ERRORS_KEY: ["$: value does not match type nat"]},
    )


def test_empty_payload_is_absent(typed: ContractContext) -> None:
    assert decode_parameters_hex("", typed) is None
    assert decode_storage_hex("", typed) is None
    assert decode_bigmap_diff_hex("", typed) is None


def test_corrupt_payload_is_binary_error(typed: ContractContext) -> None:
    with pytest.raises(BinaryDecodeError):
        decode_parameters_hex("ff05", typed)
    with pytest.raises(BinaryDecodeError):
        decode_storage_hex("0707", typed)
    with pytest.raises(MalformedField):
        decode_storage_hex(17, typed)


# ---------- storage ----------


def test_storage_with_schema(typed: ContractContext) -> None:
    prim = app("Pair", Prims.Int(17), Prims.Int(1000))
    assert decode_storage_hex(encode_prim(prim).hex(), typed) == ContractValue(value={"ledger": 17, "total": 1000})
    with_prim = ContractContext(types=typed.types, options=DecodeOptions(with_prim=True))
    assert decode_storage_hex(encode_prim(prim).hex(), with_prim).prim == prim


def test_storage_without_schema_returns_primitive_tree() -> None:
    prim = app("Pair", Prims.Int(17), Prims.Int(1000))
    assert decode_storage_hex(encode_prim(prim).hex(), ContractContext()) == ContractValue(prim=prim)


# ---------- big-map diffs ----------


def test_bigmap_update_with_schema(typed: ContractContext, tz1: str, ledger_id: int) -> None:
    raw = _diff_hex(
        BigmapEvent(BigmapAction.UPDATE, ledger_id, key_hash=b"\x02" * 32, key=Prims.String(tz1), value=Prims.Int(42))
    )
    (upd,) = decode_bigmap_diff_hex(raw, typed)
    assert upd.action is BigmapAction.UPDATE
    assert upd.bigmap_id == ledger_id
    assert upd.key == tz1
    assert upd.key_hash == Hash(HashType.EXPR, b"\x02" * 32)
    assert str(upd.key_hash).startswith("expr")
    assert upd.value == 42
    assert upd.meta is None
    assert upd.key_prim is None


def test_bigmap_update_without_schema_infers_key_type(typed: ContractContext) -> None:
    raw = _diff_hex(
        BigmapEvent(
            BigmapAction.UPDATE,
            99,
            key_hash=b"\x03" * 32,
            key=app("Pair", Prims.Int(1), Prims.String("a")),
            value=Prims.Int(5),
        )
    )
    (upd,) = decode_bigmap_diff_hex(raw, typed)
    assert upd.key == {"0": 1, "1": "a"}
    assert upd.value is None


def test_bigmap_remove_and_placeholder_key(typed: ContractContext, tz1: str, ledger_id: int) -> None:
    raw = _diff_hex(
        BigmapEvent(BigmapAction.REMOVE, ledger_id, key_hash=b"\x04" * 32, key=Prims.String(tz1)),
        BigmapEvent(BigmapAction.REMOVE, ledger_id, key_hash=b"\x05" * 32, key=EMPTY_BIGMAP_KEY),
    )
    removed, dropped = decode_bigmap_diff_hex(raw, typed)
    assert removed.key == tz1 and removed.value is None
    assert dropped.action is BigmapAction.REMOVE
    assert dropped.key is None and dropped.key_hash is None


def test_bigmap_alloc_and_copy(typed: ContractContext) -> None:
    raw = _diff_hex(
        BigmapEvent(BigmapAction.ALLOC, 20, key_type=app("string"), value_type=app("nat", annots=["%balance"])),
        BigmapEvent(BigmapAction.COPY, 21, source_id=20, dest_id=21),
    )
    alloc, copy = decode_bigmap_diff_hex(raw, typed)
    assert alloc.key_type == {"name": "@key", "type": "string"}
    assert alloc.value_type == {"name": "balance", "type": "nat"}
    assert alloc.key is None and alloc.value is None
    assert copy.source_id == 20 and copy.dest_id == 21
    assert copy.key_type is None


def test_bigmap_meta_sees_row_context_in_any_column_order(token_types, kt1: str, tz1: str, ledger_id: int) -> None:
    raw = _diff_hex(
        BigmapEvent(BigmapAction.UPDATE, ledger_id, key_hash=b"\x02" * 32, key=Prims.String(tz1), value=Prims.Int(1))
    )
    plan = compile_columns(["big_map_diff", "receiver", "height", "time"], OP_COLUMNS)
    ctx = ContractContext(types=token_types, options=DecodeOptions(with_meta=True))
    op = decode_row(Op, [raw, kt1, 100, T0_MS], plan, ctx)
    (upd,) = op.big_map_diff
    assert upd.meta == BigmapMeta(contract=Address.parse(kt1), bigmap_id=ledger_id, time=T0, height=100)


def test_entrypoint_column_overrides_binary_name(token_types) -> None:
    raw = _params_hex("default", app("Right", Prims.Int(3)))
    plan = compile_columns(["entrypoint", "parameters"], OP_COLUMNS)
    op = decode_row(Op, ["burn_tokens", raw], plan, ContractContext(types=token_types))
    assert op.entrypoint == "burn_tokens"
    assert op.parameters == ContractParameters(entrypoint="burn_tokens", value=3)


def test_contract_column_errors_carry_column_name(typed: ContractContext) -> None:
    plan = compile_columns(["id", "storage"], OP_COLUMNS)
    with pytest.raises(BinaryDecodeError) as exc:
        decode_row(Op, [1, "0707"], plan, typed)
    assert exc.value.column == "storage"
    assert exc.value.value == "0707"


def test_bigmap_key_without_arguments_stays_in_error_taxonomy() -> None:
    raw = _diff_hex(BigmapEvent(BigmapAction.UPDATE, 99, key_hash=b"\x06" * 32, key=app("Some"), value=Prims.Int(1)))
    with pytest.raises(ValueProjectionError):
        decode_bigmap_diff_hex(raw, ContractContext())

    lenient = ContractContext(options=DecodeOptions(on_error=OnError.RENDER))
    (upd,) = decode_bigmap_diff_hex(raw, lenient)
    assert upd.key == {VALUE_KEY: {"prim": "Some"}, ERRORS_KEY: ["$: value does not match type unit"]}


@pytest.mark.parametrize(
    "event,has_meta",
    [
        (BigmapEvent(BigmapAction.UPDATE, 17, key_hash=b"\x02" * 32, key=Prims.Int(1), value=Prims.Int(2)), True),
        (BigmapEvent(BigmapAction.REMOVE, 17, key_hash=b"\x02" * 32, key=Prims.Int(1)), True),
        (BigmapEvent(BigmapAction.ALLOC, 17, key_type=app("int"), value_type=app("int")), False),
        (BigmapEvent(BigmapAction.COPY, 18, source_id=17, dest_id=18), False),
    ],
)
def test_meta_only_on_update_and_remove(event: BigmapEvent, has_meta: bool, kt1: str) -> None:
    ctx = ContractContext(options=DecodeOptions(with_meta=True))
    (upd,) = decode_bigmap_diff_hex(_diff_hex(event), ctx, contract=Address.parse(kt1), height=100, time=T0)
    if has_meta:
        assert upd.meta == BigmapMeta(contract=Address.parse(kt1), bigmap_id=event.id, time=T0, height=100)
        assert upd.value is None
    else:
        assert upd.meta is None
