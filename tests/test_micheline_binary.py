import pytest

from tzdecode.core.enums import BigmapAction
from tzdecode.core.errors import BinaryDecodeError, MalformedField
from tzdecode.micheline.bigmap import BigmapEvent, decode_bigmap_events, encode_bigmap_events
from tzdecode.micheline.binary import OPCODES, decode_prim, encode_prim, hex_to_bytes
from tzdecode.micheline.params import Parameters, decode_parameters, encode_parameters
from tzdecode.micheline.prim import Prims, app, from_json, to_json


def test_opcode_table_positions() -> None:
    assert len(OPCODES) == 157
    assert OPCODES[7] == "Pair"
    assert OPCODES[0x72] == "EMPTY_BIG_MAP"
    assert OPCODES[0x87] == "ticket"


def test_decode_pair_literal() -> None:
    assert decode_prim(bytes.fromhex("07070001010000000161")) == app("Pair", Prims.Int(1), Prims.String("a"))


@pytest.mark.parametrize(
    "hexstr,value",
    [("0000", 0), ("0001", 1), ("0041", -1), ("008001", 64), ("00a401", 100), ("00e401", -100)],
)
def test_decode_zarith(hexstr: str, value: int) -> None:
    assert decode_prim(bytes.fromhex(hexstr)) == Prims.Int(value)
    assert encode_prim(Prims.Int(value)).hex() == hexstr


def test_annotations_and_nary_prims_survive_encoding() -> None:
    typ = app("pair", app("int", annots=["%a"]), app("string"), annots=[":t"])
    assert decode_prim(encode_prim(typ)) == typ
    nary = app("Pair", Prims.Int(1), Prims.Bytes(b"\x01\x02"), Prims.Seq((Prims.Int(3),)))
    assert decode_prim(encode_prim(nary)) == nary


@pytest.mark.parametrize("hexstr", ["0707", "0b", "03ff", "000100", "01000000ff", "02000000050001"])
def test_decode_rejects_corrupt_payloads(hexstr: str) -> None:
    with pytest.raises(BinaryDecodeError):
        decode_prim(bytes.fromhex(hexstr))


def test_hex_to_bytes() -> None:
    assert hex_to_bytes("0x0001") == b"\x00\x01"
    assert hex_to_bytes("") == b""
    with pytest.raises(BinaryDecodeError):
        hex_to_bytes("zz")


def test_micheline_json() -> None:
    p = app("Pair", Prims.Int(1), Prims.Seq((Prims.String("x"), Prims.Bytes(b"\xff"))), annots=["%p"])
    obj = to_json(p)
    assert obj == {
        "prim": "Pair",
        "args": [{"int": "1"}, [{"string": "x"}, {"bytes": "ff"}]],
        "annots": ["%p"],
    }
    assert from_json(obj) == p
    with pytest.raises(MalformedField):
        from_json({"int": "one"})
    with pytest.raises(MalformedField):
        from_json(42)


def test_parameters_named_entrypoint() -> None:
    params = Parameters("transfer", app("Pair", Prims.String("a"), Prims.Int(5)))
    data = encode_parameters(params)
    assert data[0] == 0xFF
    assert decode_parameters(data) == params


def test_parameters_reserved_entrypoint() -> None:
    data = encode_parameters(Parameters("default", app("Unit")))
    assert data.hex() == "00" + "00000002" + "030b"
    assert decode_parameters(data).entrypoint == "default"


@pytest.mark.parametrize("hexstr", ["07000000020000", "00000000050000", "ff"])
def test_parameters_rejects_corrupt(hexstr: str) -> None:
    with pytest.raises(BinaryDecodeError):
        decode_parameters(bytes.fromhex(hexstr))


def test_bigmap_events() -> None:
    events = [
        BigmapEvent(BigmapAction.ALLOC, 5, key_type=app("string"), value_type=app("nat")),
        BigmapEvent(BigmapAction.UPDATE, 5, key_hash=b"\x01" * 32, key=Prims.String("k"), value=Prims.Int(9)),
        BigmapEvent(BigmapAction.REMOVE, 5, key_hash=b"\x02" * 32, key=Prims.String("j")),
        BigmapEvent(BigmapAction.COPY, 5, source_id=5, dest_id=6),
    ]
    assert decode_bigmap_events(encode_bigmap_events(events)) == events


def test_bigmap_events_reject_unknown_action() -> None:
    with pytest.raises(BinaryDecodeError):
        decode_bigmap_events(bytes.fromhex("09" + "00" * 8))
