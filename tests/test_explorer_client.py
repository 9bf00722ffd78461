import json

import httpx
import pytest

from tzdecode.clients.explorer import BlockParams, ExplorerClient, OpParams
from tzdecode.core.config import ClientConfig, DecodeOptions, load_config
from tzdecode.core.enums import OpType
from tzdecode.core.errors import NotFound
from tzdecode.core.models import Block, ContractParameters, Op, default_columns
from tzdecode.micheline.params import Parameters, encode_parameters
from tzdecode.micheline.prim import Prims


def _client(handler, **kwargs) -> ExplorerClient:
    config = ClientConfig(base_url="https://explorer.test", api_key="secret")
    return ExplorerClient(config, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_query_ops_resolves_contract_types_once(script_code: list, ledger_id: int, kt1: str) -> None:
    seen: list[httpx.Request] = []
    burn = encode_parameters(Parameters("burn", Prims.Int(3))).hex()

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/tables/op":
            return httpx.Response(
                200,
                json=[[1, "transaction", 1, kt1, burn], [2, "transaction", 1, kt1, burn]],
            )
        if request.url.path == f"/explorer/contract/{kt1}/script":
            return httpx.Response(200, json={"script": {"code": script_code}, "bigmaps": {"ledger": ledger_id}})
        return httpx.Response(404)

    async with _client(handler) as client:
        ops = await client.query_ops(
            ["id", "type", "is_contract", "receiver", "parameters"],
            filters={"type": "transaction"},
            limit=2,
            cursor=0,
        )

    assert [o.parameters for o in ops] == [ContractParameters(entrypoint="burn", value=3)] * 2
    assert ops.cursor == 2
    assert [r.url.path for r in seen] == ["/tables/op", f"/explorer/contract/{kt1}/script"]
    table_query = seen[0].url.params
    assert table_query["columns"] == "id,type,is_contract,receiver,parameters"
    assert table_query["limit"] == "2"
    assert table_query["cursor"] == "0"
    assert table_query["type"] == "transaction"
    assert all(r.headers["X-API-Key"] == "secret" for r in seen)


@pytest.mark.asyncio
async def test_missing_script_falls_back_to_untyped(kt1: str) -> None:
    burn = encode_parameters(Parameters("burn", Prims.Int(3))).hex()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/tables/op":
            return httpx.Response(200, json=[[1, 1, kt1, burn]])
        return httpx.Response(404, json={"code": 404})

    async with _client(handler, options=DecodeOptions(with_prim=True)) as client:
        with pytest.raises(NotFound):
            await client.get_contract_script(kt1)
        ops = await client.query_ops(["id", "is_contract", "receiver", "parameters"])

    assert ops[0].parameters == ContractParameters(entrypoint="burn", prim=Prims.Int(3))
    assert len(client.cache) == 0


@pytest.mark.asyncio
async def test_http_errors_propagate() -> None:
    async with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.query_blocks(["row_id"])


@pytest.mark.asyncio
async def test_query_blocks_uses_default_columns() -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(request.url.params)
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        blocks = await client.query_blocks()

    assert len(blocks) == 0 and blocks.cursor is None
    assert captured["columns"].split(",") == default_columns(Block)
    assert captured["limit"] == "500"
    assert captured["order"] == "asc"


@pytest.mark.asyncio
async def test_get_block_and_op_use_object_form(block_hash: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/explorer/block/1000":
            assert request.url.params["rights"] == "1"
            return httpx.Response(200, json={"hash": block_hash, "height": 1000, "is_orphan": False})
        if request.url.path == "/explorer/op/oabc":
            return httpx.Response(200, content=json.dumps([{"id": 5, "type": "reveal"}]))
        return httpx.Response(404)

    async with _client(handler) as client:
        block = await client.get_block(1000, BlockParams().with_rights())
        ops = await client.get_op("oabc")

    assert block.height == 1000 and str(block.hash) == block_hash
    assert ops[0] == Op(id=5, type=OpType.REVEAL)
    assert ops.cursor == 5


def test_query_params_are_immutable() -> None:
    base = OpParams()
    p = base.with_limit(10).with_prim().with_type("transaction", "origination")
    assert base.query == {}
    assert p.query == {"limit": "10", "prim": "1", "type.in": "transaction,origination"}
    assert p.with_type().query == {"limit": "10", "prim": "1"}
    assert isinstance(p, OpParams)


def test_load_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TZSTATS_URL", "https://example.test/ ")
    monkeypatch.setenv("TZSTATS_API_KEY", "k")
    monkeypatch.setenv("TZSTATS_TIMEOUT", "5")
    monkeypatch.delenv("TZSTATS_MAX_CONNECTIONS", raising=False)
    config = load_config()
    assert config.base_url == "https://example.test"
    assert config.api_key == "k"
    assert config.timeout_s == 5
    assert config.max_connections == 16

    monkeypatch.setenv("TZSTATS_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        load_config()


@pytest.mark.asyncio
async def test_get_block_ops_sends_query_flags(block_hash: str) -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/explorer/block/{block_hash}/operations"
        captured.update(request.url.params)
        return httpx.Response(200, json=[{"id": 3, "type": "transaction"}, {"id": 4, "type": "bake"}])

    params = (
        OpParams()
        .with_storage()
        .with_merge()
        .with_unpack()
        .with_meta()
        .with_offset(20)
        .with_order("desc")
        .with_since("BLsince")
        .with_block("head")
    )
    async with _client(handler) as client:
        ops = await client.get_block_ops(block_hash, params)

    assert [o.type for o in ops] == [OpType.TRANSACTION, OpType.BAKE]
    assert captured == {
        "storage": "1",
        "merge": "1",
        "unpack": "1",
        "meta": "1",
        "offset": "20",
        "order": "desc",
        "since": "BLsince",
        "block": "head",
    }
    assert BlockParams().with_ops().with_cursor(7) == BlockParams({"ops": "1", "cursor": "7"})
