from unittest.mock import AsyncMock

import pytest

from tzdecode.micheline.prim import Prims, app, to_json
from tzdecode.micheline.script import ScriptTypes, script_types
from tzdecode.tezos.hashes import Address, Hash, HashType

# a token contract: transfer/burn entrypoints, a ledger big map and a supply counter
PARAM_TYPE = app(
    "or",
    app("pair", app("address", annots=["%to"]), app("nat", annots=["%amount"]), annots=["%transfer"]),
    app("nat", annots=["%burn"]),
)
STORAGE_TYPE = app(
    "pair",
    app("big_map", app("address"), app("nat"), annots=["%ledger"]),
    app("nat", annots=["%total"]),
)
LEDGER_ID = 17


@pytest.fixture
def kt1() -> str:
    return str(Address(HashType.CONTRACT, bytes(range(20))))


@pytest.fixture
def tz1() -> str:
    return str(Address(HashType.ED25519_PKH, bytes(20)))


@pytest.fixture
def block_hash() -> str:
    return str(Hash(HashType.BLOCK, bytes(32)))


@pytest.fixture
def script_code() -> list:
    return [
        to_json(app("parameter", PARAM_TYPE)),
        to_json(app("storage", STORAGE_TYPE)),
        to_json(app("code", Prims.Seq())),
    ]


@pytest.fixture
def token_types(script_code: list) -> ScriptTypes:
    return script_types(script_code, {"ledger": LEDGER_ID})


@pytest.fixture
def mock_resolver(token_types: ScriptTypes):
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(return_value=token_types)
    return resolver


@pytest.fixture
def param_type():
    return PARAM_TYPE


@pytest.fixture
def storage_type():
    return STORAGE_TYPE


@pytest.fixture
def ledger_id() -> int:
    return LEDGER_ID
