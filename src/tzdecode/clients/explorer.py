"""Async client for the explorer's REST and table APIs.

This module provides:
- `ExplorerClient`: an httpx-based client with sane timeouts/connection limits
- `BlockParams` / `OpParams`: explorer query-string flag builders
- Table queries returning decoded `BlockList` / `OpList` batches

Contract calls in operation tables are typed through the client's own
`CachedContractResolver`, so every query on one client shares one schema cache.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from tzdecode.clients.contracts import CachedContractResolver, ContractScript, ContractTypeCache
from tzdecode.core.config import ClientConfig, DecodeOptions
from tzdecode.core.errors import MalformedField, NotFound
from tzdecode.core.models import Block, Op, default_columns
from tzdecode.decoding.assembler import BlockList, OpList, decode_block_list, decode_op_list
from tzdecode.decoding.objects import decode_object
from tzdecode.tezos.hashes import Address

logger = logging.getLogger(__name__)


# ---------- query flags ----------


class QueryParams:
    """Immutable set of explorer query-string flags; every `with_*` returns a copy."""

    def __init__(self, query: Mapping[str, str] | None = None) -> None:
        self.query: dict[str, str] = dict(query or {})

    def _set(self, key: str, value: str):
        return type(self)({**self.query, key: value})

    def with_limit(self, v: int):
        return self._set("limit", str(v))

    def with_offset(self, v: int):
        return self._set("offset", str(v))

    def with_cursor(self, v: int):
        return self._set("cursor", str(v))

    def with_order(self, v: str):
        return self._set("order", v)

    def with_meta(self):
        return self._set("meta", "1")

    def with_prim(self):
        return self._set("prim", "1")

    def with_unpack(self):
        return self._set("unpack", "1")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, QueryParams) and self.query == other.query

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.query!r})"


class BlockParams(QueryParams):
    def with_rights(self):
        return self._set("rights", "1")

    def with_ops(self):
        return self._set("ops", "1")


class OpParams(QueryParams):
    def with_type(self, *types: str, mode: str = "in"):
        if not types:
            return type(self)({k: v for k, v in self.query.items() if not k.startswith("type")})
        return self._set(f"type.{mode}", ",".join(types))

    def with_block(self, v: str):
        return self._set("block", v)

    def with_since(self, v: str):
        return self._set("since", v)

    def with_storage(self):
        return self._set("storage", "1")

    def with_merge(self):
        return self._set("merge", "1")


# ---------- client ----------


class ExplorerClient:
    """Minimal async explorer client.

    Parameters
    ----------
    config : ClientConfig
        Base URL, API key, timeouts and pool size.
    options : DecodeOptions
        Contract-data switches applied to every operation query.
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        options: DecodeOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.options = options or DecodeOptions()
        headers = {"User-Agent": self.config.user_agent}
        if self.config.api_key:
            headers["X-API-Key"] = self.config.api_key
        timeout_s = self.config.timeout_s
        self.client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=headers,
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=self.config.max_connections,
                max_keepalive_connections=max(1, self.config.max_connections // 2),
            ),
            http2=True,
            transport=transport,
        )
        self.cache = ContractTypeCache()
        self.resolver = CachedContractResolver(self, self.cache)

    async def __aenter__(self) -> ExplorerClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def get_json(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        """GET `path` and return the parsed JSON body; non-2xx raises `httpx.HTTPStatusError`."""
        logger.debug("GET %s %s", path, dict(params or {}))
        r = await self.client.get(path, params=params)
        r.raise_for_status()
        return r.json()

    async def get_block(self, ident: int | str, params: BlockParams | None = None) -> Block:
        """Fetch one block by height or hash."""
        data = await self.get_json(f"/explorer/block/{ident}", (params or BlockParams()).query)
        return decode_object(Block, data)

    async def get_block_ops(self, block_hash: str, params: OpParams | None = None) -> OpList:
        data = await self.get_json(f"/explorer/block/{block_hash}/operations", (params or OpParams()).query)
        return await decode_op_list(data, (), resolver=self.resolver, options=self.options)

    async def get_op(self, op_hash: str, params: OpParams | None = None) -> OpList:
        """Fetch all contents of an operation group."""
        data = await self.get_json(f"/explorer/op/{op_hash}", (params or OpParams()).query)
        return await decode_op_list(data, (), resolver=self.resolver, options=self.options)

    async def get_contract_script(self, address: Address | str) -> ContractScript:
        """Fetch a contract's script; a contract without one raises `NotFound`."""
        try:
            data = await self.get_json(f"/explorer/contract/{address}/script")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFound(f"script of {address}") from e
            raise
        return ContractScript.model_validate(data)

    async def query_table(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Mapping[str, str] | None = None,
        limit: int | None = None,
        cursor: int | None = None,
        order: str = "asc",
    ) -> list[Any]:
        """Run a table query and return its raw rows (positional arrays)."""
        params: dict[str, str] = dict(filters or {})
        params["columns"] = ",".join(columns)
        params["limit"] = str(limit or self.config.default_limit)
        params["order"] = order
        if cursor is not None:
            params["cursor"] = str(cursor)
        rows = await self.get_json(f"/tables/{table}", params)
        if not isinstance(rows, list):
            raise MalformedField(f"table {table}: expected JSON array, got {type(rows).__name__}")
        return rows

    async def query_blocks(
        self,
        columns: Sequence[str] | None = None,
        *,
        filters: Mapping[str, str] | None = None,
        limit: int | None = None,
        cursor: int | None = None,
        order: str = "asc",
    ) -> BlockList:
        cols = list(columns or default_columns(Block))
        rows = await self.query_table("block", cols, filters=filters, limit=limit, cursor=cursor, order=order)
        return decode_block_list(rows, cols)

    async def query_ops(
        self,
        columns: Sequence[str] | None = None,
        *,
        filters: Mapping[str, str] | None = None,
        limit: int | None = None,
        cursor: int | None = None,
        order: str = "asc",
    ) -> OpList:
        cols = list(columns or default_columns(Op))
        rows = await self.query_table("op", cols, filters=filters, limit=limit, cursor=cursor, order=order)
        return await decode_op_list(rows, cols, resolver=self.resolver, options=self.options)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
