"""Contract type resolution backed by the explorer.

This module provides:
- `ContractScript`: the pydantic model of the explorer's script response
- `ContractTypeCache`: address → `ScriptTypes` map owned by one client
- `CachedContractResolver`: read-through resolver over client + cache

The cache has no lock: concurrent misses for the same address may both fetch
and the last writer wins. Schemas are deterministic per address, so either
entry is correct.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from tzdecode.micheline.script import ScriptTypes, script_types
from tzdecode.tezos.hashes import Address

if TYPE_CHECKING:
    from tzdecode.clients.explorer import ExplorerClient

logger = logging.getLogger(__name__)


class MichelineScript(BaseModel):
    code: list[Any]
    storage: Any = None


class ContractScript(BaseModel):
    script: MichelineScript | None = None
    bigmaps: dict[str, int] = Field(default_factory=dict)

    def types(self) -> ScriptTypes:
        """Extract parameter/storage/entrypoint/big-map types from the script."""
        if self.script is None:
            return ScriptTypes()
        return script_types(self.script.code, self.bigmaps)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0


class ContractTypeCache:
    """Per-client contract schema cache (entries never expire)."""

    def __init__(self) -> None:
        self._store: dict[str, ScriptTypes] = {}
        self.stats = CacheStats()

    def get(self, address: Address | str) -> ScriptTypes | None:
        types = self._store.get(str(address))
        if types is None:
            self.stats.misses += 1
        else:
            self.stats.hits += 1
        return types

    def set(self, address: Address | str, types: ScriptTypes) -> None:
        self._store[str(address)] = types
        self.stats.sets += 1

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, address: object) -> bool:
        return str(address) in self._store

    def __len__(self) -> int:
        return len(self._store)


class CachedContractResolver:
    """Resolve contract types through the cache, fetching the script on a miss."""

    def __init__(self, client: ExplorerClient, cache: ContractTypeCache | None = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else ContractTypeCache()

    async def resolve(self, address: Address) -> ScriptTypes:
        types = self.cache.get(address)
        if types is not None:
            return types
        logger.debug("contract type cache miss for %s", address)
        # NotFound, transport errors and cancellation propagate unchanged
        script = await self.client.get_contract_script(address)
        types = script.types()
        self.cache.set(address, types)
        return types
