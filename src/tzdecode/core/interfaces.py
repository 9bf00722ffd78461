from __future__ import annotations

from typing import Protocol, runtime_checkable

from tzdecode.core.errors import NotFound
from tzdecode.micheline.script import ScriptTypes
from tzdecode.tezos.hashes import Address


# ---------------------------------------------------------------------------
# IContractResolver
# ---------------------------------------------------------------------------

@runtime_checkable
class IContractResolver(Protocol):
    """
    Abstract provider of contract type schemas used for decoding contract data.

    Domain expectations:
    - It behaves as a read-through cache: a hit performs no I/O, a miss may
      fetch the contract script over the network.
    - It raises `NotFound` when the contract has no script; the decoder then
      falls back to untyped decoding.
    - Transport errors and cancellation propagate unchanged.
    """

    async def resolve(self, address: Address) -> ScriptTypes:
        """
        Return the parameter/storage/entrypoint/big-map types for `address`.

        Implementations:
        - Explorer-backed resolver with an in-memory cache
        - Static mapping for tests or offline decoding
        """
        ...


class StaticContractResolver:
    """Resolver over a fixed address → types mapping (offline decoding, tests)."""

    def __init__(self, types: dict[str, ScriptTypes] | None = None) -> None:
        self._types = dict(types or {})

    async def resolve(self, address: Address) -> ScriptTypes:
        try:
            return self._types[str(address)]
        except KeyError:
            raise NotFound(f"contract {address}") from None
