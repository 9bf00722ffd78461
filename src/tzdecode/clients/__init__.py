"""Explorer HTTP client and the contract type resolver built on it."""

from tzdecode.clients.contracts import CachedContractResolver, ContractScript, ContractTypeCache
from tzdecode.clients.explorer import BlockParams, ExplorerClient, OpParams

__all__ = [
    "BlockParams",
    "CachedContractResolver",
    "ContractScript",
    "ContractTypeCache",
    "ExplorerClient",
    "OpParams",
]
