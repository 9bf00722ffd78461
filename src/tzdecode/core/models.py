"""Explorer records: blocks, operations and their contract data.

This module defines:
- `ColumnKind`: the closed set of column value kinds (one parser per kind).
- `Block` / `Op`: immutable records; every field carries its explorer column
  alias, kind and `notable` flag in its dataclass metadata.
- Contract data records (`ContractValue`, `ContractParameters`, `BigmapUpdate`).

Design notes
------------
- Field order and aliases follow the explorer's documented schema.
- `notable` columns are left out of default column lists and only returned
  when a query asks for them by name.
- Records are frozen: a decoder collects field values first and builds the
  record in one step, so a failed decode never leaves a half-filled record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any

from tzdecode.core.enums import BigmapAction, OpStatus, OpType, VotingPeriodKind
from tzdecode.micheline.prim import Prim
from tzdecode.tezos.hashes import Address, Hash


class ColumnKind(Enum):
    UINT = "uint"
    INT = "int"
    FLOAT = "float"
    OPT_FLOAT = "opt_float"
    BOOL = "bool"
    TIME = "time"
    STRING = "string"
    ADDRESS = "address"
    BLOCK_HASH = "block_hash"
    OP_HASH = "op_hash"
    OP_TYPE = "op_type"
    OP_STATUS = "op_status"
    VOTING_PERIOD = "voting_period"
    JSON = "json"
    PRIM = "prim"
    ENTRYPOINT = "entrypoint"
    PARAMETERS = "parameters"
    STORAGE = "storage"
    BIGMAP_DIFF = "big_map_diff"
    OPS = "ops"


def column(alias: str, kind: ColumnKind, default: Any = None, *, notable: bool = False) -> Any:
    """Declare a record field bound to an explorer column."""
    return field(default=default, metadata={"alias": alias, "kind": kind, "notable": notable})


@dataclass(frozen=True, slots=True)
class ColumnField:
    alias: str
    attr: str
    kind: ColumnKind
    notable: bool


def record_columns(cls: type) -> tuple[ColumnField, ...]:
    """All column-bound fields of a record type, in declaration order."""
    return tuple(
        ColumnField(f.metadata["alias"], f.name, f.metadata["kind"], f.metadata["notable"])
        for f in fields(cls)
        if "alias" in f.metadata
    )


def default_columns(cls: type) -> list[str]:
    """Column aliases a query requests when the caller names none (non-notable only)."""
    return [c.alias for c in record_columns(cls) if not c.notable]


# ---------- contract data ----------


@dataclass(frozen=True, slots=True)
class ContractValue:
    """A decoded contract value: semantic mapping and (optionally) its primitive tree."""

    value: Any = None
    prim: Prim | None = None


@dataclass(frozen=True, slots=True)
class ContractParameters:
    entrypoint: str = ""
    value: Any = None
    prim: Prim | None = None


@dataclass(frozen=True, slots=True)
class BigmapMeta:
    """Provenance of a big-map update: owning contract, map id, row height and time."""

    contract: Address | None
    bigmap_id: int
    time: datetime | None
    height: int


@dataclass(frozen=True, slots=True)
class BigmapUpdate:
    action: BigmapAction
    bigmap_id: int
    key: Any = None
    key_hash: Hash | None = None
    value: Any = None
    meta: BigmapMeta | None = None
    key_prim: Prim | None = None
    value_prim: Prim | None = None
    key_type: Mapping[str, Any] | None = None
    value_type: Mapping[str, Any] | None = None
    key_type_prim: Prim | None = None
    value_type_prim: Prim | None = None
    source_id: int | None = None
    dest_id: int | None = None


# ---------- blocks ----------


@dataclass(frozen=True, slots=True)
class BlockId:
    height: int
    hash: Hash | None
    time: datetime | None

    def is_next_block(self, b: Block | None) -> bool:
        return b is not None and b.height == self.height + 1 and b.parent_hash == self.hash

    def is_same_block(self, b: Block | None) -> bool:
        return b is not None and b.height == self.height and b.hash == self.hash


K = ColumnKind


@dataclass(frozen=True, slots=True)
class Block:
    row_id: int = column("row_id", K.UINT, 0)
    parent_id: int = column("parent_id", K.UINT, 0)
    parent_hash: Hash | None = column("predecessor", K.BLOCK_HASH)
    follower_hash: Hash | None = column("successor", K.BLOCK_HASH, notable=True)
    hash: Hash | None = column("hash", K.BLOCK_HASH)
    is_orphan: bool = column("is_orphan", K.BOOL, False)
    height: int = column("height", K.INT, 0)
    cycle: int = column("cycle", K.INT, 0)
    is_cycle_snapshot: bool = column("is_cycle_snapshot", K.BOOL, False)
    timestamp: datetime | None = column("time", K.TIME)
    solvetime: int = column("solvetime", K.INT, 0)
    version: int = column("version", K.INT, 0)
    validation: int = column("validation_pass", K.INT, 0)
    fitness: int = column("fitness", K.UINT, 0)
    priority: int = column("priority", K.INT, 0)
    nonce: str = column("nonce", K.STRING, "")
    voting_period_kind: VotingPeriodKind = column("voting_period_kind", K.VOTING_PERIOD, VotingPeriodKind.UNKNOWN)
    baker_id: int = column("baker_id", K.UINT, 0)
    baker: Address | None = column("baker", K.ADDRESS)
    slot_mask: str = column("slot_mask", K.STRING, "")
    n_slots_endorsed: int = column("n_endorsed_slots", K.INT, 0)
    n_ops: int = column("n_ops", K.INT, 0)
    n_ops_failed: int = column("n_ops_failed", K.INT, 0)
    n_ops_contract: int = column("n_ops_contract", K.INT, 0)
    n_ops_implicit: int = column("n_ops_implicit", K.INT, 0)
    n_tx: int = column("n_tx", K.INT, 0)
    n_activation: int = column("n_activation", K.INT, 0)
    n_seed_nonce: int = column("n_seed_nonce_revelation", K.INT, 0)
    n_double_baking: int = column("n_double_baking_evidence", K.INT, 0)
    n_double_endorsement: int = column("n_double_endorsement_evidence", K.INT, 0)
    n_endorsement: int = column("n_endorsement", K.INT, 0)
    n_delegation: int = column("n_delegation", K.INT, 0)
    n_reveal: int = column("n_reveal", K.INT, 0)
    n_origination: int = column("n_origination", K.INT, 0)
    n_proposal: int = column("n_proposal", K.INT, 0)
    n_ballot: int = column("n_ballot", K.INT, 0)
    volume: float = column("volume", K.FLOAT, 0.0)
    fee: float = column("fee", K.FLOAT, 0.0)
    reward: float = column("reward", K.FLOAT, 0.0)
    deposit: float = column("deposit", K.FLOAT, 0.0)
    unfrozen_fees: float = column("unfrozen_fees", K.FLOAT, 0.0)
    unfrozen_rewards: float = column("unfrozen_rewards", K.FLOAT, 0.0)
    unfrozen_deposits: float = column("unfrozen_deposits", K.FLOAT, 0.0)
    activated_supply: float = column("activated_supply", K.FLOAT, 0.0)
    burned_supply: float = column("burned_supply", K.FLOAT, 0.0)
    n_accounts: int = column("n_accounts", K.INT, 0)
    n_new_accounts: int = column("n_new_accounts", K.INT, 0)
    n_new_implicit: int = column("n_new_implicit", K.INT, 0)
    n_new_managed: int = column("n_new_managed", K.INT, 0)
    n_new_contracts: int = column("n_new_contracts", K.INT, 0)
    n_cleared_accounts: int = column("n_cleared_accounts", K.INT, 0)
    n_funded_accounts: int = column("n_funded_accounts", K.INT, 0)
    gas_limit: int = column("gas_limit", K.INT, 0)
    gas_used: int = column("gas_used", K.INT, 0)
    gas_price: float = column("gas_price", K.FLOAT, 0.0)
    storage_size: int = column("storage_size", K.INT, 0)
    days_destroyed: float = column("days_destroyed", K.FLOAT, 0.0)
    pct_account_reuse: float = column("pct_account_reuse", K.FLOAT, 0.0)
    lb_esc_vote: bool = column("lb_esc_vote", K.BOOL, False)
    lb_esc_ema: int = column("lb_esc_ema", K.INT, 0)
    metadata: Any = column("metadata", K.JSON, notable=True)
    rights: Any = column("rights", K.JSON, notable=True)
    ops: tuple[Op, ...] = column("ops", K.OPS, (), notable=True)

    @property
    def block_id(self) -> BlockId:
        return BlockId(self.height, self.hash, self.timestamp)

    def endorsed_slots(self) -> list[int]:
        """Indices of set bits in the hex `slot_mask`, most significant bit first."""
        try:
            mask = bytes.fromhex(self.slot_mask)
        except ValueError:
            return []
        return [i for i in range(len(mask) * 8) if mask[i >> 3] & (1 << (7 - (i & 7)))]


# ---------- operations ----------


@dataclass(frozen=True, slots=True)
class Op:
    id: int = column("id", K.UINT, 0)
    hash: Hash | None = column("hash", K.OP_HASH)
    type: OpType = column("type", K.OP_TYPE, OpType.UNKNOWN)
    block: Hash | None = column("block", K.BLOCK_HASH)
    timestamp: datetime | None = column("time", K.TIME)
    height: int = column("height", K.INT, 0)
    cycle: int = column("cycle", K.INT, 0)
    counter: int = column("counter", K.INT, 0)
    op_n: int = column("op_n", K.INT, 0)
    op_p: int = column("op_p", K.INT, 0)
    status: OpStatus = column("status", K.OP_STATUS, OpStatus.UNKNOWN)
    is_success: bool = column("is_success", K.BOOL, False)
    is_contract: bool = column("is_contract", K.BOOL, False)
    is_batch: bool = column("is_batch", K.BOOL, False)
    is_event: bool = column("is_event", K.BOOL, False)
    is_internal: bool = column("is_internal", K.BOOL, False)
    gas_limit: int = column("gas_limit", K.INT, 0)
    gas_used: int = column("gas_used", K.INT, 0)
    storage_limit: int = column("storage_limit", K.INT, 0)
    storage_paid: int = column("storage_paid", K.INT, 0)
    volume: float = column("volume", K.FLOAT, 0.0)
    fee: float = column("fee", K.FLOAT, 0.0)
    reward: float = column("reward", K.FLOAT, 0.0)
    deposit: float = column("deposit", K.FLOAT, 0.0)
    burned: float = column("burned", K.FLOAT, 0.0)
    days_destroyed: float = column("days_destroyed", K.FLOAT, 0.0)
    sender_id: int = column("sender_id", K.UINT, 0)
    receiver_id: int = column("receiver_id", K.UINT, 0)
    creator_id: int = column("creator_id", K.UINT, 0)
    baker_id: int = column("baker_id", K.UINT, 0)
    sender: Address | None = column("sender", K.ADDRESS)
    receiver: Address | None = column("receiver", K.ADDRESS)
    creator: Address | None = column("creator", K.ADDRESS)  # origination
    baker: Address | None = column("baker", K.ADDRESS)  # delegation, origination
    prev_baker: Address | None = column("previous_baker", K.ADDRESS, notable=True)  # delegation
    source: Address | None = column("source", K.ADDRESS, notable=True)  # internal operations
    offender: Address | None = column("offender", K.ADDRESS, notable=True)  # double_x
    accuser: Address | None = column("accuser", K.ADDRESS, notable=True)  # double_x
    data: Any = column("data", K.JSON)
    errors: Any = column("errors", K.JSON)
    parameters: ContractParameters | None = column("parameters", K.PARAMETERS)  # transaction
    storage: ContractValue | None = column("storage", K.STORAGE)  # transaction, origination
    big_map_diff: tuple[BigmapUpdate, ...] = column("big_map_diff", K.BIGMAP_DIFF, ())
    value: Prim | None = column("value", K.PRIM)  # register_constant
    power: int = column("power", K.INT, 0)  # endorsement
    limit: float | None = column("limit", K.OPT_FLOAT)  # set deposits limit
    confirmations: int = column("confirmations", K.INT, 0, notable=True)
    batch_volume: float = column("batch_volume", K.FLOAT, 0.0, notable=True)
    entrypoint: str = column("entrypoint", K.ENTRYPOINT, "", notable=True)
    n_ops: int = column("n_ops", K.INT, 0, notable=True)
    batch: tuple[Op, ...] = column("batch", K.OPS, (), notable=True)
    internal: tuple[Op, ...] = column("internal", K.OPS, (), notable=True)
    metadata: Any = column("metadata", K.JSON, notable=True)

    @property
    def block_id(self) -> BlockId:
        return BlockId(self.height, self.block, self.timestamp)

    def content(self) -> list[Op]:
        """This operation's effective contents: batch items and internal calls, flattened."""
        if not self.batch and not self.internal:
            return [self]
        out: list[Op] = [] if self.is_batch else [self]
        if self.is_batch:
            for b in self.batch:
                out.append(b)
                out.extend(b.internal)
        out.extend(self.internal)
        return out

    @property
    def cursor(self) -> int:
        """Id of the deepest last child: internal of the last batch item, else that item, else self."""
        op = self
        if op.batch:
            op = op.batch[-1]
        if op.internal:
            op = op.internal[-1]
        return op.id
