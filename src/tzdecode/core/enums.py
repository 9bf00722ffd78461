"""Closed enumerations used by explorer records.

Unknown wire values never raise: they map to the `UNKNOWN` member so that
clients keep working when the explorer adds new kinds.
"""

from __future__ import annotations

from enum import StrEnum


class _OpenEnum(StrEnum):
    @classmethod
    def _missing_(cls, value: object):
        return cls.UNKNOWN  # type: ignore[attr-defined]


class OpType(_OpenEnum):
    UNKNOWN = "unknown"
    ACTIVATION = "activation"
    DOUBLE_BAKING = "double_baking"
    DOUBLE_ENDORSEMENT = "double_endorsement"
    DOUBLE_PREENDORSEMENT = "double_preendorsement"
    NONCE = "nonce"
    TRANSACTION = "transaction"
    ORIGINATION = "origination"
    DELEGATION = "delegation"
    REVEAL = "reveal"
    ENDORSEMENT = "endorsement"
    PREENDORSEMENT = "preendorsement"
    PROPOSAL = "proposal"
    BALLOT = "ballot"
    REGISTER_CONSTANT = "register_constant"
    SET_DEPOSITS_LIMIT = "deposits_limit"
    BAKE = "bake"
    UNFREEZE = "unfreeze"
    INVOICE = "invoice"
    AIRDROP = "airdrop"
    SEED_SLASH = "seed_slash"
    MIGRATION = "migration"
    SUBSIDY = "subsidy"
    DEPOSIT = "deposit"
    REWARD = "reward"
    BONUS = "bonus"
    BATCH = "batch"


class OpStatus(_OpenEnum):
    UNKNOWN = "unknown"
    APPLIED = "applied"
    FAILED = "failed"
    BACKTRACKED = "backtracked"
    SKIPPED = "skipped"

    @property
    def is_success(self) -> bool:
        return self is OpStatus.APPLIED


class VotingPeriodKind(_OpenEnum):
    UNKNOWN = "unknown"
    PROPOSAL = "proposal"
    EXPLORATION = "exploration"
    TESTING_VOTE = "testing_vote"
    TESTING = "testing"
    COOLDOWN = "cooldown"
    PROMOTION = "promotion"
    PROMOTION_VOTE = "promotion_vote"
    ADOPTION = "adoption"


class BigmapAction(_OpenEnum):
    UNKNOWN = "unknown"
    UPDATE = "update"
    REMOVE = "remove"
    ALLOC = "alloc"
    COPY = "copy"
