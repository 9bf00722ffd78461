from __future__ import annotations

import os
from dataclasses import dataclass

from tzdecode.micheline.value import OnError

DEFAULT_BASE_URL = "https://api.tzstats.com"
DEFAULT_LIMIT = 500


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for the explorer client."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    timeout_s: int = 20
    max_connections: int = 16
    default_limit: int = DEFAULT_LIMIT
    user_agent: str = "tzdecode"


@dataclass(frozen=True)
class DecodeOptions:
    """Per-decoder switches for contract data (not persisted)."""

    with_prim: bool = False  # keep primitive trees next to semantic values
    with_meta: bool = False  # attach provenance to big-map updates
    on_error: OnError = OnError.FAIL  # RENDER = lenient contract-value projection


def load_config() -> ClientConfig:
    """Load client configuration from environment variables."""
    base_url = os.getenv("TZSTATS_URL", DEFAULT_BASE_URL).strip().rstrip("/")
    api_key = os.getenv("TZSTATS_API_KEY") or None

    try:
        timeout_s = int(os.getenv("TZSTATS_TIMEOUT", "20"))
        max_connections = int(os.getenv("TZSTATS_MAX_CONNECTIONS", "16"))
    except ValueError as e:
        raise ValueError(f"Invalid numeric setting in environment: {e}") from e

    return ClientConfig(
        base_url=base_url,
        api_key=api_key,
        timeout_s=timeout_s,
        max_connections=max_connections,
    )
