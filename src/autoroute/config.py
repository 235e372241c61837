"""Route table settings.

Read from ``AUTOROUTE_*`` environment variables (and an optional ``.env``),
but always constructed explicitly by whoever owns the route table.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DuplicatePolicy(str, Enum):
    """What to do when two routes claim the same server + verb + path."""

    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"
    ERROR = "error"


class RouteSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AUTOROUTE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    default_server: str = "http"

    # Render int path params as {id:\d+} in synthesized paths
    numeric_constraints: bool = False

    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST_WINS

    # optimize_memory() ceiling per cache
    max_cache_entries: int = 1000

    # Admin controllers
    admin_prefix: str = ""
    admin_middleware: list[str] = []

    lint_convention_mismatch: bool = True

    log_level: str = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("max_cache_entries")
    @classmethod
    def positive_ceiling(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_cache_entries must be >= 1")
        return v


def load_settings(**overrides: Any) -> RouteSettings:
    """Build settings from the environment, with keyword overrides on top."""
    return RouteSettings(**overrides)
