"""Runtime settings for the resolver, overridable through ``HTSR_*`` env vars."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

_ENV_PREFIX = "HTSR_"


class ResolverSettings(BaseModel):
    """Tunable limits of the strategy cascade."""

    acceptance_threshold: float = Field(default=0.75, gt=0.0, le=1.0)
    code_columns: int = Field(default=3, ge=1)
    rate_lookahead_rows: int = Field(default=3, ge=0)
    parent_scan_rows: int = Field(default=50, ge=1)
    merge_lookback_rows: int = Field(default=5, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_env(cls) -> "ResolverSettings":
        """Build settings from the environment, keeping defaults for unset keys."""

        overrides: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()
        return cls(**overrides)
