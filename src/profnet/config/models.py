"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, profnet.toml only contains
overrides. A fresh deployment needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

# Hard ceiling for any graph walk, regardless of configuration.
MAX_HOPS_CEILING = 3


class GraphConfig(BaseModel):
    """[graph] section."""

    model_config = {"frozen": True}

    degree_threshold: int = Field(default=4, ge=0)
    reach_hops: int = Field(default=3, ge=1, le=MAX_HOPS_CEILING)
    max_traversal_hops: int = Field(default=3, ge=1, le=MAX_HOPS_CEILING)
    allow_rerequest: bool = True

    @model_validator(mode="after")
    def _reach_within_traversal(self) -> GraphConfig:
        if self.reach_hops > self.max_traversal_hops:
            msg = (
                f"reach_hops ({self.reach_hops}) cannot exceed "
                f"max_traversal_hops ({self.max_traversal_hops})"
            )
            raise ValueError(msg)
        return self


class MessagingConfig(BaseModel):
    """[messaging] section."""

    model_config = {"frozen": True}

    require_connection: bool = False
    max_content_length: int = Field(default=4000, ge=1)


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    filename: str = "profnet.db"
    busy_timeout: float = Field(default=5.0, gt=0)
    retry_on_busy: bool = True

