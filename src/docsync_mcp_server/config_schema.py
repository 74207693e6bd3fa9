"""Unified configuration schema for docsync_mcp_server.

Defines Pydantic models for the YAML config structure with dedicated
sections for the remote repository, the local cache, and logging.
Includes an adapter to the runtime ``Config`` dataclass.

Usage:
    from docsync_mcp_server.config_schema import (
        UnifiedConfig, build_config, to_legacy_config,
    )

    raw = load_hierarchical_config()
    unified = build_config(raw)
    legacy = to_legacy_config(unified, cli_overrides={"api_url": "https://..."})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubConfig(BaseModel):
    """Remote contents API settings and optional repository binding.

    All fields are optional to support zero-config: env vars and the
    config tool can supply them at runtime instead.
    """

    api_url: str | None = Field(
        default=None, description="Contents API base URL"
    )
    owner: str | None = Field(default=None, description="Repository owner")
    repo: str | None = Field(default=None, description="Repository name")
    base_path: str | None = Field(
        default=None, description="Directory inside the repository"
    )
    token: str | None = Field(default=None, description="Access token")
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Read timeout for remote calls in seconds",
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Local cache settings."""

    data_dir: str = Field(
        default="data", description="Directory holding documents.db"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict:
        """Flatten the ``github`` and ``storage`` sections for ``load_config``."""
        flat = {
            k: v
            for k, v in self.github.model_dump().items()
            if v is not None
        }
        flat["data_dir"] = self.storage.data_dir
        return flat


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> Config dataclass
# ---------------------------------------------------------------------------


def to_legacy_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the runtime ``Config`` dataclass,
    applying CLI overrides on top.

    CLI overrides dict keys: api_url, data_dir, insecure, debug.

    Returns:
        ``Config`` instance (NOT validated; caller should run
        ``validate_config()`` separately if needed).
    """
    from .config import DEFAULT_API_URL, Config

    overrides = cli_overrides or {}

    return Config(
        api_url=overrides.get("api_url")
        or unified.github.api_url
        or DEFAULT_API_URL,
        data_dir=overrides.get("data_dir") or unified.storage.data_dir,
        timeout=unified.github.timeout,
        insecure=overrides.get("insecure", False)
        or unified.github.insecure,
        debug=overrides.get("debug", False),
        owner=unified.github.owner,
        repo=unified.github.repo,
        base_path=unified.github.base_path,
        token=unified.github.token,
    )
