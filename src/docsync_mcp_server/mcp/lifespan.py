"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config
from ..core.async_utils import run_sync
from ..core.gateway import RemoteGateway
from ..errors import DocSyncError
from ..store import ConfigStore, Database, LocalStore
from ..sync.engine import SyncEngine

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


async def _bootstrap_binding(engine: SyncEngine, config: Config) -> None:
    """Save the environment binding as active when the cache has none."""
    if await run_sync(engine.configs.get_active) is not None:
        return
    if not config.has_binding():
        _stderr_print(
            "  No repository binding yet; use the config_set tool or set GITHUB_OWNER, GITHUB_REPO, GITHUB_TOKEN."
        )
        return
    saved = await engine.save_config(
        config.owner, config.repo, config.base_path or "", config.token
    )
    logger.info("Bootstrapped sync config #%s from environment", saved.id)
    _stderr_print(
        f"  Repository binding from environment: {saved.owner}/{saved.repo}:{saved.base_path or '/'}"
    )


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Open the SQLite cache and build the SyncEngine
    - Save the environment binding as active if none is stored yet
    - Check the active binding against the remote; failure is only a
      warning because the cache stays usable offline

    On shutdown:
    - Close the database

    Args:
        config_overrides: Optional dict with config values from CLI (api_url, data_dir, insecure, debug)

    Yields:
        Dict with 'engine' and 'config' keys

    Raises:
        RuntimeError: If configuration is invalid or the cache cannot be opened.
    """
    logger.info("MCP server starting...")
    _stderr_print("DocSync MCP Server starting...")

    try:
        load_dotenv()

        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            raw = load_hierarchical_config()
            unified = build_config(raw)
            yaml_fallbacks = unified.fallbacks()
            sources.append(f"config file: {config_files[0]}")

        overrides = config_overrides or {}
        config = load_config(
            api_url=overrides.get("api_url"),
            data_dir=overrides.get("data_dir"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("API URL: %s", config.api_url)
        _stderr_print(f"  API URL: {config.api_url}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    try:
        db = Database(config.database_path)
    except DocSyncError as e:
        logger.error("Cannot open local cache: %s", e)
        _stderr_print(f"ERROR: Cannot open local cache: {e}")
        raise RuntimeError(f"Cannot open local cache: {e}") from e
    _stderr_print(f"  Local cache: {config.database_path}")

    engine = SyncEngine(RemoteGateway(config), LocalStore(db), ConfigStore(db))

    try:
        await _bootstrap_binding(engine, config)

        active = await run_sync(engine.configs.get_active)
        if active is not None:
            try:
                count = await run_sync(
                    engine.gateway.validate_credential,
                    active.owner,
                    active.repo,
                    active.base_path,
                    active.credential,
                )
                _stderr_print(f"  Remote reachable: {count} files under base path")
            except DocSyncError as e:
                logger.warning("Active binding check failed: %s", e)
                _stderr_print(
                    f"  WARNING: remote check failed ({e}); working offline."
                )
        _stderr_print("Server ready. Waiting for MCP client connection...")

        yield {"engine": engine, "config": config}
    finally:
        db.close()
        logger.info("MCP server shutting down")
        _stderr_print("DocSync MCP Server shutting down.")
