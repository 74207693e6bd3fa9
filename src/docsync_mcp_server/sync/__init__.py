"""Two-way document sync against a remote contents API.

Modules:

- ``engine``    -- ``SyncEngine``: pull, push, delete and rename with
  per-path exclusion and decision callbacks.
- ``diff``      -- character-level Myers diff producing ``ConflictReport``.
- ``models``    -- ``Document``, ``SyncConfig``, ``SyncStatus``, decisions
  and results.
- ``reporter``  -- human-readable and JSON formatting.

Usage example
-------------
::

    from docsync_mcp_server.config import load_config
    from docsync_mcp_server.core.gateway import RemoteGateway
    from docsync_mcp_server.store import ConfigStore, Database, LocalStore
    from docsync_mcp_server.sync import PullDecision, SyncEngine

    config = load_config()
    db = Database(config.database_path)
    engine = SyncEngine(RemoteGateway(config), LocalStore(db), ConfigStore(db))

    await engine.save_config("octo", "notes", "docs/", token)
    result = await engine.pull(
        "docs/a.md", on_conflict=lambda report: PullDecision.KEEP_LOCAL
    )
"""

from .diff import diff
from .engine import SyncEngine
from .models import (
    ConflictReport,
    DeleteResult,
    DiffOp,
    DiffSpan,
    Document,
    PullDecision,
    PullResult,
    PushDecision,
    PushResult,
    SyncConfig,
    SyncStatus,
)
from .reporter import render_conflict, result_to_json

__all__ = [
    "ConflictReport",
    "DeleteResult",
    "DiffOp",
    "DiffSpan",
    "Document",
    "PullDecision",
    "PullResult",
    "PushDecision",
    "PushResult",
    "SyncConfig",
    "SyncEngine",
    "SyncStatus",
    "diff",
    "render_conflict",
    "result_to_json",
]
