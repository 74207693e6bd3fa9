"""Repository binding tool handlers for MCP server.

``config_set`` validates a binding against the remote (by listing its base
path) before saving it as the single active configuration; ``config_get``
reports the active binding without its credential.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync
from ...sync.engine import SyncEngine
from ...validators import normalize_base_path
from .errors import format_timestamp, text_result
from .registry import ToolSpec

logger = logging.getLogger(__name__)


CONFIG_TOOLS = [
    types.Tool(
        name="config_get",
        description="Show the active repository binding (owner, repo, base path). The credential is never returned.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="config_set",
        description=(
            "Bind the server to a repository directory and make it the active "
            "configuration. The credential is checked by listing the base path."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "owner": {
                    "type": "string",
                    "description": "Repository owner (required)",
                },
                "repo": {
                    "type": "string",
                    "description": "Repository name (required)",
                },
                "base_path": {
                    "type": "string",
                    "default": "",
                    "description": "Directory inside the repository; empty for the root",
                },
                "token": {
                    "type": "string",
                    "description": "Access token with contents read/write scope (required)",
                },
                "verify": {
                    "type": "boolean",
                    "default": True,
                    "description": "List the base path before saving",
                },
            },
            "required": ["owner", "repo", "token"],
        },
    ),
]


async def _handle_get(engine: SyncEngine, args: dict) -> types.CallToolResult:
    config = await engine.active_config()
    text = (
        f"Active binding #{config.id}: {config.owner}/{config.repo}:"
        f"{config.base_path or '/'} (since {format_timestamp(config.created_at)})"
    )
    return text_result(
        text,
        config.model_dump(mode="json", exclude={"credential"}),
    )


async def _handle_set(engine: SyncEngine, args: dict) -> types.CallToolResult:
    """Handle config_set.

    Remote errors from the verification listing propagate to the registry,
    so nothing is saved when the credential is rejected.
    """
    owner = args.get("owner", "")
    repo = args.get("repo", "")
    base_path = args.get("base_path", "") or ""
    token = args.get("token", "")

    file_count = None
    if args.get("verify", True):
        file_count = await run_sync(
            engine.gateway.validate_credential,
            owner.strip(),
            repo.strip(),
            normalize_base_path(base_path),
            token.strip(),
        )

    config = await engine.save_config(owner, repo, base_path, token)
    text = f"Saved active binding {config.owner}/{config.repo}:{config.base_path or '/'}"
    if file_count is not None:
        text += f" ({file_count} files found)"
    structured = config.model_dump(mode="json", exclude={"credential"})
    structured["file_count"] = file_count
    return text_result(text, structured)


CONFIG_SPECS: list[ToolSpec] = [
    ToolSpec(tool=CONFIG_TOOLS[0], mutates=False, handler=_handle_get),
    ToolSpec(tool=CONFIG_TOOLS[1], mutates=True, handler=_handle_set),
]
