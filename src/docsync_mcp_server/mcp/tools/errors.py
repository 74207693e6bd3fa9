"""Error response builders and shared utilities for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention, plus
shared formatting utilities used across tool modules.
"""

from datetime import datetime
from typing import Any

import mcp.types as types

from ...errors import DocSyncError, RemoteError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (an ``errors.DocSyncError.kind`` value,
            ``validation_error`` or ``server_error``)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "docs/a.md not found", "Use doc_remote_list to see available files.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def text_result(
    text: str, structured: dict[str, Any] | None = None
) -> types.CallToolResult:
    """Successful tool result with text and optional structured content."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


# ---------------------------------------------------------------------------
# Shared formatting utilities
# ---------------------------------------------------------------------------


def format_timestamp(timestamp: Any) -> str:
    """Format timestamp for display (YYYY-MM-DD HH:MM)."""
    match timestamp:
        case datetime() as dt:
            return dt.strftime("%Y-%m-%d %H:%M")
        case None:
            return "-"
        case _:
            return str(timestamp)


# ---------------------------------------------------------------------------
# Corrective action messages per error kind
# ---------------------------------------------------------------------------

_ACTIONS: dict[str, str] = {
    "not_found": "Use doc_remote_list to see which files exist under the base path.",
    "auth_failure": "Check the credential: save a new token with config_set.",
    "rate_limited": "Wait for the rate limit window to reset, then retry.",
    "validation_fault": "The remote rejected the request fields; check the path and content.",
    "version_conflict": "Pull the latest version with doc_pull, then retry.",
    "remote_fault": "The remote service failed; retry later.",
    "storage_fault": "Check that the local data directory is writable.",
    "name_collision": "Choose a different name, or delete the existing document first.",
    "missing_version_token": "Pull the document first with doc_pull so its version is known.",
    "document_not_found": "Use doc_list to see cached documents, or doc_pull to fetch it.",
    "empty_content": "Save some content with doc_save before pushing.",
    "no_active_config": "Save a repository binding with config_set.",
    "sync_conflict": "Pull latest with doc_pull (on_conflict='accept_remote' or 'keep_local'), then push again.",
    "remote_changed_since_known": "Pull latest before deleting, or delete locally only with also_remote=false.",
    "sync_in_progress": "Wait for the running operation on this path to finish, then retry.",
}

_DEFAULT_ACTION = "Retry later."


def translate_sync_error(error: DocSyncError) -> types.CallToolResult:
    """Translate a ``DocSyncError`` to a structured error response.

    Remote client errors outside the known kinds fall back to the
    ``remote_fault`` action.
    """
    action = _ACTIONS.get(error.kind, _DEFAULT_ACTION)
    if isinstance(error, RemoteError) and error.kind == "remote_fault":
        if error.is_client_error:
            action = "The remote refused the request; check the repository binding."
    return build_error_response(error.kind, str(error), action)
