"""MCP tool handlers for remote synchronisation.

Defines the network-facing tools:

- ``doc_remote_list`` -- list files under the active base path.
- ``doc_compare`` -- preview the local/remote difference without writing.
- ``doc_pull`` / ``doc_pull_many`` -- bring remote copies into the cache.
- ``doc_push`` -- publish a cached document.
- ``doc_status`` -- sync state of one document.

An MCP call cannot stop midway to ask a human, so the agent supplies its
conflict decision up front in ``on_conflict``; the handler adapts it into
the engine's decision callback and records the report it was shown.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...sync.engine import SyncEngine
from ...sync.models import ConflictReport, PullDecision, PushDecision
from ...sync.reporter import (
    batch_to_json,
    format_conflict,
    render_conflict,
    result_to_json,
)
from .errors import build_error_response, text_result
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_PATH_PROPERTY = {
    "type": "string",
    "description": "Repository-relative document path, e.g. docs/a.md (required)",
}


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="doc_remote_list",
        description="List the files under the active repository base path.",
        annotations=types.ToolAnnotations(
            readOnlyHint=True, openWorldHint=True
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="doc_compare",
        description=(
            "Show the character-level difference between the cached copy and the "
            "remote copy of a document. Nothing is written."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True, openWorldHint=True
        ),
        inputSchema={
            "type": "object",
            "properties": {"path": _PATH_PROPERTY},
            "required": ["path"],
        },
    ),
    types.Tool(
        name="doc_pull",
        description=(
            "Fetch the remote copy of a document into the cache. If the cached "
            "content differs, on_conflict decides: accept_remote overwrites the "
            "cache, keep_local leaves it untouched."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": _PATH_PROPERTY,
                "on_conflict": {
                    "type": "string",
                    "enum": [d.value for d in PullDecision],
                    "default": PullDecision.KEEP_LOCAL.value,
                    "description": "Decision when cached and remote content differ",
                },
            },
            "required": ["path"],
        },
    ),
    types.Tool(
        name="doc_pull_many",
        description=(
            "Pull every remote file under the base path whose name is listed. "
            "Failures are reported per file."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False, openWorldHint=True
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "names": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "File names as shown by doc_remote_list (required)",
                },
                "on_conflict": {
                    "type": "string",
                    "enum": [d.value for d in PullDecision],
                    "default": PullDecision.KEEP_LOCAL.value,
                    "description": "Decision applied to every conflicting file",
                },
            },
            "required": ["names"],
        },
    ),
    types.Tool(
        name="doc_push",
        description=(
            "Publish a cached document (optionally saving new content first). "
            "Creates the remote file on first push. If the remote copy is longer "
            "than the local one, on_conflict decides: proceed or cancel."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": _PATH_PROPERTY,
                "content": {
                    "type": "string",
                    "description": "New body to save before pushing (optional)",
                },
                "on_conflict": {
                    "type": "string",
                    "enum": [d.value for d in PushDecision],
                    "default": PushDecision.CANCEL.value,
                    "description": "Decision when the remote copy is longer than the local one",
                },
                "message": {
                    "type": "string",
                    "description": "Commit message (default: 'Update <name>')",
                },
            },
            "required": ["path"],
        },
    ),
    types.Tool(
        name="doc_status",
        description="Show the sync state of a document: unsynced, clean, dirty, syncing or conflicted.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={
            "type": "object",
            "properties": {"path": _PATH_PROPERTY},
            "required": ["path"],
        },
    ),
]


def _require_path(args: dict[str, Any]) -> str:
    path = args.get("path")
    if not path:
        raise ValueError("path is required")
    return path


class _Recorder:
    """Conflict callback that answers with a fixed decision and keeps the report."""

    def __init__(self, decision: Any) -> None:
        self.decision = decision
        self.report: ConflictReport | None = None

    def __call__(self, report: ConflictReport) -> Any:
        self.report = report
        return self.decision


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_remote_list(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    entries = await engine.list_remote_documents()
    if not entries:
        return text_result("No files under the base path.", {"files": []})
    lines = [f"{e.name}  ({e.path})" for e in entries]
    return text_result(
        "\n".join(lines),
        {
            "files": [
                {"name": e.name, "path": e.path, "sha": e.version_token}
                for e in entries
            ]
        },
    )


async def _handle_compare(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle ``doc_compare``."""
    path = _require_path(args)
    report = await engine.compare(path)
    return text_result(
        format_conflict(report),
        {
            "path": path,
            "has_differences": report.has_differences,
            "added": report.added,
            "removed": report.removed,
            "preview": render_conflict(report),
        },
    )


async def _handle_pull(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle ``doc_pull``."""
    path = _require_path(args)
    recorder = _Recorder(
        PullDecision(args.get("on_conflict", PullDecision.KEEP_LOCAL.value))
    )
    result = await engine.pull(path, on_conflict=recorder)

    structured = result_to_json(result)
    if recorder.report is None:
        text = (
            f"Pulled '{path}' (sha {result.version_token})"
            if result.updated
            else f"'{path}' already matches the remote (sha {result.version_token})"
        )
        return text_result(text, structured)

    structured["preview"] = render_conflict(recorder.report)
    if result.updated:
        text = f"Conflict on '{path}': accepted the remote copy."
    else:
        text = (
            f"Conflict on '{path}': kept the local copy. The cached version is "
            "now behind the remote; a push will be rejected until you pull with "
            "on_conflict='accept_remote'."
        )
    return text_result(
        f"{text}\n\n{format_conflict(recorder.report)}", structured
    )


async def _handle_pull_many(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle ``doc_pull_many``."""
    names = args.get("names")
    if not names:
        return build_error_response(
            "validation_error",
            "names is required",
            "Provide the 'names' parameter; use doc_remote_list to see available files.",
        )
    decision = PullDecision(
        args.get("on_conflict", PullDecision.KEEP_LOCAL.value)
    )
    results = await engine.pull_many(names, on_conflict=lambda r: decision)
    structured = batch_to_json(results)

    counts = structured["counts"]
    lines = [
        f"Pulled {counts['total']} files: {counts['updated']} updated, "
        f"{counts['errors']} errors"
    ]
    for entry in structured["results"]:
        if "error" in entry:
            lines.append(f"  {entry['path']}: {entry['error']} ({entry['message']})")
        else:
            state = "updated" if entry["updated"] else "unchanged"
            if entry["conflicted"]:
                state += f", conflict -> {entry['decision']}"
            lines.append(f"  {entry['path']}: {state}")
    return text_result("\n".join(lines), structured)


async def _handle_push(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle ``doc_push``."""
    path = _require_path(args)
    recorder = _Recorder(
        PushDecision(args.get("on_conflict", PushDecision.CANCEL.value))
    )
    result = await engine.push(
        path,
        content=args.get("content"),
        on_conflict=recorder,
        message=args.get("message"),
    )
    structured = result_to_json(result)

    if result.cancelled and recorder.report is not None:
        structured["preview"] = render_conflict(recorder.report)
        return text_result(
            f"Push of '{path}' cancelled: the remote copy is longer than the "
            "local one and may hold changes you have not seen. Compare, then "
            "retry with on_conflict='proceed' or pull first.\n\n"
            f"{format_conflict(recorder.report)}",
            structured,
        )

    verb = "Created" if result.created else "Updated"
    return text_result(
        f"{verb} '{path}' remotely (sha {result.version_token})", structured
    )


async def _handle_status(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    path = _require_path(args)
    status = await engine.status(path)
    if status is None:
        return build_error_response(
            "document_not_found",
            f"No local document at '{path}'",
            "Use doc_list to see cached documents, or doc_pull to fetch it.",
        )
    return text_result(
        f"{path}: {status.value}", {"path": path, "status": status.value}
    )


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYNC_TOOLS[0], mutates=False, handler=_handle_remote_list),
    ToolSpec(tool=SYNC_TOOLS[1], mutates=False, handler=_handle_compare),
    ToolSpec(tool=SYNC_TOOLS[2], mutates=True, handler=_handle_pull),
    ToolSpec(tool=SYNC_TOOLS[3], mutates=True, handler=_handle_pull_many),
    ToolSpec(tool=SYNC_TOOLS[4], mutates=True, handler=_handle_push),
    ToolSpec(tool=SYNC_TOOLS[5], mutates=False, handler=_handle_status),
]
