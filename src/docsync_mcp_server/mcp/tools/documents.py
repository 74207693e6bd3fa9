"""Local document tool handlers for MCP server.

This module implements cache operations that never touch the network:
list, get, search, create, save, rename and delete (local or mirrored).
Engine errors propagate to ``ToolRegistry.call_tool`` for translation.
"""

import logging

import mcp.types as types

from ...sync.engine import SyncEngine
from ...sync.reporter import document_summary, format_document_list, result_to_json
from .errors import build_error_response, format_timestamp, text_result
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_PATH_PROPERTY = {
    "type": "string",
    "description": "Repository-relative document path, e.g. docs/a.md (required)",
}


DOCUMENT_TOOLS = [
    types.Tool(
        name="doc_list",
        description="List locally cached documents, most recently modified first, with their sync status.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="doc_get",
        description="Return the cached content and sync status of one document.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={
            "type": "object",
            "properties": {"path": _PATH_PROPERTY},
            "required": ["path"],
        },
    ),
    types.Tool(
        name="doc_search",
        description="Case-insensitive substring search over cached document names and content.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Text to search for (required)",
                }
            },
            "required": ["query"],
        },
    ),
    types.Tool(
        name="doc_create",
        description="Create an empty, unpublished document under the active base path. Fails if the path is already cached.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "File name, e.g. notes.md (required)",
                }
            },
            "required": ["name"],
        },
    ),
    types.Tool(
        name="doc_save",
        description="Save new content for a document in the local cache. Does not publish; use doc_push for that.",
        inputSchema={
            "type": "object",
            "properties": {
                "path": _PATH_PROPERTY,
                "content": {
                    "type": "string",
                    "description": "Full document body (required)",
                },
            },
            "required": ["path", "content"],
        },
    ),
    types.Tool(
        name="doc_rename",
        description="Rename a cached document within its directory. The remote file is not renamed.",
        inputSchema={
            "type": "object",
            "properties": {
                "path": _PATH_PROPERTY,
                "new_name": {
                    "type": "string",
                    "description": "New file name without directories (required)",
                },
            },
            "required": ["path", "new_name"],
        },
    ),
    types.Tool(
        name="doc_delete",
        description=(
            "Delete a cached document, optionally deleting the remote file first. "
            "Remote deletion requires a known version (pull first)."
        ),
        annotations=types.ToolAnnotations(destructiveHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "path": _PATH_PROPERTY,
                "also_remote": {
                    "type": "boolean",
                    "default": False,
                    "description": "Also delete the file in the remote repository",
                },
                "local_fallback": {
                    "type": "boolean",
                    "default": False,
                    "description": (
                        "If the remote refuses the delete with a client error other than "
                        "conflict, auth or validation, delete the local copy anyway"
                    ),
                },
            },
            "required": ["path"],
        },
    ),
]


async def _handle_list(engine: SyncEngine, args: dict) -> types.CallToolResult:
    docs = await engine.list_local_documents()
    return text_result(
        format_document_list(docs),
        {"documents": [document_summary(d) for d in docs]},
    )


async def _handle_get(engine: SyncEngine, args: dict) -> types.CallToolResult:
    """Handle doc_get."""
    path = args.get("path")
    if not path:
        return build_error_response(
            "validation_error", "path is required", "Provide path parameter."
        )
    doc = await engine.get_document(path)
    status = await engine.status(path)
    header = (
        f"{doc.path} [{status.value if status else 'unknown'}] "
        f"modified {format_timestamp(doc.last_modified)}"
    )
    summary = document_summary(doc)
    summary["content"] = doc.content
    return text_result(f"{header}\n\n{doc.content}", summary)


async def _handle_search(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    query = args.get("query")
    if not query:
        return build_error_response(
            "validation_error", "query is required", "Provide query parameter."
        )
    docs = await engine.search(query)
    if not docs:
        return text_result(
            f"No documents match '{query}'.", {"documents": []}
        )
    return text_result(
        format_document_list(docs),
        {"documents": [document_summary(d) for d in docs]},
    )


async def _handle_create(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle doc_create."""
    name = args.get("name")
    if not name:
        return build_error_response(
            "validation_error", "name is required", "Provide name parameter."
        )
    doc = await engine.create_document(name)
    return text_result(
        f"Created local document '{doc.path}' (unpublished)",
        document_summary(doc),
    )


async def _handle_save(engine: SyncEngine, args: dict) -> types.CallToolResult:
    """Handle doc_save."""
    path = args.get("path")
    content = args.get("content")
    if not path:
        return build_error_response(
            "validation_error", "path is required", "Provide path parameter."
        )
    if content is None:
        return build_error_response(
            "validation_error",
            "content is required",
            "Provide content parameter.",
        )
    doc = await engine.save_local(path, content)
    return text_result(
        f"Saved '{doc.path}' locally ({len(doc.content)} chars, "
        f"{doc.local_status.value})",
        document_summary(doc),
    )


async def _handle_rename(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle doc_rename."""
    path = args.get("path")
    new_name = args.get("new_name")
    if not path or not new_name:
        return build_error_response(
            "validation_error",
            "path and new_name are required",
            "Provide path and new_name parameters.",
        )
    doc = await engine.rename(path, new_name)
    return text_result(
        f"Renamed '{path}' to '{doc.path}'", document_summary(doc)
    )


async def _handle_delete(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle doc_delete.

    ``local_fallback`` is the agent's up-front answer to the question the
    engine asks when the remote refuses the delete with a generic 4xx.
    """
    path = args.get("path")
    if not path:
        return build_error_response(
            "validation_error", "path is required", "Provide path parameter."
        )
    also_remote = bool(args.get("also_remote", False))
    local_fallback = bool(args.get("local_fallback", False))

    result = await engine.delete_document(
        path,
        also_remote=also_remote,
        on_remote_failure=lambda error: local_fallback,
    )

    if result.remote_error is not None:
        if result.local_deleted:
            text = (
                f"Remote delete of '{path}' failed ({result.remote_error}); "
                "deleted the local copy only. The remote file must be cleaned up manually."
            )
        else:
            return build_error_response(
                "remote_fault",
                result.remote_error,
                "Retry, or call doc_delete with local_fallback=true to delete the local copy only.",
            )
    elif result.remote_deleted:
        text = f"Deleted '{path}' locally and remotely"
    elif result.local_deleted:
        text = f"Deleted local copy of '{path}'"
    else:
        text = f"No local document at '{path}'; nothing to delete"
    return text_result(text, result_to_json(result))


DOCUMENT_SPECS: list[ToolSpec] = [
    ToolSpec(tool=DOCUMENT_TOOLS[0], mutates=False, handler=_handle_list),
    ToolSpec(tool=DOCUMENT_TOOLS[1], mutates=False, handler=_handle_get),
    ToolSpec(tool=DOCUMENT_TOOLS[2], mutates=False, handler=_handle_search),
    ToolSpec(tool=DOCUMENT_TOOLS[3], mutates=True, handler=_handle_create),
    ToolSpec(tool=DOCUMENT_TOOLS[4], mutates=True, handler=_handle_save),
    ToolSpec(tool=DOCUMENT_TOOLS[5], mutates=True, handler=_handle_rename),
    ToolSpec(tool=DOCUMENT_TOOLS[6], mutates=True, handler=_handle_delete),
]
