"""MCP tool handlers for document sync operations.

This package contains MCP tool implementations that wrap the SyncEngine
with async handlers and structured error responses.
"""

from .config import CONFIG_SPECS, CONFIG_TOOLS
from .documents import DOCUMENT_SPECS, DOCUMENT_TOOLS
from .errors import build_error_response, translate_sync_error
from .registry import ToolRegistry, ToolSpec
from .sync import SYNC_SPECS, SYNC_TOOLS

ALL_SPECS: list[ToolSpec] = CONFIG_SPECS + DOCUMENT_SPECS + SYNC_SPECS

__all__ = [
    "build_error_response",
    "translate_sync_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "CONFIG_SPECS",
    "DOCUMENT_SPECS",
    "SYNC_SPECS",
    # Tool lists
    "CONFIG_TOOLS",
    "DOCUMENT_TOOLS",
    "SYNC_TOOLS",
]
