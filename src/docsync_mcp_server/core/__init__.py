"""Remote gateway and async helpers shared by the engine and the MCP server."""

from .async_utils import PathLocks, maybe_await, run_sync
from .gateway import ContentsEntry, RemoteFile, RemoteGateway

__all__ = [
    "ContentsEntry",
    "PathLocks",
    "RemoteFile",
    "RemoteGateway",
    "maybe_await",
    "run_sync",
]
