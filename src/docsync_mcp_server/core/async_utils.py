"""Async utilities for bridging blocking HTTP and SQLite calls to the engine."""

import asyncio
import inspect
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        remote = await run_sync(gateway.fetch_file, binding, "docs/a.md")
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def maybe_await(value: Any) -> Any:
    """Return *value*, awaiting it first when it is awaitable.

    Lets decision callbacks be plain functions or coroutines.
    """
    if inspect.isawaitable(value):
        return await value
    return value


class PathLocks:
    """At most one in-flight operation per document path.

    A second ``acquire`` for a busy path fails immediately instead of
    queueing; different paths never block each other.
    """

    def __init__(self) -> None:
        self._busy: set[str] = set()

    def is_busy(self, path: str) -> bool:
        return path in self._busy

    def try_acquire(self, path: str) -> bool:
        if path in self._busy:
            return False
        self._busy.add(path)
        logger.debug("Acquired sync slot for %s", path)
        return True

    def release(self, path: str) -> None:
        self._busy.discard(path)
        logger.debug("Released sync slot for %s", path)
