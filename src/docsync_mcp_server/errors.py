"""Typed error taxonomy shared by the gateway, the stores and the sync engine.

Every failure the core can report is a ``DocSyncError`` subclass with a
stable ``kind`` string, so collaborators (the MCP tool layer, a UI) can
render an actionable message without parsing exception text.

Remote errors carry the HTTP ``status`` (``None`` for transport failures)
and the server-supplied ``message``.
"""

from __future__ import annotations


class DocSyncError(Exception):
    """Base class for all recoverable doc-sync failures."""

    kind = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Remote errors (raised by RemoteGateway)
# ---------------------------------------------------------------------------


class RemoteError(DocSyncError):
    """A non-success answer (or no answer) from the remote contents API."""

    kind = "remote_error"

    def __init__(
        self, message: str = "", status: int | None = None
    ) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_client_error(self) -> bool:
        """True for 4xx responses."""
        return self.status is not None and 400 <= self.status < 500

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class NotFound(RemoteError):
    kind = "not_found"


class AuthFailure(RemoteError):
    kind = "auth_failure"


class RateLimited(RemoteError):
    kind = "rate_limited"


class ValidationFault(RemoteError):
    kind = "validation_fault"


class VersionConflict(RemoteError):
    kind = "version_conflict"


class RemoteFault(RemoteError):
    kind = "remote_fault"


# ---------------------------------------------------------------------------
# Local errors
# ---------------------------------------------------------------------------


class StorageFault(DocSyncError):
    """The local medium (SQLite) failed."""

    kind = "storage_fault"


class NameCollision(DocSyncError):
    """The target path already holds a cached document."""

    kind = "name_collision"

    def __init__(self, path: str) -> None:
        super().__init__(f"A document already exists at '{path}'")
        self.path = path


class MissingVersionToken(DocSyncError):
    """A remote delete was requested for a document never pulled or pushed."""

    kind = "missing_version_token"

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Document '{path}' has no known remote version token"
        )
        self.path = path


class DocumentNotFound(DocSyncError):
    """No cached document exists at the requested path."""

    kind = "document_not_found"

    def __init__(self, path: str) -> None:
        super().__init__(f"No local document at '{path}'")
        self.path = path


class EmptyContent(DocSyncError):
    kind = "empty_content"


class NoActiveConfig(DocSyncError):
    kind = "no_active_config"

    def __init__(self) -> None:
        super().__init__("No active sync configuration has been saved")


# ---------------------------------------------------------------------------
# Engine outcomes
# ---------------------------------------------------------------------------


class SyncConflict(VersionConflict):
    """Push rejected because the remote moved past the local token.

    The caller is expected to pull before pushing again; the engine never
    merges on its own.
    """

    kind = "sync_conflict"

    def __init__(self, path: str, cause: VersionConflict) -> None:
        super().__init__(
            f"Remote copy of '{path}' changed since it was last synced",
            cause.status,
        )
        self.path = path
        self.cause = cause


class RemoteChangedSinceKnown(VersionConflict):
    """Remote delete rejected with a version conflict (HTTP 409 class)."""

    kind = "remote_changed_since_known"

    def __init__(self, path: str, cause: VersionConflict) -> None:
        super().__init__(
            f"Remote copy of '{path}' changed since it was last synced",
            cause.status,
        )
        self.path = path
        self.cause = cause


class SyncInProgress(DocSyncError):
    """Another pull/push/delete is already running for this path."""

    kind = "sync_in_progress"

    def __init__(self, path: str) -> None:
        super().__init__(
            f"A synchronisation of '{path}' is already in progress"
        )
        self.path = path
