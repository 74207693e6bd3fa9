"""Pydantic models for the local document cache and the sync engine.

Defines the core data contracts used across all sync modules:

- ``Document``: A locally cached document keyed by repository path.
- ``SyncConfig``: A repository binding (owner, repo, base path, credential).
- ``SyncStatus``: Per-document synchronisation state.
- ``DiffOp`` / ``DiffSpan`` / ``ConflictReport``: Character-level diff
  presented when a decision is required.
- ``PullDecision`` / ``PushDecision``: Answers to conflict callbacks.
- ``PullResult`` / ``PushResult`` / ``DeleteResult``: Operation outcomes.

All models are frozen (immutable); stores return fresh copies.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    """Synchronisation state of one cached document."""

    UNSYNCED = "unsynced"
    CLEAN = "clean"
    DIRTY = "dirty"
    SYNCING = "syncing"
    CONFLICTED = "conflicted"


class Document(BaseModel):
    """A locally cached document.

    Attributes:
        path: Repository-relative path, unique across the cache.
        name: Display name (last path segment).
        content: Current local body.
        version_token: Remote blob sha from the last successful pull or
            push. Empty means the document was never published.
        synced_content: Body last exchanged with the remote, or ``None``
            when unknown.
        last_modified: Set by the store on every save.
        created_at: Set by the store on first save and preserved after.
    """

    path: str
    name: str
    content: str = ""
    version_token: str = ""
    synced_content: str | None = None
    last_modified: datetime | None = None
    created_at: datetime | None = None

    model_config = {"frozen": True}

    @classmethod
    def new(cls, path: str, content: str = "") -> Document:
        """Build an unpublished document whose name is derived from *path*."""
        return cls(path=path, name=name_from_path(path), content=content)

    @property
    def local_status(self) -> SyncStatus:
        """State derived from the record alone (ignores in-flight operations)."""
        if not self.version_token:
            return SyncStatus.UNSYNCED
        if (
            self.synced_content is not None
            and self.content != self.synced_content
        ):
            return SyncStatus.DIRTY
        return SyncStatus.CLEAN


class SyncConfig(BaseModel):
    """Binding to one remote repository directory.

    Attributes:
        id: Store-assigned row id (``None`` before the first save).
        owner: Repository owner (user or organisation).
        repo: Repository name.
        base_path: Directory inside the repository, ``""`` for the root,
            otherwise ending in ``/``.
        credential: Access token sent with every request.
        is_active: Whether this binding is the active one.
        created_at: Set by the store on insert.
    """

    id: int | None = None
    owner: str
    repo: str
    base_path: str = ""
    credential: str = Field(repr=False)
    is_active: bool = False
    created_at: datetime | None = None

    model_config = {"frozen": True}


class DiffOp(str, Enum):
    EQUAL = "unchanged"
    INSERT = "added"
    DELETE = "removed"


class DiffSpan(BaseModel):
    """A run of consecutive characters sharing the same edit operation."""

    op: DiffOp
    text: str

    model_config = {"frozen": True}


class ConflictReport(BaseModel):
    """Difference between the local body and the remote body.

    Spans read from the local text to the remote text: ``added`` spans
    exist only remotely, ``removed`` spans only locally.
    """

    path: str = ""
    spans: list[DiffSpan] = []
    local_length: int = 0
    remote_length: int = 0

    model_config = {"frozen": True}

    @property
    def has_differences(self) -> bool:
        return any(span.op != DiffOp.EQUAL for span in self.spans)

    @property
    def added(self) -> int:
        """Number of characters present only in the remote body."""
        return sum(len(s.text) for s in self.spans if s.op == DiffOp.INSERT)

    @property
    def removed(self) -> int:
        """Number of characters present only in the local body."""
        return sum(len(s.text) for s in self.spans if s.op == DiffOp.DELETE)


class PullDecision(str, Enum):
    ACCEPT_REMOTE = "accept_remote"
    KEEP_LOCAL = "keep_local"


class PushDecision(str, Enum):
    PROCEED = "proceed"
    CANCEL = "cancel"


class PullResult(BaseModel):
    """Outcome of ``SyncEngine.pull``.

    Attributes:
        path: Document path.
        updated: True when LocalStore was written.
        conflicted: True when the conflict callback was consulted.
        decision: The callback's answer, if consulted.
        version_token: Token held locally after the call.
    """

    path: str
    updated: bool
    conflicted: bool = False
    decision: PullDecision | None = None
    version_token: str = ""

    model_config = {"frozen": True}


class PushResult(BaseModel):
    """Outcome of ``SyncEngine.push``.

    ``cancelled`` is True when the size-heuristic callback answered
    ``cancel``; no remote mutation happened and ``version_token`` is the
    unchanged local token.
    """

    path: str
    version_token: str
    created: bool = False
    conflicted: bool = False
    cancelled: bool = False

    model_config = {"frozen": True}


class DeleteResult(BaseModel):
    """Outcome of ``SyncEngine.delete_document``.

    ``remote_error`` is set when the remote delete failed with a client
    error and the local-only fallback was taken (or declined).
    """

    path: str
    local_deleted: bool
    remote_deleted: bool = False
    remote_error: str | None = None

    model_config = {"frozen": True}


def name_from_path(path: str) -> str:
    """Return the last segment of *path*."""
    return path.rstrip("/").rsplit("/", 1)[-1]
