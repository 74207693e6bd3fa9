"""Sync engine: pull, push, delete and rename against the remote contents API.

The ``SyncEngine`` ties together the remote gateway, the local document
cache, the configuration store and the diff engine. It:

1. Resolves the active repository binding for every remote call.
2. Serialises operations per document path (a second request for a busy
   path is rejected with ``SyncInProgress``, never interleaved).
3. Detects conflicts (pull: local and remote bodies differ; push: remote
   body is longer than the local one) and suspends on a decision callback
   before writing anything to the cache.
4. Commits results to ``LocalStore`` only after the remote call and the
   decision have both succeeded.

Blocking gateway and SQLite calls run in worker threads via ``run_sync``.
Decision callbacks may be plain functions or coroutines.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Union

from ..core.async_utils import PathLocks, maybe_await, run_sync
from ..core.gateway import ContentsEntry, RemoteFile, RemoteGateway
from ..errors import (
    AuthFailure,
    DocSyncError,
    DocumentNotFound,
    EmptyContent,
    MissingVersionToken,
    NameCollision,
    NoActiveConfig,
    NotFound,
    RemoteChangedSinceKnown,
    RemoteError,
    SyncConflict,
    SyncInProgress,
    ValidationFault,
    VersionConflict,
)
from ..validators import (
    normalize_base_path,
    validate_binding,
    validate_document_name,
    validate_document_path,
)
from .diff import DEFAULT_MAX_EDITS, diff
from .models import (
    ConflictReport,
    DeleteResult,
    Document,
    PullDecision,
    PullResult,
    PushDecision,
    PushResult,
    SyncConfig,
    SyncStatus,
)

if TYPE_CHECKING:
    from ..store.configs import ConfigStore
    from ..store.documents import LocalStore

logger = logging.getLogger(__name__)

PullConflictCallback = Callable[
    [ConflictReport],
    Union[PullDecision, str, Awaitable[Union[PullDecision, str]]],
]
PushConflictCallback = Callable[
    [ConflictReport],
    Union[PushDecision, str, Awaitable[Union[PushDecision, str]]],
]
DeleteFallbackCallback = Callable[
    [RemoteError], Union[bool, Awaitable[bool]]
]


def _check_path(path: str) -> None:
    ok, reason = validate_document_path(path)
    if not ok:
        raise ValueError(reason)


class SyncEngine:
    """Orchestrate synchronisation of cached documents with one remote.

    Args:
        gateway: Remote contents API adapter.
        documents: Local document cache.
        configs: Repository binding store.
        max_edits: Edit-distance bound passed to the diff engine.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        documents: LocalStore,
        configs: ConfigStore,
        max_edits: int = DEFAULT_MAX_EDITS,
    ) -> None:
        self.gateway = gateway
        self.documents = documents
        self.configs = configs
        self.max_edits = max_edits
        self._locks = PathLocks()
        self._transient: dict[str, SyncStatus] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def save_config(
        self, owner: str, repo: str, base_path: str, credential: str
    ) -> SyncConfig:
        """Validate a binding and store it as the only active one."""
        ok, reason = validate_binding(owner, repo, base_path, credential)
        if not ok:
            raise ValueError(reason)
        config = SyncConfig(
            owner=owner.strip(),
            repo=repo.strip(),
            base_path=normalize_base_path(base_path),
            credential=credential.strip(),
        )
        return await run_sync(self.configs.save, config)

    async def active_config(self) -> SyncConfig:
        """Return the active binding.

        Raises:
            NoActiveConfig: If none has been saved.
        """
        config = await run_sync(self.configs.get_active)
        if config is None:
            raise NoActiveConfig()
        return config

    # ------------------------------------------------------------------
    # Per-path exclusion
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self, *paths: str) -> AsyncIterator[None]:
        acquired: list[str] = []
        try:
            for path in paths:
                if not self._locks.try_acquire(path):
                    logger.warning("Rejected concurrent operation on %s", path)
                    raise SyncInProgress(path)
                acquired.append(path)
                self._transient[path] = SyncStatus.SYNCING
            yield
        finally:
            for path in acquired:
                self._transient.pop(path, None)
                self._locks.release(path)

    async def status(self, path: str) -> SyncStatus | None:
        """Current state of *path*, or ``None`` if it is not cached."""
        if path in self._transient:
            return self._transient[path]
        doc = await run_sync(self.documents.get, path)
        return doc.local_status if doc is not None else None

    # ------------------------------------------------------------------
    # Local operations
    # ------------------------------------------------------------------

    async def list_local_documents(self) -> list[Document]:
        """All cached documents, most recently modified first."""
        return await run_sync(self.documents.get_all)

    async def search(self, query: str) -> list[Document]:
        return await run_sync(self.documents.search, query)

    async def get_document(self, path: str) -> Document:
        doc = await run_sync(self.documents.get, path)
        if doc is None:
            raise DocumentNotFound(path)
        return doc

    async def create_document(self, name: str) -> Document:
        """Create an empty, unpublished document under the active base path.

        Raises:
            NoActiveConfig: If no binding is active.
            NameCollision: If the path is already cached.
        """
        ok, reason = validate_document_name(name)
        if not ok:
            raise ValueError(reason)
        config = await self.active_config()
        path = f"{config.base_path}{name.strip()}"
        async with self._exclusive(path):
            if await run_sync(self.documents.exists, path):
                raise NameCollision(path)
            doc = await run_sync(self.documents.save, Document.new(path))
        logger.info("Created local document %s", path)
        return doc

    async def save_local(self, path: str, content: str) -> Document:
        """Record a local edit; the version token is left untouched.

        Raises:
            SyncInProgress: If another operation holds *path*.
        """
        _check_path(path)
        async with self._exclusive(path):
            return await self._write_local(path, content)

    async def _write_local(self, path: str, content: str) -> Document:
        # Caller holds the path slot.
        existing = await run_sync(self.documents.get, path)
        if existing is None:
            doc = Document.new(path, content)
        else:
            doc = existing.model_copy(update={"content": content})
        return await run_sync(self.documents.save, doc)

    async def rename(self, path: str, new_name: str) -> Document:
        """Move a cached document to a sibling path named *new_name*.

        Raises:
            DocumentNotFound: If *path* is not cached.
            NameCollision: If the target path is already cached.
        """
        _check_path(path)
        ok, reason = validate_document_name(new_name)
        if not ok:
            raise ValueError(reason)
        new_name = new_name.strip()
        parent, _, _ = path.rpartition("/")
        new_path = f"{parent}/{new_name}" if parent else new_name
        if new_path == path:
            return await self.get_document(path)

        async with self._exclusive(path, new_path):
            try:
                return await run_sync(
                    self.documents.move, path, new_path, new_name
                )
            except KeyError:
                raise DocumentNotFound(path) from None

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def pull(
        self, path: str, on_conflict: PullConflictCallback
    ) -> PullResult:
        """Bring the remote copy of *path* into the cache.

        When the cached body differs from the remote body the callback
        receives a ``ConflictReport``; the cache is written only if it
        answers ``accept_remote``. ``keep_local`` leaves the record
        untouched, including its now-stale token.

        Raises:
            NotFound, AuthFailure, RateLimited, RemoteFault: Remote read
                failed; nothing was written.
            SyncInProgress: Another operation holds *path*.
        """
        _check_path(path)
        async with self._exclusive(path):
            config = await self.active_config()
            local = await run_sync(self.documents.get, path)
            remote = await run_sync(
                self.gateway.fetch_file,
                config.owner,
                config.repo,
                path,
                config.credential,
            )

            if local is None or local.content == remote.content:
                return await self._accept_matching(path, local, remote)

            report = await run_sync(
                diff, local.content, remote.content, path, self.max_edits
            )
            self._transient[path] = SyncStatus.CONFLICTED
            logger.info(
                "Pull conflict on %s (+%d/-%d chars), awaiting decision",
                path,
                report.added,
                report.removed,
            )
            decision = PullDecision(await maybe_await(on_conflict(report)))

            if decision == PullDecision.KEEP_LOCAL:
                logger.info("Kept local copy of %s; pull abandoned", path)
                return PullResult(
                    path=path,
                    updated=False,
                    conflicted=True,
                    decision=decision,
                    version_token=local.version_token,
                )

            saved = await run_sync(
                self.documents.save, self._from_remote(remote)
            )
            logger.info("Accepted remote copy of %s", path)
            return PullResult(
                path=path,
                updated=True,
                conflicted=True,
                decision=decision,
                version_token=saved.version_token,
            )

    async def _accept_matching(
        self, path: str, local: Document | None, remote: RemoteFile
    ) -> PullResult:
        if local is None:
            saved = await run_sync(
                self.documents.save, self._from_remote(remote)
            )
            logger.info("Pulled new document %s", path)
            return PullResult(
                path=path, updated=True, version_token=saved.version_token
            )

        if (
            local.version_token != remote.version_token
            or local.synced_content != remote.content
        ):
            local = await run_sync(
                self.documents.save,
                local.model_copy(
                    update={
                        "version_token": remote.version_token,
                        "synced_content": remote.content,
                    }
                ),
            )
        logger.debug("%s already matches remote", path)
        return PullResult(
            path=path, updated=False, version_token=local.version_token
        )

    @staticmethod
    def _from_remote(remote: RemoteFile) -> Document:
        return Document(
            path=remote.path,
            name=remote.name,
            content=remote.content,
            version_token=remote.version_token,
            synced_content=remote.content,
        )

    async def list_remote_documents(self) -> list[ContentsEntry]:
        """File entries under the active base path."""
        config = await self.active_config()
        entries = await run_sync(
            self.gateway.fetch_listing,
            config.owner,
            config.repo,
            config.base_path,
            config.credential,
        )
        return [e for e in entries if e.is_file]

    async def compare(self, path: str) -> ConflictReport:
        """Diff the cached body of *path* against the remote; writes nothing.

        An uncached path is compared as an empty body.
        """
        _check_path(path)
        config = await self.active_config()
        local = await run_sync(self.documents.get, path)
        remote = await run_sync(
            self.gateway.fetch_file,
            config.owner,
            config.repo,
            path,
            config.credential,
        )
        local_content = local.content if local is not None else ""
        return await run_sync(
            diff, local_content, remote.content, path, self.max_edits
        )

    async def pull_many(
        self, names: Iterable[str], on_conflict: PullConflictCallback
    ) -> dict[str, PullResult | DocSyncError]:
        """Pull every remote file under the base path whose name is listed.

        Failures are recorded per path and do not stop the batch.
        """
        wanted = {n.strip() for n in names if n.strip()}
        entries = await self.list_remote_documents()
        results: dict[str, PullResult | DocSyncError] = {}
        for entry in entries:
            if entry.name not in wanted:
                continue
            wanted.discard(entry.name)
            try:
                results[entry.path] = await self.pull(entry.path, on_conflict)
            except DocSyncError as exc:
                logger.error("Error pulling %s: %s", entry.path, exc)
                results[entry.path] = exc
        for name in sorted(wanted):
            logger.warning("No remote file named %s under base path", name)
        return results

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push(
        self,
        path: str,
        content: str | None = None,
        on_conflict: PushConflictCallback | None = None,
        message: str | None = None,
    ) -> PushResult:
        """Publish the cached body of *path*.

        If *content* is given it is saved locally first. A remote body
        longer than the local one triggers the callback; without a
        callback the push is cancelled.

        Raises:
            DocumentNotFound: *path* is not cached.
            EmptyContent: The cached body is empty.
            SyncConflict: The remote token moved; pull first.
            AuthFailure, ValidationFault, RateLimited, RemoteFault
        """
        _check_path(path)
        if content == "":
            raise EmptyContent(f"Document '{path}' has no content to push")

        async with self._exclusive(path):
            if content is not None:
                await self._write_local(path, content)
            doc = await run_sync(self.documents.get, path)
            if doc is None:
                raise DocumentNotFound(path)
            if not doc.content:
                raise EmptyContent(f"Document '{path}' has no content to push")

            config = await self.active_config()
            try:
                remote = await run_sync(
                    self.gateway.fetch_file,
                    config.owner,
                    config.repo,
                    path,
                    config.credential,
                )
            except NotFound:
                remote = None

            token = doc.version_token if remote is not None else ""
            conflicted = False
            if remote is not None and len(remote.content) > len(doc.content):
                conflicted = True
                report = await run_sync(
                    diff, doc.content, remote.content, path, self.max_edits
                )
                self._transient[path] = SyncStatus.CONFLICTED
                logger.info(
                    "Remote copy of %s is %d chars longer, awaiting decision",
                    path,
                    len(remote.content) - len(doc.content),
                )
                if on_conflict is None:
                    decision = PushDecision.CANCEL
                else:
                    decision = PushDecision(await maybe_await(on_conflict(report)))
                if decision == PushDecision.CANCEL:
                    logger.info("Push of %s cancelled", path)
                    return PushResult(
                        path=path,
                        version_token=doc.version_token,
                        conflicted=True,
                        cancelled=True,
                    )
                self._transient[path] = SyncStatus.SYNCING

            try:
                new_token = await run_sync(
                    self.gateway.put_file,
                    config.owner,
                    config.repo,
                    path,
                    config.credential,
                    doc.content,
                    token,
                    message or f"Update {doc.name}",
                )
            except VersionConflict as exc:
                logger.warning("Push of %s rejected: %s", path, exc)
                raise SyncConflict(path, exc) from exc

            await run_sync(
                self.documents.save,
                doc.model_copy(
                    update={
                        "version_token": new_token,
                        "synced_content": doc.content,
                    }
                ),
            )
            logger.info(
                "%s %s (sha %s)",
                "Created" if not token else "Updated",
                path,
                new_token,
            )
            return PushResult(
                path=path,
                version_token=new_token,
                created=not token,
                conflicted=conflicted,
            )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_document(
        self,
        path: str,
        also_remote: bool = False,
        on_remote_failure: DeleteFallbackCallback | None = None,
    ) -> DeleteResult:
        """Remove a cached document, optionally deleting the remote file first.

        A remote client error other than conflict, auth or validation is
        handed to *on_remote_failure*; a truthy answer deletes the local
        copy anyway, leaving the remote to be reconciled by hand.

        Raises:
            MissingVersionToken: Remote delete requested without a token.
            RemoteChangedSinceKnown: The remote moved; nothing was deleted.
            AuthFailure, ValidationFault: Nothing was deleted.
            RemoteFault: Server-side or transport failure; nothing was deleted.
        """
        _check_path(path)
        async with self._exclusive(path):
            if not also_remote:
                removed = await run_sync(self.documents.delete, path)
                return DeleteResult(path=path, local_deleted=removed)

            doc = await run_sync(self.documents.get, path)
            if doc is None:
                raise DocumentNotFound(path)
            if not doc.version_token:
                raise MissingVersionToken(path)

            config = await self.active_config()
            try:
                await run_sync(
                    self.gateway.delete_file,
                    config.owner,
                    config.repo,
                    path,
                    config.credential,
                    doc.version_token,
                    f"Delete {path}",
                )
            except VersionConflict as exc:
                raise RemoteChangedSinceKnown(path, exc) from exc
            except (AuthFailure, ValidationFault):
                raise
            except RemoteError as exc:
                if not exc.is_client_error:
                    raise
                return await self._local_fallback(path, exc, on_remote_failure)

            await run_sync(self.documents.delete, path)
            logger.info("Deleted %s locally and remotely", path)
            return DeleteResult(path=path, local_deleted=True, remote_deleted=True)

    async def _local_fallback(
        self,
        path: str,
        exc: RemoteError,
        on_remote_failure: DeleteFallbackCallback | None,
    ) -> DeleteResult:
        logger.warning("Remote delete of %s failed: %s", path, exc)
        proceed = False
        if on_remote_failure is not None:
            proceed = bool(await maybe_await(on_remote_failure(exc)))
        if proceed:
            await run_sync(self.documents.delete, path)
            logger.warning(
                "Deleted %s locally only; remote copy needs manual cleanup",
                path,
            )
        return DeleteResult(
            path=path,
            local_deleted=proceed,
            remote_deleted=False,
            remote_error=str(exc),
        )
