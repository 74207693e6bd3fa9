"""Shared pytest fixtures for docsync-mcp-server tests."""

import hashlib

import pytest
from dotenv import load_dotenv

from docsync_mcp_server.config import Config
from docsync_mcp_server.core.gateway import ContentsEntry, RemoteFile
from docsync_mcp_server.errors import NotFound, RemoteError, VersionConflict
from docsync_mcp_server.store import ConfigStore, Database, LocalStore
from docsync_mcp_server.sync.engine import SyncEngine
from docsync_mcp_server.sync.models import SyncConfig

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live GitHub repository",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live GitHub repository"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


def blob_sha(content: str) -> str:
    """Git blob sha, as the contents API reports it."""
    data = content.encode("utf-8")
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()


class FakeGateway:
    """In-memory stand-in for RemoteGateway with GitHub's token semantics.

    ``fail_next[method] = error`` makes the next call to *method* raise
    *error*. Every call is recorded in ``calls`` as ``(method, path)``.
    """

    def __init__(self):
        self.files: dict[str, tuple[str, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_next: dict[str, RemoteError] = {}
        self.messages: list[str] = []

    def seed(self, path: str, content: str) -> str:
        sha = blob_sha(content)
        self.files[path] = (content, sha)
        return sha

    def _enter(self, method: str, path: str) -> None:
        self.calls.append((method, path))
        error = self.fail_next.pop(method, None)
        if error is not None:
            raise error

    def fetch_file(self, owner, repo, path, credential) -> RemoteFile:
        self._enter("fetch_file", path)
        if path not in self.files:
            raise NotFound("Not Found", 404)
        content, sha = self.files[path]
        return RemoteFile(
            path=path,
            name=path.rsplit("/", 1)[-1],
            content=content,
            version_token=sha,
        )

    def fetch_listing(self, owner, repo, path, credential) -> list[ContentsEntry]:
        self._enter("fetch_listing", path)
        prefix = path.strip("/")
        prefix = f"{prefix}/" if prefix else ""
        entries = []
        dirs = set()
        for file_path, (_, sha) in sorted(self.files.items()):
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            if "/" in rest:
                dirs.add(rest.split("/", 1)[0])
                continue
            entries.append(ContentsEntry(rest, file_path, "file", sha))
        for name in sorted(dirs):
            entries.append(ContentsEntry(name, f"{prefix}{name}", "dir"))
        return entries

    def put_file(
        self, owner, repo, path, credential, content, version_token="", message=None
    ) -> str:
        self._enter("put_file", path)
        self.messages.append(message or "")
        current = self.files.get(path)
        if current is not None and not version_token:
            raise VersionConflict(
                'Invalid request.\n\n"sha" wasn\'t supplied.', 422
            )
        if current is not None and current[1] != version_token:
            raise VersionConflict(f"{path} does not match {version_token}", 409)
        return self.seed(path, content)

    def delete_file(
        self, owner, repo, path, credential, version_token, message=None
    ) -> None:
        self._enter("delete_file", path)
        self.messages.append(message or "")
        if path not in self.files:
            raise NotFound("Not Found", 404)
        if self.files[path][1] != version_token:
            raise VersionConflict(f"{path} does not match {version_token}", 409)
        del self.files[path]

    def validate_credential(self, owner, repo, base_path, credential) -> int:
        entries = self.fetch_listing(owner, repo, base_path, credential)
        return sum(1 for e in entries if e.is_file)

    def remote_calls(self, method: str) -> list[str]:
        return [p for m, p in self.calls if m == method]


@pytest.fixture
def mock_config(tmp_path):
    """A valid Config pointing the cache at a temporary directory."""
    return Config(
        api_url="https://api.github.example",
        data_dir=str(tmp_path / "data"),
        insecure=False,
    )


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "documents.db")
    yield database
    database.close()


@pytest.fixture
def documents(db):
    return LocalStore(db)


@pytest.fixture
def configs(db):
    return ConfigStore(db)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def engine(gateway, documents, configs):
    """SyncEngine bound to octo/notes:docs/ over the fake gateway."""
    configs.save(
        SyncConfig(owner="octo", repo="notes", base_path="docs/", credential="t0ken")
    )
    return SyncEngine(gateway, documents, configs)


@pytest.fixture
def unbound_engine(gateway, documents, configs):
    """SyncEngine with no saved configuration."""
    return SyncEngine(gateway, documents, configs)
