"""Tests for the local document tools (doc_list, doc_get, doc_search,
doc_create, doc_save, doc_rename, doc_delete).

Handlers run through ToolRegistry against a real SyncEngine backed by a
temporary SQLite cache and the in-memory FakeGateway.
"""

import mcp.types as types
import pytest

from docsync_mcp_server.errors import RemoteFault
from docsync_mcp_server.mcp.tools import ALL_SPECS, ToolRegistry


@pytest.fixture
def call(engine):
    registry = ToolRegistry(ALL_SPECS)

    async def _call(name, /, **arguments):
        return await registry.call_tool(name, arguments, engine)

    return _call


def _text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


async def _published(engine, gateway, path="docs/a.md", content="body"):
    gateway.seed(path, content)
    await engine.pull(path, on_conflict=lambda report: "keep_local")


class TestListAndGet:
    async def test_empty_cache(self, call):
        result = await call("doc_list")
        assert _text(result) == "No local documents."
        assert result.structuredContent == {"documents": []}

    async def test_get_returns_content(self, call, engine, gateway):
        await _published(engine, gateway)

        result = await call("doc_get", path="docs/a.md")

        assert not result.isError
        assert _text(result).startswith("docs/a.md [clean]")
        assert _text(result).endswith("\n\nbody")
        assert result.structuredContent["content"] == "body"

    async def test_get_missing(self, call):
        result = await call("doc_get", path="docs/none.md")
        assert result.isError
        assert "document_not_found" in _text(result)

    async def test_get_requires_path(self, call):
        result = await call("doc_get")
        assert "Error (validation_error): path is required" in _text(result)


async def test_search(call, engine):
    await engine.save_local("docs/a.md", "Meeting notes")
    await engine.save_local("docs/b.md", "groceries")

    result = await call("doc_search", query="MEETING")
    assert [d["path"] for d in result.structuredContent["documents"]] == ["docs/a.md"]

    result = await call("doc_search", query="absent")
    assert _text(result) == "No documents match 'absent'."


class TestCreateSaveRename:
    async def test_create_under_base_path(self, call):
        result = await call("doc_create", name="new.md")

        assert _text(result) == "Created local document 'docs/new.md' (unpublished)"
        assert result.structuredContent["status"] == "unsynced"

    async def test_create_collision(self, call):
        await call("doc_create", name="new.md")
        result = await call("doc_create", name="new.md")
        assert "Error (name_collision)" in _text(result)

    async def test_create_invalid_name(self, call):
        result = await call("doc_create", name="a/b.md")
        assert "Error (validation_error)" in _text(result)

    async def test_save_marks_dirty(self, call, engine, gateway):
        await _published(engine, gateway)

        result = await call("doc_save", path="docs/a.md", content="edited")

        assert "(6 chars, dirty)" in _text(result)
        assert gateway.remote_calls("put_file") == []

    async def test_save_requires_content(self, call):
        result = await call("doc_save", path="docs/a.md")
        assert "content is required" in _text(result)

    async def test_rename(self, call, engine):
        await engine.save_local("docs/a.md", "x")

        result = await call("doc_rename", path="docs/a.md", new_name="b.md")

        assert _text(result) == "Renamed 'docs/a.md' to 'docs/b.md'"
        assert await engine.status("docs/a.md") is None


class TestDelete:
    async def test_local_only(self, call, engine, gateway):
        await _published(engine, gateway)

        result = await call("doc_delete", path="docs/a.md")

        assert _text(result) == "Deleted local copy of 'docs/a.md'"
        assert "docs/a.md" in gateway.files

    async def test_nothing_to_delete(self, call):
        result = await call("doc_delete", path="docs/none.md")
        assert "nothing to delete" in _text(result)

    async def test_also_remote(self, call, engine, gateway):
        await _published(engine, gateway)

        result = await call("doc_delete", path="docs/a.md", also_remote=True)

        assert _text(result) == "Deleted 'docs/a.md' locally and remotely"
        assert gateway.files == {}
        assert gateway.messages == ["Delete docs/a.md"]

    async def test_remote_refusal_without_fallback(self, call, engine, gateway):
        await _published(engine, gateway)
        gateway.fail_next["delete_file"] = RemoteFault("Forbidden", 403)

        result = await call("doc_delete", path="docs/a.md", also_remote=True)

        assert result.isError
        assert "local_fallback=true" in _text(result)
        assert await engine.status("docs/a.md") is not None

    async def test_remote_refusal_with_fallback(self, call, engine, gateway):
        await _published(engine, gateway)
        gateway.fail_next["delete_file"] = RemoteFault("Forbidden", 403)

        result = await call(
            "doc_delete", path="docs/a.md", also_remote=True, local_fallback=True
        )

        assert not result.isError
        assert "deleted the local copy only" in _text(result)
        assert result.structuredContent["remote_error"] == "HTTP 403: Forbidden"
        assert await engine.status("docs/a.md") is None

    async def test_unpublished_remote_delete(self, call, engine):
        await engine.save_local("docs/a.md", "x")
        result = await call("doc_delete", path="docs/a.md", also_remote=True)
        assert "Error (missing_version_token)" in _text(result)
