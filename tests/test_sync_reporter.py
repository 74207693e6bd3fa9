"""Tests for sync reporter formatting functions.

Covers:
- render_conflict markers and truncation
- format_conflict header
- format_document_list / document_summary
- result_to_json and batch_to_json structure
"""

from __future__ import annotations

from datetime import datetime, timezone

from docsync_mcp_server.errors import RemoteFault
from docsync_mcp_server.sync.diff import diff
from docsync_mcp_server.sync.models import (
    DeleteResult,
    Document,
    PullDecision,
    PullResult,
    PushResult,
)
from docsync_mcp_server.sync.reporter import (
    batch_to_json,
    document_summary,
    format_conflict,
    format_document_list,
    render_conflict,
    result_to_json,
)


def test_render_marks_added_text():
    text = render_conflict(diff("hello", "hello world"))
    assert text == "hello\n+  world"


def test_render_marks_removed_and_added():
    text = render_conflict(diff("the cat sat", "the dog sat"))
    assert "\n- " in text
    assert "\n+ " in text
    assert text.startswith("the ")
    assert text.endswith(" sat")


def test_render_no_differences():
    assert render_conflict(diff("same", "same")) == "(no differences)"


def test_render_truncates_with_ellipsis():
    report = diff("", "x" * 1000)
    text = render_conflict(report, max_length=500)
    assert len(text) == 503
    assert text.endswith("...")


def test_render_without_limit():
    report = diff("", "x" * 1000)
    assert len(render_conflict(report, max_length=0)) == 1002


def test_format_conflict_header():
    text = format_conflict(diff("hello", "hello world", path="docs/a.md"))
    first = text.splitlines()[0]
    assert "docs/a.md" in first
    assert "local 5 chars" in first
    assert "+6/-0" in first


def _doc(path, content="", token="", synced=None):
    return Document(
        path=path,
        name=path.rsplit("/", 1)[-1],
        content=content,
        version_token=token,
        synced_content=synced,
        last_modified=datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc),
    )


def test_document_list():
    text = format_document_list(
        [_doc("docs/a.md", "x", "abc", "x"), _doc("docs/b.md", "y")]
    )
    lines = text.splitlines()
    assert lines[0] == "docs/a.md  [clean]  2026-01-02 03:04"
    assert lines[1].startswith("docs/b.md  [unsynced]")


def test_document_list_empty():
    assert format_document_list([]) == "No local documents."


def test_document_summary_omits_content():
    summary = document_summary(_doc("docs/a.md", "secret body", "abc", "old"))
    assert "content" not in summary
    assert summary["status"] == "dirty"
    assert summary["length"] == len("secret body")
    assert summary["created_at"] is None


def test_result_to_json():
    assert result_to_json(
        PullResult(
            path="docs/a.md",
            updated=False,
            conflicted=True,
            decision=PullDecision.KEEP_LOCAL,
            version_token="abc",
        )
    ) == {
        "path": "docs/a.md",
        "updated": False,
        "conflicted": True,
        "decision": "keep_local",
        "version_token": "abc",
    }
    assert result_to_json(PushResult(path="p", version_token="t"))["cancelled"] is False
    assert result_to_json(DeleteResult(path="p", local_deleted=True))["remote_error"] is None


def test_batch_to_json_counts():
    structured = batch_to_json(
        {
            "docs/a.md": PullResult(path="docs/a.md", updated=True, version_token="1"),
            "docs/b.md": PullResult(path="docs/b.md", updated=False, version_token="2"),
            "docs/c.md": RemoteFault("Server Error", 500),
        }
    )
    assert structured["counts"] == {"total": 3, "updated": 1, "errors": 1}
    assert structured["results"][2] == {
        "path": "docs/c.md",
        "error": "remote_fault",
        "message": "HTTP 500: Server Error",
    }
