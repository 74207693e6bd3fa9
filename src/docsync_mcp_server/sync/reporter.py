"""Report formatting for sync results.

Provides human-readable and machine-readable output:

- ``render_conflict`` -- bounded preview of a ``ConflictReport``.
- ``format_document_list`` -- one line per cached document.
- ``result_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .models import DiffOp, PullResult

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .models import ConflictReport, Document
    from ..errors import DocSyncError

DEFAULT_PREVIEW_LENGTH = 500

_MARKERS = {
    DiffOp.INSERT: "\n+ ",
    DiffOp.DELETE: "\n- ",
}


# ------------------------------------------------------------------
# Conflict preview
# ------------------------------------------------------------------


def render_conflict(
    report: ConflictReport, max_length: int = DEFAULT_PREVIEW_LENGTH
) -> str:
    """Concatenate spans with ``+``/``-`` markers on changed runs.

    Unchanged text is emitted as-is; added and removed runs start on a new
    line prefixed with ``+ `` or ``- ``. The result is cut to *max_length*
    characters and suffixed with ``...`` when longer.

    Args:
        report: The full report returned by ``diff``.
        max_length: Preview bound; ``0`` disables truncation.

    Returns:
        Preview text, or ``"(no differences)"``.
    """
    if not report.has_differences:
        return "(no differences)"

    parts: list[str] = []
    for span in report.spans:
        marker = _MARKERS.get(span.op)
        if marker is None:
            parts.append(span.text)
        else:
            parts.append(f"{marker}{span.text}\n")
    text = "".join(parts).strip("\n")

    if max_length and len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def format_conflict(
    report: ConflictReport, max_length: int = DEFAULT_PREVIEW_LENGTH
) -> str:
    """Header line plus ``render_conflict`` preview."""
    header = (
        f"Conflict: {report.path or '(unnamed)'} "
        f"(local {report.local_length} chars, remote "
        f"{report.remote_length} chars; +{report.added}/-{report.removed})"
    )
    return f"{header}\n\n{render_conflict(report, max_length)}"


# ------------------------------------------------------------------
# Document listings
# ------------------------------------------------------------------


def format_document_list(docs: list[Document]) -> str:
    if not docs:
        return "No local documents."
    lines = []
    for doc in docs:
        stamp = (
            doc.last_modified.strftime("%Y-%m-%d %H:%M")
            if doc.last_modified
            else "-"
        )
        lines.append(
            f"{doc.path}  [{doc.local_status.value}]  {stamp}"
        )
    return "\n".join(lines)


def document_summary(doc: Document) -> dict[str, Any]:
    """Summary dict for a document; content is omitted."""
    return {
        "path": doc.path,
        "name": doc.name,
        "status": doc.local_status.value,
        "version_token": doc.version_token,
        "length": len(doc.content),
        "last_modified": (
            doc.last_modified.isoformat() if doc.last_modified else None
        ),
        "created_at": doc.created_at.isoformat() if doc.created_at else None,
    }


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def result_to_json(result: BaseModel) -> dict[str, Any]:
    """Convert a Pull/Push/Delete result to a JSON-safe dict."""
    return result.model_dump(mode="json")


def batch_to_json(
    results: dict[str, PullResult | DocSyncError],
) -> dict[str, Any]:
    """Per-path outcomes of ``pull_many`` with counts.

    Suitable for MCP ``structuredContent`` output.
    """
    entries = []
    updated = errors = 0
    for path, outcome in results.items():
        if isinstance(outcome, PullResult):
            updated += int(outcome.updated)
            entries.append(result_to_json(outcome))
        else:
            errors += 1
            entries.append(
                {"path": path, "error": outcome.kind, "message": str(outcome)}
            )
    return {
        "counts": {
            "total": len(results),
            "updated": updated,
            "errors": errors,
        },
        "results": entries,
    }
