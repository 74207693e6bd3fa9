"""Character-level diff used to present conflicts.

Implements Myers' O(ND) shortest-edit-script algorithm over characters
after trimming the common prefix and suffix. Consecutive operations of the
same kind are coalesced into ``DiffSpan`` runs.

Key design choices:

* The script reads from the local text to the remote text: ``added``
  spans exist only remotely, ``removed`` spans only locally.
* When the two middles differ by more than ``max_edits`` operations the
  search stops and the middles are reported as one removed span followed
  by one added span. The report stays correct (applying it yields the
  remote text) but is no longer minimal.
* Truncation for display lives in ``reporter``; ``diff`` always returns
  the full report.
"""

from __future__ import annotations

import logging

from .models import ConflictReport, DiffOp, DiffSpan

logger = logging.getLogger(__name__)

DEFAULT_MAX_EDITS = 2000


def diff(
    local: str,
    remote: str,
    path: str = "",
    max_edits: int = DEFAULT_MAX_EDITS,
) -> ConflictReport:
    """Compute the character-level difference between two bodies.

    Args:
        local: The locally cached body.
        remote: The body currently held by the remote.
        path: Document path recorded on the report.
        max_edits: Edit-distance bound for the minimal search.

    Returns:
        A ``ConflictReport``; ``has_differences`` is False iff the bodies
        are identical.
    """
    prefix = _common_prefix(local, remote)
    suffix = _common_suffix(local[prefix:], remote[prefix:])

    local_mid = local[prefix : len(local) - suffix]
    remote_mid = remote[prefix : len(remote) - suffix]

    ops: list[tuple[DiffOp, str]] = []
    if prefix:
        ops.append((DiffOp.EQUAL, local[:prefix]))
    ops.extend(_edit_script(local_mid, remote_mid, max_edits))
    if suffix:
        ops.append((DiffOp.EQUAL, local[len(local) - suffix :]))

    return ConflictReport(
        path=path,
        spans=_coalesce(ops),
        local_length=len(local),
        remote_length=len(remote),
    )


def _common_prefix(a: str, b: str) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def _common_suffix(a: str, b: str) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[-1 - i] == b[-1 - i]:
        i += 1
    return i


def _edit_script(
    a: str, b: str, max_edits: int
) -> list[tuple[DiffOp, str]]:
    if not a and not b:
        return []
    if not a:
        return [(DiffOp.INSERT, b)]
    if not b:
        return [(DiffOp.DELETE, a)]

    trace = _myers_trace(a, b, max_edits)
    if trace is None:
        logger.debug(
            "Edit distance above %d, reporting coarse replacement", max_edits
        )
        return [(DiffOp.DELETE, a), (DiffOp.INSERT, b)]
    return _backtrack(trace, a, b)


def _myers_trace(a: str, b: str, max_edits: int) -> list[dict[int, int]] | None:
    """Forward pass; returns the furthest-reaching frontier before each step."""
    n, m = len(a), len(b)
    v: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []
    for d in range(min(n + m, max_edits) + 1):
        trace.append(dict(v))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[k - 1] < v[k + 1]):
                x = v[k + 1]
            else:
                x = v[k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[k] = x
            if x >= n and y >= m:
                return trace
    return None


def _backtrack(
    trace: list[dict[int, int]], a: str, b: str
) -> list[tuple[DiffOp, str]]:
    x, y = len(a), len(b)
    reversed_ops: list[tuple[DiffOp, str]] = []
    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y
        if k == -d or (k != d and v.get(k - 1, -1) < v.get(k + 1, -1)):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = v[prev_k]
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            reversed_ops.append((DiffOp.EQUAL, a[x - 1]))
            x -= 1
            y -= 1
        if d > 0:
            if x == prev_x:
                reversed_ops.append((DiffOp.INSERT, b[y - 1]))
            else:
                reversed_ops.append((DiffOp.DELETE, a[x - 1]))
        x, y = prev_x, prev_y

    reversed_ops.reverse()
    return reversed_ops


def _coalesce(ops: list[tuple[DiffOp, str]]) -> list[DiffSpan]:
    spans: list[DiffSpan] = []
    run_op: DiffOp | None = None
    run: list[str] = []
    for op, text in ops:
        if op != run_op and run:
            spans.append(DiffSpan(op=run_op, text="".join(run)))
            run = []
        run_op = op
        run.append(text)
    if run:
        spans.append(DiffSpan(op=run_op, text="".join(run)))
    return spans
