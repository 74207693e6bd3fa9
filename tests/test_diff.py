"""Tests for the character-level diff engine."""

import random

import pytest

from docsync_mcp_server.sync.diff import diff
from docsync_mcp_server.sync.models import DiffOp


def apply_spans(spans):
    """Rebuild ``(local, remote)`` from a span list."""
    local = "".join(s.text for s in spans if s.op != DiffOp.INSERT)
    remote = "".join(s.text for s in spans if s.op != DiffOp.DELETE)
    return local, remote


def _ops(report):
    return [(s.op, s.text) for s in report.spans]


def test_identical_texts_have_no_differences():
    report = diff("hello", "hello")
    assert not report.has_differences
    assert _ops(report) == [(DiffOp.EQUAL, "hello")]


def test_both_empty():
    report = diff("", "")
    assert report.spans == []
    assert not report.has_differences


def test_appended_text_is_single_added_span():
    report = diff("hello", "hello world", path="docs/a.md")

    assert report.has_differences
    assert report.path == "docs/a.md"
    assert _ops(report) == [
        (DiffOp.EQUAL, "hello"),
        (DiffOp.INSERT, " world"),
    ]
    assert report.added == 6
    assert report.removed == 0
    assert (report.local_length, report.remote_length) == (5, 11)


def test_removed_text():
    report = diff("hello world", "hello")
    assert _ops(report) == [
        (DiffOp.EQUAL, "hello"),
        (DiffOp.DELETE, " world"),
    ]


def test_from_empty_and_to_empty():
    assert _ops(diff("", "abc")) == [(DiffOp.INSERT, "abc")]
    assert _ops(diff("abc", "")) == [(DiffOp.DELETE, "abc")]


def test_change_in_the_middle():
    report = diff("the cat sat", "the dog sat")

    assert report.spans[0].op == DiffOp.EQUAL
    assert report.spans[0].text == "the "
    assert report.spans[-1].text == " sat"
    assert report.added == 3
    assert report.removed == 3


def test_edit_script_is_minimal():
    # LCS("ABCABBA", "CBABAC") has length 4, so 3 deletions + 2 insertions.
    report = diff("ABCABBA", "CBABAC")
    assert report.added + report.removed == 5


def test_consecutive_operations_are_coalesced():
    report = diff("aaaa", "bbbb")
    ops = [s.op for s in report.spans]
    assert all(a != b for a, b in zip(ops, ops[1:]))


def test_unicode():
    report = diff("naïve café", "naïve cafés ☕")
    local, remote = apply_spans(report.spans)
    assert (local, remote) == ("naïve café", "naïve cafés ☕")


@pytest.mark.parametrize("seed", range(25))
def test_spans_rebuild_both_texts(seed):
    rng = random.Random(seed)
    alphabet = "ab c\n"
    a = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
    b = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))

    report = diff(a, b)

    assert apply_spans(report.spans) == (a, b)
    assert report.has_differences == (a != b)


def test_edit_cap_falls_back_to_replacement():
    local = "x" + "a" * 50 + "y"
    remote = "x" + "b" * 50 + "y"

    report = diff(local, remote, max_edits=10)

    assert _ops(report) == [
        (DiffOp.EQUAL, "x"),
        (DiffOp.DELETE, "a" * 50),
        (DiffOp.INSERT, "b" * 50),
        (DiffOp.EQUAL, "y"),
    ]
    assert apply_spans(report.spans) == (local, remote)


def test_large_similar_documents():
    base = "".join(f"line {i}\n" for i in range(2000))
    edited = base.replace("line 1000\n", "line one thousand\n")

    report = diff(base, edited)

    assert apply_spans(report.spans) == (base, edited)
    assert report.added + report.removed < 20
