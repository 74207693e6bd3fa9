"""Tests for ToolSpec and ToolRegistry.

Covers:
- ToolSpec creation and immutability
- ToolRegistry read-only filtering
- ToolRegistry list_tools, tool_count, call_tool
- call_tool error translation
"""

import asyncio
import unittest
from unittest.mock import MagicMock

import mcp.types as types

from docsync_mcp_server.errors import NameCollision, RemoteFault
from docsync_mcp_server.mcp.tools import ALL_SPECS
from docsync_mcp_server.mcp.tools.registry import ToolRegistry, ToolSpec


def _make_spec(name: str, mutates: bool = False, handler=None) -> ToolSpec:
    """Helper to create a ToolSpec for testing."""
    if handler is None:

        async def handler(engine, args):
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=f"ok:{name}")]
            )

    return ToolSpec(
        tool=types.Tool(
            name=name,
            description=f"Test tool {name}",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        mutates=mutates,
        handler=handler,
    )


def _text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


class TestToolSpec(unittest.TestCase):
    def test_creation(self):
        spec = _make_spec("doc_save", mutates=True)
        self.assertEqual(spec.tool.name, "doc_save")
        self.assertTrue(spec.mutates)

    def test_frozen(self):
        spec = _make_spec("doc_list")
        with self.assertRaises(AttributeError):
            spec.mutates = True


class TestToolRegistry(unittest.TestCase):
    def setUp(self):
        self.specs = [
            _make_spec("ping"),
            _make_spec("doc_list"),
            _make_spec("doc_save", mutates=True),
            _make_spec("doc_push", mutates=True),
        ]

    def test_all_tools_registered(self):
        self.assertEqual(ToolRegistry(self.specs).tool_count(), 4)

    def test_read_only_drops_mutating_tools(self):
        registry = ToolRegistry(self.specs, read_only=True)
        names = [t.name for t in registry.list_tools()]
        self.assertEqual(names, ["ping", "doc_list"])

    def test_call_tool_dispatches_to_handler(self):
        calls = []

        async def handler(engine, args):
            calls.append((engine, args))
            return types.CallToolResult(
                content=[types.TextContent(type="text", text="dispatched")]
            )

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        engine = MagicMock()
        result = asyncio.run(registry.call_tool("t", {"k": "v"}, engine))

        self.assertEqual(calls, [(engine, {"k": "v"})])
        self.assertEqual(_text(result), "dispatched")

    def test_call_tool_none_arguments(self):
        calls = []

        async def handler(engine, args):
            calls.append(args)
            return types.CallToolResult(content=[])

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        asyncio.run(registry.call_tool("t", None, MagicMock()))
        self.assertEqual(calls, [{}])

    def test_unknown_tool_raises(self):
        registry = ToolRegistry(self.specs, read_only=True)
        with self.assertRaises(ValueError):
            asyncio.run(registry.call_tool("doc_push", {}, MagicMock()))

    def test_sync_error_translated(self):
        async def handler(engine, args):
            raise NameCollision("docs/a.md")

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        result = asyncio.run(registry.call_tool("t", {}, MagicMock()))

        self.assertTrue(result.isError)
        self.assertIn("Error (name_collision)", _text(result))
        self.assertIn("Choose a different name", _text(result))

    def test_value_error_is_validation_error(self):
        async def handler(engine, args):
            raise ValueError("path is required")

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        result = asyncio.run(registry.call_tool("t", {}, MagicMock()))
        self.assertIn("Error (validation_error): path is required", _text(result))

    def test_unexpected_error_is_server_error(self):
        async def handler(engine, args):
            raise KeyError("boom")

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        result = asyncio.run(registry.call_tool("t", {}, MagicMock()))
        self.assertTrue(result.isError)
        self.assertIn("Error (server_error)", _text(result))

    def test_remote_error_translated(self):
        async def handler(engine, args):
            raise RemoteFault("Bad Gateway", 502)

        registry = ToolRegistry([_make_spec("t", handler=handler)])
        result = asyncio.run(registry.call_tool("t", {}, MagicMock()))
        self.assertIn("HTTP 502: Bad Gateway", _text(result))


class TestShippedSpecs(unittest.TestCase):
    def test_names_unique(self):
        names = [s.tool.name for s in ALL_SPECS]
        self.assertEqual(len(names), len(set(names)))

    def test_read_only_keeps_browsing_tools(self):
        names = {t.name for t in ToolRegistry(ALL_SPECS, read_only=True).list_tools()}
        self.assertEqual(
            names,
            {
                "config_get",
                "doc_list",
                "doc_get",
                "doc_search",
                "doc_remote_list",
                "doc_compare",
                "doc_status",
            },
        )
