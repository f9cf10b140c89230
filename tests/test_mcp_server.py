"""Tests for the MCP server tool handlers."""

import json

import pytest

from pathfinder import mcp_server
from pathfinder.config import PathfinderConfig
from pathfinder.network import build_network_snapshot
from pathfinder.tool_definitions import ALL_TOOLS

SAMPLE_NETWORK = {
    "profiles": [
        {"id": "alice", "name": "Alice"},
        {"id": "bob", "name": "Bob"},
        {"id": "dave", "name": "Dave"},
    ],
    "connections": [["alice", "bob"]],
}


@pytest.fixture
def snapshot(monkeypatch):
    snap = build_network_snapshot(SAMPLE_NETWORK)
    monkeypatch.setattr(mcp_server, "_snapshot", snap)
    monkeypatch.setattr(mcp_server, "_get_config", lambda: PathfinderConfig())
    return snap


class TestToolDefinitions:
    def test_names(self):
        assert [t["name"] for t in ALL_TOOLS] == [
            "find_connection_strategy",
            "compare_connection_strategies",
            "batch_discover_connections",
        ]

    def test_schemas(self):
        for tool in ALL_TOOLS:
            assert tool["input_schema"]["type"] == "object"
            assert "from_id" in tool["input_schema"]["required"]

    @pytest.mark.asyncio
    async def test_list_tools(self):
        tools = await mcp_server.list_tools()
        assert {t.name for t in tools} == {t["name"] for t in ALL_TOOLS}


class TestCallTool:
    @pytest.mark.asyncio
    async def test_find(self, snapshot):
        [content] = await mcp_server.call_tool(
            "find_connection_strategy", {"from_id": "alice", "to_id": "bob"}
        )
        assert "## Alice → Bob" in content.text
        assert "### Recommended: mutual" in content.text
        assert "**Path:** Alice → Bob" in content.text

    @pytest.mark.asyncio
    async def test_compare(self, snapshot):
        [content] = await mcp_server.call_tool(
            "compare_connection_strategies", {"from_id": "alice", "to_id": "dave"}
        )
        assert "### Option 1:" in content.text

    @pytest.mark.asyncio
    async def test_batch(self, snapshot):
        [content] = await mcp_server.call_tool(
            "batch_discover_connections", {"from_id": "alice", "to_ids": ["bob", "dave"]}
        )
        data = json.loads(content.text)
        assert data["targets_evaluated"] == 2
        assert [s["type"] for s in data["recommended"]] == ["mutual"]

    @pytest.mark.asyncio
    async def test_unknown_profile(self, snapshot):
        [content] = await mcp_server.call_tool(
            "find_connection_strategy", {"from_id": "alice", "to_id": "mallory"}
        )
        assert content.text.startswith("Error running find_connection_strategy")
        assert "mallory" in content.text

    @pytest.mark.asyncio
    async def test_unknown_tool(self, snapshot):
        [content] = await mcp_server.call_tool("summon", {})
        assert content.text == "Unknown tool: summon"

    @pytest.mark.asyncio
    async def test_missing_snapshot_path(self, monkeypatch):
        monkeypatch.setattr(mcp_server, "_snapshot", None)
        monkeypatch.setattr(mcp_server, "_get_config", lambda: PathfinderConfig())
        [content] = await mcp_server.call_tool(
            "find_connection_strategy", {"from_id": "alice", "to_id": "bob"}
        )
        assert "PATHFINDER_NETWORK_PATH" in content.text
