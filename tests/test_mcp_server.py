"""Tests for the MCP server wrapper."""

import pytest
from mcp import types

from fsquery.mcp_server import FileSystemMCPServer


@pytest.fixture
def server(config):
    return FileSystemMCPServer(config)


class TestFileSystemMCPServer:
    def test_tools_are_registered(self, server):
        handlers = server.server.request_handlers
        assert types.ListToolsRequest in handlers
        assert types.CallToolRequest in handlers

    def test_tool_schemas(self, server):
        tools = {tool.name: tool for tool in server.get_tools()}
        assert sorted(tools) == ["find", "list"]
        find_schema = tools["find"].inputSchema
        assert "base_path" in find_schema["properties"]
        assert find_schema["required"] == ["base_path"]
        assert "operation" in tools["list"].inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_handle_call_find(self, server, scenario_tree):
        response = await server.handle_call(
            "find",
            {
                "base_path": str(scenario_tree),
                "match_criteria": [{"type": "content_pattern", "pattern": "world"}],
            },
        )
        assert [entry["name"] for entry in response["results"]] == ["c.txt"]

    @pytest.mark.asyncio
    async def test_handle_call_unknown_tool(self, server):
        response = await server.handle_call("rename", {})
        assert response["status"] == "error"
        assert response["error_code"] == "ERR_UNKNOWN_TOOL"
