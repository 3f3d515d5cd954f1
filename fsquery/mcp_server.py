import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import mcp.server.stdio
from mcp.server import Server
from mcp.types import TextContent, Tool

from .config import ServerConfig
from .models import FindParameters, ListParameters
from .tools import TOOL_HANDLERS, dispatch_tool

TOOL_DESCRIPTIONS = {
    "find": (
        "Recursively find files and directories under base_path matching all of the "
        "given criteria (name_pattern, content_pattern, metadata_filter)."
    ),
    "list": (
        "List directory entries as a tree (operation 'entries') or report server "
        "capabilities and filesystem statistics (operation 'system_info')."
    ),
}

TOOL_SCHEMAS = {
    "find": FindParameters,
    "list": ListParameters,
}


class FileSystemMCPServer:
    def __init__(self, config: ServerConfig):
        self.config = config
        self.server = Server("fsquery")
        self.logger = logging.getLogger(__name__)

        self._setup_tools()

    def _setup_tools(self):
        """Register the MCP tool listing and call handlers"""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            return self.get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
            response = await self.handle_call(name, arguments or {})
            return [TextContent(type="text", text=json.dumps(response, indent=2))]

    def get_tools(self) -> List[Tool]:
        return [
            Tool(
                name=name,
                description=TOOL_DESCRIPTIONS[name],
                inputSchema=TOOL_SCHEMAS[name].model_json_schema(),
            )
            for name in TOOL_HANDLERS
        ]

    async def handle_call(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool off the event loop so filesystem waits do not block it"""
        self.logger.info(f"MCP tool call: {name}")
        return await asyncio.to_thread(dispatch_tool, name, arguments, self.config)

    async def run(self):
        """Run the MCP server"""
        self.logger.info(
            f"Starting fsquery MCP server v{self.config.server_version}. "
            f"Allowed paths: {self.config.allowed_paths}"
        )

        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )
