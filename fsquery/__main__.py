#!/usr/bin/env python3
"""
MCP server entry point for fsquery
"""
import asyncio

from .config import ConfigManager
from .logging_setup import setup_logging
from .mcp_server import FileSystemMCPServer


async def main():
    """Run the MCP server"""
    config = ConfigManager().get_config()
    setup_logging(config)

    server = FileSystemMCPServer(config)
    await server.run()

if __name__ == "__main__":
    asyncio.run(main())
