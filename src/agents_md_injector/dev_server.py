# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Development server module for testing with 'mcp dev' and 'fastmcp run'.

Usage:
    # With mcp dev (MCP Inspector) - run from the project to inject for
    mcp dev src/agents_md_injector/dev_server.py:mcp

For production use, run the server via: python -m agents_md_injector
"""

from agents_md_injector.mcp_server import AgentsMdInjectorMCPServer

# 'mcp dev' and 'fastmcp run' look for a module-level FastMCP instance
_server = AgentsMdInjectorMCPServer()
mcp = _server.mcp
