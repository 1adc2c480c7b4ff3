"""
Tool modules for the OSLC MCP server.

Every public coroutine defined here whose first parameter is `client` is
discovered by `oslc_mcp.core.registry` and exposed as a tool.
"""
