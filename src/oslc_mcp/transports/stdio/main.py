from __future__ import annotations

import asyncio

from mcp.server.fastmcp import FastMCP

from oslc_mcp.core.config import create_client_from_env, load_env_config
from oslc_mcp.core.logging import setup_logging
from oslc_mcp.core.registry import register_discovered_tools

SERVER_NAME = "oslc-mcp"


def build_app(client) -> FastMCP:
    app = FastMCP(SERVER_NAME)
    register_discovered_tools(app, lambda: client)
    return app


async def main() -> None:
    settings = load_env_config(use_dotenv=True)
    setup_logging(settings.log_level)
    client = create_client_from_env()

    app = build_app(client)
    try:
        await app.run_stdio_async()
    finally:
        await client.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
