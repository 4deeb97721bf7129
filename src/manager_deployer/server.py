"""
Manager Deployer MCP Server - Main entry point.

An MCP server that deploys the cluster-api aggregate apiserver.
"""

import asyncio
import logging
import sys

from mcp.server.fastmcp import FastMCP

from . import __version__
from .tools import register_deployment_tools

logger = logging.getLogger("manager-deployer")


def create_server() -> FastMCP:
    """Create and configure the MCP server."""
    server = FastMCP("manager-deployer")

    logger.info("Registering deployment tools...")
    register_deployment_tools(server)

    return server


async def run_server() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Manager Deployer MCP Server v{__version__}")

    server = create_server()

    # Run with stdio transport
    logger.info("Server started, waiting for connections...")
    await server.run_stdio_async()


def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
