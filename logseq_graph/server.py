"""FastMCP server initialization and tool registration."""

import logging
from mcp.server.fastmcp import FastMCP

from logseq_graph.constants import LOG_LEVEL

# Initialize logger
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("logseq_graph")

# Tool modules are imported in __init__.py to register all @mcp.tool() decorators


def run_server():
    """Start the MCP server with stdio transport."""
    from logseq_graph.config import GRAPH_CONFIGURATION

    logger.info(
        "Starting Logseq Graph MCP Server (default graph: %s)",
        GRAPH_CONFIGURATION.default_graph or "none",
    )
    mcp.run(transport="stdio")
