"""Logseq Graph MCP Server

Block-level Logseq graph management via Model Context Protocol, working
directly on the graph's Markdown files.
"""

from logseq_graph.config import GRAPH_CONFIGURATION
from logseq_graph.data_models import Block, GraphConfiguration, GraphMetadata, Page
from logseq_graph.session import resolve_graph, set_active_graph, get_active_graph
from logseq_graph.server import mcp, run_server

# Import tools to register them with the MCP server
from logseq_graph import tools  # noqa: F401

__version__ = "0.3.0"
__all__ = [
    "GRAPH_CONFIGURATION",
    "Block",
    "GraphConfiguration",
    "GraphMetadata",
    "Page",
    "resolve_graph",
    "set_active_graph",
    "get_active_graph",
    "mcp",
    "run_server",
]
