"""MCP tools for graph management and graph-wide overviews."""

import logging
from typing import Any

from mcp.server.fastmcp import Context

from logseq_graph.server import mcp
from logseq_graph.models import GraphInfoInput, ListGraphsInput, SetActiveGraphInput, UpdateGraphConfigInput
from logseq_graph.config import GRAPH_CONFIGURATION
from logseq_graph.errors import GraphError
from logseq_graph.session import (
    set_active_graph as set_active_graph_session,
    get_active_graph,
    get_session_key,
    run_in_graph,
)
from logseq_graph.core.query_operations import (
    export_graph,
    get_graph_config,
    get_system_info,
    update_graph_config,
)

logger = logging.getLogger(__name__)


@mcp.tool()
async def list_graphs(
    input: ListGraphsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List configured Logseq graphs and current session state.

    Primary entry point for graph discovery. Graphs come from graphs.yaml,
    the LOGSEQ_GRAPH_PATH environment variable, or directory discovery.

    Args:
        input (ListGraphsInput): Validated input (no fields required)
        ctx (Context, optional): FastMCP context for session state

    Returns:
        {
            "default": str,    # System default graph name (or None)
            "active": str,     # Currently active graph (or None)
            "graphs": [
                {"name": str, "path": str, "description": str, "exists": bool}
            ]
        }

    Examples:
        - Use when: Starting conversation, need to see available graphs
        - Don't use: Already know the graph name and just need to switch
    """
    active = None
    if ctx is not None:
        try:
            active = get_active_graph(ctx).name
        except GraphError:
            active = None

    return {
        "default": GRAPH_CONFIGURATION.default_graph,
        "active": active,
        "graphs": [metadata.as_payload() for metadata in GRAPH_CONFIGURATION.graphs.values()],
    }


@mcp.tool()
async def set_active_graph(
    input: SetActiveGraphInput,
    ctx: Context,
) -> dict[str, Any]:
    """Set the active graph for this conversation session.

    All subsequent tool calls that omit the graph parameter will use the
    active graph.

    Args:
        input (SetActiveGraphInput): Validated input containing:
            - graph (str): Graph name from graphs.yaml
        ctx (Context): FastMCP context for session state

    Returns:
        {"graph": str, "path": str, "status": "active"}

    Error Handling:
        - Unknown graph → not_found failure listing available graphs
    """
    try:
        metadata = set_active_graph_session(ctx, input.graph)
    except GraphError as exc:
        return exc.as_payload()
    logger.info("Active graph for session %s set to '%s'", get_session_key(ctx), metadata.name)
    return {
        "graph": metadata.name,
        "path": str(metadata.path),
        "status": "active",
    }


@mcp.tool()
async def get_logseq_system_info(
    input: GraphInfoInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Summarize the selected graph: paths, page/journal counts, block and task counts.

    Args:
        input (GraphInfoInput): Validated input containing:
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str, "path": str, "pages_path": str, "journals_path": str,
            "journal_file_format": str, "page_count": int, "journal_count": int,
            "block_count": int, "task_count": int
        }

    Examples:
        - Use when: Checking which folder a graph points at and how big it is
        - Don't use: Listing pages → Use list_logseq_pages()
    """
    return run_in_graph(input.graph, ctx, get_system_info)


@mcp.tool()
async def get_logseq_graph_config(
    input: GraphInfoInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Return the raw text of the graph's logseq/config.edn.

    Args:
        input (GraphInfoInput): Validated input containing:
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "path": str, "exists": bool, "content": str}
        When the file is absent, "exists" is False and a "message" explains
        that Logseq defaults apply.

    Examples:
        - Use when: Checking the preferred format or journal title format
        - Don't use: Changing a setting → Use update_logseq_graph_config()
    """
    return run_in_graph(input.graph, ctx, get_graph_config)


@mcp.tool()
async def update_logseq_graph_config(
    input: UpdateGraphConfigInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Set a few well-known settings in the graph's logseq/config.edn.

    Each given setting is replaced in place when config.edn already has it and
    added to the top-level map otherwise. The file is created when missing.
    Logseq picks the change up on its next config reload.

    Args:
        input (UpdateGraphConfigInput): Validated input containing:
            - preferred_format (str, optional): "Markdown" or "Org"
            - journal_page_title_format (str, optional): e.g. "MMM do, yyyy"
            - start_of_week (int, optional): 0 (Sunday) to 6 (Saturday)
            - enable_journals (bool, optional): Journals feature on/off
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str,
            "path": str,
            "updated": {keyword: edn_value},   # e.g. {":start-of-week": "1"}
            "status": "created" | "updated"
        }

    Examples:
        - Use when: Switching new pages to Org, or weeks to start on Monday
        - Don't use: Reading current settings → Use get_logseq_graph_config()

    Error Handling:
        - config.edn without a closing brace → malformed_input failure, nothing written
    """
    return run_in_graph(input.graph, ctx, update_graph_config, input.settings())


@mcp.tool()
async def export_logseq_graph(
    input: GraphInfoInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Export a per-page summary of the whole graph.

    Args:
        input (GraphInfoInput): Validated input containing:
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str, "total_pages": int, "total_journals": int, "total_blocks": int,
            "pages": [{"name": str, "title": str, "is_journal": bool, "block_count": int, ...}]
        }

    Examples:
        - Use when: Getting an inventory of a graph in one call
        - Don't use: Reading page content → Use read_logseq_page()

    Token Cost: grows with graph size (~60 tokens per page).
    """
    return run_in_graph(input.graph, ctx, export_graph)
