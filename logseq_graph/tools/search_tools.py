"""Search and reference-graph tools for Logseq graphs.

This module contains all MCP tool wrappers for read-only queries:
- search_logseq_graph: Search page names, titles and block content
- get_logseq_todos: Task blocks grouped by state
- get_logseq_backlinks: Blocks linking to a page
- get_logseq_reference_graph: Page-level link adjacency
- find_logseq_knowledge_gaps: Missing, underdeveloped and orphaned pages
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from logseq_graph.server import mcp
from logseq_graph.session import run_in_graph
from logseq_graph.models import (
    SearchInput,
    GetTodosInput,
    GetBacklinksInput,
    GetReferenceGraphInput,
    FindKnowledgeGapsInput,
)
from logseq_graph.core.query_operations import (
    search,
    get_todos,
    get_backlinks,
    get_reference_graph,
    find_knowledge_gaps,
)


# ==============================================================================
# SEARCH
# ==============================================================================


@mcp.tool()
async def search_logseq_graph(
    input: SearchInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Search the whole graph for text in page names, titles and block content.

    Matching is case-insensitive unless case_sensitive is set. Page hits come
    first, then block hits, in collection order (no ranking).

    Args:
        input (SearchInput): Validated input containing:
            - query (str): Text to find
            - case_sensitive (bool): Exact-case matching (default False)
            - limit (int, optional): Maximum hits
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str,
            "query": str,
            "page_matches": int,
            "block_matches": int,
            "truncated": bool,
            "results": [
                {"type": "page", "name": str, "title": str, ...},
                {"type": "block", "page": str, "identity": str, "content": str, ...}
            ]
        }

    Examples:
        - Use when: Looking for where a topic is mentioned
        - Don't use: Looking for links to a page (use get_logseq_backlinks)
    """
    return run_in_graph(
        input.graph, ctx, search,
        input.query,
        case_sensitive=input.case_sensitive,
        limit=input.limit,
    )


@mcp.tool()
async def get_logseq_todos(
    input: GetTodosInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Collect task blocks across all pages, grouped by task state.

    Args:
        input (GetTodosInput): Validated input containing:
            - states (list[str], optional): Task states to include (default: all)
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "total": int, "counts": {state: int}, "tasks": {state: [block, ...]}}

    Examples:
        - Use when: "What is still open?" → states=["TODO", "DOING", "NOW"]
        - Don't use: Tasks of one page only → Use list_logseq_blocks()
    """
    return run_in_graph(input.graph, ctx, get_todos, input.states)


# ==============================================================================
# REFERENCE GRAPH
# ==============================================================================


@mcp.tool()
async def get_logseq_backlinks(
    input: GetBacklinksInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Find blocks on other pages that link to or tag a page (aliases included).

    Args:
        input (GetBacklinksInput): Validated input containing:
            - page_name (str): Target page name, title or alias
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "count": int, "source_pages": [str],
         "backlinks": [{"type": "block", "page": str, "identity": str, "content": str, ...}]}

    Examples:
        - Use when: Seeing where a project or person is mentioned
        - Don't use: Plain text mentions without links → Use search_logseq_graph()
    """
    return run_in_graph(input.graph, ctx, get_backlinks, input.page_name)


@mcp.tool()
async def get_logseq_reference_graph(
    input: GetReferenceGraphInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Return which pages link to which, for the whole graph or one page.

    Page links, tags and block references (resolved to the owning page) all
    count as edges. Edge weights are reference counts.

    Args:
        input (GetReferenceGraphInput): Validated input containing:
            - page_name (str, optional): Limit to one page's incoming and outgoing edges
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page_count": int, "edge_count": int,
         "nodes": [{"page": str, "outgoing": {str: int}, "incoming": {str: int}, ...}]}
        With page_name, the single node: {"graph": str, "page": str, "exists": bool,
        "outgoing": {...}, "incoming": {...}}

    Token Cost: whole-graph calls grow with the number of linked pages.
    """
    return run_in_graph(input.graph, ctx, get_reference_graph, input.page_name)


@mcp.tool()
async def find_logseq_knowledge_gaps(
    input: FindKnowledgeGapsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Report pages referenced often but missing, thin pages, and unreferenced pages.

    Args:
        input (FindKnowledgeGapsInput): Validated input containing:
            - min_reference_count (int): References needed to report a missing page (default 3)
            - include_orphans (bool): Also list pages nothing links to (default True)
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "missing_pages": [{"page": str, "reference_count": int, "referenced_from": [str]}],
            "underdeveloped_pages": [{"page": str, "reference_count": int, "content_length": int}],
            "orphaned_pages": [str] | None,
            "summary": {...}
        }

    Examples:
        - Use when: Deciding which pages to write next
    """
    return run_in_graph(
        input.graph, ctx, find_knowledge_gaps,
        min_reference_count=input.min_reference_count,
        include_orphans=input.include_orphans,
    )
