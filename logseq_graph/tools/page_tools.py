"""Page management MCP tools.

This module provides MCP tool wrappers for page operations:
- List and read pages
- Create, replace, delete and rename pages
- Read and set page properties

All tools delegate to core operations in logseq_graph.core.page_operations.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from logseq_graph.server import mcp
from logseq_graph.session import run_in_graph
from logseq_graph.models import (
    ListPagesInput,
    ReadPageInput,
    CreatePageInput,
    UpdatePageInput,
    DeletePageInput,
    RenamePageInput,
    GetPagePropertiesInput,
    SetPagePropertyInput,
)
from logseq_graph.core.page_operations import (
    list_pages,
    read_page,
    create_page,
    update_page,
    delete_page,
    rename_page,
    get_page_properties,
    set_page_property,
)


# ==============================================================================
# READ OPERATIONS
# ==============================================================================


@mcp.tool()
async def list_logseq_pages(
    input: ListPagesInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List pages in the graph, sorted by name.

    Args:
        input (ListPagesInput): Validated input containing:
            - filter (str, optional): Substring of page name or title
            - include_journals (bool): Include journal pages (default True)
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str,
            "filter": str | None,
            "count": int,
            "pages": [{"name": str, "title": str, "is_journal": bool, "block_count": int, ...}]
        }

    Token Cost: ~80 tokens per page. Use filter on large graphs.
    """
    return run_in_graph(
        input.graph, ctx, list_pages,
        filter=input.filter,
        include_journals=input.include_journals,
    )


@mcp.tool()
async def read_logseq_page(
    input: ReadPageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Read one page: properties, flat block list and the nested outline tree.

    Pages are matched by name, title or alias (case-insensitive). Each block
    carries its identity; pass it to update/delete/move block tools.

    Args:
        input (ReadPageInput): Validated input containing:
            - page_name (str): Page name, title or alias
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "name": str, "title": str, "path": str, "is_journal": bool,
            "aliases": [str], "tags": [str], "properties": {str: str},
            "blocks": [{...}],                  # Flat, file order
            "tree": [{..., "children": [...]}]  # Nested by indentation
        }

    Examples:
        - Use when: Reading a page before editing it
        - Don't use: Only need the property header → Use get_logseq_page_properties()

    Error Handling:
        - Page missing → not_found failure listing some known pages
    """
    return run_in_graph(input.graph, ctx, read_page, input.page_name)


# ==============================================================================
# WRITE OPERATIONS
# ==============================================================================


@mcp.tool()
async def create_logseq_page(
    input: CreatePageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Create a new page file under pages/.

    Non-bulleted content lines are turned into bullets. Namespaced names
    ("project/alpha") are stored as "project___alpha.md".

    Args:
        input (CreatePageInput): Validated input containing:
            - page_name (str): Name of the new page
            - content (str, optional): Initial outline text
            - properties (dict, optional): Header properties, e.g. {"tags": "project"}
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "path": str, "status": "created"}

    Examples:
        - Use when: Starting a page for a new topic or project
        - Don't use: Journal day → Use create_logseq_journal_page()

    Error Handling:
        - Page exists → already_exists failure (use update_logseq_page instead)
    """
    return run_in_graph(
        input.graph, ctx, create_page,
        input.page_name,
        content=input.content,
        properties=input.properties,
    )


@mcp.tool()
async def update_logseq_page(
    input: UpdatePageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Replace a page's outline body. The property header is kept.

    Args:
        input (UpdatePageInput): Validated input containing:
            - page_name (str): Page to rewrite
            - content (str): New outline body
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "path": str, "status": "updated"}

    Examples:
        - Use when: Restructuring a whole page
        - Don't use: Changing one block → Use update_logseq_block()
        - Don't use: Adding one block → Use insert_logseq_block()
    """
    return run_in_graph(input.graph, ctx, update_page, input.page_name, input.content)


@mcp.tool()
async def delete_logseq_page(
    input: DeletePageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Delete a page file. This cannot be undone.

    Links to the page elsewhere in the graph are left as they are.

    Args:
        input (DeletePageInput): Validated input containing:
            - page_name (str): Page to delete
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "path": str, "status": "deleted"}
    """
    return run_in_graph(input.graph, ctx, delete_page, input.page_name)


@mcp.tool()
async def rename_logseq_page(
    input: RenamePageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Rename a page and, by default, rewrite [[links]] and #tags that point at it.

    Args:
        input (RenamePageInput): Validated input containing:
            - page_name (str): Current page name
            - new_name (str): New page name
            - update_links (bool): Rewrite links in other pages (default True)
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "old_name": str, "new_name": str, "path": str,
         "links_updated": int, "status": "renamed"}

    Error Handling:
        - New name taken → already_exists failure; nothing is renamed
    """
    return run_in_graph(
        input.graph, ctx, rename_page,
        input.page_name,
        input.new_name,
        update_links=input.update_links,
    )


# ==============================================================================
# PROPERTIES
# ==============================================================================


@mcp.tool()
async def get_logseq_page_properties(
    input: GetPagePropertiesInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Return a page's properties (header lines and top-of-body key:: value lines).

    Args:
        input (GetPagePropertiesInput): Validated input containing:
            - page_name (str): Page name, title or alias
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "properties": {str: str}, "has_properties": bool}
    """
    return run_in_graph(input.graph, ctx, get_page_properties, input.page_name)


@mcp.tool()
async def set_logseq_page_property(
    input: SetPagePropertyInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Set one header property; an existing key is replaced in place.

    Args:
        input (SetPagePropertyInput): Validated input containing:
            - page_name (str): Page to edit
            - key (str): Property name, e.g. "status"
            - value (str): Single-line value
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "property": str, "value": str, "status": "updated"}

    Examples:
        - Use when: Tagging a page or setting its status
        - Don't use: Property of a single block → Use update_logseq_block() with "key:: value"
    """
    return run_in_graph(
        input.graph, ctx, set_page_property,
        input.page_name,
        input.key,
        input.value,
    )
