"""Block-level MCP tools.

This module provides MCP tool wrappers for block operations:
- List blocks of a page, read one block
- Insert, update, delete and move blocks
- Change a block's task state

Edits to existing blocks go through the line reconciler, which re-reads the
page file, finds the line holding the block and verifies the write. The
payload reports the matching strategy and any verification warnings.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from logseq_graph.server import mcp
from logseq_graph.session import run_in_graph
from logseq_graph.models import (
    ListBlocksInput,
    GetBlockInput,
    InsertBlockInput,
    UpdateBlockInput,
    SetBlockTaskStateInput,
    DeleteBlockInput,
    DeleteBlockByContentInput,
    MoveBlockInput,
)
from logseq_graph.core.block_operations import (
    list_blocks,
    get_block,
    insert_block,
    update_block,
    set_block_task_state,
    delete_block,
    delete_block_by_content,
    move_block,
)


# ==============================================================================
# READ OPERATIONS
# ==============================================================================


@mcp.tool()
async def list_logseq_blocks(
    input: ListBlocksInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List a page's blocks in file order.

    Flat list, one entry per bullet line, with depth instead of nesting. Use
    the returned identities with the other block tools.

    Args:
        input (ListBlocksInput): Validated input containing:
            - page_name (str): Page name, title or alias (case-insensitive)
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str, "page": str, "count": int,
            "blocks": [{"identity": str, "short_id": str, "content": str, "depth": int,
                        "task_state": str | None, "priority": str | None, ...}]
        }

    Examples:
        - Use when: Picking a block to edit and you need its identity
        - Don't use: Need the nested outline → Use read_logseq_page() ("tree")
    """
    return run_in_graph(input.graph, ctx, list_blocks, input.page_name)


@mcp.tool()
async def get_logseq_block(
    input: GetBlockInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Get one block by its short id or full identity.

    Args:
        input (GetBlockInput): Validated input containing:
            - identity (str): Short id (8 hex chars) or full UUID
            - include_children (bool): Also return nested blocks as a tree
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "block": {...}, "children": [...]}

    Examples:
        - Use when: Checking a block's current text before updating it
        - Don't use: Finding blocks by text → Use search_logseq_graph()

    Error Handling:
        - Identity unknown → not_found failure
    """
    return run_in_graph(
        input.graph, ctx, get_block,
        input.identity,
        include_children=input.include_children,
    )


# ==============================================================================
# WRITE OPERATIONS
# ==============================================================================


@mcp.tool()
async def insert_logseq_block(
    input: InsertBlockInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Append a block to a page, or nest it as the last child of a parent block.

    The written line always embeds a fresh short id so the block can be
    addressed on later calls. Keep the returned "identity".

    Args:
        input (InsertBlockInput): Validated input containing:
            - page_name (str): Target page
            - content (str): Single line of block text
            - task_state (str, optional): TODO, DOING, DONE, LATER, NOW, WAITING, IN-PROGRESS
            - priority (str, optional): A, B or C
            - scheduled (str, optional): YYYY-MM-DD
            - deadline (str, optional): YYYY-MM-DD
            - parent (str, optional): Identity of the block to nest under
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str, "page": str, "path": str,
            "identity": str,      # Embedded short id
            "line": str,          # Line as written (without indentation)
            "verified": bool,
            "status": "inserted"
        }

    Examples:
        - Use when: Adding a task to today's journal
        - Use when: Adding a sub-point under an existing block (pass parent)
        - Don't use: Writing a whole outline at once → Use update_logseq_page()
    """
    return run_in_graph(
        input.graph, ctx, insert_block,
        input.page_name,
        input.content,
        task_state=input.task_state,
        priority=input.priority,
        scheduled=input.scheduled,
        deadline=input.deadline,
        parent=input.parent,
    )


@mcp.tool()
async def update_logseq_block(
    input: UpdateBlockInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Replace a block's text, keeping its indentation, bullet, identity and task keyword.

    Scheduling markers and inline properties of the old line are kept unless
    the new content supplies its own. Content starting with its own task
    keyword or [#A] cookie replaces the old ones.

    Args:
        input (UpdateBlockInput): Validated input containing:
            - identity (str): Block to edit
            - content (str): New single-line text
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"page": str, "identity": str, "strategy": str, "line_number": int,
         "original_line": str, "new_line": str, "ambiguous": bool,
         "verified": bool, "warnings": [str], "status": "updated"}

    Examples:
        - Use when: Fixing a typo or rewording a block
        - Don't use: Only ticking a task off → Use set_logseq_block_task_state()

    Error Handling:
        - No line holds the block → not_found failure with a file preview; nothing is written
        - "verified": false → the file was written but did not read back as expected; check "warnings"
    """
    return run_in_graph(input.graph, ctx, update_block, input.identity, input.content)


@mcp.tool()
async def set_logseq_block_task_state(
    input: SetBlockTaskStateInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Set a block's task keyword (TODO, DOING, DONE, ...) or clear it with null.

    Args:
        input (SetBlockTaskStateInput): Validated input containing:
            - identity (str): Block to edit
            - task_state (str | None): New keyword, or null to turn the task into plain text
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"identity": str, "previous_task_state": str | None, "task_state": str | None,
         "new_line": str, "verified": bool, "warnings": [str], "status": "updated"}

    Examples:
        - Use when: Marking a task DONE
        - Use when: Turning a plain block into a TODO
    """
    return run_in_graph(input.graph, ctx, set_block_task_state, input.identity, input.task_state)


@mcp.tool()
async def delete_logseq_block(
    input: DeleteBlockInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Delete the single line holding a block. Nested lines are not removed.

    Args:
        input (DeleteBlockInput): Validated input containing:
            - identity (str): Block to delete
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"page": str, "content": str, "line_number": int, "original_line": str,
         "strategy": str, "verified": bool, "warnings": [str], "status": "deleted"}

    Examples:
        - Use when: Removing one finished or obsolete block
        - Don't use: Only know the text, not the identity → Use delete_logseq_block_by_content()

    Error Handling:
        - Identity unknown or line gone → not_found failure; nothing is written
    """
    return run_in_graph(input.graph, ctx, delete_block, input.identity)


@mcp.tool()
async def delete_logseq_block_by_content(
    input: DeleteBlockByContentInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Delete the first block on a page whose text matches the given content.

    Matches lines containing the text, or (for lines of ten or more
    characters) lines whose text is contained in it. When several lines match,
    the first is deleted and the payload sets "ambiguous": true.

    Args:
        input (DeleteBlockByContentInput): Validated input containing:
            - page_name (str): Page to edit
            - content (str): Block text to look for
            - require_unique (bool): Fail instead of deleting when several lines match
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"page": str, "content": str, "line_number": int, "ambiguous": bool,
         "candidates": [int], "verified": bool, "warnings": [str], "status": "deleted"}

    Examples:
        - Use when: Removing a block you know by its text
        - Don't use: You have the identity → Use delete_logseq_block()

    Error Handling:
        - No matching line → not_found failure with a file preview
        - Several matches with require_unique → ambiguous_match failure listing line numbers
    """
    return run_in_graph(
        input.graph, ctx, delete_block_by_content,
        input.page_name,
        input.content,
        require_unique=input.require_unique,
    )


@mcp.tool()
async def move_logseq_block(
    input: MoveBlockInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Move a block to the end of another page, keeping its identity token.

    Only the block's own line moves; nested lines stay on the source page.
    A block without an embedded id gets one pinned before the move.

    Args:
        input (MoveBlockInput): Validated input containing:
            - identity (str): Block to move
            - target_page (str): Existing destination page
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"identity": str, "source_page": str, "target_page": str, "line": str,
         "verified": bool, "warnings": [str], "status": "moved"}
    """
    return run_in_graph(input.graph, ctx, move_block, input.identity, input.target_page)
