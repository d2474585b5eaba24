"""Journal MCP tools.

Tool wrappers for journal pages: create a day's page, read one day, and
summarize a named date range. All tools delegate to
logseq_graph.core.journal_operations.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from logseq_graph.server import mcp
from logseq_graph.session import run_in_graph
from logseq_graph.models import (
    CreateJournalPageInput,
    GetTodayJournalInput,
    GetJournalByDateInput,
    GetJournalSummaryInput,
)
from logseq_graph.core.journal_operations import (
    create_journal_page,
    get_today_journal,
    get_journal_by_date,
    get_journal_summary,
)


@mcp.tool()
async def create_logseq_journal_page(
    input: CreateJournalPageInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Create the journal page for a date (default today).

    The file name follows the graph's journal_file_format (default
    "%Y_%m_%d"). An existing journal page is left untouched and reported
    with status "exists".

    Args:
        input (CreateJournalPageInput): Validated input containing:
            - date (str, optional): YYYY-MM-DD, "today", "tomorrow" or "yesterday"
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "page": str, "date": str, "path": str, "status": "created" | "exists"}

    Examples:
        - Use when: Making sure a day's page exists before inserting blocks
        - Don't use: Regular pages → Use create_logseq_page()
    """
    return run_in_graph(input.graph, ctx, create_journal_page, input.date)


@mcp.tool()
async def get_logseq_today_journal(
    input: GetTodayJournalInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Read today's journal page with its blocks and outline tree.

    Args:
        input (GetTodayJournalInput): Validated input containing:
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        Same payload as get_logseq_journal_by_date() for today's date.

    Error Handling:
        - No page for today → not_found failure (create it with create_logseq_journal_page)
    """
    return run_in_graph(input.graph, ctx, get_today_journal)


@mcp.tool()
async def get_logseq_journal_by_date(
    input: GetJournalByDateInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Read the journal page for a given date.

    Args:
        input (GetJournalByDateInput): Validated input containing:
            - date (str): YYYY-MM-DD (or YYYY_MM_DD), "today", "tomorrow" or "yesterday"
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {"graph": str, "name": str, "journal_date": str, "path": str,
         "blocks": [{...}], "tree": [{..., "children": [...]}]}

    Examples:
        - Use when: Reviewing what was logged on a specific day
        - Don't use: Several days at once → Use get_logseq_journal_summary()
    """
    return run_in_graph(input.graph, ctx, get_journal_by_date, input.date)


@mcp.tool()
async def get_logseq_journal_summary(
    input: GetJournalSummaryInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Summarize journal entries in a named date range.

    Ranges: today, yesterday, this week, last week, this month, last month,
    this year, last year, year to date. Weeks start on Sunday. Anything else
    falls back to this week.

    Args:
        input (GetJournalSummaryInput): Validated input containing:
            - date_range (str): Range name (default "this week")
            - graph (str, optional): Graph name (omit to use active graph)

    Returns:
        {
            "graph": str, "title": str, "start": str, "end": str, "count": int,
            "entries": [{"date": str, "page": str, "blocks": [...]}],
            "top_references": [{"page": str, "count": int}]
        }

    Examples:
        - Use when: Weekly review of what happened and which pages came up most
        - Don't use: One specific day → Use get_logseq_journal_by_date()

    Token Cost: grows with the number of journal blocks in range.
    """
    return run_in_graph(input.graph, ctx, get_journal_summary, input.date_range)
