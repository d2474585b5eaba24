"""Core business logic for journal pages.

Journal files live under the graph's journals directory and are named after
their date. Reading accepts any of the recognized stem formats; new files use
the graph's ``journal_file_format``.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from datetime import date, timedelta
from typing import Any, Optional

from logseq_graph.core.collection import collect_pages, ensure_graph_ready
from logseq_graph.core.outline import build_tree
from logseq_graph.core.reconciler import write_raw_text
from logseq_graph.data_models import GraphMetadata, Page
from logseq_graph.errors import MalformedInputError, NotFoundError, tagged_failures

logger = logging.getLogger(__name__)

RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}
DEFAULT_RANGE = "this week"


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def resolve_date(value: Optional[str], today: Optional[date] = None) -> date:
    """Resolve ``today``/``tomorrow``/``yesterday`` or an ISO date string.

    Raises:
        MalformedInputError: If the value is neither a keyword nor an ISO date.
    """
    today = today or date.today()
    if value is None or not value.strip():
        return today
    cleaned = value.strip().lower()
    if cleaned in RELATIVE_DAYS:
        return today + timedelta(days=RELATIVE_DAYS[cleaned])
    try:
        return date.fromisoformat(cleaned.replace("_", "-"))
    except ValueError as exc:
        raise MalformedInputError(
            f"Invalid date '{value}'. Use today, tomorrow, yesterday or YYYY-MM-DD."
        ) from exc


def _week_start(day: date) -> date:
    # Weeks start on Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


def parse_date_range(date_range: Optional[str], today: Optional[date] = None) -> tuple[date, date, str]:
    """Turn a named range into inclusive ``(start, end, title)``.

    Unknown names fall back to the current week.
    """
    today = today or date.today()
    name = (date_range or DEFAULT_RANGE).strip().lower()

    if name == "today":
        return today, today, "Today's Journal Summary"
    if name == "yesterday":
        day = today - timedelta(days=1)
        return day, day, "Yesterday's Journal Summary"
    if name == "last week":
        start = _week_start(today) - timedelta(days=7)
        return start, start + timedelta(days=6), "Last Week's Journal Summary"
    if name == "this month":
        return today.replace(day=1), today, f"Journal Summary for {today:%B %Y}"
    if name == "last month":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
        return start, end, f"Journal Summary for {start:%B %Y}"
    if name == "this year":
        return today.replace(month=1, day=1), today, f"Journal Summary for {today.year}"
    if name == "last year":
        year = today.year - 1
        return date(year, 1, 1), date(year, 12, monthrange(year, 12)[1]), f"Journal Summary for {year}"
    if name == "year to date":
        return today.replace(month=1, day=1), today, f"Year-to-Date Journal Summary for {today.year}"

    if name != DEFAULT_RANGE:
        logger.debug("Unknown date range '%s'; using %s", date_range, DEFAULT_RANGE)
    return _week_start(today), today, "Weekly Journal Summary"


def _journal_pages(graph: GraphMetadata) -> list[Page]:
    return [page for page in collect_pages(graph) if page.is_journal and page.journal_date]


def _find_journal(graph: GraphMetadata, day: date) -> Page:
    for page in _journal_pages(graph):
        if page.journal_date == day:
            return page
    raise NotFoundError(
        f"No journal page for {day.isoformat()} in graph '{graph.name}'.",
        date=day.isoformat(),
    )


def _journal_payload(graph: GraphMetadata, page: Page) -> dict[str, Any]:
    payload = page.as_payload(include_blocks=True)
    payload["graph"] = graph.name
    payload["tree"] = [node.as_payload() for node in build_tree(page.blocks)]
    return payload


# ==============================================================================
# JOURNAL OPERATIONS
# ==============================================================================


@tagged_failures
def create_journal_page(graph: GraphMetadata, date: Optional[str] = None) -> dict[str, Any]:
    """Create the journal file for a date, leaving an existing one untouched."""
    ensure_graph_ready(graph)
    day = resolve_date(date)

    for page in _journal_pages(graph):
        if page.journal_date == day:
            return {
                "graph": graph.name,
                "page": page.name,
                "date": day.isoformat(),
                "path": str(page.file_path),
                "status": "exists",
            }

    file_path = graph.journals_path / f"{day.strftime(graph.journal_file_format)}.md"
    file_path.parent.mkdir(parents=True, exist_ok=True)
    write_raw_text(file_path, "")
    logger.info("Created journal page for %s in graph '%s'", day.isoformat(), graph.name)
    return {
        "graph": graph.name,
        "page": file_path.stem,
        "date": day.isoformat(),
        "path": str(file_path),
        "status": "created",
    }


@tagged_failures
def get_journal_by_date(graph: GraphMetadata, date: str) -> dict[str, Any]:
    """Return the journal page for a date (ISO or today/tomorrow/yesterday)."""
    return _journal_payload(graph, _find_journal(graph, resolve_date(date)))


@tagged_failures
def get_today_journal(graph: GraphMetadata) -> dict[str, Any]:
    return _journal_payload(graph, _find_journal(graph, date.today()))


@tagged_failures
def get_journal_summary(graph: GraphMetadata, date_range: Optional[str] = None) -> dict[str, Any]:
    """Summarize journal pages whose date falls inside a named range.

    Returns:
        The range bounds and title, the matching entries (oldest first) with
        their blocks, and the pages referenced most often across them.
    """
    start, end, title = parse_date_range(date_range)
    pages = [page for page in _journal_pages(graph) if start <= page.journal_date <= end]
    pages.sort(key=lambda page: page.journal_date)

    occurrences: dict[str, int] = {}
    entries = []
    for page in pages:
        for block in page.blocks:
            for reference in block.page_references + block.tags:
                occurrences[reference] = occurrences.get(reference, 0) + 1
        entries.append({
            "date": page.journal_date.isoformat(),
            "page": page.name,
            "block_count": len(page.blocks),
            "task_count": page.task_count,
            "blocks": [node.as_payload() for node in build_tree(page.blocks)],
        })

    top_references = sorted(occurrences.items(), key=lambda item: (-item[1], item[0].lower()))[:10]
    return {
        "graph": graph.name,
        "title": title,
        "date_range": date_range or DEFAULT_RANGE,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "count": len(entries),
        "entries": entries,
        "top_references": [{"page": name, "count": count} for name, count in top_references],
    }
