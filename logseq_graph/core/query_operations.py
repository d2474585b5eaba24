"""Query helpers over the aggregated collection.

Every helper re-collects the graph and derives its view (search hits, task
groups, reference adjacency) on the spot; nothing is kept between calls.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from logseq_graph.constants import CONFIG_EDN, CONFIG_EDN_KEYS, TASK_STATES, UNDERDEVELOPED_CHARS
from logseq_graph.core.collection import collect_pages, ensure_graph_ready, find_page
from logseq_graph.core.reconciler import read_raw_text, write_raw_text
from logseq_graph.data_models import Block, GraphMetadata, Page
from logseq_graph.errors import MalformedInputError, tagged_failures

logger = logging.getLogger(__name__)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _block_hit(page: Page, block: Block) -> dict[str, Any]:
    payload = block.as_payload()
    payload["type"] = "block"
    payload["page"] = page.name
    return payload


def _outgoing_pages(block: Block) -> Iterable[str]:
    yield from block.page_references
    yield from block.tags


def build_reference_index(pages: list[Page]) -> tuple[dict[str, str], dict[str, dict[str, int]]]:
    """Build the page-level reference adjacency of a collection.

    Page and tag references are keyed by lowercased target name. Block
    references count as a link to the page that owns the referenced block.

    Returns:
        ``(names, outgoing)`` where ``names`` maps lowercased keys to display
        names and ``outgoing[source][target]`` counts references from ``source``.
    """
    names: dict[str, str] = {}
    aliases: dict[str, str] = {}
    owners: dict[str, str] = {}
    for page in pages:
        key = page.name.lower()
        names[key] = page.name
        for alias in page.aliases:
            aliases.setdefault(alias.lower(), key)
        for block in page.blocks:
            owners[block.identity] = key
            owners.setdefault(block.short_id, key)

    outgoing: dict[str, dict[str, int]] = {}
    for page in pages:
        source = page.name.lower()
        edges = outgoing.setdefault(source, {})
        for block in page.blocks:
            targets = []
            for reference in _outgoing_pages(block):
                target = reference.lower()
                target = aliases.get(target, target)
                names.setdefault(target, reference)
                targets.append(target)
            for reference in block.block_references:
                owner = owners.get(reference.lower()) or owners.get(reference.lower()[:8])
                if owner is not None:
                    targets.append(owner)
            for target in targets:
                if target != source:
                    edges[target] = edges.get(target, 0) + 1
    return names, outgoing


def _incoming(outgoing: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    incoming: dict[str, dict[str, int]] = {}
    for source, edges in outgoing.items():
        for target, count in edges.items():
            incoming.setdefault(target, {})[source] = count
    return incoming


def _page_text(page: Page) -> str:
    return " ".join(block.content for block in page.blocks)


# ==============================================================================
# SEARCH & TASKS
# ==============================================================================


@tagged_failures
def search(
    graph: GraphMetadata,
    query: str,
    case_sensitive: bool = False,
    limit: Optional[int] = None,
) -> dict[str, Any]:
    """Find pages whose name or title contains ``query`` and blocks whose content does.

    Page hits come first, then block hits, each in collection order. There is
    no ranking.
    """
    if not query or not query.strip():
        raise MalformedInputError("Search query cannot be empty.")
    flags = 0 if case_sensitive else re.IGNORECASE
    pattern = re.compile(re.escape(query.strip()), flags)

    pages = collect_pages(graph)
    page_hits = [
        {"type": "page", **page.as_payload()}
        for page in pages
        if pattern.search(page.name) or pattern.search(page.title)
    ]
    block_hits = [
        _block_hit(page, block)
        for page in pages
        for block in page.blocks
        if pattern.search(block.content)
    ]

    hits = page_hits + block_hits
    truncated = limit is not None and len(hits) > limit
    if truncated:
        hits = hits[:limit]

    return {
        "graph": graph.name,
        "query": query,
        "case_sensitive": case_sensitive,
        "page_matches": len(page_hits),
        "block_matches": len(block_hits),
        "truncated": truncated,
        "results": hits,
    }


@tagged_failures
def get_todos(graph: GraphMetadata, states: Optional[list[str]] = None) -> dict[str, Any]:
    """Group task blocks across the graph by task keyword."""
    wanted = [state.strip().upper() for state in states] if states else list(TASK_STATES)
    unknown = [state for state in wanted if state not in TASK_STATES]
    if unknown:
        raise MalformedInputError(
            f"Unknown task states: {', '.join(unknown)}.",
            allowed=list(TASK_STATES),
        )

    groups: dict[str, list[dict[str, Any]]] = {state: [] for state in TASK_STATES if state in wanted}
    for page in collect_pages(graph):
        for block in page.blocks:
            if block.task_state in groups:
                groups[block.task_state].append(_block_hit(page, block))

    return {
        "graph": graph.name,
        "total": sum(len(blocks) for blocks in groups.values()),
        "counts": {state: len(blocks) for state, blocks in groups.items()},
        "tasks": groups,
    }


# ==============================================================================
# REFERENCE GRAPH
# ==============================================================================


@tagged_failures
def get_backlinks(graph: GraphMetadata, page_name: str) -> dict[str, Any]:
    """Return blocks on other pages that link to or tag ``page_name`` (or one of its aliases)."""
    pages = collect_pages(graph)
    target = find_page(pages, page_name)
    names = {name.lower() for name in (target.name, target.title, *target.aliases) if name}

    backlinks = []
    for page in pages:
        if page is target:
            continue
        for block in page.blocks:
            if any(reference.lower() in names for reference in _outgoing_pages(block)):
                backlinks.append(_block_hit(page, block))

    return {
        "graph": graph.name,
        "page": target.name,
        "count": len(backlinks),
        "source_pages": sorted({hit["page"] for hit in backlinks}, key=str.lower),
        "backlinks": backlinks,
    }


@tagged_failures
def get_reference_graph(graph: GraphMetadata, page_name: Optional[str] = None) -> dict[str, Any]:
    """Return page-level reference adjacency for the whole graph or one page."""
    pages = collect_pages(graph)
    names, outgoing = build_reference_index(pages)
    incoming = _incoming(outgoing)
    existing = {page.name.lower() for page in pages}

    def _node(key: str) -> dict[str, Any]:
        return {
            "page": names.get(key, key),
            "exists": key in existing,
            "outgoing": {names.get(t, t): c for t, c in sorted(outgoing.get(key, {}).items())},
            "incoming": {names.get(s, s): c for s, c in sorted(incoming.get(key, {}).items())},
        }

    if page_name:
        key = find_page(pages, page_name).name.lower()
        return {"graph": graph.name, **_node(key)}

    keys = sorted(set(outgoing) | set(incoming), key=lambda key: names.get(key, key).lower())
    nodes = [_node(key) for key in keys]
    return {
        "graph": graph.name,
        "page_count": len(nodes),
        "edge_count": sum(len(edges) for edges in outgoing.values()),
        "nodes": nodes,
    }


@tagged_failures
def find_knowledge_gaps(
    graph: GraphMetadata,
    min_reference_count: int = 3,
    include_orphans: bool = True,
) -> dict[str, Any]:
    """Report missing, underdeveloped and orphaned pages.

    * missing: referenced at least ``min_reference_count`` times but no file exists
    * underdeveloped: exists, referenced at least ``min_reference_count`` times,
      and has fewer than 100 characters of block content
    * orphaned: a regular page nothing references (journals are never orphans)
    """
    if min_reference_count < 0:
        raise MalformedInputError("min_reference_count cannot be negative.")

    pages = collect_pages(graph)
    names, outgoing = build_reference_index(pages)
    incoming = _incoming(outgoing)
    by_key = {page.name.lower(): page for page in pages}

    missing = []
    underdeveloped = []
    orphans = []
    for key in sorted(set(names) | set(incoming)):
        sources = incoming.get(key, {})
        count = sum(sources.values())
        page = by_key.get(key)
        if page is None:
            if count >= min_reference_count:
                missing.append({
                    "page": names.get(key, key),
                    "reference_count": count,
                    "referenced_from": sorted((names.get(s, s) for s in sources), key=str.lower),
                })
            continue
        text = _page_text(page)
        if count >= min_reference_count and len(text) < UNDERDEVELOPED_CHARS:
            underdeveloped.append({
                "page": page.name,
                "reference_count": count,
                "content_length": len(text),
            })
        if include_orphans and count == 0 and not page.is_journal:
            orphans.append(page.name)

    missing.sort(key=lambda item: (-item["reference_count"], item["page"].lower()))
    underdeveloped.sort(key=lambda item: (-item["reference_count"], item["page"].lower()))
    orphans.sort(key=str.lower)

    return {
        "graph": graph.name,
        "min_reference_count": min_reference_count,
        "missing_pages": missing,
        "underdeveloped_pages": underdeveloped,
        "orphaned_pages": orphans if include_orphans else None,
        "summary": {
            "missing": len(missing),
            "underdeveloped": len(underdeveloped),
            "orphaned": len(orphans) if include_orphans else None,
        },
    }


# ==============================================================================
# GRAPH OVERVIEW
# ==============================================================================


@tagged_failures
def get_system_info(graph: GraphMetadata) -> dict[str, Any]:
    pages = collect_pages(graph)
    journals = [page for page in pages if page.is_journal]
    return {
        "graph": graph.name,
        "path": str(graph.path),
        "pages_path": str(graph.pages_path),
        "journals_path": str(graph.journals_path),
        "journal_file_format": graph.journal_file_format,
        "page_count": len(pages) - len(journals),
        "journal_count": len(journals),
        "block_count": sum(len(page.blocks) for page in pages),
        "task_count": sum(page.task_count for page in pages),
    }


@tagged_failures
def get_graph_config(graph: GraphMetadata) -> dict[str, Any]:
    """Return the raw text of ``logseq/config.edn``, when the graph has one."""
    ensure_graph_ready(graph)
    config_path = graph.path / CONFIG_EDN
    if not config_path.is_file():
        return {
            "graph": graph.name,
            "path": str(config_path),
            "exists": False,
            "message": "No config.edn found; Logseq defaults apply.",
        }
    return {
        "graph": graph.name,
        "path": str(config_path),
        "exists": True,
        "content": config_path.read_text(encoding="utf-8"),
    }


def _edn_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def upsert_edn_key(text: str, key: str, value: str) -> str:
    """Set ``key`` to ``value`` in the top-level map of a config.edn text.

    An existing entry at the start of a line (or right after the opening
    brace) has its value replaced in place; otherwise the entry is added
    before the final closing brace. Comments and other entries are untouched.
    """
    pattern = re.compile(
        rf'^(?P<lead>[ \t{{]*{re.escape(key)}\s+)(?P<value>"(?:[^"\\]|\\.)*"|[^\s}}]+)',
        re.MULTILINE,
    )
    match = pattern.search(text)
    if match:
        return text[: match.start("value")] + value + text[match.end("value"):]
    closing = text.rfind("}")
    if closing == -1:
        raise MalformedInputError("config.edn has no closing brace for its top-level map.")
    return text[:closing].rstrip() + f"\n {key} {value}" + text[closing:]


@tagged_failures
def update_graph_config(graph: GraphMetadata, values: dict[str, Any]) -> dict[str, Any]:
    """Write settings into ``logseq/config.edn``, creating the file when absent.

    Args:
        graph: Target graph.
        values: Setting names from ``CONFIG_EDN_KEYS`` mapped to plain values.
            ``None`` values are skipped.

    Returns:
        The written keywords and their EDN values, plus ``status`` of
        ``created`` or ``updated``.
    """
    ensure_graph_ready(graph)
    settings = {name: value for name, value in values.items() if value is not None}
    unknown = sorted(set(settings) - set(CONFIG_EDN_KEYS))
    if unknown:
        raise MalformedInputError(
            f"Unknown config settings: {', '.join(unknown)}. "
            f"Expected any of: {', '.join(CONFIG_EDN_KEYS)}."
        )
    if not settings:
        raise MalformedInputError("No config settings given.")

    config_path = graph.path / CONFIG_EDN
    created = not config_path.is_file()
    text = "{}\n" if created else read_raw_text(config_path)
    written: dict[str, str] = {}
    for name, value in settings.items():
        keyword = CONFIG_EDN_KEYS[name]
        written[keyword] = _edn_value(value)
        text = upsert_edn_key(text, keyword, written[keyword])

    config_path.parent.mkdir(parents=True, exist_ok=True)
    write_raw_text(config_path, text)
    logger.info("Updated %s in config.edn of graph '%s'", ", ".join(written), graph.name)
    return {
        "graph": graph.name,
        "path": str(config_path),
        "updated": written,
        "status": "created" if created else "updated",
    }


@tagged_failures
def export_graph(graph: GraphMetadata) -> dict[str, Any]:
    """Summarize every page of the graph in one payload."""
    pages = collect_pages(graph)
    entries = [
        {
            "name": page.name,
            "title": page.title,
            "is_journal": page.is_journal,
            "journal_date": page.journal_date.isoformat() if page.journal_date else None,
            "block_count": len(page.blocks),
            "task_count": page.task_count,
            "modified": page.last_modified.isoformat() if page.last_modified else None,
            "properties": dict(page.properties),
        }
        for page in pages
    ]
    logger.info("Exported %d pages from graph '%s'", len(entries), graph.name)
    return {
        "graph": graph.name,
        "total_pages": len(entries),
        "total_journals": sum(1 for entry in entries if entry["is_journal"]),
        "total_blocks": sum(entry["block_count"] for entry in entries),
        "pages": entries,
    }
