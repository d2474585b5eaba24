"""Core business logic for page operations."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from logseq_graph.constants import BULLETS
from logseq_graph.core.collection import collect_pages, ensure_graph_ready, find_page
from logseq_graph.core.outline import build_tree
from logseq_graph.core.page_assembler import (
    encode_page_name,
    render_header,
    replace_body,
    upsert_header_property,
)
from logseq_graph.core.reconciler import read_raw_text, write_raw_text
from logseq_graph.data_models import GraphMetadata, Page
from logseq_graph.errors import AlreadyExistsError, MalformedInputError, tagged_failures

logger = logging.getLogger(__name__)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def resolve_page_path(graph: GraphMetadata, page_name: str, root: Optional[Path] = None) -> Path:
    """Resolve a page name to its file path inside the graph.

    Namespaced names (``project/alpha``) are encoded into a single file name.

    Raises:
        MalformedInputError: If the name is empty or the path escapes the graph.
    """
    cleaned = page_name.strip()
    if not cleaned:
        raise MalformedInputError("Page name cannot be empty.")
    if cleaned.lower().endswith(".md"):
        cleaned = cleaned[:-3]
    if any(part in {".", ".."} for part in cleaned.split("/")):
        raise MalformedInputError(f"Page name '{page_name}' cannot contain '.' or '..' segments.")

    base = (root or graph.pages_path).resolve(strict=False)
    candidate = (base / f"{encode_page_name(cleaned)}.md").resolve(strict=False)
    if not candidate.is_relative_to(base):
        raise MalformedInputError(f"Page '{page_name}' escapes graph '{graph.name}'.")
    return candidate


def normalize_outline(content: str) -> str:
    """Bullet every non-blank line that is not already a bullet or heading."""
    lines = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(BULLETS) or stripped.startswith("#"):
            lines.append(line.rstrip())
            continue
        indent = line[: len(line) - len(line.lstrip())]
        lines.append(f"{indent}- {stripped}")
    return "\n".join(lines)


def _update_links(graph: GraphMetadata, pages: list[Page], old_name: str, new_name: str) -> int:
    """Rewrite ``[[old]]`` links and ``#old`` tags across the graph.

    Returns:
        Number of page files that were modified.
    """
    link_pattern = re.compile(r"\[\[" + re.escape(old_name) + r"\]\]", re.IGNORECASE)
    tag_pattern = re.compile(r"(?<!\S)#" + re.escape(old_name) + r"(?![\w-])", re.IGNORECASE)
    new_tag = f"#{new_name}" if re.fullmatch(r"[\w-]+", new_name) else f"#[[{new_name}]]"

    updated_count = 0
    for page in pages:
        try:
            content = read_raw_text(page.file_path)
        except OSError as exc:
            logger.warning("Could not read page '%s' while updating links: %s", page.file_path, exc)
            continue

        updated = link_pattern.sub(lambda _: f"[[{new_name}]]", content)
        updated = tag_pattern.sub(lambda _: new_tag, updated)
        if updated == content:
            continue
        try:
            write_raw_text(page.file_path, updated)
            updated_count += 1
        except OSError as exc:
            logger.warning("Failed to write updated links to '%s': %s", page.file_path, exc)

    return updated_count


# ==============================================================================
# PAGE OPERATIONS
# ==============================================================================


@tagged_failures
def list_pages(
    graph: GraphMetadata,
    filter: Optional[str] = None,
    include_journals: bool = True,
) -> dict[str, Any]:
    """List pages sorted by name, optionally filtered by name or title substring."""
    pages = collect_pages(graph)
    if not include_journals:
        pages = [page for page in pages if not page.is_journal]
    if filter:
        needle = filter.lower()
        pages = [
            page for page in pages
            if needle in page.name.lower() or needle in page.title.lower()
        ]
    pages.sort(key=lambda page: page.name.lower())

    return {
        "graph": graph.name,
        "filter": filter,
        "count": len(pages),
        "pages": [page.as_payload() for page in pages],
    }


@tagged_failures
def read_page(graph: GraphMetadata, page_name: str) -> dict[str, Any]:
    """Return a page with its flat blocks and the derived outline tree."""
    page = find_page(collect_pages(graph), page_name)
    payload = page.as_payload(include_blocks=True)
    payload["graph"] = graph.name
    payload["tree"] = [node.as_payload() for node in build_tree(page.blocks)]
    return payload


@tagged_failures
def create_page(
    graph: GraphMetadata,
    page_name: str,
    content: Optional[str] = None,
    properties: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Create a page file.

    Raises (as tagged failures):
        already_exists: A page with that name already exists.
        malformed_input: The name is empty or escapes the graph.
    """
    ensure_graph_ready(graph)
    target_path = resolve_page_path(graph, page_name)
    if target_path.exists():
        raise AlreadyExistsError(
            f"Page '{page_name}' already exists in graph '{graph.name}'.",
            page=page_name,
            path=str(target_path),
        )

    text = normalize_outline(content or "")
    if properties:
        text = render_header({str(k): str(v) for k, v in properties.items()}) + "\n" + text
    if text and not text.endswith("\n"):
        text += "\n"

    target_path.parent.mkdir(parents=True, exist_ok=True)
    write_raw_text(target_path, text)
    logger.info("Created page '%s' in graph '%s'", page_name, graph.name)
    return {
        "graph": graph.name,
        "page": page_name,
        "path": str(target_path),
        "status": "created",
    }


@tagged_failures
def update_page(graph: GraphMetadata, page_name: str, content: str) -> dict[str, Any]:
    """Replace a page's body, keeping its header block."""
    page = find_page(collect_pages(graph), page_name)
    existing = read_raw_text(page.file_path)
    body = normalize_outline(content)
    if body and not body.endswith("\n"):
        body += "\n"
    write_raw_text(page.file_path, replace_body(existing, body))
    logger.info("Replaced body of page '%s' in graph '%s'", page.name, graph.name)
    return {
        "graph": graph.name,
        "page": page.name,
        "path": str(page.file_path),
        "status": "updated",
    }


@tagged_failures
def delete_page(graph: GraphMetadata, page_name: str) -> dict[str, Any]:
    """Delete a page file."""
    page = find_page(collect_pages(graph), page_name)
    page.file_path.unlink(missing_ok=False)
    logger.info("Deleted page '%s' in graph '%s'", page.name, graph.name)
    return {
        "graph": graph.name,
        "page": page.name,
        "path": str(page.file_path),
        "status": "deleted",
    }


@tagged_failures
def rename_page(
    graph: GraphMetadata,
    old_name: str,
    new_name: str,
    update_links: bool = True,
) -> dict[str, Any]:
    """Rename a page file, optionally rewriting links and tags that point at it."""
    pages = collect_pages(graph)
    page = find_page(pages, old_name)
    root = graph.journals_path if page.is_journal else graph.pages_path
    new_path = resolve_page_path(graph, new_name, root=root).with_suffix(page.file_path.suffix)

    if new_path.exists() and new_path != page.file_path.resolve(strict=False):
        raise AlreadyExistsError(
            f"Page '{new_name}' already exists in graph '{graph.name}'.",
            page=new_name,
            path=str(new_path),
        )

    page.file_path.rename(new_path)
    links_updated = 0
    if update_links:
        remaining = [other for other in pages if other.file_path != page.file_path]
        remaining.append(page)
        page.file_path = new_path
        links_updated = _update_links(graph, remaining, page.name, new_name.strip())

    logger.info(
        "Renamed page '%s' to '%s' in graph '%s' (%d files updated)",
        page.name,
        new_name,
        graph.name,
        links_updated,
    )
    return {
        "graph": graph.name,
        "old_name": old_name,
        "new_name": new_name,
        "path": str(new_path),
        "links_updated": links_updated,
        "status": "renamed",
    }


@tagged_failures
def get_page_properties(graph: GraphMetadata, page_name: str) -> dict[str, Any]:
    page = find_page(collect_pages(graph), page_name)
    return {
        "graph": graph.name,
        "page": page.name,
        "properties": dict(page.properties),
        "has_properties": bool(page.properties),
    }


@tagged_failures
def set_page_property(graph: GraphMetadata, page_name: str, key: str, value: str) -> dict[str, Any]:
    """Set one header property, creating the header when the page has none."""
    key = key.strip()
    if not key or ":" in key or "\n" in key:
        raise MalformedInputError(f"Invalid property name '{key}'.")
    if "\n" in value:
        raise MalformedInputError("Property values must be a single line.")

    page = find_page(collect_pages(graph), page_name)
    existing = read_raw_text(page.file_path)
    write_raw_text(page.file_path, upsert_header_property(existing, key, value.strip()))
    logger.info("Set property '%s' on page '%s' in graph '%s'", key, page.name, graph.name)
    return {
        "graph": graph.name,
        "page": page.name,
        "property": key,
        "value": value.strip(),
        "status": "updated",
    }
