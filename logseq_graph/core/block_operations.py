"""Core business logic for block operations.

Reads go through a fresh collection pass. Mutations of an existing block go
through :func:`logseq_graph.core.reconciler.apply_edit`; inserts write a new
line that always embeds a short identity so callers can address the block on
later requests.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from logseq_graph.constants import INDENT_WIDTH, PRIORITIES, TASK_STATES
from logseq_graph.core.block_parser import (
    BULLET_PATTERN,
    identity_matches,
    measure_depth,
    new_identity,
    parse_block_line,
    short_identity,
)
from logseq_graph.core.collection import collect_pages, find_block, find_page
from logseq_graph.core.outline import build_tree, descendants
from logseq_graph.core.page_assembler import assemble_page
from logseq_graph.core.reconciler import (
    CONTENT_STRATEGIES,
    EditKind,
    apply_edit,
    locate_block_line,
    read_raw_text,
    write_raw_text,
)
from logseq_graph.data_models import Block, GraphMetadata
from logseq_graph.errors import MalformedInputError, NotFoundError, tagged_failures

logger = logging.getLogger(__name__)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _check_task_state(task_state: Optional[str]) -> Optional[str]:
    if task_state is None or not task_state.strip():
        return None
    normalized = task_state.strip().upper()
    if normalized not in TASK_STATES:
        raise MalformedInputError(
            f"Unknown task state '{task_state}'. Expected one of: {', '.join(TASK_STATES)}."
        )
    return normalized


def _check_priority(priority: Optional[str]) -> Optional[str]:
    if priority is None or not priority.strip():
        return None
    normalized = priority.strip().upper().lstrip("#")
    if normalized not in PRIORITIES:
        raise MalformedInputError(f"Unknown priority '{priority}'. Expected one of: A, B, C.")
    return normalized


def _check_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise MalformedInputError("Block content cannot be empty.")
    if "\n" in content.strip():
        raise MalformedInputError("Block content must be a single line.")
    return content.strip()


def compose_block_text(
    content: str,
    identity: Optional[str] = None,
    task_state: Optional[str] = None,
    priority: Optional[str] = None,
    scheduled: Optional[str] = None,
    deadline: Optional[str] = None,
) -> str:
    """Compose the text of a new block line (without indentation or bullet)."""
    tokens = [token for token in (identity, task_state) if token]
    if priority:
        tokens.append(f"[#{priority}]")
    tokens.append(content)
    if scheduled:
        tokens.append(f"SCHEDULED: <{scheduled}>")
    if deadline:
        tokens.append(f"DEADLINE: <{deadline}>")
    return " ".join(tokens)


def _indent_unit(lines: list[str]) -> str:
    for line in lines:
        if line.startswith("\t"):
            return "\t"
    return " " * INDENT_WIDTH


def _subtree_end(lines: list[str], index: int) -> int:
    """Return the index right after the last line nested under ``lines[index]``."""
    depth = measure_depth(lines[index])
    end = index + 1
    cursor = index + 1
    while cursor < len(lines):
        line = lines[cursor]
        if line.strip():
            if measure_depth(line) <= depth:
                break
            end = cursor + 1
        cursor += 1
    return end


def _append_line(text: str, line: str) -> str:
    if not text.strip():
        return line + "\n"
    if text.endswith("\n"):
        return text + line + "\n"
    return text + "\n" + line


# ==============================================================================
# READ OPERATIONS
# ==============================================================================


@tagged_failures
def list_blocks(graph: GraphMetadata, page_name: str) -> dict[str, Any]:
    """List the blocks of one page in file order."""
    page = find_page(collect_pages(graph), page_name)
    return {
        "graph": graph.name,
        "page": page.name,
        "count": len(page.blocks),
        "blocks": [block.as_payload() for block in page.blocks],
    }


@tagged_failures
def get_block(graph: GraphMetadata, identity: str, include_children: bool = False) -> dict[str, Any]:
    """Return one block by full or short identity."""
    if not identity or not identity.strip():
        raise MalformedInputError("Block identity is required.")
    page, block = find_block(collect_pages(graph), identity)
    payload: dict[str, Any] = {
        "graph": graph.name,
        "page": page.name,
        "block": block.as_payload(),
    }
    if include_children:
        index = page.blocks.index(block)
        payload["children"] = [node.as_payload() for node in build_tree(descendants(page.blocks, index))]
    return payload


# ==============================================================================
# MUTATIONS
# ==============================================================================


@tagged_failures
def insert_block(
    graph: GraphMetadata,
    page_name: str,
    content: str,
    task_state: Optional[str] = None,
    priority: Optional[str] = None,
    scheduled: Optional[str] = None,
    deadline: Optional[str] = None,
    parent: Optional[str] = None,
) -> dict[str, Any]:
    """Append a block to a page, or as the last child of ``parent``.

    The new line always carries an embedded short identity, returned in the
    payload, so the block stays addressable across parses.
    """
    content = _check_content(content)
    task_state = _check_task_state(task_state)
    priority = _check_priority(priority)

    pages = collect_pages(graph)
    page = find_page(pages, page_name)
    identity = short_identity(new_identity())
    text = compose_block_text(content, identity, task_state, priority, scheduled, deadline)

    original = read_raw_text(page.file_path)
    if parent:
        parent_block = next(
            (block for block in page.blocks if identity_matches(block.identity, parent)),
            None,
        )
        if parent_block is None:
            raise NotFoundError(
                f"Parent block '{parent}' not found on page '{page.name}'.",
                identity=parent,
                page=page.name,
            )
        lines = original.split("\n")
        match = locate_block_line(lines, parent_block, body_start=page.body_start, page=page)
        parent_line = lines[match.index]
        indent = parent_line[: len(parent_line) - len(parent_line.lstrip())] + _indent_unit(lines)
        position = _subtree_end(lines, match.index)
        lines.insert(position, f"{indent}- {text}")
        updated = "\n".join(lines)
    else:
        updated = _append_line(original, f"- {text}")

    write_raw_text(page.file_path, updated)

    written = assemble_page(read_raw_text(page.file_path), page.file_path, graph)
    inserted = next((block for block in written.blocks if block.identity == identity), None)
    verified = inserted is not None and inserted.content == parse_block_line(f"- {text}").content
    if not verified:
        logger.warning("Inserted block '%s' could not be re-read from '%s'", identity, page.file_path)

    logger.info("Inserted block '%s' into page '%s' in graph '%s'", identity, page.name, graph.name)
    return {
        "graph": graph.name,
        "page": page.name,
        "path": str(page.file_path),
        "identity": identity,
        "line": f"- {text}",
        "parent": parent,
        "block": inserted.as_payload() if inserted else None,
        "verified": verified,
        "status": "inserted",
    }


@tagged_failures
def update_block(graph: GraphMetadata, identity: str, content: str) -> dict[str, Any]:
    """Replace a block's content, keeping its bullet, identity and task prefix."""
    content = _check_content(content)
    page, block = find_block(collect_pages(graph), identity)
    result = apply_edit(graph, page, block, EditKind.REPLACE_CONTENT, content)
    logger.info("Updated block '%s' on page '%s' in graph '%s'", block.short_id, page.name, graph.name)
    result.update(graph=graph.name, status="updated")
    return result


@tagged_failures
def set_block_task_state(graph: GraphMetadata, identity: str, task_state: Optional[str]) -> dict[str, Any]:
    """Change (or clear, with ``None``) the task keyword of a block."""
    normalized = _check_task_state(task_state)
    page, block = find_block(collect_pages(graph), identity)
    result = apply_edit(graph, page, block, EditKind.SET_TASK_STATE, normalized)
    logger.info(
        "Set task state of block '%s' on page '%s' to %s",
        block.short_id,
        page.name,
        normalized or "none",
    )
    result.update(
        graph=graph.name,
        previous_task_state=block.task_state,
        task_state=normalized,
        status="updated",
    )
    return result


@tagged_failures
def delete_block(graph: GraphMetadata, identity: str) -> dict[str, Any]:
    """Delete the one line representing a block. Nested blocks are left in place."""
    if not identity or not identity.strip():
        raise MalformedInputError("Block identity is required.")
    page, block = find_block(collect_pages(graph), identity)
    result = apply_edit(graph, page, block, EditKind.DELETE)
    logger.info("Deleted block '%s' from page '%s' in graph '%s'", block.short_id, page.name, graph.name)
    result.update(graph=graph.name, content=block.content, status="deleted")
    return result


@tagged_failures
def delete_block_by_content(
    graph: GraphMetadata,
    page_name: str,
    content: str,
    require_unique: bool = False,
) -> dict[str, Any]:
    """Delete the first line of a page whose text matches ``content``.

    Only the content-based matching tiers are used. When several lines match,
    the first one is removed unless ``require_unique`` is set.
    """
    content = _check_content(content)
    page = find_page(collect_pages(graph), page_name)
    searched = Block(identity="", content=content)
    result = apply_edit(
        graph,
        page,
        searched,
        EditKind.DELETE,
        strategies=CONTENT_STRATEGIES,
        require_unique=require_unique,
    )
    logger.info("Deleted block matching '%s' from page '%s' in graph '%s'", content, page.name, graph.name)
    result.update(graph=graph.name, content=content, status="deleted")
    result.pop("identity", None)
    return result


@tagged_failures
def move_block(graph: GraphMetadata, identity: str, target_page: str) -> dict[str, Any]:
    """Move a block line to the end of another page.

    The moved line keeps its text (identity token included) and lands at depth 0.
    Nested blocks stay on the source page.
    """
    pages = collect_pages(graph)
    target = find_page(pages, target_page)
    page, block = find_block(pages, identity)

    lines = read_raw_text(page.file_path).split("\n")
    match = locate_block_line(lines, block, body_start=page.body_start, page=page)
    moved_line = lines[match.index].strip()
    identity_token = block.identity
    if not block.identity_embedded:
        # Synthesized identities depend on the file path, so pin one before moving
        identity_token = short_identity(block.identity)
        bullet = BULLET_PATTERN.match(moved_line)
        rest = moved_line[bullet.end():] if bullet else moved_line
        moved_line = f"- {identity_token} {rest}"

    removal = apply_edit(graph, page, block, EditKind.DELETE)
    target_text = read_raw_text(target.file_path)
    write_raw_text(target.file_path, _append_line(target_text, moved_line))

    logger.info(
        "Moved block '%s' from page '%s' to '%s' in graph '%s'",
        block.short_id,
        page.name,
        target.name,
        graph.name,
    )
    return {
        "graph": graph.name,
        "identity": identity_token,
        "source_page": page.name,
        "target_page": target.name,
        "line": moved_line,
        "verified": removal["verified"],
        "warnings": removal["warnings"],
        "status": "moved",
    }
