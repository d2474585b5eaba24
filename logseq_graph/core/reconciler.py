"""Reconcile a parsed block with the physical line that currently holds it.

The only durable store is the page file itself, so every mutation re-reads the
file, finds the one line that represents the block, edits that line and
re-reads the file to confirm the edit landed.

Line selection runs through tiers from most to least precise. Each tier scans
every body line; the first tier that yields candidates wins and its first
candidate is edited. When a tier yields several candidates the edit still
proceeds on the first one and the payload flags the match as ambiguous.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from logseq_graph.constants import PREVIEW_LINES
from logseq_graph.core.block_parser import (
    BULLET_PATTERN,
    IDENTITY_PATTERN,
    PRIORITY_PATTERN,
    PROPERTY_PATTERN,
    TASK_PATTERN,
    LineParts,
    identity_matches,
    new_identity,
    parse_block_line,
    short_identity,
    split_line_prefix,
)
from logseq_graph.core.page_assembler import assemble_page
from logseq_graph.data_models import Block, GraphMetadata, Page
from logseq_graph.errors import AmbiguousMatchError, MalformedInputError, NotFoundError

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 10


class EditKind(str, Enum):
    REPLACE_CONTENT = "replace_content"
    SET_TASK_STATE = "set_task_state"
    DELETE = "delete"


@dataclass
class LineMatch:
    """The line chosen for an edit and how it was found."""

    index: int
    strategy: str
    candidates: list[int] = field(default_factory=list)

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


# ==============================================================================
# RAW FILE ACCESS
# ==============================================================================


def read_raw_text(file_path: Path) -> str:
    """Read a file without newline translation so line endings survive a rewrite."""
    with file_path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def write_raw_text(file_path: Path, text: str) -> None:
    file_path.write_text(text, encoding="utf-8", newline="")


def _line_ending(line: str) -> str:
    return "\r" if line.endswith("\r") else ""


def _is_bulleted(line: str) -> bool:
    return bool(BULLET_PATTERN.match(line.strip()))


def _preview(lines: Sequence[str], limit: int = PREVIEW_LINES) -> list[str]:
    return [f"{number}: {line.rstrip()}" for number, line in enumerate(lines[:limit], start=1)]


# ==============================================================================
# MATCHING STRATEGIES
# ==============================================================================


def _by_recorded_position(lines: Sequence[str], block: Block, start: int) -> list[int]:
    index = block.line_number
    if index is None or index < start or index >= len(lines):
        return []
    current = parse_block_line(lines[index])
    if current is None or current.content != block.content:
        return []
    if block.identity_embedded and not identity_matches(current.identity, block.identity):
        return []
    return [index]


def _by_marker(lines: Sequence[str], block: Block, start: int) -> list[int]:
    if not block.identity_embedded:
        return []
    pattern = re.compile(rf"^[-*+]\s+{re.escape(block.identity)}(\s|$)")
    return [i for i in range(start, len(lines)) if pattern.match(lines[i].strip())]


def _by_marker_anywhere(lines: Sequence[str], block: Block, start: int) -> list[int]:
    if not block.identity_embedded:
        return []
    return [
        i for i in range(start, len(lines))
        if block.identity in lines[i] and _is_bulleted(lines[i])
    ]


def _by_exact_content(lines: Sequence[str], block: Block, start: int) -> list[int]:
    return [
        i for i in range(start, len(lines))
        if block.content in lines[i] and _is_bulleted(lines[i])
    ]


def _by_normalized_content(lines: Sequence[str], block: Block, start: int) -> list[int]:
    candidates = []
    for i in range(start, len(lines)):
        remainder = split_line_prefix(lines[i]).text
        if not remainder:
            continue
        if remainder == block.content or block.content in remainder:
            candidates.append(i)
        elif _is_bulleted(lines[i]) and len(remainder) >= PREFIX_LENGTH and remainder in block.content:
            candidates.append(i)
    return candidates


def _by_content_prefix(lines: Sequence[str], block: Block, start: int) -> list[int]:
    prefix = block.content[:PREFIX_LENGTH]
    candidates = []
    for i in range(start, len(lines)):
        if not _is_bulleted(lines[i]):
            continue
        remainder = split_line_prefix(lines[i]).text
        if not remainder:
            continue
        if prefix and prefix in remainder:
            candidates.append(i)
        elif len(remainder) >= PREFIX_LENGTH and remainder[:PREFIX_LENGTH] in block.content:
            candidates.append(i)
    return candidates


Strategy = Callable[[Sequence[str], Block, int], list[int]]

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("recorded_position", _by_recorded_position),
    ("marker", _by_marker),
    ("marker_anywhere", _by_marker_anywhere),
    ("exact_content", _by_exact_content),
    ("normalized_content", _by_normalized_content),
    ("content_prefix", _by_content_prefix),
)

# Exact and normalized content tiers
CONTENT_STRATEGIES = STRATEGIES[3:5]


def locate_block_line(
    lines: Sequence[str],
    block: Block,
    *,
    body_start: int = 0,
    strategies: Sequence[tuple[str, Strategy]] = STRATEGIES,
    page: Optional[Page] = None,
    require_unique: bool = False,
) -> LineMatch:
    """Find the line that currently represents ``block``.

    Args:
        lines: Raw file lines.
        block: Block from a fresh parse of the same file.
        body_start: Index of the first body line; header lines are never candidates.
        strategies: Tiers to try, most precise first.
        page: Owning page, used only to enrich failure context.
        require_unique: Raise instead of taking the first of several candidates.

    Returns:
        The selected line and the strategy that selected it.

    Raises:
        NotFoundError: No tier selected a line. The error carries the searched
            identity and content plus a numbered preview of the file.
        AmbiguousMatchError: ``require_unique`` is set and the winning tier
            yielded more than one line.
    """
    for name, strategy in strategies:
        candidates = strategy(lines, block, body_start)
        if not candidates:
            continue
        match = LineMatch(index=candidates[0], strategy=name, candidates=candidates)
        if match.ambiguous:
            if require_unique:
                raise AmbiguousMatchError(
                    f"{len(candidates)} lines match block content '{block.content}'.",
                    identity=block.identity,
                    content=block.content,
                    candidates=[i + 1 for i in candidates],
                    preview=[f"{i + 1}: {lines[i].rstrip()}" for i in candidates[:PREVIEW_LINES]],
                )
            logger.warning(
                "Strategy '%s' matched %d lines for block '%s'; editing line %d",
                name,
                len(candidates),
                block.short_id,
                match.index + 1,
            )
        logger.debug("Block '%s' located on line %d via '%s'", block.short_id, match.index + 1, name)
        return match

    raise NotFoundError(
        f"Block content not found in file for identity '{block.short_id}'.",
        identity=block.identity,
        content=block.content,
        page=page.name if page else None,
        path=str(page.file_path) if page else None,
        preview=_preview(lines),
    )


# ==============================================================================
# LINE REWRITING
# ==============================================================================


def _leading_identity(parts: LineParts, first_token: str, identity: Optional[str]) -> Optional[str]:
    """Return the identity token to write in front of ``first_token``.

    A line without an embedded identity gets one pinned when its first token
    would otherwise be read back as an identity.
    """
    if parts.identity or not IDENTITY_PATTERN.match(first_token):
        return parts.identity
    return short_identity(identity or new_identity())


def rewrite_content(line: str, content: str, identity: Optional[str] = None) -> str:
    """Replace a line's text while keeping its structural prefix and trailing metadata.

    Indentation, bullet and identity token are always kept. The task keyword and
    priority cookie are kept unless ``content`` starts with its own. Scheduling
    markers and inline properties of the old line are kept unless ``content``
    supplies the same ones. When the line has no identity token and ``content``
    starts with a word shaped like one, the short form of ``identity`` is
    written first so the word stays part of the content.
    """
    payload = content.strip()
    if not payload:
        raise MalformedInputError("Replacement content cannot be empty.")

    parts = split_line_prefix(line)
    old = parse_block_line(line)

    task_state = parts.task_state
    match = TASK_PATTERN.match(payload)
    if match:
        task_state = match.group("state")
        payload = payload[match.end():]

    priority = old.priority if old else parts.priority
    match = PRIORITY_PATTERN.match(payload)
    if match:
        priority = match.group("priority")
        payload = payload[match.end():].lstrip()

    tokens = [task_state] if task_state else []
    if priority:
        tokens.append(f"[#{priority}]")
    tokens.append(payload)

    if old is not None:
        if old.scheduled and "SCHEDULED:" not in payload:
            tokens.append(f"SCHEDULED: <{old.scheduled}>")
        if old.deadline and "DEADLINE:" not in payload:
            tokens.append(f"DEADLINE: <{old.deadline}>")
        supplied = {m.group("key") for m in PROPERTY_PATTERN.finditer(payload)}
        for key, value in old.properties.items():
            if key not in supplied:
                tokens.append(f"{key}:: {value}")

    leading = _leading_identity(parts, tokens[0], identity)
    if leading:
        tokens.insert(0, leading)
    return f"{parts.indent}{parts.bullet or '-'} " + " ".join(tokens) + _line_ending(line)


def rewrite_task_state(line: str, task_state: Optional[str], identity: Optional[str] = None) -> str:
    """Swap the task keyword of a line, keeping everything else."""
    parts = split_line_prefix(line)
    tokens = [task_state] if task_state else []
    if parts.priority:
        tokens.append(f"[#{parts.priority}]")
    if parts.text:
        tokens.append(parts.text)
    leading = _leading_identity(parts, tokens[0] if tokens else "", identity)
    if leading:
        tokens.insert(0, leading)
    return f"{parts.indent}{parts.bullet or '-'} " + " ".join(tokens) + _line_ending(line)


# ==============================================================================
# EDIT + VERIFY
# ==============================================================================


def _intended_content(kind: EditKind, original_line: str, payload: Optional[str]) -> Optional[str]:
    """Return the block content an edit is meant to leave on the line."""
    if kind is EditKind.REPLACE_CONTENT:
        parsed = parse_block_line(f"- {payload or ''}", detect_identity=False)
    else:
        parsed = parse_block_line(original_line)
    return parsed.content if parsed else None


def _verify(
    file_path: Path,
    written: str,
    kind: EditKind,
    index: int,
    new_line: Optional[str],
    block: Block,
    original_lines: Sequence[str],
    expected_content: Optional[str] = None,
) -> list[str]:
    """Re-read the file and return warnings for anything that does not look applied."""
    warnings: list[str] = []
    reread = read_raw_text(file_path)
    if reread != written:
        warnings.append("File content on disk differs from what was written.")

    lines = reread.split("\n")
    if kind is EditKind.DELETE:
        original_line = original_lines[index]
        if len(lines) != len(original_lines) - 1:
            warnings.append(
                f"Expected {len(original_lines) - 1} lines after deletion, found {len(lines)}."
            )
        if _by_marker(lines, block, 0):
            warnings.append(f"Identity '{block.identity}' is still present after deletion.")
        elif original_lines.count(original_line) == 1 and original_line in lines:
            warnings.append(f"Deleted line '{original_line.rstrip()}' is still present.")
    elif index >= len(lines) or lines[index] != new_line:
        warnings.append(f"Line {index + 1} does not hold the rewritten block.")
    else:
        reparsed = parse_block_line(lines[index])
        found = reparsed.content if reparsed else None
        if found != expected_content:
            warnings.append(
                f"Line {index + 1} reads back as content '{found}' instead of '{expected_content}'."
            )
    return warnings


def apply_edit(
    graph: Optional[GraphMetadata],
    page: Page,
    block: Block,
    kind: EditKind,
    payload: Optional[str] = None,
    *,
    strategies: Sequence[tuple[str, Strategy]] = STRATEGIES,
    require_unique: bool = False,
) -> dict[str, Any]:
    """Apply one edit to the line representing ``block`` and verify it.

    Args:
        graph: Owning graph, used to recompute block identities after the edit.
        page: Page from a fresh parse; its file is re-read here.
        block: Target block from the same parse.
        kind: Replace content, change task state, or delete.
        payload: New content for replace, new task keyword (or ``None``) for
            task-state edits. Ignored for deletes.
        strategies: Matching tiers to use.
        require_unique: Fail with ``ambiguous_match`` instead of editing the
            first of several candidate lines.

    Returns:
        A payload with the edited line, the strategy used, the verification
        result and, for rewrites, the block identity after the edit.

    Raises:
        NotFoundError: No line represents the block; the file is left untouched.
    """
    original_text = read_raw_text(page.file_path)
    lines = original_text.split("\n")
    match = locate_block_line(
        lines,
        block,
        body_start=page.body_start,
        strategies=strategies,
        page=page,
        require_unique=require_unique,
    )

    original_lines = list(lines)
    original_line = lines[match.index]
    new_line: Optional[str] = None
    if kind is EditKind.DELETE:
        del lines[match.index]
    elif kind is EditKind.SET_TASK_STATE:
        new_line = rewrite_task_state(original_line, payload, block.identity)
        lines[match.index] = new_line
    else:
        new_line = rewrite_content(original_line, payload or "", block.identity)
        lines[match.index] = new_line

    updated_text = "\n".join(lines)
    write_raw_text(page.file_path, updated_text)
    warnings = _verify(
        page.file_path,
        updated_text,
        kind,
        match.index,
        new_line,
        block,
        original_lines,
        _intended_content(kind, original_line, payload),
    )
    verified = not warnings
    if match.ambiguous:
        warnings.append(
            f"{len(match.candidates)} lines matched via '{match.strategy}'; edited the first (line {match.index + 1})."
        )
    for warning in warnings:
        logger.warning("Verification for block '%s' in '%s': %s", block.short_id, page.name, warning)

    result: dict[str, Any] = {
        "page": page.name,
        "path": str(page.file_path),
        "identity": block.identity,
        "strategy": match.strategy,
        "line_number": match.index + 1,
        "original_line": original_line.rstrip("\r"),
        "ambiguous": match.ambiguous,
        "candidates": [i + 1 for i in match.candidates],
        "verified": verified,
        "warnings": warnings,
    }

    if new_line is not None:
        result["new_line"] = new_line.rstrip("\r")
        edited = assemble_page(updated_text, page.file_path, graph)
        for candidate in edited.blocks:
            if candidate.line_number == match.index:
                result["identity"] = candidate.identity
                result["block"] = candidate.as_payload()
                break

    return result
