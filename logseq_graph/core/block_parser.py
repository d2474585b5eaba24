"""Single-line outline parsing and rendering.

A body line such as::

    - 64f1c2aa TODO [#A] Ship release SCHEDULED: <2025-01-10> owner: sam

becomes a :class:`~logseq_graph.data_models.Block`. Extraction runs in a fixed
order (indentation, bullet, identity, task keyword, priority, scheduling,
inline properties, references) and every extracted token is cut out of the
remaining text before the next step runs.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from logseq_graph.constants import BULLETS, INDENT_WIDTH, TASK_STATES
from logseq_graph.data_models import Block

UUID_TEXT = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"

# Namespace for identities synthesized from line text
IDENTITY_NAMESPACE = uuid.UUID("6f1d8a52-3c1e-4b7a-9d0e-2c4b5a6e7f80")

HEADING_PATTERN = re.compile(r"^#{1,6}(\s|$)")
BULLET_PATTERN = re.compile(r"^[-*+](?:\s+|$)")
IDENTITY_PATTERN = re.compile(rf"^(?P<identity>{UUID_TEXT}|[0-9a-f]{{8}})(?:\s+|$)")
TASK_PATTERN = re.compile(
    r"^(?P<state>" + "|".join(re.escape(state) for state in TASK_STATES) + r")(?:\s+|$)"
)
PRIORITY_PATTERN = re.compile(r"\[#(?P<priority>[ABC])\]")
SCHEDULED_PATTERN = re.compile(r"SCHEDULED:\s*<(?P<value>[^>]+)>")
DEADLINE_PATTERN = re.compile(r"DEADLINE:\s*<(?P<value>[^>]+)>")
PROPERTY_PATTERN = re.compile(r"(?<!\S)(?P<key>[A-Za-z_][A-Za-z0-9_-]*)::?\s+(?P<value>\S+)")
BLOCK_REF_PATTERN = re.compile(r"\(\((?P<ref>[0-9a-f][0-9a-f-]{7,35})\)\)")
PAGE_REF_PATTERN = re.compile(r"\[\[(?P<ref>[^\[\]]+)\]\]")
TAG_PATTERN = re.compile(r"(?<!\S)#(?P<ref>[\w-]+)")
UUID_PATTERN = re.compile(rf"^{UUID_TEXT}$")


@dataclass
class LineParts:
    """Structural prefix of a raw body line, as the reconciler needs it."""

    indent: str
    bullet: Optional[str]
    identity: Optional[str]
    task_state: Optional[str]
    priority: Optional[str]
    text: str

    @property
    def is_bulleted(self) -> bool:
        return self.bullet is not None


def is_heading(line: str) -> bool:
    return bool(HEADING_PATTERN.match(line.strip()))


def measure_depth(line: str) -> int:
    """Return the nesting depth implied by the line's leading whitespace.

    Tabs count as one full indentation level.
    """
    leading = line[: len(line) - len(line.lstrip())]
    width = sum(INDENT_WIDTH if char == "\t" else 1 for char in leading)
    return width // INDENT_WIDTH


def synthesize_identity(seed: str) -> str:
    """Derive a stable identity for a line that carries no embedded marker."""
    return str(uuid.uuid5(IDENTITY_NAMESPACE, seed))


def new_identity() -> str:
    return str(uuid.uuid4())


def short_identity(identity: str) -> str:
    return identity.strip().lower()[:8]


def identity_matches(identity: str, query: str) -> bool:
    """Return True when ``query`` addresses ``identity``.

    Exact matches always count. Queries of at least eight characters also match
    when the eight-character short forms agree, so a short embedded id and a
    full UUID starting with it address the same block.
    """
    wanted = query.strip().lower()
    if not wanted:
        return False
    current = identity.lower()
    if current == wanted:
        return True
    return len(wanted) >= 8 and len(current) >= 8 and current[:8] == wanted[:8]


def _cut(text: str, spans: Iterable[tuple[int, int]]) -> str:
    """Remove ``spans`` from ``text``, collapsing whitespace only at the cut points."""
    ordered = sorted(spans)
    if not ordered:
        return text

    pieces: list[str] = []
    last = 0
    for start, end in ordered:
        if start < last:
            start = last
        pieces.append(text[last:start])
        last = max(last, end)
    pieces.append(text[last:])

    result = pieces[0]
    for piece in pieces[1:]:
        left = result.rstrip()
        right = piece.lstrip()
        if left and right:
            result = f"{left} {right}"
        else:
            result = left + right
    return result


def _overlaps(span: tuple[int, int], blocked: list[tuple[int, int]]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in blocked)


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = value.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def split_line_prefix(line: str) -> LineParts:
    """Split a raw line into indentation, bullet, identity, task keyword and priority.

    Only the prefix tokens are consumed; the priority cookie is consumed when it
    appears right after the task keyword (or at the start of the text).
    """
    body = line.rstrip("\r\n")
    indent = body[: len(body) - len(body.lstrip())]
    text = body.strip()

    bullet = None
    match = BULLET_PATTERN.match(text)
    if match:
        bullet = text[0]
        text = text[match.end():]

    identity = None
    match = IDENTITY_PATTERN.match(text)
    if match:
        identity = match.group("identity")
        text = text[match.end():]

    task_state = None
    match = TASK_PATTERN.match(text)
    if match:
        task_state = match.group("state")
        text = text[match.end():]

    priority = None
    match = PRIORITY_PATTERN.match(text)
    if match:
        priority = match.group("priority")
        text = text[match.end():].lstrip()

    return LineParts(
        indent=indent,
        bullet=bullet,
        identity=identity,
        task_state=task_state,
        priority=priority,
        text=text.strip(),
    )


def parse_block_line(
    line: str,
    *,
    line_number: Optional[int] = None,
    seed: Optional[str] = None,
    detect_identity: bool = True,
) -> Optional[Block]:
    """Parse one body line into a :class:`Block`.

    Args:
        line: Raw line text, including its indentation.
        line_number: Zero-based index of the line in its file, recorded on the block.
        seed: Text used to synthesize an identity when none is embedded in the
            line. Defaults to the stripped line.
        detect_identity: When False, a leading hex word is read as content
            rather than as an embedded identity token.

    Returns:
        The parsed block, or ``None`` for blank lines, headings and lines that
        hold nothing but metadata.
    """
    stripped = line.strip()
    if not stripped or is_heading(stripped):
        return None

    depth = measure_depth(line)
    text = stripped

    # Bullet
    match = BULLET_PATTERN.match(text)
    if match:
        text = text[match.end():]

    # Identity
    identity: Optional[str] = None
    match = IDENTITY_PATTERN.match(text) if detect_identity else None
    if match:
        identity = match.group("identity")
        text = text[match.end():]

    # Task keyword
    task_state = None
    match = TASK_PATTERN.match(text)
    if match:
        task_state = match.group("state")
        text = text[match.end():]

    # Priority cookie
    priority = None
    cookies = list(PRIORITY_PATTERN.finditer(text))
    if cookies:
        priority = cookies[0].group("priority")
        text = _cut(text, [cookie.span() for cookie in cookies])

    # Scheduling
    scheduled_matches = list(SCHEDULED_PATTERN.finditer(text))
    deadline_matches = list(DEADLINE_PATTERN.finditer(text))
    scheduled = scheduled_matches[0].group("value").strip() if scheduled_matches else None
    deadline = deadline_matches[0].group("value").strip() if deadline_matches else None
    text = _cut(text, [m.span() for m in scheduled_matches + deadline_matches])

    # Inline properties, ignoring anything inside link brackets
    link_spans = [m.span() for m in PAGE_REF_PATTERN.finditer(text)]
    link_spans += [m.span() for m in BLOCK_REF_PATTERN.finditer(text)]
    properties: dict[str, str] = {}
    property_spans: list[tuple[int, int]] = []
    for match in PROPERTY_PATTERN.finditer(text):
        if _overlaps(match.span(), link_spans):
            continue
        properties[match.group("key")] = match.group("value")
        property_spans.append(match.span())
    text = _cut(text, property_spans)

    # References stay in the content
    block_references = _unique(m.group("ref") for m in BLOCK_REF_PATTERN.finditer(text))
    page_references = _unique(m.group("ref") for m in PAGE_REF_PATTERN.finditer(text))
    tags = _unique(m.group("ref") for m in TAG_PATTERN.finditer(text))

    content = text.strip()
    if not content:
        return None

    embedded = identity is not None
    if identity is None and UUID_PATTERN.match(properties.get("id", "").lower()):
        identity = properties["id"].lower()
        embedded = True
    if identity is None:
        identity = synthesize_identity(seed if seed is not None else stripped)

    return Block(
        identity=identity,
        content=content,
        depth=depth,
        task_state=task_state,
        priority=priority,
        scheduled=scheduled,
        deadline=deadline,
        properties=properties,
        page_references=page_references,
        block_references=block_references,
        tags=tags,
        identity_embedded=embedded,
        line_number=line_number,
    )


def render_block_line(
    block: Block,
    *,
    bullet: str = "-",
    indent: Optional[str] = None,
    include_identity: bool = True,
) -> str:
    """Serialize a block back into one outline line.

    The identity token is written only when it was embedded in the source line
    (or ``include_identity`` forces a fresh block to carry it). Identities that
    came from an inline ``id`` property are written back as that property.
    """
    if bullet not in BULLETS:
        raise ValueError(f"Unsupported bullet '{bullet}'")

    parts: list[str] = []
    if include_identity and block.identity_embedded and block.properties.get("id") != block.identity:
        parts.append(block.identity)
    if block.task_state:
        parts.append(block.task_state)
    if block.priority:
        parts.append(f"[#{block.priority}]")
    parts.append(block.content)
    if block.scheduled:
        parts.append(f"SCHEDULED: <{block.scheduled}>")
    if block.deadline:
        parts.append(f"DEADLINE: <{block.deadline}>")
    for key, value in block.properties.items():
        parts.append(f"{key}:: {value}")

    prefix = indent if indent is not None else " " * (INDENT_WIDTH * block.depth)
    return f"{prefix}{bullet} " + " ".join(parts)
