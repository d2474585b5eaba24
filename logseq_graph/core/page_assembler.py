"""Assemble a page file into a :class:`Page`.

Header handling uses python-frontmatter's YAML handler to detect and split the
``---`` delimited block, but header lines are read as flat ``key: value``
pairs: Logseq writes values such as ``tags: [[a]], [[b]]`` that are not valid
YAML.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import frontmatter

from logseq_graph.core.block_parser import parse_block_line
from logseq_graph.data_models import GraphMetadata, Page
from logseq_graph.errors import GraphIOError

logger = logging.getLogger(__name__)

HEADER_HANDLER = frontmatter.YAMLHandler()
NATIVE_PROPERTY_PATTERN = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_-]*)::\s*(?P<value>.*)$")
JOURNAL_NAME_PATTERN = re.compile(r"^(?P<year>\d{4})[_.-]?(?P<month>\d{2})[_.-]?(?P<day>\d{2})$")
NAMESPACE_SEPARATOR = "/"


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _closing_delimiter(lines: list[str]) -> Optional[int]:
    """Return the index of the header's closing delimiter line, if the file has a header."""
    if not lines or not HEADER_HANDLER.FM_BOUNDARY.match(lines[0]):
        return None
    for index in range(1, len(lines)):
        if HEADER_HANDLER.FM_BOUNDARY.match(lines[index]):
            return index
    # Opening delimiter without a closing one: everything is body
    return None


def split_header(text: str) -> tuple[Optional[str], str]:
    """Split a ``---`` delimited header from the body.

    Args:
        text: Full file text.

    Returns:
        ``(header, body)`` where ``header`` is the raw text between the
        delimiters, or ``None`` when the file has no complete header block.
    """
    if not HEADER_HANDLER.detect(text):
        return None, text
    lines = text.split("\n")
    closing = _closing_delimiter(lines)
    if closing is None:
        return None, text
    return "\n".join(lines[1:closing]), "\n".join(lines[closing + 1:])


def parse_header(header: str) -> dict[str, str]:
    """Parse header lines as flat ``key: value`` pairs, keeping file order."""
    properties: dict[str, str] = {}
    for line in header.splitlines():
        key, separator, value = line.partition(":")
        key = key.strip()
        if not separator or not key:
            continue
        properties[key] = value.lstrip(":").strip()
    return properties


def _split_list_property(value: Optional[str]) -> list[str]:
    if not value:
        return []
    items = []
    for item in value.split(","):
        cleaned = item.strip().removeprefix("[[").removesuffix("]]").lstrip("#").strip()
        if cleaned:
            items.append(cleaned)
    return items


def decode_page_name(stem: str) -> str:
    """Turn a file stem into a page name, decoding namespace separators."""
    return unquote(stem.replace("___", NAMESPACE_SEPARATOR))


def encode_page_name(name: str) -> str:
    """Turn a page name into a file stem, encoding namespace separators."""
    return name.strip().replace(NAMESPACE_SEPARATOR, "___")


def parse_journal_date(stem: str) -> Optional[date]:
    """Parse ``YYYY_MM_DD``, ``YYYY-MM-DD`` or ``YYYYMMDD`` stems; ``None`` when not a date."""
    match = JOURNAL_NAME_PATTERN.match(stem)
    if not match:
        return None
    try:
        return date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    except ValueError:
        return None


def _is_under(path: Path, root: Path) -> bool:
    try:
        return path.resolve(strict=False).is_relative_to(root.resolve(strict=False))
    except OSError:
        return False


def _file_timestamps(file_path: Path) -> tuple[datetime, Optional[datetime]]:
    stat = file_path.stat()
    modified = datetime.fromtimestamp(stat.st_mtime)
    birth = getattr(stat, "st_birthtime", None)
    created = datetime.fromtimestamp(birth) if birth else datetime.fromtimestamp(stat.st_ctime)
    return modified, created


def body_offset(text: str) -> int:
    """Return the index of the first body line of ``text`` (0 without a header)."""
    if not HEADER_HANDLER.detect(text):
        return 0
    closing = _closing_delimiter(text.split("\n"))
    return 0 if closing is None else closing + 1


# ==============================================================================
# ASSEMBLY
# ==============================================================================


def assemble_page(
    text: str,
    file_path: Path,
    graph: Optional[GraphMetadata] = None,
    *,
    is_journal: Optional[bool] = None,
) -> Page:
    """Build a :class:`Page` from a file's text and path.

    Args:
        text: Full file contents.
        file_path: Path of the file; the page name comes from its stem.
        graph: Owning graph. Used to classify journals and to seed block
            identities with the graph-relative path.
        is_journal: Explicit journal flag; derived from ``graph`` when omitted.

    Returns:
        The assembled page. Filesystem timestamps are left unset.
    """
    header, body = split_header(text)
    properties = parse_header(header) if header is not None else {}
    offset = body_offset(text)

    body_lines = body.split("\n")
    first_content = 0
    for index, line in enumerate(body_lines):
        if not line.strip():
            continue
        native = NATIVE_PROPERTY_PATTERN.match(line.strip())
        if not native:
            break
        properties.setdefault(native.group("key"), native.group("value").strip())
        first_content = index + 1

    relative = file_path.as_posix()
    if graph is not None and _is_under(file_path, graph.path):
        relative = file_path.resolve(strict=False).relative_to(graph.path.resolve(strict=False)).as_posix()

    blocks = []
    occurrences: dict[str, int] = {}
    for index, line in enumerate(body_lines):
        if index < first_content:
            continue
        stripped = line.strip()
        if not stripped:
            continue
        seen = occurrences.get(stripped, 0)
        occurrences[stripped] = seen + 1
        block = parse_block_line(
            line,
            line_number=offset + index,
            seed=f"{relative}\n{seen}\n{stripped}",
        )
        if block is not None:
            blocks.append(block)

    name = decode_page_name(file_path.stem)
    if is_journal is None:
        is_journal = graph is not None and _is_under(file_path, graph.journals_path)
    journal_date = parse_journal_date(file_path.stem) if is_journal else None
    namespace = name.rsplit(NAMESPACE_SEPARATOR, 1)[0] if NAMESPACE_SEPARATOR in name else None

    return Page(
        name=name,
        title=properties.get("title") or name,
        file_path=file_path,
        blocks=blocks,
        properties=properties,
        is_journal=is_journal,
        journal_date=journal_date,
        namespace=namespace,
        aliases=_split_list_property(properties.get("alias")),
        tags=_split_list_property(properties.get("tags")),
        body_start=offset,
    )


def read_page_file(file_path: Path, graph: Optional[GraphMetadata] = None) -> Optional[Page]:
    """Read and assemble one page file.

    Returns:
        The page, or ``None`` when the file cannot be read (permissions,
        encoding, concurrent deletion). Unreadable files are logged and skipped.
    """
    try:
        text = file_path.read_text(encoding="utf-8")
        modified, created = _file_timestamps(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable page file '%s': %s", file_path, exc)
        return None

    page = assemble_page(text, file_path, graph)
    page.last_modified = modified
    page.created_at = created
    return page


def load_page_file(file_path: Path, graph: Optional[GraphMetadata] = None) -> Page:
    """Like :func:`read_page_file`, but raise :class:`GraphIOError` instead of returning ``None``."""
    page = read_page_file(file_path, graph)
    if page is None:
        raise GraphIOError(f"Page file '{file_path}' could not be read.", path=str(file_path))
    return page


# ==============================================================================
# HEADER REWRITING
# ==============================================================================


def render_header(properties: dict[str, str]) -> str:
    """Render flat properties as a ``---`` delimited header block."""
    lines = [HEADER_HANDLER.START_DELIMITER]
    lines.extend(f"{key}: {value}" for key, value in properties.items())
    lines.append(HEADER_HANDLER.END_DELIMITER)
    return "\n".join(lines) + "\n"


def upsert_header_property(text: str, key: str, value: str) -> str:
    """Set ``key`` in the file's header, creating the header when absent.

    An existing key is replaced on its own line so the rest of the header keeps
    its order and formatting.
    """
    lines = text.split("\n")
    closing = _closing_delimiter(lines)
    if closing is None:
        return render_header({key: value}) + "\n" + text

    entry = f"{key}: {value}"
    for index in range(1, closing):
        existing, separator, _ = lines[index].partition(":")
        if separator and existing.strip() == key:
            lines[index] = entry
            return "\n".join(lines)

    insert_at = closing
    while insert_at > 1 and not lines[insert_at - 1].strip():
        insert_at -= 1
    lines.insert(insert_at, entry)
    return "\n".join(lines)


def replace_body(text: str, new_body: str) -> str:
    """Replace the body of ``text`` while keeping its header block."""
    lines = text.split("\n")
    closing = _closing_delimiter(lines)
    if closing is None:
        return new_body
    return "\n".join(lines[: closing + 1]) + "\n" + new_body
