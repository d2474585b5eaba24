"""Collection aggregation: walk the graph directories and assemble every page.

Nothing is cached. Each call re-walks both roots and re-parses every file, so
callers always see what is on disk right now.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

from logseq_graph.constants import NOTE_EXTENSIONS
from logseq_graph.core.block_parser import identity_matches
from logseq_graph.core.page_assembler import read_page_file
from logseq_graph.data_models import Block, GraphMetadata, Page
from logseq_graph.errors import NotFoundError

logger = logging.getLogger(__name__)


def ensure_graph_ready(graph: GraphMetadata) -> None:
    """Ensure the graph directory is accessible before performing operations.

    Raises:
        NotFoundError: If the graph path does not exist or is not a directory.
    """
    if not graph.path.is_dir():
        raise NotFoundError(
            f"Graph '{graph.name}' is not accessible at {graph.path}",
            graph=graph.name,
            path=str(graph.path),
        )


def iter_note_files(root: Path) -> Iterator[Path]:
    """Yield note files under ``root`` recursively, in sorted order."""
    if not root.is_dir():
        return
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() in NOTE_EXTENSIONS and path.is_file():
            yield path


def collect_pages(graph: GraphMetadata) -> list[Page]:
    """Assemble every page and journal file of the graph.

    Pages come first, then journals, each in path order. Files that cannot be
    read are skipped.
    """
    ensure_graph_ready(graph)

    pages: list[Page] = []
    for root, is_journal in ((graph.pages_path, False), (graph.journals_path, True)):
        for file_path in iter_note_files(root):
            page = read_page_file(file_path, graph)
            if page is None:
                continue
            page.is_journal = is_journal
            pages.append(page)

    logger.debug("Collected %d pages from graph '%s'", len(pages), graph.name)
    return pages


def find_page(pages: list[Page], page_name: str) -> Page:
    """Return the page whose name, title or alias matches ``page_name``.

    Exact name matches win over title and alias matches.

    Raises:
        NotFoundError: When no page matches; the payload lists a few known pages.
    """
    wanted = page_name.strip().lower()
    for page in pages:
        if page.name.lower() == wanted:
            return page
    for page in pages:
        if page.matches_name(page_name):
            return page

    raise NotFoundError(
        f"Page '{page_name}' not found.",
        page=page_name,
        available=sorted(page.name for page in pages)[:10],
    )


def find_block(pages: list[Page], identity: str) -> tuple[Page, Block]:
    """Return the first page/block pair whose block identity matches ``identity``.

    Raises:
        NotFoundError: When no block in the collection carries the identity.
    """
    for page in pages:
        for block in page.blocks:
            if identity_matches(block.identity, identity):
                return page, block

    raise NotFoundError(
        f"Block with identity '{identity}' not found in any page.",
        identity=identity,
    )


def optional_page(pages: list[Page], page_name: Optional[str]) -> Optional[Page]:
    """Like :func:`find_page`, but return ``None`` for a missing page or name."""
    if not page_name:
        return None
    try:
        return find_page(pages, page_name)
    except NotFoundError:
        return None
