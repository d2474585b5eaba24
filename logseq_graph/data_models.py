"""Data models for graph metadata, configuration and the parsed outline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from logseq_graph.constants import JOURNAL_FILE_FORMAT, JOURNALS_DIR, PAGES_DIR
from logseq_graph.errors import NotFoundError


@dataclass(frozen=True)
class GraphMetadata:
    """Normalized metadata describing a Logseq graph directory."""

    name: str
    path: Path
    description: str = ""
    exists: bool = True
    pages_dir: str = PAGES_DIR
    journals_dir: str = JOURNALS_DIR
    journal_file_format: str = JOURNAL_FILE_FORMAT

    @property
    def pages_path(self) -> Path:
        return self.path / self.pages_dir

    @property
    def journals_path(self) -> Path:
        return self.path / self.journals_dir

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        return {
            "name": self.name,
            "path": str(self.path),
            "description": self.description,
            "exists": self.path.is_dir(),
        }


class GraphConfiguration:
    """Holds graph metadata and default resolution helpers.

    Resolved once at startup from ``graphs.yaml``, the environment or directory
    discovery. An empty configuration is valid; lookups against it fail with
    :class:`NotFoundError`.
    """

    def __init__(self, default_graph: Optional[str], graphs: dict[str, GraphMetadata]) -> None:
        self.default_graph = default_graph
        self.graphs = graphs

    def get(self, name: Optional[str] = None) -> GraphMetadata:
        """Get graph metadata by name, falling back to the default graph.

        Args:
            name: The name of the graph to retrieve. ``None`` selects the default.

        Returns:
            GraphMetadata for the requested graph.

        Raises:
            NotFoundError: If the graph name is unknown or no graph root was discovered.
        """
        if not self.graphs:
            raise NotFoundError("No Logseq graph root could be discovered.")
        key = name or self.default_graph
        try:
            return self.graphs[key]
        except KeyError as exc:
            raise NotFoundError(
                f"Unknown graph '{key}'",
                available=sorted(self.graphs),
            ) from exc

    def as_payload(self) -> dict[str, Any]:
        return {
            "default": self.default_graph,
            "graphs": [graph.as_payload() for graph in self.graphs.values()],
        }


@dataclass
class Block:
    """One outline line and the metadata parsed out of it.

    Hierarchy is only implied by ``depth``; see :mod:`logseq_graph.core.outline`
    for the derived tree.
    """

    identity: str
    content: str
    depth: int = 0
    task_state: Optional[str] = None
    priority: Optional[str] = None
    scheduled: Optional[str] = None
    deadline: Optional[str] = None
    properties: dict[str, str] = field(default_factory=dict)
    page_references: tuple[str, ...] = ()
    block_references: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    identity_embedded: bool = False
    line_number: Optional[int] = None

    @property
    def references(self) -> frozenset[str]:
        """All referenced block ids, page names and tags as one set."""
        return frozenset(self.page_references) | frozenset(self.block_references) | frozenset(self.tags)

    @property
    def short_id(self) -> str:
        return self.identity[:8]

    def as_payload(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "short_id": self.short_id,
            "identity_embedded": self.identity_embedded,
            "content": self.content,
            "depth": self.depth,
            "task_state": self.task_state,
            "priority": self.priority,
            "scheduled": self.scheduled,
            "deadline": self.deadline,
            "properties": dict(self.properties),
            "references": sorted(self.references),
            "line_number": self.line_number,
        }


@dataclass
class Page:
    """One note file: header properties plus its ordered blocks."""

    name: str
    title: str
    file_path: Path
    blocks: list[Block] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    is_journal: bool = False
    journal_date: Optional[date] = None
    namespace: Optional[str] = None
    aliases: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    last_modified: Optional[datetime] = None
    created_at: Optional[datetime] = None
    body_start: int = 0

    @property
    def journal_day(self) -> Optional[int]:
        """Journal date as a ``YYYYMMDD`` integer."""
        if self.journal_date is None:
            return None
        return int(self.journal_date.strftime("%Y%m%d"))

    @property
    def task_count(self) -> int:
        return sum(1 for block in self.blocks if block.task_state)

    def matches_name(self, name: str) -> bool:
        """Return True when ``name`` equals the page name, title or an alias (case-insensitive)."""
        wanted = name.strip().lower()
        candidates = [self.name, self.title, *self.aliases]
        return any(candidate.lower() == wanted for candidate in candidates if candidate)

    def as_payload(self, include_blocks: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "title": self.title,
            "path": str(self.file_path),
            "is_journal": self.is_journal,
            "journal_date": self.journal_date.isoformat() if self.journal_date else None,
            "namespace": self.namespace,
            "aliases": list(self.aliases),
            "tags": list(self.tags),
            "properties": dict(self.properties),
            "block_count": len(self.blocks),
            "task_count": self.task_count,
            "modified": self.last_modified.isoformat() if self.last_modified else None,
            "created": self.created_at.isoformat() if self.created_at else None,
        }
        if include_blocks:
            payload["blocks"] = [block.as_payload() for block in self.blocks]
        return payload
