"""Shared fixtures: a throwaway Logseq graph on disk."""

from pathlib import Path

import pytest

from logseq_graph.data_models import GraphMetadata


@pytest.fixture
def graph(tmp_path):
    """Create an empty graph with pages/ and journals/ directories."""
    root = tmp_path / "graph"
    (root / "pages").mkdir(parents=True)
    (root / "journals").mkdir()
    return GraphMetadata(name="test", path=root.resolve(), description="test graph")


@pytest.fixture
def write_page(graph):
    """Write a page (or journal, with ``journal=True``) and return its path."""

    def _write(name: str, content: str, journal: bool = False) -> Path:
        root = graph.journals_path if journal else graph.pages_path
        path = root / f"{name}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write
