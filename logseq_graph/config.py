"""Configuration loading and graph registry."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

import yaml

from logseq_graph.constants import (
    CONFIG_PATH,
    DISCOVERY_CANDIDATES,
    GRAPH_PATH_ENV,
    JOURNAL_FILE_FORMAT,
    JOURNALS_DIR,
    PAGES_DIR,
)
from logseq_graph.data_models import GraphConfiguration, GraphMetadata

logger = logging.getLogger(__name__)


def _resolve_path(raw_path: str) -> Path:
    resolved_path = Path(raw_path).expanduser()
    try:
        resolved_path = resolved_path.resolve(strict=False)
    except RuntimeError:
        # resolve can raise if underlying filesystem is inaccessible; fall back to expanded path
        pass
    return resolved_path


def discover_graph_root(candidates: Iterable[Path] = DISCOVERY_CANDIDATES) -> Optional[Path]:
    """Return the first candidate directory holding a ``pages`` or ``journals`` folder."""
    for candidate in candidates:
        try:
            if (candidate / PAGES_DIR).is_dir() or (candidate / JOURNALS_DIR).is_dir():
                return candidate
        except OSError:
            continue
    return None


def _load_config_file(config_path: Path) -> GraphConfiguration:
    raw_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    graphs_section = raw_config.get("graphs")
    if not isinstance(graphs_section, dict) or not graphs_section:
        raise ValueError("Graph configuration must include a non-empty 'graphs' mapping")

    processed: dict[str, GraphMetadata] = {}
    for name, entry in graphs_section.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Graph '{name}' must map to a dictionary of settings")

        raw_path = entry.get("path")
        if not isinstance(raw_path, str) or not raw_path.strip():
            raise ValueError(f"Graph '{name}' is missing a valid 'path' string")

        resolved_path = _resolve_path(raw_path)
        processed[name] = GraphMetadata(
            name=name,
            path=resolved_path,
            description=str(entry.get("description", "")).strip(),
            exists=resolved_path.is_dir(),
            pages_dir=entry.get("pages_dir", PAGES_DIR),
            journals_dir=entry.get("journals_dir", JOURNALS_DIR),
            journal_file_format=entry.get("journal_file_format", JOURNAL_FILE_FORMAT),
        )

    default_graph = raw_config.get("default")
    if default_graph is None and len(processed) == 1:
        default_graph = next(iter(processed))
    if not isinstance(default_graph, str) or default_graph not in processed:
        raise ValueError("Graph configuration must specify a 'default' graph present in the mapping")

    return GraphConfiguration(default_graph=default_graph, graphs=processed)


def load_graph_configuration(
    config_path: Path = CONFIG_PATH,
    environ: Optional[dict[str, str]] = None,
    candidates: Iterable[Path] = DISCOVERY_CANDIDATES,
) -> GraphConfiguration:
    """Resolve the graph registry.

    Sources, first match wins: the YAML configuration file, the
    ``LOGSEQ_GRAPH_PATH`` environment variable, then discovery over the usual
    Logseq locations.

    Args:
        config_path: Path to the YAML configuration file.
        environ: Environment mapping; defaults to ``os.environ``.
        candidates: Directories tried by discovery.

    Returns:
        A :class:`GraphConfiguration`. It is empty when nothing was found.

    Raises:
        ValueError: If the configuration file exists but is malformed.
    """
    if config_path.exists():
        logger.info("Loading graph configuration from %s", config_path)
        return _load_config_file(config_path)

    env = os.environ if environ is None else environ
    env_path = env.get(GRAPH_PATH_ENV, "").strip()
    if env_path:
        resolved = _resolve_path(env_path)
        graph = GraphMetadata(name="default", path=resolved, exists=resolved.is_dir())
        return GraphConfiguration(default_graph=graph.name, graphs={graph.name: graph})

    discovered = discover_graph_root(candidates)
    if discovered is None:
        logger.warning("No Logseq graph directory found; configure %s or %s", config_path, GRAPH_PATH_ENV)
        return GraphConfiguration(default_graph=None, graphs={})

    logger.info("Discovered Logseq graph at %s", discovered)
    graph = GraphMetadata(name=discovered.name, path=discovered, exists=True)
    return GraphConfiguration(default_graph=graph.name, graphs={graph.name: graph})


# Module-level singleton - resolved once at import time
GRAPH_CONFIGURATION = load_graph_configuration()
