"""Session state management for active graph selection."""

import logging
from typing import Any, Callable, Dict, Optional
from mcp.server.fastmcp import Context

from logseq_graph.config import GRAPH_CONFIGURATION
from logseq_graph.data_models import GraphMetadata
from logseq_graph.errors import GraphError

logger = logging.getLogger(__name__)

# Session state storage
_ACTIVE_GRAPHS: Dict[int, str] = {}


def get_session_key(ctx: Context) -> int:
    """Produce a stable per-session key for active graph tracking."""
    return id(ctx.session)


def set_active_graph(ctx: Context, graph_name: str) -> GraphMetadata:
    """Set the active graph for a client session.

    Raises:
        NotFoundError: If ``graph_name`` is not present in the configuration.
    """
    metadata = GRAPH_CONFIGURATION.get(graph_name)
    _ACTIVE_GRAPHS[get_session_key(ctx)] = metadata.name
    return metadata


def get_active_graph(ctx: Context) -> GraphMetadata:
    """Retrieve the active graph for a session, falling back to the default."""
    return GRAPH_CONFIGURATION.get(_ACTIVE_GRAPHS.get(get_session_key(ctx)))


def resolve_graph(graph: Optional[str], ctx: Optional[Context] = None) -> GraphMetadata:
    """Resolve which graph metadata should be used for an operation.

    Args:
        graph: Optional graph name provided directly by the caller.
        ctx: Optional FastMCP context used to infer the active graph when ``graph``
            is not supplied.

    Raises:
        NotFoundError: If the graph is unknown or no graph is configured.
    """
    if graph:
        return GRAPH_CONFIGURATION.get(graph)

    if ctx is not None:
        return get_active_graph(ctx)

    return GRAPH_CONFIGURATION.get()


def run_in_graph(
    graph: Optional[str],
    ctx: Optional[Context],
    operation: Callable[..., dict[str, Any]],
    *args: Any,
    **kwargs: Any,
) -> dict[str, Any]:
    """Resolve the graph and run a core operation against it.

    Graph resolution failures are returned as tagged failure payloads, like
    every failure raised inside the operation itself.
    """
    try:
        metadata = resolve_graph(graph, ctx)
    except GraphError as exc:
        logger.info("Graph resolution failed: %s", exc.message)
        return exc.as_payload()
    return operation(metadata, *args, **kwargs)
