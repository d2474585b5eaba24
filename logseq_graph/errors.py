"""Failure taxonomy shared by every core operation.

Helpers raise the exceptions below. Public operations are wrapped with
:func:`tagged_failures`, which turns them into a plain failure payload so the
tool layer always receives data instead of a traceback.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., dict[str, Any]])


class GraphError(Exception):
    """Base class for failures reported back to the caller."""

    kind = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def as_payload(self) -> dict[str, Any]:
        """Return the tagged failure payload for this error."""
        payload: dict[str, Any] = {
            "status": "error",
            "error": self.kind,
            "message": self.message,
        }
        payload.update(self.context)
        return payload


class NotFoundError(GraphError):
    """Requested graph, page, block or file does not exist."""

    kind = "not_found"


class AmbiguousMatchError(GraphError):
    """More than one line could represent the block and a unique match was required."""

    kind = "ambiguous_match"


class GraphIOError(GraphError):
    """Underlying filesystem read or write failed."""

    kind = "io_failure"


class MalformedInputError(GraphError, ValueError):
    """A structurally required argument is absent or unusable."""

    kind = "malformed_input"


class AlreadyExistsError(GraphError):
    """Target page or journal file already exists."""

    kind = "already_exists"


def tagged_failures(func: F) -> F:
    """Convert raised graph and filesystem errors into tagged failure payloads.

    Args:
        func: A core operation returning a payload dictionary.

    Returns:
        A wrapper with the same signature that never raises :class:`GraphError`
        or :class:`OSError`; both become ``{"status": "error", ...}`` payloads.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            return func(*args, **kwargs)
        except GraphError as exc:
            logger.info("%s failed (%s): %s", func.__name__, exc.kind, exc.message)
            return exc.as_payload()
        except OSError as exc:
            logger.warning("%s failed with filesystem error: %s", func.__name__, exc)
            return GraphIOError(
                f"Filesystem error during {func.__name__}: {exc}",
                path=str(exc.filename) if exc.filename else None,
            ).as_payload()

    return wrapper  # type: ignore[return-value]
