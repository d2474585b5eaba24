"""Base Pydantic models for MCP tool input validation.

This module defines base models that provide common validation patterns
for graph, page and block operations. Other input models inherit from these bases.

Base Models:
- BaseGraphInput: Optional graph selection shared by every tool
- BasePageInput: Adds page name validation for page-scoped operations
- BaseBlockInput: Adds block identity validation for block-scoped operations
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from logseq_graph.constants import TASK_STATES

IDENTITY_QUERY_PATTERN = re.compile(r"^[0-9a-fA-F-]{8,36}$")


def normalize_task_state(v: Optional[str]) -> Optional[str]:
    """Upper-case a task keyword and check it against the known vocabulary."""
    if v is None or not v.strip():
        return None
    cleaned = v.strip().upper()
    if cleaned not in TASK_STATES:
        raise ValueError(
            f"Unknown task state '{v}'. "
            f"Valid states: {', '.join(TASK_STATES)}."
        )
    return cleaned


class BaseGraphInput(BaseModel):
    """Base model carrying the optional graph name."""

    graph: Optional[str] = Field(
        None,
        description=(
            "Graph name (omit to use active graph). "
            "Use list_graphs() to discover available graphs."
        )
    )

    @field_validator('graph')
    @classmethod
    def validate_graph(cls, v: Optional[str]) -> Optional[str]:
        """Validate graph name format.

        Raises:
            ValueError: If graph name is an empty string
        """
        if v is not None and not v.strip():
            raise ValueError(
                "Graph name cannot be empty. "
                "Either omit the graph parameter to use the active graph, "
                "or provide a valid graph name from list_graphs()."
            )

        return v.strip() if v else None


class BasePageInput(BaseGraphInput):
    """Base model for page operations with common validation.

    All page-scoped input models should inherit from this class.
    """

    page_name: str = Field(
        min_length=1,
        description=(
            "Page name, title or alias (case-insensitive). "
            "Namespaced pages use '/', e.g. 'project/alpha'. "
            "Journal pages are named after their file, e.g. '2025_01_10'."
        ),
        examples=["Roadmap", "project/alpha", "2025_01_10"]
    )

    @field_validator('page_name')
    @classmethod
    def validate_page_name(cls, v: str) -> str:
        """Validate page name for safety and format.

        Enforces:
        - Non-empty name
        - No path traversal attempts (.., .)
        - Strips .md extension if present

        Raises:
            ValueError: If the name is empty or contains traversal segments
        """
        cleaned = v.strip()

        if cleaned.endswith(".md"):
            cleaned = cleaned[:-3].strip()

        if not cleaned:
            raise ValueError(
                "Page name cannot be empty. "
                "Provide a page name like 'Roadmap' or 'project/alpha'."
            )

        if any(part in {".", ".."} for part in cleaned.split("/")):
            raise ValueError(
                "Page name cannot contain '.' or '..' path segments. "
                f"Invalid page name: '{cleaned}'"
            )

        return cleaned


class BaseBlockInput(BaseGraphInput):
    """Base model for operations addressing one block by identity."""

    identity: str = Field(
        min_length=8,
        description=(
            "Block identity: the 8-character short id or the full UUID "
            "returned by list_blocks(), get_block() or insert_block()."
        ),
        examples=["64f1c2aa", "64f1c2aa-5b1e-4c3d-8e9f-0a1b2c3d4e5f"]
    )

    @field_validator('identity')
    @classmethod
    def validate_identity(cls, v: str) -> str:
        """Validate identity format.

        Raises:
            ValueError: If the identity is not a hex short id or UUID
        """
        cleaned = v.strip().strip("()").lower()
        if not IDENTITY_QUERY_PATTERN.match(cleaned):
            raise ValueError(
                "Block identity must be an 8-character hex short id or a UUID. "
                f"Invalid identity: '{v}'"
            )
        return cleaned
