"""Pydantic input models for block operations.

This module defines input models for block-level tools:
- List blocks of a page and read one block
- Insert, update, move and delete blocks
- Change a block's task state
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from logseq_graph.constants import PRIORITIES

from .base import BaseBlockInput, BasePageInput, normalize_task_state


def _single_line(v: str) -> str:
    cleaned = v.strip()
    if not cleaned:
        raise ValueError("Block content cannot be empty.")
    if "\n" in cleaned:
        raise ValueError(
            "Block content must be a single line. "
            "Insert nested lines as separate blocks with 'parent'."
        )
    return cleaned


class ListBlocksInput(BasePageInput):
    """Input model for list_blocks tool."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap"}
            ]
        }


class GetBlockInput(BaseBlockInput):
    """Input model for get_block tool.

    Examples:
        >>> GetBlockInput(identity="64f1c2aa", include_children=True)
    """

    include_children: bool = Field(
        False,
        description="Also return the nested blocks under this one as a tree."
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"identity": "64f1c2aa", "include_children": True}
            ]
        }


class InsertBlockInput(BasePageInput):
    """Input model for insert_block tool.

    The new block always gets an embedded short id, returned as ``identity``.

    Examples:
        >>> InsertBlockInput(page_name="Roadmap", content="Ship release", task_state="TODO")
        >>> InsertBlockInput(page_name="Roadmap", content="Sub step", parent="64f1c2aa")
    """

    content: str = Field(
        min_length=1,
        description="Single line of block text. [[links]], #tags and ((refs)) are kept as written.",
        examples=["Ship release", "Read [[Deep Work]] #books"]
    )

    task_state: Optional[str] = Field(
        None,
        description="Optional task keyword: TODO, DOING, DONE, LATER, NOW, WAITING or IN-PROGRESS."
    )

    priority: Optional[str] = Field(
        None,
        description="Optional priority: A, B or C."
    )

    scheduled: Optional[str] = Field(
        None,
        description="Optional SCHEDULED date text, e.g. '2025-01-10 Fri'.",
        examples=["2025-01-10 Fri"]
    )

    deadline: Optional[str] = Field(
        None,
        description="Optional DEADLINE date text.",
        examples=["2025-01-31 Fri"]
    )

    parent: Optional[str] = Field(
        None,
        description="Identity of the block to nest under; the new block becomes its last child."
    )

    @field_validator('content')
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _single_line(v)

    @field_validator('task_state')
    @classmethod
    def validate_task_state(cls, v: Optional[str]) -> Optional[str]:
        return normalize_task_state(v)

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        cleaned = v.strip().upper().lstrip("#")
        if cleaned not in PRIORITIES:
            raise ValueError(f"Unknown priority '{v}'. Valid priorities: A, B, C.")
        return cleaned

    @field_validator('scheduled', 'deadline')
    @classmethod
    def validate_date_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        cleaned = v.strip().strip("<>").strip()
        if ">" in cleaned or "<" in cleaned or "\n" in cleaned:
            raise ValueError(f"Invalid date text '{v}'.")
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {
                    "page_name": "Roadmap",
                    "content": "Ship release",
                    "task_state": "TODO",
                    "priority": "A",
                    "scheduled": "2025-01-10"
                },
                {
                    "page_name": "Roadmap",
                    "content": "Write changelog",
                    "parent": "64f1c2aa"
                }
            ]
        }


class UpdateBlockInput(BaseBlockInput):
    """Input model for update_block tool.

    Indentation, bullet, identity, task keyword and priority are kept unless
    ``content`` starts with its own task keyword or priority cookie.
    """

    content: str = Field(
        min_length=1,
        description="Replacement text for the block (single line)."
    )

    @field_validator('content')
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _single_line(v)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"identity": "64f1c2aa", "content": "Ship release v2"}
            ]
        }


class SetBlockTaskStateInput(BaseBlockInput):
    """Input model for set_block_task_state tool. Omit ``task_state`` to clear it."""

    task_state: Optional[str] = Field(
        None,
        description="New task keyword, or null to remove the keyword."
    )

    @field_validator('task_state')
    @classmethod
    def validate_task_state(cls, v: Optional[str]) -> Optional[str]:
        return normalize_task_state(v)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"identity": "64f1c2aa", "task_state": "DONE"},
                {"identity": "64f1c2aa", "task_state": None}
            ]
        }


class DeleteBlockInput(BaseBlockInput):
    """Input model for delete_block tool."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"identity": "64f1c2aa"}
            ]
        }


class DeleteBlockByContentInput(BasePageInput):
    """Input model for delete_block_by_content tool.

    The first line whose text matches is deleted. Set ``require_unique`` to
    fail instead when several lines match.
    """

    content: str = Field(
        min_length=1,
        description="Block text to match (content-based matching only)."
    )

    require_unique: bool = Field(
        False,
        description="Fail with ambiguous_match when more than one line matches."
    )

    @field_validator('content')
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _single_line(v)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap", "content": "Review PR"}
            ]
        }


class MoveBlockInput(BaseBlockInput):
    """Input model for move_block tool."""

    target_page: str = Field(
        min_length=1,
        description="Page the block is appended to (at the top level)."
    )

    @field_validator('target_page')
    @classmethod
    def validate_target_page(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Target page cannot be empty.")
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"identity": "64f1c2aa", "target_page": "Archive"}
            ]
        }
