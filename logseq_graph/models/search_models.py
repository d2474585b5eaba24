"""Pydantic input models for search and reference-graph operations.

This module defines input models for read-only query tools:
- Full-graph search over page names and block content
- Task aggregation by state
- Backlinks, reference graph and knowledge-gap analysis
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .base import BaseGraphInput, BasePageInput, normalize_task_state


class SearchInput(BaseGraphInput):
    """Input model for search_graph tool.

    Examples:
        >>> SearchInput(query="urgent")
        >>> SearchInput(query="API", case_sensitive=True, limit=20)
    """

    query: str = Field(
        min_length=1,
        description="Text to find in page names, titles and block content.",
        examples=["urgent", "release"]
    )

    case_sensitive: bool = Field(
        False,
        description="Match case exactly (default: case-insensitive)."
    )

    limit: Optional[int] = Field(
        None,
        ge=1,
        le=1000,
        description="Maximum number of hits to return (page hits first)."
    )

    @field_validator('query')
    @classmethod
    def validate_query(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Search query cannot be empty or whitespace only.")
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"query": "urgent"},
                {"query": "release", "limit": 20}
            ]
        }


class GetTodosInput(BaseGraphInput):
    """Input model for get_todos tool."""

    states: Optional[list[str]] = Field(
        None,
        description="Task states to include (default: all known states).",
        examples=[["TODO", "DOING"], ["WAITING"]]
    )

    @field_validator('states')
    @classmethod
    def validate_states(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if not v:
            return None
        cleaned = [normalize_task_state(state) for state in v]
        return [state for state in cleaned if state] or None

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {},
                {"states": ["TODO", "DOING"]}
            ]
        }


class GetBacklinksInput(BasePageInput):
    """Input model for get_backlinks tool."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Deep Work"}
            ]
        }


class GetReferenceGraphInput(BaseGraphInput):
    """Input model for get_reference_graph tool. Omit ``page_name`` for the whole graph."""

    page_name: Optional[str] = Field(
        None,
        description="Limit the adjacency to one page."
    )

    @field_validator('page_name')
    @classmethod
    def validate_page_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {},
                {"page_name": "Roadmap"}
            ]
        }


class FindKnowledgeGapsInput(BaseGraphInput):
    """Input model for find_knowledge_gaps tool."""

    min_reference_count: int = Field(
        3,
        ge=0,
        description="Minimum references for a missing or underdeveloped page to be reported."
    )

    include_orphans: bool = Field(
        True,
        description="Also list regular pages that nothing references."
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {},
                {"min_reference_count": 1, "include_orphans": False}
            ]
        }
