"""Pydantic input models for graph management operations.

This module defines input models for graph-level tools:
- List configured graphs and set the active graph for a session
- System info, config.edn and export of the selected graph
- Updating settings in config.edn
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .base import BaseGraphInput


class ListGraphsInput(BaseModel):
    """Input model for list_graphs tool.

    Takes no parameters, but using a model keeps every tool's API the same shape.
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [{}]
        }


class SetActiveGraphInput(BaseModel):
    """Input model for set_active_graph tool.

    All subsequent tool calls that omit the graph parameter will use this graph.

    Examples:
        >>> SetActiveGraphInput(graph="personal")
    """

    graph: str = Field(
        min_length=1,
        description=(
            "Graph name from graphs.yaml configuration. "
            "Use list_graphs() to discover valid names."
        ),
        examples=["personal", "work"]
    )

    @field_validator('graph')
    @classmethod
    def validate_graph(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError(
                "Graph name cannot be empty. "
                "Use list_graphs() to see available graphs."
            )
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"graph": "personal"},
                {"graph": "work"}
            ]
        }


class GraphInfoInput(BaseGraphInput):
    """Input model for get_system_info, get_graph_config and export_graph tools."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {},
                {"graph": "work"}
            ]
        }


class UpdateGraphConfigInput(BaseGraphInput):
    """Input model for update_graph_config tool.

    Only the given settings are written; everything else in config.edn is
    left as it is.

    Examples:
        >>> UpdateGraphConfigInput(start_of_week=1)
        >>> UpdateGraphConfigInput(preferred_format="markdown", enable_journals=True)
    """

    preferred_format: Optional[str] = Field(
        None,
        description="Format for new pages: 'Markdown' or 'Org' (case-insensitive).",
        examples=["Markdown", "Org"]
    )

    journal_page_title_format: Optional[str] = Field(
        None,
        min_length=1,
        description="Title format of journal pages, e.g. 'MMM do, yyyy'.",
        examples=["MMM do, yyyy", "yyyy-MM-dd"]
    )

    start_of_week: Optional[int] = Field(
        None,
        ge=0,
        le=6,
        description="First day of the week, 0 (Sunday) to 6 (Saturday)."
    )

    enable_journals: Optional[bool] = Field(
        None,
        description="Turn the journals feature on or off."
    )

    @field_validator('preferred_format')
    @classmethod
    def validate_preferred_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        formats = {"markdown": "Markdown", "org": "Org"}
        cleaned = v.strip().lower()
        if cleaned not in formats:
            raise ValueError(
                f"Unknown format '{v}'. Valid formats: Markdown, Org."
            )
        return formats[cleaned]

    @model_validator(mode='after')
    def validate_any_setting(self) -> "UpdateGraphConfigInput":
        if not self.settings():
            raise ValueError(
                "Provide at least one setting: preferred_format, "
                "journal_page_title_format, start_of_week or enable_journals."
            )
        return self

    def settings(self) -> dict[str, Any]:
        """Return the given settings keyed by name, without the graph field."""
        return self.model_dump(exclude={"graph"}, exclude_none=True)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"start_of_week": 1},
                {"preferred_format": "Markdown", "graph": "work"}
            ]
        }
