"""Pydantic input models for page operations.

This module defines input models for page management:
- List, read, create, update, delete and rename pages
- Read and set page properties
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .base import BaseGraphInput, BasePageInput


class ListPagesInput(BaseGraphInput):
    """Input model for list_pages tool.

    Examples:
        >>> ListPagesInput()
        >>> ListPagesInput(filter="project", include_journals=False)
    """

    filter: Optional[str] = Field(
        None,
        description="Case-insensitive substring matched against page names and titles."
    )

    include_journals: bool = Field(
        True,
        description="Include journal pages in the listing."
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"graph": None},
                {"filter": "project", "include_journals": False}
            ]
        }


class ReadPageInput(BasePageInput):
    """Input model for read_page tool.

    Returns the page header properties, flat blocks and derived outline tree.

    Examples:
        >>> ReadPageInput(page_name="Roadmap")
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap", "graph": None}
            ]
        }


class CreatePageInput(BasePageInput):
    """Input model for create_page tool.

    Fails with ``already_exists`` when the page file is present. Lines that
    are not bullets or headings are bulleted on write.

    Examples:
        >>> CreatePageInput(page_name="Roadmap", content="- First item")
        >>> CreatePageInput(page_name="project/alpha", properties={"status": "active"})
    """

    content: Optional[str] = Field(
        None,
        description="Initial outline text. Omit to create an empty page."
    )

    properties: Optional[dict[str, str]] = Field(
        None,
        description="Header properties written as flat 'key: value' lines.",
        examples=[{"title": "Roadmap", "tags": "planning"}]
    )

    @field_validator('properties')
    @classmethod
    def validate_properties(cls, v: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
        """Reject property keys that cannot be written as header lines."""
        if not v:
            return None
        for key, value in v.items():
            if not key.strip() or ":" in key or "\n" in key:
                raise ValueError(f"Invalid property name '{key}'.")
            if "\n" in str(value):
                raise ValueError(f"Property '{key}' must be a single line.")
        return {key.strip(): str(value).strip() for key, value in v.items()}

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {
                    "page_name": "Roadmap",
                    "content": "- First item\n  - Nested item",
                    "properties": {"title": "Roadmap"},
                    "graph": None
                }
            ]
        }


class UpdatePageInput(BasePageInput):
    """Input model for update_page tool.

    Replaces the page body; the header block is kept as is.

    Examples:
        >>> UpdatePageInput(page_name="Roadmap", content="- Replaced outline")
    """

    content: str = Field(
        description="New body text. Can be empty to clear the outline."
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap", "content": "- Q1 goals\n- Q2 goals"}
            ]
        }


class DeletePageInput(BasePageInput):
    """Input model for delete_page tool."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Scratch"}
            ]
        }


class RenamePageInput(BasePageInput):
    """Input model for rename_page tool.

    Examples:
        >>> RenamePageInput(page_name="Old Name", new_name="New Name")
    """

    new_name: str = Field(
        min_length=1,
        description="New page name. Namespaces use '/'.",
        examples=["Archive/Roadmap 2024"]
    )

    update_links: bool = Field(
        True,
        description="Rewrite [[links]] and #tags pointing at the old name across the graph."
    )

    @field_validator('new_name')
    @classmethod
    def validate_new_name(cls, v: str) -> str:
        cleaned = v.strip()
        if cleaned.endswith(".md"):
            cleaned = cleaned[:-3].strip()
        if not cleaned:
            raise ValueError("New page name cannot be empty.")
        if any(part in {".", ".."} for part in cleaned.split("/")):
            raise ValueError(
                "New page name cannot contain '.' or '..' path segments. "
                f"Invalid page name: '{cleaned}'"
            )
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap", "new_name": "Roadmap 2025", "update_links": True}
            ]
        }


class GetPagePropertiesInput(BasePageInput):
    """Input model for get_page_properties tool."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap"}
            ]
        }


class SetPagePropertyInput(BasePageInput):
    """Input model for set_page_property tool.

    An existing key is replaced on its own header line; a missing header is created.

    Examples:
        >>> SetPagePropertyInput(page_name="Roadmap", key="status", value="active")
    """

    key: str = Field(
        min_length=1,
        description="Property name, e.g. 'status' or 'tags'.",
        examples=["status", "tags", "alias"]
    )

    value: str = Field(
        description="Property value written verbatim on one line.",
        examples=["active", "[[planning]], [[q1]]"]
    )

    @field_validator('key')
    @classmethod
    def validate_key(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned or ":" in cleaned or "\n" in cleaned:
            raise ValueError(
                "Property name must be non-empty and cannot contain ':' or newlines. "
                f"Invalid property name: '{v}'"
            )
        return cleaned

    @field_validator('value')
    @classmethod
    def validate_value(cls, v: str) -> str:
        if "\n" in v:
            raise ValueError("Property values must be a single line.")
        return v.strip()

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"page_name": "Roadmap", "key": "status", "value": "active"}
            ]
        }
