"""Pydantic input models for journal operations."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import Field, field_validator

from .base import BaseGraphInput

DATE_PATTERN = re.compile(r"^(today|tomorrow|yesterday|\d{4}[-_]\d{2}[-_]\d{2})$", re.IGNORECASE)

DATE_RANGES = (
    "today",
    "yesterday",
    "this week",
    "last week",
    "this month",
    "last month",
    "this year",
    "last year",
    "year to date",
)


def _validate_date(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    cleaned = v.strip()
    if not DATE_PATTERN.match(cleaned):
        raise ValueError(
            f"Invalid date '{v}'. Use 'today', 'tomorrow', 'yesterday' or YYYY-MM-DD."
        )
    return cleaned.lower()


class CreateJournalPageInput(BaseGraphInput):
    """Input model for create_journal_page tool.

    Examples:
        >>> CreateJournalPageInput()
        >>> CreateJournalPageInput(date="2025-01-10")
    """

    date: Optional[str] = Field(
        None,
        description="'today' (default), 'tomorrow', 'yesterday' or an ISO date (YYYY-MM-DD).",
        examples=["today", "2025-01-10"]
    )

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return _validate_date(v)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"date": "today"},
                {"date": "2025-01-10", "graph": "work"}
            ]
        }


class GetTodayJournalInput(BaseGraphInput):
    """Input model for get_today_journal tool. Takes only the optional graph."""

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [{}]
        }


class GetJournalByDateInput(BaseGraphInput):
    """Input model for get_journal_by_date tool."""

    date: str = Field(
        min_length=1,
        description="ISO date (YYYY-MM-DD) or 'today', 'tomorrow', 'yesterday'.",
        examples=["2025-01-10", "yesterday"]
    )

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        cleaned = _validate_date(v)
        if cleaned is None:
            raise ValueError("Date cannot be empty.")
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"date": "2025-01-10"}
            ]
        }


class GetJournalSummaryInput(BaseGraphInput):
    """Input model for get_journal_summary tool.

    Unknown ranges fall back to 'this week' rather than failing.
    """

    date_range: str = Field(
        "this week",
        description=f"Named range: {', '.join(DATE_RANGES)}.",
        examples=list(DATE_RANGES)
    )

    @field_validator('date_range')
    @classmethod
    def validate_date_range(cls, v: str) -> str:
        return " ".join(v.lower().split()) or "this week"

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"date_range": "last week"},
                {"date_range": "year to date"}
            ]
        }
