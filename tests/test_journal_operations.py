"""Tests for journal pages and date ranges."""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from logseq_graph.core.journal_operations import (
    create_journal_page,
    get_journal_by_date,
    get_journal_summary,
    get_today_journal,
    parse_date_range,
    resolve_date,
)
from logseq_graph.errors import MalformedInputError

# A Wednesday
TODAY = date(2025, 1, 15)


class TestDateRanges:
    @pytest.mark.parametrize(
        "name, start, end",
        [
            ("today", date(2025, 1, 15), date(2025, 1, 15)),
            ("yesterday", date(2025, 1, 14), date(2025, 1, 14)),
            ("this week", date(2025, 1, 12), date(2025, 1, 15)),
            ("last week", date(2025, 1, 5), date(2025, 1, 11)),
            ("this month", date(2025, 1, 1), date(2025, 1, 15)),
            ("last month", date(2024, 12, 1), date(2024, 12, 31)),
            ("this year", date(2025, 1, 1), date(2025, 1, 15)),
            ("last year", date(2024, 1, 1), date(2024, 12, 31)),
            ("year to date", date(2025, 1, 1), date(2025, 1, 15)),
        ],
    )
    def test_named_ranges(self, name, start, end):
        assert parse_date_range(name, today=TODAY)[:2] == (start, end)

    def test_unknown_range_falls_back_to_this_week(self):
        assert parse_date_range("fortnight", today=TODAY) == parse_date_range("this week", today=TODAY)
        assert parse_date_range(None, today=TODAY)[2] == "Weekly Journal Summary"

    def test_week_starts_on_sunday(self):
        sunday = date(2025, 1, 12)
        assert parse_date_range("this week", today=sunday)[:2] == (sunday, sunday)

    def test_last_month_across_leap_february(self):
        assert parse_date_range("last month", today=date(2024, 3, 5))[:2] == (
            date(2024, 2, 1),
            date(2024, 2, 29),
        )


class TestResolveDate:
    def test_keywords(self):
        assert resolve_date("today", today=TODAY) == TODAY
        assert resolve_date("Tomorrow", today=TODAY) == date(2025, 1, 16)
        assert resolve_date("yesterday", today=TODAY) == date(2025, 1, 14)
        assert resolve_date(None, today=TODAY) == TODAY

    def test_iso_and_file_style_dates(self):
        assert resolve_date("2025-03-01") == date(2025, 3, 1)
        assert resolve_date("2025_03_01") == date(2025, 3, 1)

    def test_invalid_date(self):
        with pytest.raises(MalformedInputError):
            resolve_date("next blue moon")


class TestJournalPages:
    def test_create_then_exists(self, graph):
        created = create_journal_page(graph, "2025-01-10")
        assert created["status"] == "created"
        path = graph.journals_path / "2025_01_10.md"
        assert path.exists()
        path.write_text("- Morning notes\n", encoding="utf-8")

        again = create_journal_page(graph, "2025-01-10")
        assert again["status"] == "exists"
        assert path.read_text(encoding="utf-8") == "- Morning notes\n"

    def test_create_uses_graph_file_format(self, graph):
        dashed = replace(graph, journal_file_format="%Y-%m-%d")
        create_journal_page(dashed, "2025-01-10")
        assert (graph.journals_path / "2025-01-10.md").exists()

    def test_existing_journal_in_other_format_is_reused(self, graph, write_page):
        write_page("2025-01-10", "- Dashed name\n", journal=True)
        result = create_journal_page(graph, "2025-01-10")
        assert result["status"] == "exists"
        assert not (graph.journals_path / "2025_01_10.md").exists()

    def test_create_rejects_bad_date(self, graph):
        assert create_journal_page(graph, "01/10/2025")["error"] == "malformed_input"

    def test_get_journal_by_date(self, graph, write_page):
        write_page("2025_01_10", "- TODO Call vendor\n  - Ask about pricing\n", journal=True)
        result = get_journal_by_date(graph, "2025-01-10")
        assert result["journal_date"] == "2025-01-10"
        assert result["task_count"] == 1
        assert result["tree"][0]["children"][0]["content"] == "Ask about pricing"

    def test_missing_journal(self, graph):
        result = get_journal_by_date(graph, "2025-01-10")
        assert result["error"] == "not_found"
        assert result["date"] == "2025-01-10"

    def test_today_journal(self, graph, write_page):
        assert get_today_journal(graph)["error"] == "not_found"
        create_journal_page(graph)
        assert get_today_journal(graph)["journal_date"] == date.today().isoformat()


class TestJournalSummary:
    def test_summary_counts_references_in_range(self, graph, write_page):
        today = date.today()
        write_page(
            today.strftime("%Y_%m_%d"),
            "- Met with [[Alice]] about [[Roadmap]]\n- TODO Follow up with [[Alice]] #urgent\n",
            journal=True,
        )
        old = today - timedelta(days=400)
        write_page(old.strftime("%Y_%m_%d"), "- [[Ancient]] history\n", journal=True)

        result = get_journal_summary(graph, "this week")

        assert result["count"] == 1
        entry = result["entries"][0]
        assert entry["date"] == today.isoformat()
        assert entry["block_count"] == 2
        assert entry["task_count"] == 1
        assert result["top_references"][0] == {"page": "Alice", "count": 2}
        assert {"page": "urgent", "count": 1} in result["top_references"]
        assert all(ref["page"] != "Ancient" for ref in result["top_references"])

    def test_empty_range(self, graph):
        result = get_journal_summary(graph, "last year")
        assert result["count"] == 0
        assert result["entries"] == []
        assert result["top_references"] == []
