"""Tests for single-line block parsing and serialization."""

import re

import pytest

from logseq_graph.core.block_parser import (
    identity_matches,
    measure_depth,
    parse_block_line,
    render_block_line,
    split_line_prefix,
    synthesize_identity,
)

FULL_ID = "64f1c2aa-5b1e-4c3d-8e9f-0a1b2c3d4e5f"

SAMPLE_LINES = [
    "- TODO [#A] Ship release SCHEDULED: <2025-01-10>",
    "- 64f1c2aa DONE Write docs DEADLINE: <2025-02-01 Sat>",
    "  - Meeting notes owner:: sam status: open",
    "- Discuss [[Project X]] with #alice see ((64f1c2aa-5b1e-4c3d-8e9f-0a1b2c3d4e5f))",
    "\t- LATER [#C] Tabbed task",
    "* WAITING Vendor reply [#B] SCHEDULED: <2025-03-03> DEADLINE: <2025-03-10>",
    f"- Block with property id id:: {FULL_ID}",
    "- Plain line",
    "Unbulleted paragraph text",
]


class TestParseBlockLine:
    def test_task_priority_and_schedule_are_extracted(self):
        block = parse_block_line("- TODO [#A] Ship release SCHEDULED: <2025-01-10>")
        assert block.task_state == "TODO"
        assert block.priority == "A"
        assert block.content == "Ship release"
        assert block.scheduled == "2025-01-10"
        assert block.deadline is None

    def test_embedded_short_identity(self):
        block = parse_block_line("- 64f1c2aa DONE Write docs")
        assert block.identity == "64f1c2aa"
        assert block.identity_embedded is True
        assert block.task_state == "DONE"
        assert block.content == "Write docs"

    def test_embedded_full_identity(self):
        block = parse_block_line(f"- {FULL_ID} Review")
        assert block.identity == FULL_ID
        assert block.short_id == "64f1c2aa"
        assert block.content == "Review"

    def test_id_property_becomes_identity(self):
        block = parse_block_line(f"- Block text id:: {FULL_ID}")
        assert block.identity == FULL_ID
        assert block.identity_embedded is True
        assert block.content == "Block text"
        assert block.properties == {"id": FULL_ID}

    def test_inline_properties_single_and_double_colon(self):
        block = parse_block_line("- Meeting notes owner:: sam status: open")
        assert block.properties == {"owner": "sam", "status": "open"}
        assert block.content == "Meeting notes"

    def test_urls_are_not_properties(self):
        block = parse_block_line("- See https://example.com/docs")
        assert block.properties == {}
        assert block.content == "See https://example.com/docs"

    def test_property_syntax_inside_links_is_ignored(self):
        block = parse_block_line("- Read [[Meeting notes: Q1 review]]")
        assert block.properties == {}
        assert block.content == "Read [[Meeting notes: Q1 review]]"
        assert block.page_references == ("Meeting notes: Q1 review",)

    def test_references_stay_in_content(self):
        line = f"- Discuss [[Project X]] with #alice see (({FULL_ID}))"
        block = parse_block_line(line)
        assert block.page_references == ("Project X",)
        assert block.tags == ("alice",)
        assert block.block_references == (FULL_ID,)
        assert block.references == frozenset({"Project X", "alice", FULL_ID})
        assert block.content == f"Discuss [[Project X]] with #alice see (({FULL_ID}))"

    def test_whitespace_collapses_only_at_cut_points(self):
        block = parse_block_line("- Fix  spacing [#B] here")
        assert block.content == "Fix  spacing here"
        assert block.priority == "B"

    def test_unbulleted_line_is_a_block(self):
        block = parse_block_line("Just a paragraph")
        assert block.content == "Just a paragraph"
        assert block.depth == 0

    @pytest.mark.parametrize("line", ["", "   ", "# Title", "## Section", "- SCHEDULED: <2025-01-10>"])
    def test_lines_without_content_are_skipped(self, line):
        assert parse_block_line(line) is None

    def test_tag_at_line_start_is_not_a_heading(self):
        block = parse_block_line("#idea worth keeping")
        assert block is not None
        assert block.tags == ("idea",)

    def test_synthesized_identity_is_deterministic(self):
        first = parse_block_line("- Plain line", seed="pages/a.md\n0\n- Plain line")
        second = parse_block_line("- Plain line", seed="pages/a.md\n0\n- Plain line")
        other = parse_block_line("- Plain line", seed="pages/a.md\n1\n- Plain line")
        assert first.identity_embedded is False
        assert first.identity == second.identity
        assert first.identity != other.identity
        assert first.identity == synthesize_identity("pages/a.md\n0\n- Plain line")

    def test_line_number_is_recorded(self):
        assert parse_block_line("- x item", line_number=7).line_number == 7


class TestDepth:
    def test_spaces_and_tabs(self):
        assert measure_depth("- Root") == 0
        assert measure_depth("  - Child") == 1
        assert measure_depth("    - Grandchild") == 2
        assert measure_depth("\t- Tabbed") == 1
        assert measure_depth("\t\t- Double tab") == 2
        assert measure_depth("   - Odd indent") == 1

    def test_depth_is_monotonic_in_indentation_width(self):
        depths = [measure_depth(" " * width + "- item") for width in range(12)]
        assert depths == sorted(depths)


class TestIdentityMatching:
    def test_exact_match(self):
        assert identity_matches(FULL_ID, FULL_ID)
        assert identity_matches("64f1c2aa", "64F1C2AA")

    def test_short_and_full_forms_match(self):
        assert identity_matches(FULL_ID, "64f1c2aa")
        assert identity_matches("64f1c2aa", FULL_ID)

    def test_short_queries_only_match_exactly(self):
        assert not identity_matches(FULL_ID, "64f1")
        assert not identity_matches(FULL_ID, "")


class TestSplitLinePrefix:
    def test_prefix_tokens(self):
        parts = split_line_prefix("    * 64f1c2aa NOW [#B] Rest of line owner:: me\r")
        assert parts.indent == "    "
        assert parts.bullet == "*"
        assert parts.identity == "64f1c2aa"
        assert parts.task_state == "NOW"
        assert parts.priority == "B"
        assert parts.text == "Rest of line owner:: me"
        assert parts.is_bulleted


class TestRoundTrip:
    LEAK_PATTERN = re.compile(
        r"^(TODO|DOING|DONE|LATER|NOW|WAITING|IN-PROGRESS)\b|\[#[ABC]\]|SCHEDULED:|DEADLINE:|\w::?\s"
    )

    @pytest.mark.parametrize("line", SAMPLE_LINES)
    def test_no_metadata_leaks_into_content(self, line):
        block = parse_block_line(line)
        assert not self.LEAK_PATTERN.search(block.content)

    @pytest.mark.parametrize("line", SAMPLE_LINES)
    def test_render_then_parse_keeps_content_and_metadata(self, line):
        block = parse_block_line(line)
        again = parse_block_line(render_block_line(block))
        assert again.content == block.content
        assert again.task_state == block.task_state
        assert again.priority == block.priority
        assert again.scheduled == block.scheduled
        assert again.deadline == block.deadline
        assert again.properties == block.properties
        assert again.depth == block.depth

    def test_embedded_identity_survives_rendering(self):
        block = parse_block_line("- 64f1c2aa DONE Write docs")
        assert render_block_line(block) == "- 64f1c2aa DONE Write docs"
        assert parse_block_line(render_block_line(block)).identity == "64f1c2aa"

    def test_render_rejects_unknown_bullet(self):
        block = parse_block_line("- item text")
        with pytest.raises(ValueError):
            render_block_line(block, bullet="~")
