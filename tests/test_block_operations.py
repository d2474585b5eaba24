"""Tests for block-level operations."""

import re

import pytest

from logseq_graph.core.block_operations import (
    delete_block,
    delete_block_by_content,
    get_block,
    insert_block,
    list_blocks,
    move_block,
    set_block_task_state,
    update_block,
)
from logseq_graph.core.block_parser import new_identity


@pytest.fixture
def tasks_page(write_page):
    return write_page(
        "Tasks",
        "- 64f1c2aa TODO [#A] Ship release SCHEDULED: <2025-01-10>\n"
        "  - Write changelog\n"
        "- Review PR\n"
        "- Plan sprint\n"
        "- Review PR\n",
    )


def _identity_of(graph, page_name, content):
    blocks = list_blocks(graph, page_name)["blocks"]
    return next(block["identity"] for block in blocks if block["content"] == content)


class TestReadOperations:
    def test_list_blocks(self, graph, tasks_page):
        result = list_blocks(graph, "Tasks")
        assert result["count"] == 5
        assert [b["content"] for b in result["blocks"]][:2] == ["Ship release", "Write changelog"]
        assert result["blocks"][0]["identity"] == "64f1c2aa"

    def test_get_block_by_short_id_with_children(self, graph, tasks_page):
        result = get_block(graph, "64f1c2aa", include_children=True)
        assert result["page"] == "Tasks"
        assert result["block"]["task_state"] == "TODO"
        assert result["block"]["priority"] == "A"
        assert [child["content"] for child in result["children"]] == ["Write changelog"]

    def test_synthesized_identity_is_stable_across_calls(self, graph, tasks_page):
        identity = _identity_of(graph, "Tasks", "Plan sprint")
        assert get_block(graph, identity)["block"]["content"] == "Plan sprint"
        assert get_block(graph, identity[:8])["block"]["content"] == "Plan sprint"

    def test_unknown_block(self, graph, tasks_page):
        result = get_block(graph, "deadbeef")
        assert result["status"] == "error"
        assert result["error"] == "not_found"

    def test_unknown_page(self, graph):
        result = list_blocks(graph, "Missing")
        assert result["error"] == "not_found"


class TestInsertBlock:
    def test_insert_appends_line_with_embedded_identity(self, graph, tasks_page):
        result = insert_block(
            graph, "Tasks", "Cut release branch",
            task_state="todo", priority="b", scheduled="2025-01-12",
        )
        assert result["status"] == "inserted"
        assert re.fullmatch(r"[0-9a-f]{8}", result["identity"])
        assert result["verified"] is True
        last_line = tasks_page.read_text(encoding="utf-8").splitlines()[-1]
        assert last_line == f"- {result['identity']} TODO [#B] Cut release branch SCHEDULED: <2025-01-12>"
        assert get_block(graph, result["identity"])["block"]["content"] == "Cut release branch"

    def test_insert_under_parent_lands_after_its_subtree(self, graph, tasks_page):
        result = insert_block(graph, "Tasks", "Tag the release", parent="64f1c2aa")
        lines = tasks_page.read_text(encoding="utf-8").splitlines()
        assert lines[1] == "  - Write changelog"
        assert lines[2] == f"  - {result['identity']} Tag the release"
        assert lines[3] == "- Review PR"
        assert result["block"]["depth"] == 1

    def test_insert_into_empty_page(self, graph, write_page):
        path = write_page("Empty", "")
        result = insert_block(graph, "Empty", "First thought")
        assert path.read_text(encoding="utf-8") == f"- {result['identity']} First thought\n"

    def test_insert_rejects_bad_task_state(self, graph, tasks_page):
        before = tasks_page.read_bytes()
        result = insert_block(graph, "Tasks", "Something", task_state="MAYBE")
        assert result["error"] == "malformed_input"
        assert tasks_page.read_bytes() == before

    def test_insert_with_unknown_parent(self, graph, tasks_page):
        result = insert_block(graph, "Tasks", "Orphan", parent="deadbeef")
        assert result["error"] == "not_found"


class TestMutations:
    def test_update_block_keeps_prefix(self, graph, tasks_page):
        result = update_block(graph, "64f1c2aa", "Ship release 1.0")
        assert result["status"] == "updated"
        assert result["strategy"] == "recorded_position"
        first_line = tasks_page.read_text(encoding="utf-8").splitlines()[0]
        assert first_line == "- 64f1c2aa TODO [#A] Ship release 1.0 SCHEDULED: <2025-01-10>"

    def test_update_with_leading_hex_word_pins_identity(self, graph, tasks_page):
        identity = _identity_of(graph, "Tasks", "Plan sprint")
        result = update_block(graph, identity, "20250110 standup notes")
        assert result["verified"] is True
        assert result["identity"] == identity[:8]
        assert result["block"]["content"] == "20250110 standup notes"
        assert tasks_page.read_text(encoding="utf-8").splitlines()[3] == f"- {identity[:8]} 20250110 standup notes"
        assert get_block(graph, identity[:8])["block"]["content"] == "20250110 standup notes"

    def test_set_task_state_and_clear(self, graph, tasks_page):
        result = set_block_task_state(graph, "64f1c2aa", "DONE")
        assert result["previous_task_state"] == "TODO"
        assert result["block"]["task_state"] == "DONE"

        cleared = set_block_task_state(graph, "64f1c2aa", None)
        assert cleared["block"]["task_state"] is None
        assert tasks_page.read_text(encoding="utf-8").splitlines()[0].startswith("- 64f1c2aa [#A] Ship release")

    def test_set_task_state_rejects_unknown_state(self, graph, tasks_page):
        assert set_block_task_state(graph, "64f1c2aa", "SOMEDAY")["error"] == "malformed_input"

    def test_delete_block_leaves_other_lines(self, graph, tasks_page):
        identity = _identity_of(graph, "Tasks", "Plan sprint")
        result = delete_block(graph, identity)
        assert result["status"] == "deleted"
        assert result["verified"] is True
        assert tasks_page.read_text(encoding="utf-8") == (
            "- 64f1c2aa TODO [#A] Ship release SCHEDULED: <2025-01-10>\n"
            "  - Write changelog\n"
            "- Review PR\n"
            "- Review PR\n"
        )

    def test_delete_unknown_identity_writes_nothing(self, graph, tasks_page):
        before = tasks_page.read_bytes()
        result = delete_block(graph, "deadbeef")
        assert result["error"] == "not_found"
        assert tasks_page.read_bytes() == before

    def test_identity_never_written_to_file_cannot_be_deleted(self, graph, tasks_page):
        # An identity handed out without being persisted in the line is gone after the next parse
        before = tasks_page.read_bytes()
        result = delete_block(graph, new_identity())
        assert result["status"] == "error"
        assert result["error"] == "not_found"
        assert tasks_page.read_bytes() == before


class TestDeleteByContent:
    def test_duplicate_content_removes_first_match(self, graph, tasks_page):
        original = tasks_page.read_bytes()
        outcomes = []
        for _ in range(2):
            tasks_page.write_bytes(original)
            result = delete_block_by_content(graph, "Tasks", "Review PR")
            outcomes.append((result["line_number"], tasks_page.read_text(encoding="utf-8")))

        assert outcomes[0] == outcomes[1]
        line_number, text = outcomes[0]
        assert line_number == 3
        assert text.splitlines() == [
            "- 64f1c2aa TODO [#A] Ship release SCHEDULED: <2025-01-10>",
            "  - Write changelog",
            "- Plan sprint",
            "- Review PR",
        ]

    def test_duplicate_content_is_flagged(self, graph, tasks_page):
        result = delete_block_by_content(graph, "Tasks", "Review PR")
        assert result["ambiguous"] is True
        assert result["candidates"] == [3, 5]
        assert result["warnings"]

    def test_require_unique_fails_without_writing(self, graph, tasks_page):
        before = tasks_page.read_bytes()
        result = delete_block_by_content(graph, "Tasks", "Review PR", require_unique=True)
        assert result["error"] == "ambiguous_match"
        assert tasks_page.read_bytes() == before

    def test_short_line_is_not_taken_for_longer_content(self, graph, write_page):
        path = write_page("Groceries", "- Buy milk\n- x\n")
        result = delete_block_by_content(graph, "Groceries", "Fix the bug")
        assert result["error"] == "not_found"
        assert path.read_text(encoding="utf-8") == "- Buy milk\n- x\n"

    def test_shared_leading_words_do_not_match(self, graph, write_page):
        path = write_page("Reviews", "- Review the budget\n")
        result = delete_block_by_content(graph, "Reviews", "Review the design doc")
        assert result["error"] == "not_found"
        assert path.read_text(encoding="utf-8") == "- Review the budget\n"

    def test_shortened_line_still_matches(self, graph, write_page):
        path = write_page("Reviews", "- Review the budget\n- Other\n")
        result = delete_block_by_content(graph, "Reviews", "Review the budget for Q3")
        assert result["strategy"] == "normalized_content"
        assert result["verified"] is True
        assert path.read_text(encoding="utf-8") == "- Other\n"

    def test_no_match(self, graph, tasks_page):
        result = delete_block_by_content(graph, "Tasks", "Nothing like it")
        assert result["error"] == "not_found"
        assert result["preview"]


class TestMoveBlock:
    def test_move_keeps_embedded_identity(self, graph, tasks_page, write_page):
        archive = write_page("Archive", "- Old stuff\n")
        result = move_block(graph, "64f1c2aa", "Archive")
        assert result["status"] == "moved"
        assert result["identity"] == "64f1c2aa"
        assert "64f1c2aa" not in tasks_page.read_text(encoding="utf-8")
        assert archive.read_text(encoding="utf-8").splitlines()[-1] == (
            "- 64f1c2aa TODO [#A] Ship release SCHEDULED: <2025-01-10>"
        )
        assert get_block(graph, "64f1c2aa")["page"] == "Archive"

    def test_move_pins_identity_for_plain_lines(self, graph, tasks_page, write_page):
        write_page("Archive", "")
        identity = _identity_of(graph, "Tasks", "Plan sprint")
        result = move_block(graph, identity, "Archive")
        assert result["identity"] == identity[:8]
        found = get_block(graph, result["identity"])
        assert found["page"] == "Archive"
        assert found["block"]["content"] == "Plan sprint"
        assert found["block"]["depth"] == 0
