import unittest
from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory

from logseq_graph.core.outline import build_tree, descendants
from logseq_graph.core.page_assembler import (
    assemble_page,
    decode_page_name,
    encode_page_name,
    parse_journal_date,
    read_page_file,
    replace_body,
    split_header,
    upsert_header_property,
)
from logseq_graph.data_models import GraphMetadata


class PageAssemblerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.graph_path = Path(self.tmpdir.name).resolve()
        (self.graph_path / "pages").mkdir()
        (self.graph_path / "journals").mkdir()
        self.graph = GraphMetadata(name="test", path=self.graph_path)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _page_path(self, name: str) -> Path:
        return self.graph_path / "pages" / f"{name}.md"

    def test_header_title_and_nested_blocks(self) -> None:
        text = "---\ntitle: Roadmap\n---\n\n- First item\n  - Nested item"
        page = assemble_page(text, self._page_path("roadmap"), self.graph)
        self.assertEqual(page.title, "Roadmap")
        self.assertEqual(page.name, "roadmap")
        self.assertEqual([(b.depth, b.content) for b in page.blocks], [(0, "First item"), (1, "Nested item")])
        self.assertEqual(page.body_start, 3)
        self.assertEqual([b.line_number for b in page.blocks], [4, 5])

    def test_page_without_header_uses_file_name(self) -> None:
        page = assemble_page("- Only block\n", self._page_path("Inbox"), self.graph)
        self.assertEqual(page.properties, {})
        self.assertEqual(page.title, "Inbox")
        self.assertFalse(page.is_journal)

    def test_header_values_are_read_flat(self) -> None:
        text = "---\ntags: [[a]], [[b]]\nalias: Road Map, [[RM]]\n---\n- x item\n"
        page = assemble_page(text, self._page_path("roadmap"), self.graph)
        self.assertEqual(page.properties["tags"], "[[a]], [[b]]")
        self.assertEqual(page.tags, ["a", "b"])
        self.assertEqual(page.aliases, ["Road Map", "RM"])
        self.assertTrue(page.matches_name("rm"))

    def test_native_page_properties_are_merged(self) -> None:
        text = "title:: Native Title\nalias:: Other\n\n- Block"
        page = assemble_page(text, self._page_path("native"), self.graph)
        self.assertEqual(page.title, "Native Title")
        self.assertEqual(page.aliases, ["Other"])
        self.assertEqual([b.content for b in page.blocks], ["Block"])

    def test_unclosed_header_is_body(self) -> None:
        text = "---\ntitle: Broken\n- Item"
        self.assertEqual(split_header(text), (None, text))
        page = assemble_page(text, self._page_path("broken"), self.graph)
        self.assertEqual(page.properties, {})
        self.assertEqual(page.body_start, 0)

    def test_headings_are_not_blocks(self) -> None:
        page = assemble_page("# Heading\n- Item\n## Sub\n", self._page_path("h"), self.graph)
        self.assertEqual([b.content for b in page.blocks], ["Item"])

    def test_namespace_decoding(self) -> None:
        self.assertEqual(decode_page_name("project___alpha"), "project/alpha")
        self.assertEqual(decode_page_name("a%2Fb"), "a/b")
        self.assertEqual(encode_page_name("project/alpha"), "project___alpha")
        page = assemble_page("- x item", self._page_path("project___alpha"), self.graph)
        self.assertEqual(page.name, "project/alpha")
        self.assertEqual(page.namespace, "project")

    def test_journal_pages(self) -> None:
        path = self.graph_path / "journals" / "2025_01_10.md"
        page = assemble_page("- Entry", path, self.graph)
        self.assertTrue(page.is_journal)
        self.assertEqual(page.journal_date, date(2025, 1, 10))
        self.assertEqual(page.journal_day, 20250110)

    def test_journal_date_formats(self) -> None:
        self.assertEqual(parse_journal_date("2025_01_10"), date(2025, 1, 10))
        self.assertEqual(parse_journal_date("2025-01-10"), date(2025, 1, 10))
        self.assertEqual(parse_journal_date("20250110"), date(2025, 1, 10))
        self.assertIsNone(parse_journal_date("2025_13_40"))
        self.assertIsNone(parse_journal_date("roadmap"))

    def test_identities_are_stable_and_distinct_for_duplicates(self) -> None:
        text = "- Review PR\n- Other\n- Review PR\n"
        first = assemble_page(text, self._page_path("dupes"), self.graph)
        second = assemble_page(text, self._page_path("dupes"), self.graph)
        self.assertEqual([b.identity for b in first.blocks], [b.identity for b in second.blocks])
        self.assertNotEqual(first.blocks[0].identity, first.blocks[2].identity)

    def test_parsing_twice_yields_identical_structure(self) -> None:
        text = (
            "---\ntitle: T\n---\n"
            "- TODO [#A] One SCHEDULED: <2025-01-10>\n"
            "  - Two owner:: me\n"
            "\t- Three DEADLINE: <2025-02-01>\n"
        )
        fields = lambda page: [
            (b.content, b.depth, b.task_state, b.priority, b.scheduled, b.deadline, b.properties)
            for b in page.blocks
        ]
        first = assemble_page(text, self._page_path("t"), self.graph)
        second = assemble_page(text, self._page_path("t"), self.graph)
        self.assertEqual(fields(first), fields(second))

    def test_read_page_file_sets_timestamps(self) -> None:
        path = self._page_path("stamped")
        path.write_text("- Item\n", encoding="utf-8")
        page = read_page_file(path, self.graph)
        self.assertIsNotNone(page.last_modified)
        self.assertIsNotNone(page.created_at)

    def test_read_page_file_skips_undecodable_files(self) -> None:
        path = self._page_path("binary")
        path.write_bytes(b"\xff\xfe\x00bad")
        with self.assertLogs("logseq_graph.core.page_assembler", level="WARNING"):
            self.assertIsNone(read_page_file(path, self.graph))


class HeaderRewriteTests(unittest.TestCase):
    def test_upsert_replaces_existing_key_in_place(self) -> None:
        text = "---\ntitle: A\nstatus: old\n---\n- x item\n"
        self.assertEqual(
            upsert_header_property(text, "status", "new"),
            "---\ntitle: A\nstatus: new\n---\n- x item\n",
        )

    def test_upsert_appends_missing_key(self) -> None:
        text = "---\ntitle: A\n---\n- x item\n"
        self.assertEqual(
            upsert_header_property(text, "status", "new"),
            "---\ntitle: A\nstatus: new\n---\n- x item\n",
        )

    def test_upsert_creates_header(self) -> None:
        self.assertEqual(
            upsert_header_property("- x item\n", "status", "new"),
            "---\nstatus: new\n---\n\n- x item\n",
        )

    def test_replace_body_keeps_header(self) -> None:
        text = "---\ntitle: A\n---\n- old\n"
        self.assertEqual(replace_body(text, "- new\n"), "---\ntitle: A\n---\n- new\n")
        self.assertEqual(replace_body("- old\n", "- new\n"), "- new\n")


class OutlineTests(unittest.TestCase):
    def test_tree_nesting_and_level_skips(self) -> None:
        text = "- A\n  - B\n      - C\n  - D\n- E\n"
        page = assemble_page(text, Path("pages/tree.md"))
        roots = build_tree(page.blocks)
        self.assertEqual([node.block.content for node in roots], ["A", "E"])
        self.assertEqual([node.block.content for node in roots[0].children], ["B", "D"])
        self.assertEqual([node.block.content for node in roots[0].children[0].children], ["C"])

    def test_descendants(self) -> None:
        page = assemble_page("- A\n  - B\n    - C\n- D\n", Path("pages/tree.md"))
        self.assertEqual([b.content for b in descendants(page.blocks, 0)], ["B", "C"])
        self.assertEqual(descendants(page.blocks, 3), [])


if __name__ == "__main__":
    unittest.main()
