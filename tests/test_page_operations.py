import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from logseq_graph.core.page_operations import (
    create_page,
    delete_page,
    get_page_properties,
    list_pages,
    normalize_outline,
    read_page,
    rename_page,
    set_page_property,
    update_page,
)
from logseq_graph.data_models import GraphMetadata


class PageOperationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.graph_path = Path(self.tmpdir.name).resolve()
        (self.graph_path / "pages").mkdir()
        (self.graph_path / "journals").mkdir()
        self.graph = GraphMetadata(name="test", path=self.graph_path, description="test graph")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _write(self, relative: str, content: str) -> Path:
        path = self.graph_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_normalize_outline_bullets_plain_lines(self) -> None:
        self.assertEqual(
            normalize_outline("First\n  Second\n- Already\n# Heading\n\n"),
            "- First\n  - Second\n- Already\n# Heading\n",
        )

    def test_create_and_read_page(self) -> None:
        result = create_page(
            self.graph,
            "Roadmap",
            content="First item\n  Nested item",
            properties={"title": "Product Roadmap"},
        )
        self.assertEqual(result["status"], "created")
        path = self.graph_path / "pages" / "Roadmap.md"
        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "---\ntitle: Product Roadmap\n---\n\n- First item\n  - Nested item\n",
        )

        page = read_page(self.graph, "product roadmap")
        self.assertEqual(page["name"], "Roadmap")
        self.assertEqual(page["title"], "Product Roadmap")
        self.assertEqual([b["content"] for b in page["blocks"]], ["First item", "Nested item"])
        self.assertEqual(page["tree"][0]["children"][0]["content"], "Nested item")

    def test_create_existing_page_fails(self) -> None:
        self._write("pages/Roadmap.md", "- keep me\n")
        result = create_page(self.graph, "Roadmap", content="- replaced")
        self.assertEqual(result["error"], "already_exists")
        self.assertEqual((self.graph_path / "pages" / "Roadmap.md").read_text(encoding="utf-8"), "- keep me\n")

    def test_create_namespaced_page(self) -> None:
        create_page(self.graph, "project/alpha", content="- kickoff")
        self.assertTrue((self.graph_path / "pages" / "project___alpha.md").exists())
        page = read_page(self.graph, "project/alpha")
        self.assertEqual(page["namespace"], "project")

    def test_create_rejects_traversal(self) -> None:
        result = create_page(self.graph, "../outside", content="- nope")
        self.assertEqual(result["error"], "malformed_input")
        self.assertFalse((self.graph_path / "outside.md").exists())

    def test_list_pages_filter_and_journals(self) -> None:
        self._write("pages/Alpha.md", "- a\n")
        self._write("pages/Beta.md", "---\ntitle: Alpha Two\n---\n- b\n")
        self._write("journals/2025_01_10.md", "- entry\n")

        everything = list_pages(self.graph)
        self.assertEqual([p["name"] for p in everything["pages"]], ["2025_01_10", "Alpha", "Beta"])

        filtered = list_pages(self.graph, filter="alpha")
        self.assertEqual([p["name"] for p in filtered["pages"]], ["Alpha", "Beta"])

        no_journals = list_pages(self.graph, include_journals=False)
        self.assertEqual(no_journals["count"], 2)

    def test_update_page_keeps_header(self) -> None:
        path = self._write("pages/Notes.md", "---\ntitle: Notes\n---\n- old\n")
        result = update_page(self.graph, "Notes", "new body")
        self.assertEqual(result["status"], "updated")
        self.assertEqual(path.read_text(encoding="utf-8"), "---\ntitle: Notes\n---\n- new body\n")

    def test_delete_page(self) -> None:
        path = self._write("pages/Scratch.md", "- temp\n")
        self.assertEqual(delete_page(self.graph, "Scratch")["status"], "deleted")
        self.assertFalse(path.exists())
        self.assertEqual(read_page(self.graph, "Scratch")["error"], "not_found")

    def test_rename_page_rewrites_links_and_tags(self) -> None:
        self._write("pages/Old.md", "- content\n")
        ref = self._write("pages/Ref.md", "- see [[Old]] and #Old\n- unrelated #Older\n")

        result = rename_page(self.graph, "Old", "New Name")

        self.assertEqual(result["status"], "renamed")
        self.assertEqual(result["links_updated"], 1)
        self.assertFalse((self.graph_path / "pages" / "Old.md").exists())
        self.assertTrue((self.graph_path / "pages" / "New Name.md").exists())
        self.assertEqual(
            ref.read_text(encoding="utf-8"),
            "- see [[New Name]] and #[[New Name]]\n- unrelated #Older\n",
        )

    def test_rename_page_without_link_updates(self) -> None:
        self._write("pages/Old.md", "- content\n")
        ref = self._write("pages/Ref.md", "- see [[Old]]\n")
        result = rename_page(self.graph, "Old", "Fresh", update_links=False)
        self.assertEqual(result["links_updated"], 0)
        self.assertEqual(ref.read_text(encoding="utf-8"), "- see [[Old]]\n")

    def test_rename_onto_existing_page_fails(self) -> None:
        self._write("pages/Old.md", "- a\n")
        self._write("pages/Taken.md", "- b\n")
        self.assertEqual(rename_page(self.graph, "Old", "Taken")["error"], "already_exists")

    def test_page_properties_round_trip(self) -> None:
        path = self._write("pages/Project.md", "---\nstatus: draft\n---\n- plan\n")
        self.assertEqual(get_page_properties(self.graph, "Project")["properties"], {"status": "draft"})

        set_page_property(self.graph, "Project", "status", "active")
        set_page_property(self.graph, "Project", "owner", "sam")

        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "---\nstatus: active\nowner: sam\n---\n- plan\n",
        )
        properties = get_page_properties(self.graph, "Project")
        self.assertTrue(properties["has_properties"])
        self.assertEqual(properties["properties"], {"status": "active", "owner": "sam"})

    def test_set_property_creates_header(self) -> None:
        path = self._write("pages/Bare.md", "- body\n")
        set_page_property(self.graph, "Bare", "type", "note")
        self.assertEqual(path.read_text(encoding="utf-8"), "---\ntype: note\n---\n\n- body\n")

    def test_set_property_rejects_bad_key(self) -> None:
        self._write("pages/Bare.md", "- body\n")
        self.assertEqual(set_page_property(self.graph, "Bare", "a:b", "x")["error"], "malformed_input")


if __name__ == "__main__":
    unittest.main()
