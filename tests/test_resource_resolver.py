import unittest

from actionagent.errors import AttachmentNotFound
from actionagent.services.resource_resolver import (
    AttachmentResolver,
    find_attachment_references,
    select_best_candidate,
)
from actionagent.tools.base import FileStore, StoredFile


class _FakeFileStore(FileStore):
    def __init__(self, files: list[StoredFile], fail: bool = False) -> None:
        self.files = files
        self.fail = fail
        self.calls: list[tuple[str, bool, int]] = []

    def search(self, access_token, name, *, exact, limit):
        _ = access_token
        self.calls.append((name, exact, limit))
        if self.fail:
            raise RuntimeError("Google Drive API failed (500).")
        if exact:
            return [row for row in self.files if row.name == name][:limit]
        terms = name.lower().split()
        return [
            row for row in self.files if any(term in row.name.lower() for term in terms)
        ][:limit]


class AttachmentResolverTests(unittest.TestCase):
    def test_contains_match_beats_partial_term_match(self):
        store = _FakeFileStore(
            [
                StoredFile(file_id="f-notes", name="Budget_Notes.txt"),
                StoredFile(file_id="f-2024", name="Budget_2024.xlsx"),
            ]
        )
        lookup = AttachmentResolver(store).find_by_name("token-1", "Budget 2024")
        self.assertTrue(lookup.success)
        self.assertEqual(lookup.file_name, "Budget_2024.xlsx")
        self.assertEqual(lookup.file_id, "f-2024")
        self.assertEqual(store.calls, [("Budget 2024", True, 1), ("Budget 2024", False, 5)])

    def test_exact_match_short_circuits(self):
        store = _FakeFileStore([StoredFile(file_id="f-1", name="informe.pdf")])
        resolved = AttachmentResolver(store).resolve("token-1", "informe.pdf")
        self.assertIsNotNone(resolved)
        self.assertEqual(resolved.resolved_id, "f-1")
        self.assertEqual(resolved.reference_text, "informe.pdf")
        self.assertEqual(len(store.calls), 1)

    def test_require_raises_when_nothing_matches(self):
        resolver = AttachmentResolver(_FakeFileStore([]))
        with self.assertRaises(AttachmentNotFound) as ctx:
            resolver.require("token-1", "contrato.docx")
        self.assertIn("contrato.docx", str(ctx.exception))

    def test_resolve_degrades_to_none(self):
        self.assertIsNone(AttachmentResolver(_FakeFileStore([])).resolve("token-1", "x.pdf"))
        failing = AttachmentResolver(_FakeFileStore([], fail=True))
        self.assertIsNone(failing.resolve("token-1", "x.pdf"))

    def test_empty_reference_is_not_searched(self):
        store = _FakeFileStore([])
        lookup = AttachmentResolver(store).find_by_name("token-1", "  ")
        self.assertFalse(lookup.success)
        self.assertEqual(store.calls, [])

    def test_ties_keep_store_order(self):
        best = select_best_candidate(
            "plan",
            [
                StoredFile(file_id="a", name="Plan Q1.docx"),
                StoredFile(file_id="b", name="Plan Q2.docx"),
            ],
        )
        self.assertEqual(best.file_id, "a")
        self.assertIsNone(select_best_candidate("plan", []))


class AttachmentReferenceTests(unittest.TestCase):
    def test_quoted_and_bare_file_references(self):
        refs = find_attachment_references(
            "Envía un correo a ana@x.com y adjunta el archivo 'Budget 2024', "
            "adjunta también informe.pdf"
        )
        self.assertEqual(refs[0], "Budget 2024")

    def test_bare_filename_reference(self):
        self.assertEqual(
            find_attachment_references("Mándalo a ana@x.com y adjunta informe.pdf"),
            ["informe.pdf"],
        )

    def test_no_references(self):
        self.assertEqual(find_attachment_references("Envía un correo a ana@x.com"), [])


if __name__ == "__main__":
    unittest.main()
