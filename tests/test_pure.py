import unittest

from utils.pure import (
    format_money,
    generate_markdown_table,
    is_valid_email,
    slugify,
    to_base36,
    top_counts,
)


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [[1, None], ["x|y", "z"]], ["l", "r"])
        self.assertEqual(
            md.splitlines(),
            ["| A | B |", "| :--- | ---: |", "| 1 | - |", "| x\\|y | z |"],
        )
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])

    def test_markdown_table_first_row_as_header(self):
        md = generate_markdown_table(None, [["Side", "Storefront"], ["Cart items", 2]])
        self.assertEqual(md.splitlines()[0], "| Side | Storefront |")

    def test_format_money(self):
        self.assertEqual(format_money(110), "R110.00")
        self.assertEqual(format_money(12.5), "R12.50")

    def test_slugify(self):
        self.assertEqual(slugify("  Loaf Hoodie (XL)! "), "loaf-hoodie-xl")
        self.assertEqual(slugify(""), "")

    def test_to_base36(self):
        self.assertEqual(to_base36(0), "0")
        self.assertEqual(to_base36(35), "z")
        self.assertEqual(to_base36(36), "10")
        self.assertEqual(int(to_base36(1_700_000_000_000), 36), 1_700_000_000_000)
        with self.assertRaises(ValueError):
            to_base36(-1)

    def test_top_counts(self):
        values = ["/b", "/a", "/b", "/c", "/a"]
        self.assertEqual(top_counts(values, 2), [("/b", 2), ("/a", 2)])
        self.assertEqual(top_counts(values, 0), [])
        self.assertEqual(top_counts([], 5), [])

    def test_is_valid_email(self):
        self.assertTrue(is_valid_email("lerato@example.com"))
        self.assertTrue(is_valid_email("  lerato@example.com "))
        for bad in ("abc", "lerato@", "@example.com", "two words@example.com", ""):
            self.assertFalse(is_valid_email(bad), bad)
