import unittest
from datetime import date, datetime, timedelta, timezone

from utils.config import settings
from utils.pure import format_date, format_vnd, generate_markdown_table, iso_timestamp, page_count


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["Koi", "Price"], [["Kohaku", 5], ["A|B", None]], ["l", "r"])
        self.assertEqual(
            md,
            "| Koi | Price |\n| :--- | ---: |\n| Kohaku | 5 |\n| A\\|B | - |",
        )
        self.assertEqual(generate_markdown_table(["a"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [[1, 2]], ["l"])

    def test_markdown_table_without_headers(self):
        md = generate_markdown_table(None, [["k", "v"], ["x", "y"]])
        self.assertTrue(md.startswith("| k | v |"))

    def test_format_vnd(self):
        self.assertEqual(format_vnd(5_100_000), f"5.100.000 {settings.currency_symbol}")
        self.assertEqual(format_vnd(0), f"0 {settings.currency_symbol}")
        self.assertEqual(format_vnd(None), "-")

    def test_format_date(self):
        self.assertEqual(format_date("2024-01-05T10:00:00Z"), "05/01/2024")
        self.assertEqual(format_date(date(2024, 1, 5)), "05/01/2024")
        self.assertEqual(format_date("soon"), "soon")
        self.assertEqual(format_date(None), "-")

    def test_iso_timestamp(self):
        self.assertEqual(iso_timestamp(date(2024, 1, 5)), "2024-01-05T00:00:00.000Z")
        self.assertEqual(
            iso_timestamp(datetime(2024, 1, 5, 7, 30, 0, 250000)), "2024-01-05T07:30:00.250Z"
        )
        plus7 = timezone(timedelta(hours=7))
        self.assertEqual(
            iso_timestamp(datetime(2024, 1, 5, 7, 0, tzinfo=plus7)), "2024-01-05T00:00:00.000Z"
        )
        self.assertEqual(iso_timestamp("2024-01-05T00:00:00.000Z"), "2024-01-05T00:00:00.000Z")

    def test_page_count(self):
        self.assertEqual(page_count(0, 8), 1)
        self.assertEqual(page_count(8, 8), 1)
        self.assertEqual(page_count(9, 8), 2)
        with self.assertRaises(ValueError):
            page_count(1, 0)


if __name__ == "__main__":
    unittest.main()
