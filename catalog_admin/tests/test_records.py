import unittest
from datetime import datetime, timezone

from catalog_admin import records


class RecordDefaultsTests(unittest.TestCase):
    def test_new_id_format(self):
        self.assertRegex(records.new_id("prod"), r"^prod-[0-9a-f]{8}$")

    def test_utc_timestamp(self):
        now = datetime(2025, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc)
        self.assertEqual(records.utc_timestamp(now), "2025-03-04T05:06:07.891Z")

    def test_display_date(self):
        self.assertEqual(records.display_date(datetime(2026, 10, 8)), "Oct 8, 2026")

    def test_whatsapp_link_encodes_title(self):
        link = records.whatsapp_link(
            "233501234567", "Hello NK Solar, I want to buy", "Panel A & B"
        )
        self.assertEqual(
            link,
            "https://wa.me/233501234567?text="
            "Hello%20NK%20Solar%2C%20I%20want%20to%20buy%20Panel%20A%20%26%20B",
        )

    def test_parse_comment_count(self):
        self.assertEqual(records.parse_comment_count("12"), 12)
        self.assertEqual(records.parse_comment_count("abc"), 0)
        self.assertEqual(records.parse_comment_count(None), 0)
        self.assertEqual(records.parse_comment_count("3.7"), 3)
        self.assertEqual(records.parse_comment_count("12abc"), 12)
        self.assertEqual(records.parse_comment_count(" -4 "), -4)
        self.assertEqual(records.parse_comment_count(3.7), 3)
        self.assertEqual(records.parse_comment_count(""), 0)

    def test_new_product_defaults(self):
        product = records.new_product(
            {"title": "Inverter"}, phone="1", greeting="Hi"
        )
        self.assertEqual(product["price"], "")
        self.assertEqual(product["whatsappLink"], "https://wa.me/1?text=Hi%20Inverter")

    def test_product_changes_skips_missing_fields(self):
        changes = records.product_changes({"title": "New", "unrelated": "x"})
        self.assertEqual(set(changes), {"title", "updatedAt"})

    def test_normalize_for_migration(self):
        user = records.normalize_for_migration(
            records.USERS, {"id": "u", "username": "a", "password": "b"}
        )
        self.assertEqual(user["role"], "admin")
        self.assertTrue(user["createdAt"].endswith("Z"))

        course = records.normalize_for_migration(
            records.COURSES, {"id": "c", "title": "t", "comments": "3"}
        )
        self.assertEqual(course["comments"], 3)
        self.assertEqual(course["date"], "")

        with self.assertRaises(ValueError):
            records.normalize_for_migration("orders", {})


if __name__ == "__main__":
    unittest.main()
