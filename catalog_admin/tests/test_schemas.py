import unittest

from catalog_admin.schemas import Course, Product


class RecordSchemaTests(unittest.TestCase):
    def test_product_accepts_numeric_legacy_fields(self):
        product = Product(id="prod-1", title="Old", price=500, whatsappLink=None)
        self.assertEqual(product.price, "500")
        self.assertEqual(product.whatsappLink, "")

    def test_course_comment_count_takes_leading_integer(self):
        self.assertEqual(Course(id="course-1", comments="3.7").comments, 3)
        self.assertEqual(Course(id="course-1", comments="12abc").comments, 12)
        self.assertEqual(Course(id="course-1", comments=3.7).comments, 3)

    def test_extra_keys_are_kept(self):
        product = Product(id="prod-1", category="solar")
        self.assertEqual(product.model_dump()["category"], "solar")


if __name__ == "__main__":
    unittest.main()
