import os
import tempfile
import unittest

from botocore.stub import ANY, Stubber

from catalog_admin.storage import (
    ImageRejectedError,
    InMemoryImageStorage,
    LocalImageStorage,
    S3ImageStorage,
    validate_image,
)


class ValidateImageTests(unittest.TestCase):
    def test_accepts_known_image_types(self):
        for name, mime in [
            ("a.jpg", "image/jpeg"),
            ("a.JPEG", "image/jpeg"),
            ("a.png", "image/png"),
            ("a.gif", "image/gif"),
            ("a.webp", "image/webp"),
        ]:
            validate_image(name, mime, 10, 100)

    def test_rejects_other_types(self):
        with self.assertRaisesRegex(ImageRejectedError, "Only image files"):
            validate_image("doc.pdf", "application/pdf", 10, 100)
        with self.assertRaises(ImageRejectedError):
            validate_image("fake.png", "text/plain", 10, 100)
        with self.assertRaises(ImageRejectedError):
            validate_image("noext", "image/png", 10, 100)

    def test_rejects_large_files(self):
        with self.assertRaisesRegex(ImageRejectedError, "too large"):
            validate_image("a.png", "image/png", 101, 100)


class LocalImageStorageTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.storage = LocalImageStorage(tmp.name)

    def test_upload_and_delete(self):
        reference = self.storage.upload(b"data", "photo.png", "image/png")
        self.assertRegex(reference, r"^/uploads/[0-9a-f-]{36}\.png$")
        path = self.storage.uploads_dir / os.path.basename(reference)
        self.assertEqual(path.read_bytes(), b"data")

        self.storage.delete(reference)
        self.assertFalse(path.exists())
        # Second delete of a missing file is a no-op.
        self.storage.delete(reference)

    def test_ignores_foreign_references(self):
        self.storage.delete("https://cdn.example.test/products/x.png")
        self.storage.delete("")


class InMemoryImageStorageTests(unittest.TestCase):
    def test_delete_uses_last_two_segments(self):
        storage = InMemoryImageStorage()
        url = storage.upload(b"x", "a.png", "image/png")
        self.assertEqual(len(storage.stored_objects), 1)
        storage.delete(url)
        self.assertEqual(storage.stored_objects, {})


class S3ImageStorageTests(unittest.TestCase):
    def setUp(self):
        self.storage = S3ImageStorage(
            bucket="product-images",
            access_key_id="test-key",
            secret_access_key="test-secret",
            region="us-east-1",
            endpoint="https://storage.example.test",
        )
        self.stubber = Stubber(self.storage._client)
        self.stubber.activate()
        self.addCleanup(self.stubber.deactivate)

    def test_upload_puts_object_and_returns_public_url(self):
        self.stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "product-images",
                "Key": ANY,
                "Body": b"png",
                "ContentType": "image/png",
            },
        )
        url = self.storage.upload(b"png", "panel.png", "image/png")
        self.assertRegex(
            url,
            r"^https://storage\.example\.test/product-images/products/[0-9a-f-]{36}\.png$",
        )
        self.stubber.assert_no_pending_responses()

    def test_public_url_override(self):
        self.storage.public_url = "https://cdn.example.test/public/product-images/"
        self.assertEqual(
            self.storage.base_url, "https://cdn.example.test/public/product-images"
        )

    def test_delete_derives_key_from_url(self):
        self.stubber.add_response(
            "delete_object",
            {},
            {"Bucket": "product-images", "Key": "products/abc.png"},
        )
        self.storage.delete("https://cdn.example.test/product-images/products/abc.png")
        self.stubber.assert_no_pending_responses()

    def test_delete_failure_is_logged(self):
        self.stubber.add_client_error("delete_object", service_error_code="AccessDenied")
        with self.assertLogs("catalog_admin.storage", level="WARNING"):
            self.storage.delete("https://cdn.example.test/product-images/products/abc.png")


if __name__ == "__main__":
    unittest.main()
