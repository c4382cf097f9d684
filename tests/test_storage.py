import tempfile
import unittest
from datetime import timedelta
from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock, patch

from app.services.storage import ObjectStore, ObjectTooLarge, StorageError


class LocalObjectStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = ObjectStore(use_local=True, base_dir=self.tmp.name)
        self.store.init()

    def tearDown(self):
        self.tmp.cleanup()

    def test_put_exists_delete(self):
        size = self.store.put("organizations/o/jobs/j/photo/1_a.jpg", BytesIO(b"abc"), "image/jpeg")
        self.assertEqual(size, 3)
        self.assertTrue(self.store.exists("organizations/o/jobs/j/photo/1_a.jpg"))
        self.store.delete("organizations/o/jobs/j/photo/1_a.jpg")
        self.assertFalse(self.store.exists("organizations/o/jobs/j/photo/1_a.jpg"))

    def test_delete_missing_key_is_quiet(self):
        self.store.delete("organizations/o/missing.pdf")

    def test_too_large_discards_partial_object(self):
        with self.assertRaises(ObjectTooLarge):
            self.store.put("big.bin", BytesIO(b"x" * 10), "application/octet-stream", max_bytes=5)
        self.assertFalse(self.store.exists("big.bin"))

    def test_key_cannot_escape_directory(self):
        with self.assertRaises(StorageError):
            self.store.put("../outside.txt", BytesIO(b"x"), "application/pdf")
        self.assertFalse((Path(self.tmp.name).parent / "outside.txt").exists())

    def test_sign_get_local(self):
        self.store.put("a.pdf", BytesIO(b"x"), "application/pdf")
        url = self.store.sign_get("a.pdf", timedelta(minutes=5))
        self.assertTrue(url.startswith("file://"))
        self.assertIn("expires=", url)


class GcsObjectStoreTests(unittest.TestCase):
    @patch("app.services.storage.storage.Client")
    def test_sign_get_uses_v4(self, mock_client):
        blob = mock_client.return_value.bucket.return_value.blob.return_value
        blob.generate_signed_url.return_value = "https://storage.googleapis.com/signed"
        store = ObjectStore(bucket_name="field-files")
        store.init()

        url = store.sign_get("organizations/o/a.pdf", timedelta(minutes=60))

        self.assertEqual(url, "https://storage.googleapis.com/signed")
        mock_client.return_value.bucket.assert_called_with("field-files")
        blob.generate_signed_url.assert_called_once_with(
            expiration=timedelta(minutes=60), method="GET", version="v4"
        )

    @patch("app.services.storage.storage.Client")
    def test_put_streams_to_blob(self, mock_client):
        blob = mock_client.return_value.bucket.return_value.blob.return_value
        handle = MagicMock()
        blob.open.return_value.__enter__.return_value = handle
        store = ObjectStore(bucket_name="field-files")

        size = store.put("k.pdf", BytesIO(b"hello"), "application/pdf")

        self.assertEqual(size, 5)
        blob.open.assert_called_once_with("wb", content_type="application/pdf")
        handle.write.assert_called_once_with(b"hello")

    @patch("app.services.storage.storage.Client")
    def test_delete_failure_is_wrapped(self, mock_client):
        blob = mock_client.return_value.bucket.return_value.blob.return_value
        blob.delete.side_effect = RuntimeError("503 backend error")
        store = ObjectStore(bucket_name="field-files")

        with self.assertRaises(StorageError):
            store.delete("k.pdf")

    def test_bucket_label(self):
        self.assertEqual(ObjectStore(bucket_name="field-files").bucket_label, "field-files")
        self.assertEqual(ObjectStore().bucket_label, "local")
