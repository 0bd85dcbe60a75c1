import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from flask import Flask

from socialfeed.config import Config
from socialfeed.errors import StorageIOError, ValidationError
from socialfeed.extensions import minio_client
from socialfeed.storage import (
    data_url_to_bytes,
    extension_for_mimetype,
    mime_type_from_data_url,
)
from socialfeed.storage import minio_storage
from socialfeed.storage.local_storage import LocalBlobStore
from socialfeed.storage.minio_storage import MinioBlobStore
from socialfeed.utils.retry import RetryPolicy

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeS3Error(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code


class FakeMinio:
    def __init__(self, put_failures=0, remove_failures=0):
        self.objects = {}
        self.buckets = set()
        self.put_failures = put_failures
        self.remove_failures = remove_failures
        self.put_calls = 0
        self.remove_calls = 0

    def bucket_exists(self, bucket):
        return bucket in self.buckets

    def make_bucket(self, bucket):
        self.buckets.add(bucket)

    def put_object(self, bucket_name, object_name, data, length, content_type):
        self.put_calls += 1
        if self.put_calls <= self.put_failures:
            raise ConnectionError("connection reset")
        self.objects[(bucket_name, object_name)] = (data.read(length), content_type)

    def stat_object(self, bucket, object_name):
        if (bucket, object_name) not in self.objects:
            raise FakeS3Error("NoSuchKey")
        return object()

    def remove_object(self, bucket, object_name):
        self.remove_calls += 1
        if self.remove_calls <= self.remove_failures:
            raise ConnectionError("connection reset")
        self.objects.pop((bucket, object_name), None)


class TestLocalBlobStore(unittest.TestCase):
    def setUp(self):
        self.upload_dir = tempfile.mkdtemp()
        self.sleeps = []
        self.store = LocalBlobStore(
            os.path.join(self.upload_dir, "nested"),
            retry_policy=RetryPolicy(max_attempts=3),
            sleep=self.sleeps.append,
        )

    def tearDown(self):
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def test_put_writes_file_and_returns_reference(self):
        ref = self.store.put(JPEG_BYTES, "image/jpeg", "photo.jpg")

        self.assertEqual(ref.reference, f"/uploads/{ref.id}.jpg")
        self.assertEqual(len(ref.id), 32)
        path = os.path.join(self.upload_dir, "nested", f"{ref.id}.jpg")
        with open(path, "rb") as handle:
            self.assertEqual(handle.read(), JPEG_BYTES)
        self.assertTrue(self.store.owns(ref.reference))
        self.assertEqual(self.store.public_url_for(ref.id), f"/uploads/{ref.id}")

    def test_unknown_mime_type_gets_bin_extension(self):
        ref = self.store.put(b"%PDF-1.7", "application/pdf")
        self.assertTrue(ref.reference.endswith(".bin"))

    def test_put_rejects_mismatched_content_before_writing(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.put(JPEG_BYTES, "image/png")

        self.assertIn("image/jpeg", str(ctx.exception))
        self.assertIn("image/png", str(ctx.exception))
        self.assertFalse(os.path.exists(os.path.join(self.upload_dir, "nested")))

    def test_put_rejects_unrecognised_content(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.put(b"\x00" * 16, "image/png")
        self.assertIn("doesn't match the claimed type image/png", str(ctx.exception))

    def test_put_retries_then_raises_storage_error(self):
        with patch.object(LocalBlobStore, "_write", side_effect=OSError("disk full")) as write:
            with self.assertRaises(StorageIOError) as ctx:
                self.store.put(JPEG_BYTES, "image/jpeg")

        self.assertEqual(write.call_count, 3)
        self.assertEqual(self.sleeps, [0.2, 0.4])
        self.assertIsInstance(ctx.exception, IOError)
        self.assertEqual(str(ctx.exception.last_error), "disk full")

    def test_directory_creation_failure_is_retried_as_storage_error(self):
        with patch("socialfeed.storage.local_storage.os.makedirs",
                   side_effect=PermissionError("read-only filesystem")) as makedirs:
            with self.assertRaises(StorageIOError) as ctx:
                self.store.put(JPEG_BYTES, "image/jpeg")

        self.assertEqual(makedirs.call_count, 3)
        self.assertEqual(self.sleeps, [0.2, 0.4])
        self.assertIsInstance(ctx.exception.last_error, PermissionError)

    def test_put_succeeds_after_transient_failure(self):
        real_write = LocalBlobStore._write
        failures = [OSError("busy")]

        def flaky_write(store, path, data):
            if failures:
                raise failures.pop()
            real_write(store, path, data)

        with patch.object(LocalBlobStore, "_write", flaky_write):
            ref = self.store.put(PNG_BYTES, "image/png")

        self.assertEqual(len(self.sleeps), 1)
        self.assertTrue(ref.reference.endswith(".png"))

    def test_delete_is_idempotent(self):
        ref = self.store.put(JPEG_BYTES, "image/jpeg")

        self.assertTrue(self.store.delete(ref.reference))
        self.assertTrue(self.store.delete(ref.reference))
        self.assertFalse(
            os.path.exists(os.path.join(self.upload_dir, "nested", f"{ref.id}.jpg"))
        )

    def test_delete_returns_false_when_retries_exhausted(self):
        ref = self.store.put(JPEG_BYTES, "image/jpeg")

        with patch.object(LocalBlobStore, "_remove", side_effect=PermissionError("locked")):
            self.assertFalse(self.store.delete(ref.reference))
        self.assertEqual(len(self.sleeps), 2)


class TestMinioBlobStore(unittest.TestCase):
    def setUp(self):
        self.patcher = patch.object(minio_storage, "S3Error", FakeS3Error)
        self.patcher.start()
        self.sleeps = []

    def tearDown(self):
        self.patcher.stop()

    def _store(self, client):
        return MinioBlobStore(
            client,
            "media",
            retry_policy=RetryPolicy(max_attempts=3),
            sleep=self.sleeps.append,
        )

    def test_put_creates_bucket_and_uploads_object(self):
        client = FakeMinio()
        ref = self._store(client).put(PNG_BYTES, "image/png")

        object_name = f"uploads/{ref.id}.png"
        self.assertEqual(ref.reference, f"/media/{object_name}")
        self.assertIn("media", client.buckets)
        self.assertEqual(client.objects[("media", object_name)], (PNG_BYTES, "image/png"))

    def test_put_retries_transient_errors(self):
        client = FakeMinio(put_failures=2)
        ref = self._store(client).put(PNG_BYTES, "image/png")

        self.assertEqual(client.put_calls, 3)
        self.assertEqual(self.sleeps, [0.2, 0.4])
        self.assertIn(("media", f"uploads/{ref.id}.png"), client.objects)

    def test_put_raises_storage_error_when_exhausted(self):
        client = FakeMinio(put_failures=5)

        with self.assertRaises(StorageIOError) as ctx:
            self._store(client).put(PNG_BYTES, "image/png")

        self.assertEqual(client.put_calls, 3)
        self.assertIsInstance(ctx.exception.last_error, ConnectionError)

    def test_delete_is_idempotent(self):
        client = FakeMinio()
        store = self._store(client)
        ref = store.put(JPEG_BYTES, "image/jpeg")

        self.assertTrue(store.delete(ref.reference))
        self.assertTrue(store.delete(ref.reference))
        self.assertEqual(client.remove_calls, 1)

    def test_delete_returns_false_when_exhausted(self):
        client = FakeMinio(remove_failures=5)
        store = self._store(client)
        ref = store.put(JPEG_BYTES, "image/jpeg")

        self.assertFalse(store.delete(ref.reference))
        self.assertEqual(client.remove_calls, 3)

    def test_owns_only_bucket_references(self):
        store = self._store(FakeMinio())
        self.assertTrue(store.owns("/media/uploads/abc.png"))
        self.assertFalse(store.owns("/uploads/abc.png"))
        self.assertFalse(store.owns("https://example.com/a.png"))


class TestMinioClient(unittest.TestCase):
    def test_client_is_shared_until_settings_change(self):
        app = Flask(__name__)
        app.config.from_object(Config)

        with app.app_context(), \
                patch.object(minio_client, "_client", None), \
                patch.object(minio_client, "build_minio_client", side_effect=lambda settings: object()) as build:
            first = minio_client.get_minio_client()
            self.assertIs(minio_client.get_minio_client(), first)

            app.config["MINIO_ENDPOINT"] = "storage.internal:9000"
            self.assertIsNot(minio_client.get_minio_client(), first)

        self.assertEqual(build.call_count, 2)
        self.assertEqual(build.call_args[0][0].endpoint, "storage.internal:9000")


class TestDataUrls(unittest.TestCase):
    def test_mime_type_and_bytes_from_data_url(self):
        data_url = "data:image/png;base64,iVBORw0KGgo="

        self.assertEqual(mime_type_from_data_url(data_url), "image/png")
        self.assertEqual(data_url_to_bytes(data_url), PNG_BYTES[:8])

    def test_invalid_data_url(self):
        self.assertIsNone(mime_type_from_data_url("not a data url"))
        with self.assertRaises(ValidationError):
            data_url_to_bytes("data:image/png;base64,***")

    def test_extension_table(self):
        self.assertEqual(extension_for_mimetype("image/jpeg"), "jpg")
        self.assertEqual(extension_for_mimetype("audio/mpeg"), "mp3")
        self.assertEqual(extension_for_mimetype("text/plain"), "bin")


if __name__ == "__main__":
    unittest.main()
