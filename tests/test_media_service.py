import io
import threading
import time
import unittest
from datetime import timedelta

from tests.support import FailingMinio, FakeMinio, SnapFeedTestCase


class SlowMinio(FakeMinio):
    def put_object(self, *args, **kwargs):
        time.sleep(0.2)
        super().put_object(*args, **kwargs)


class TestMediaService(SnapFeedTestCase):
    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        from snapfeed import errors
        from snapfeed.db import utcnow
        from snapfeed.repositories import media_repository
        from snapfeed.services import media_service

        cls.errors = errors
        cls.utcnow = staticmethod(utcnow)
        cls.media_repository = media_repository
        cls.media_service = media_service

    def _issue(self):
        with self.app.app_context():
            return self.media_service.generate_upload_url()

    def _store(self, storage_id, data=b"image-bytes", mime_type="image/png"):
        with self.app.app_context():
            return self.media_service.store_upload(storage_id, io.BytesIO(data), mime_type)

    def test_generate_upload_url_issues_pending_handle(self):
        handle = self._issue()
        self.assertEqual(
            handle["url"],
            f"http://testserver/api/uploads/{handle['storage_id']}",
        )
        self.assertGreater(handle["expires_at"], self.utcnow())

        with self.app.app_context():
            stored = self.media_repository.get_by_storage_id(handle["storage_id"])
            self.assertFalse(stored.is_uploaded)
            self.assertIsNone(self.media_service.resolve_url(handle["storage_id"]))

    def test_store_then_resolve_round_trip(self):
        handle = self._issue()
        result = self._store(handle["storage_id"], b"\x89PNG-data")
        self.assertEqual(result, {"storage_id": handle["storage_id"]})

        with self.app.app_context():
            url = self.media_service.resolve_url(handle["storage_id"])
            stored = self.media_repository.get_by_storage_id(handle["storage_id"])

        self.assertEqual(url, f"http://testserver/media/{handle['storage_id']}")
        bucket = self.app.config["MINIO_BUCKET"]
        self.assertIn(bucket, self.fake_minio.buckets)
        self.assertEqual(
            self.fake_minio.objects[(bucket, stored.object_name)],
            (b"\x89PNG-data", "image/png"),
        )

    def test_resolve_unknown_storage_id_is_absent(self):
        with self.app.app_context():
            self.assertIsNone(self.media_service.resolve_url("does-not-exist"))

    def test_resolve_removed_object_is_absent(self):
        handle = self._issue()
        self._store(handle["storage_id"])
        with self.app.app_context():
            stored = self.media_repository.get_by_storage_id(handle["storage_id"])
            self.fake_minio.remove_object(self.app.config["MINIO_BUCKET"], stored.object_name)
            self.assertIsNone(self.media_service.resolve_url(handle["storage_id"]))

    def test_store_rejects_unknown_used_and_expired_handles(self):
        with self.assertRaises(self.errors.NotFoundError):
            self._store("missing")

        used = self._issue()
        self._store(used["storage_id"])
        with self.assertRaises(self.errors.InvalidArgumentError) as reused:
            self._store(used["storage_id"])
        self.assertEqual(str(reused.exception), "Upload handle already used")

        expired = self._issue()
        with self.app.app_context():
            stored = self.media_repository.get_by_storage_id(expired["storage_id"])
            stored.expires_at = self.utcnow() - timedelta(seconds=1)
            self.db.session.commit()
        with self.assertRaises(self.errors.InvalidArgumentError) as too_late:
            self._store(expired["storage_id"])
        self.assertEqual(str(too_late.exception), "Upload handle expired")

    def test_store_validates_payload(self):
        handle = self._issue()
        with self.assertRaises(self.errors.InvalidArgumentError) as wrong_type:
            self._store(handle["storage_id"], mime_type="application/pdf")
        self.assertEqual(str(wrong_type.exception), "Unsupported media type: application/pdf")

        with self.assertRaises(self.errors.InvalidArgumentError) as empty:
            self._store(handle["storage_id"], data=b"")
        self.assertEqual(str(empty.exception), "Upload body is empty")

        self.app.config["MAX_UPLOAD_BYTES"] = 4
        try:
            with self.assertRaises(self.errors.InvalidArgumentError):
                self._store(handle["storage_id"], data=b"12345")
        finally:
            self.app.config["MAX_UPLOAD_BYTES"] = 10 * 1024 * 1024

    def test_storage_failure_leaves_handle_pending(self):
        handle = self._issue()
        self.use_minio(FailingMinio())

        with self.assertRaises(self.errors.MediaStorageError):
            self._store(handle["storage_id"])

        with self.app.app_context():
            stored = self.media_repository.get_by_storage_id(handle["storage_id"])
            self.assertFalse(stored.is_uploaded)
            self.assertIsNone(stored.claimed_at)

        self.use_minio(self.fake_minio)
        self.assertEqual(self._store(handle["storage_id"]), {"storage_id": handle["storage_id"]})

    def test_concurrent_uploads_to_one_handle_store_once(self):
        handle = self._issue()
        slow_minio = SlowMinio()
        self.use_minio(slow_minio)

        outcomes = []
        start = threading.Barrier(2)

        def attempt(data):
            start.wait()
            try:
                self._store(handle["storage_id"], data=data)
                outcomes.append(("ok", data))
            except self.errors.InvalidArgumentError as e:
                outcomes.append(("rejected", str(e)))

        threads = [
            threading.Thread(target=attempt, args=(data,))
            for data in (b"first", b"second")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored_ok = [data for status, data in outcomes if status == "ok"]
        rejected = [message for status, message in outcomes if status == "rejected"]
        self.assertEqual(len(stored_ok), 1)
        self.assertEqual(rejected, ["Upload handle already used"])

        with self.app.app_context():
            stored = self.media_repository.get_by_storage_id(handle["storage_id"])
            self.assertTrue(stored.is_uploaded)
        bucket = self.app.config["MINIO_BUCKET"]
        self.assertEqual(slow_minio.objects[(bucket, stored.object_name)][0], stored_ok[0])

    def test_resolve_references_handles_urls_and_ids(self):
        handle = self._issue()
        self._store(handle["storage_id"])
        pending = self._issue()

        with self.app.app_context():
            resolved = self.media_service.resolve_references(
                [
                    handle["storage_id"],
                    pending["storage_id"],
                    "https://cdn.x.com/a.png",
                    "file:///device/photo.jpg",
                    None,
                ]
            )

        self.assertEqual(resolved[handle["storage_id"]], f"http://testserver/media/{handle['storage_id']}")
        self.assertIsNone(resolved[pending["storage_id"]])
        self.assertEqual(resolved["https://cdn.x.com/a.png"], "https://cdn.x.com/a.png")
        self.assertEqual(resolved["file:///device/photo.jpg"], "file:///device/photo.jpg")
        self.assertNotIn(None, resolved)


if __name__ == "__main__":
    unittest.main()
