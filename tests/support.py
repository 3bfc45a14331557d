import hashlib
import os
import tempfile
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from minio.error import S3Error


class FakeRedis:
    def __init__(self):
        self._values = {}

    def clear(self):
        self._values.clear()

    def set(self, key, value, ex=None):
        self._values[key] = value

    def get(self, key):
        return self._values.get(key)


def not_found_error(bucket_name, object_name):
    return S3Error(
        response=None,
        code="NoSuchKey",
        message="The specified key does not exist.",
        resource=f"/{bucket_name}/{object_name}",
        request_id="test-request",
        host_id="test-host",
        bucket_name=bucket_name,
        object_name=object_name,
    )


class FakeStat:
    def __init__(self, content_type, size, etag, last_modified):
        self.content_type = content_type
        self.size = size
        self.etag = etag
        self.last_modified = last_modified


class FakeMinioObject:
    def __init__(self, data):
        self.data = data
        self.closed = False
        self.released = False

    def stream(self, chunk_size):
        for start in range(0, len(self.data), chunk_size):
            yield self.data[start:start + chunk_size]

    def close(self):
        self.closed = True

    def release_conn(self):
        self.released = True


class FakeMinio:
    last_modified = datetime(2026, 2, 25, 18, 0, 0, tzinfo=timezone.utc)

    def __init__(self):
        self.buckets = set()
        self.objects = {}
        self.opened = []

    def bucket_exists(self, bucket_name):
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name):
        self.buckets.add(bucket_name)

    def put_object(self, bucket_name, object_name, data, length, content_type="application/octet-stream", **kwargs):
        self.objects[(bucket_name, object_name)] = (data.read(length), content_type)

    def remove_object(self, bucket_name, object_name):
        self.objects.pop((bucket_name, object_name), None)

    def _lookup(self, bucket_name, object_name):
        try:
            return self.objects[(bucket_name, object_name)]
        except KeyError:
            raise not_found_error(bucket_name, object_name) from None

    def stat_object(self, bucket_name, object_name):
        data, content_type = self._lookup(bucket_name, object_name)
        return FakeStat(
            content_type=content_type,
            size=len(data),
            etag=hashlib.md5(data).hexdigest(),
            last_modified=self.last_modified,
        )

    def get_object(self, bucket_name, object_name):
        data, _ = self._lookup(bucket_name, object_name)
        obj = FakeMinioObject(data)
        self.opened.append(obj)
        return obj


class FailingMinio:
    def bucket_exists(self, *args, **kwargs):
        raise RuntimeError("storage down")

    def stat_object(self, *args, **kwargs):
        raise RuntimeError("storage down")


class SnapFeedTestCase(unittest.TestCase):
    """Creates the app on a throwaway SQLite file with Redis and MinIO faked."""

    config_overrides = {}

    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)

        from snapfeed import create_app
        from snapfeed.db import db
        from snapfeed.services import session_service

        cls.fake_redis = FakeRedis()
        cls.redis_patch = patch.object(
            session_service, "get_redis_client", return_value=cls.fake_redis
        )
        cls.redis_patch.start()

        config = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
            "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
            "APP_PUBLIC_BASE_URL": "http://testserver",
            "LOG_LEVEL": "WARNING",
        }
        config.update(cls.config_overrides)
        cls.app_config = config

        cls.app = create_app(config)
        cls.db = db
        cls.client = cls.app.test_client()

    @classmethod
    def tearDownClass(cls):
        cls.redis_patch.stop()
        with cls.app.app_context():
            cls.db.engine.dispose()
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)

    def setUp(self):
        with self.app.app_context():
            self.db.drop_all()
            self.db.create_all()
        self.fake_redis.clear()

        self.fake_minio = FakeMinio()
        self.use_minio(self.fake_minio)

    def use_minio(self, minio):
        for target in (
            "snapfeed.services.media_service.get_minio_client",
            "snapfeed.routes.main_routes.get_minio_client",
        ):
            patcher = patch(target, return_value=minio)
            patcher.start()
            self.addCleanup(patcher.stop)

    def register(self, name="Alice", email="a@x.com", password="secret1"):
        from snapfeed.services import account_service

        with self.app.app_context():
            return account_service.register(name, email, password)

    def login(self, email="a@x.com", password="secret1"):
        response = self.client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        self.assertEqual(response.status_code, 200)
        return response.get_json()

    def auth_header(self, email="a@x.com", password="secret1"):
        token = self.login(email, password)["access_token"]
        return {"Authorization": f"Bearer {token}"}
