import os
from datetime import timedelta

from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///snapfeed.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=_env_int("JWT_ACCESS_TOKEN_MINUTES", 15)
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        days=_env_int("JWT_REFRESH_TOKEN_DAYS", 30)
    )

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "localhost:9000")
    MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "admin")
    MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "supersecret")
    MINIO_BUCKET = os.getenv("MINIO_BUCKET", "snapfeed-media")
    MINIO_SECURE = _env_bool("MINIO_SECURE", False)
    MINIO_CONNECT_TIMEOUT = float(os.getenv("MINIO_CONNECT_TIMEOUT", "5"))
    MINIO_READ_TIMEOUT = float(os.getenv("MINIO_READ_TIMEOUT", "20"))
    MINIO_HTTP_POOL_MAXSIZE = _env_int("MINIO_HTTP_POOL_MAXSIZE", 32)

    # Prefix for upload and media URLs handed to clients. Falls back to the
    # request's own root when empty.
    APP_PUBLIC_BASE_URL = os.getenv("APP_PUBLIC_BASE_URL", "").strip()

    UPLOAD_URL_TTL_SECONDS = _env_int("UPLOAD_URL_TTL_SECONDS", 60 * 60)
    MAX_UPLOAD_BYTES = _env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
    MEDIA_CACHE_MAX_AGE_SECONDS = _env_int(
        "MEDIA_CACHE_MAX_AGE_SECONDS", 7 * 24 * 60 * 60
    )
    MEDIA_CACHE_IMMUTABLE = _env_bool("MEDIA_CACHE_IMMUTABLE", True)
    MEDIA_STREAM_CHUNK_SIZE = _env_int("MEDIA_STREAM_CHUNK_SIZE", 256 * 1024)

    # "sha256" keeps credentials deterministic; "werkzeug" salts them.
    PASSWORD_HASH_SCHEME = os.getenv("PASSWORD_HASH_SCHEME", "sha256")
    MIN_PASSWORD_LENGTH = _env_int("MIN_PASSWORD_LENGTH", 6)

    FEED_MAX_PAGE_SIZE = _env_int("FEED_MAX_PAGE_SIZE", 50)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None
