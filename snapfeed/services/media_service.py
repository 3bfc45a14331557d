import io
import logging
import uuid
from datetime import timedelta
from urllib.parse import urlparse

from flask import current_app, has_request_context, request
from minio.error import S3Error

from snapfeed.db import db, utcnow
from snapfeed.errors import InvalidArgumentError, MediaStorageError, NotFoundError
from snapfeed.extensions.minio_client import get_minio_client
from snapfeed.repositories import media_repository


logger = logging.getLogger(__name__)

ALLOWED_IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
}

MEDIA_NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


def _public_base_url() -> str:
    base_url = current_app.config.get("APP_PUBLIC_BASE_URL", "").rstrip("/")
    if not base_url and has_request_context():
        base_url = request.url_root.rstrip("/")
    return base_url


def build_upload_url(storage_id: str) -> str:
    return f"{_public_base_url()}/api/uploads/{storage_id}"


def build_media_url(storage_id: str) -> str:
    return f"{_public_base_url()}/media/{storage_id}"


def is_media_not_found(error: S3Error) -> bool:
    return error.code in MEDIA_NOT_FOUND_CODES


def _looks_like_url(reference: str) -> bool:
    return bool(urlparse(reference).scheme) or reference.startswith("/")


def is_known_reference(reference: str) -> bool:
    """True for plain URLs and for storage ids this service has issued."""
    if _looks_like_url(reference):
        return True
    return media_repository.get_by_storage_id(reference) is not None


def generate_upload_url():
    """Issue a short-lived upload handle.

    The caller sends the raw image bytes to ``url`` (POST or PUT, with the
    image's Content-Type) and then passes ``storage_id`` to post creation or
    profile updates.
    """
    storage_id = uuid.uuid4().hex
    ttl = int(current_app.config.get("UPLOAD_URL_TTL_SECONDS", 3600))
    expires_at = utcnow() + timedelta(seconds=ttl)

    media_repository.create_handle(
        storage_id=storage_id,
        object_name=f"uploads/{storage_id}",
        expires_at=expires_at,
    )
    db.session.commit()
    logger.info("Issued upload handle %s (ttl=%ss)", storage_id, ttl)

    return {
        "url": build_upload_url(storage_id),
        "storage_id": storage_id,
        "expires_at": expires_at,
    }


def _read_limited(stream, max_bytes: int) -> bytes:
    payload = stream.read(max_bytes + 1)
    if len(payload) > max_bytes:
        raise InvalidArgumentError(f"Upload exceeds {max_bytes} bytes")
    return payload


def _put_object(object_name: str, payload: bytes, mime_type: str):
    bucket = current_app.config["MINIO_BUCKET"]
    try:
        minio = get_minio_client()
        if not minio.bucket_exists(bucket_name=bucket):
            minio.make_bucket(bucket_name=bucket)
        minio.put_object(
            bucket_name=bucket,
            object_name=object_name,
            data=io.BytesIO(payload),
            length=len(payload),
            content_type=mime_type,
        )
    except Exception as e:
        logger.error("Failed to store object %s", object_name, exc_info=True)
        raise MediaStorageError("Media storage is unavailable") from e


def store_upload(storage_id: str, stream, mime_type: str | None, length: int | None = None):
    stored = media_repository.get_by_storage_id(storage_id)
    if not stored:
        raise NotFoundError("Upload handle not found")
    if stored.is_uploaded:
        raise InvalidArgumentError("Upload handle already used")
    if stored.expires_at < utcnow():
        raise InvalidArgumentError("Upload handle expired")

    mime_type = (mime_type or "").split(";")[0].strip().lower()
    if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise InvalidArgumentError(f"Unsupported media type: {mime_type}")

    max_bytes = int(current_app.config.get("MAX_UPLOAD_BYTES", 10 * 1024 * 1024))
    if length is not None and length > max_bytes:
        raise InvalidArgumentError(f"Upload exceeds {max_bytes} bytes")

    payload = _read_limited(stream, max_bytes)
    if not payload:
        raise InvalidArgumentError("Upload body is empty")

    if not media_repository.claim_handle(storage_id, utcnow()):
        db.session.rollback()
        raise InvalidArgumentError("Upload handle already used")
    db.session.commit()

    try:
        _put_object(stored.object_name, payload, mime_type)
    except MediaStorageError:
        media_repository.release_claim(storage_id)
        db.session.commit()
        raise

    media_repository.mark_uploaded(
        stored,
        mime_type=mime_type,
        size=len(payload),
        uploaded_at=utcnow(),
    )
    db.session.commit()
    logger.info("Stored %s bytes for upload %s", len(payload), storage_id)
    return {"storage_id": storage_id}


def upload_file(file_storage):
    """Issue a handle and store a multipart file through it in one step."""
    if not getattr(file_storage, "filename", ""):
        raise InvalidArgumentError("Image file is required")

    handle = generate_upload_url()
    stream = getattr(file_storage, "stream", file_storage)
    store_upload(handle["storage_id"], stream, file_storage.mimetype)
    return handle["storage_id"]


def get_uploaded_object(storage_id: str):
    stored = media_repository.get_by_storage_id(storage_id)
    if not stored or not stored.is_uploaded:
        return None
    return stored


def resolve_url(storage_id: str):
    """Return a fetchable URL for ``storage_id`` or None when nothing is stored."""
    stored = get_uploaded_object(storage_id)
    if not stored:
        return None

    try:
        get_minio_client().stat_object(
            bucket_name=current_app.config["MINIO_BUCKET"],
            object_name=stored.object_name,
        )
    except S3Error as e:
        if is_media_not_found(e):
            return None
        raise MediaStorageError("Media storage is unavailable") from e
    except Exception as e:
        raise MediaStorageError("Media storage is unavailable") from e

    return build_media_url(storage_id)


def resolve_references(references):
    """Map avatar/image references to display URLs without touching MinIO.

    Uploaded storage ids become media URLs, plain URLs pass through, and
    anything else (pending or unknown ids) maps to None.
    """
    references = {ref for ref in references if ref}
    uploaded = media_repository.get_uploaded_by_storage_ids(references)

    resolved = {}
    for ref in references:
        if ref in uploaded:
            resolved[ref] = build_media_url(ref)
        elif _looks_like_url(ref):
            resolved[ref] = ref
        else:
            resolved[ref] = None
    return resolved
