from datetime import timezone

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    stream_with_context,
)
from minio.error import S3Error
from werkzeug.http import http_date, parse_date

from snapfeed.extensions.minio_client import get_minio_client
from snapfeed.services import media_service

main_bp = Blueprint("main", __name__)


@main_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"}), 200


def _media_error_response(error: S3Error):
    if media_service.is_media_not_found(error):
        return jsonify({"error": "Media not found"}), 404
    return jsonify({"error": "Media unavailable"}), 503


def _as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _quote_etag(value):
    value = str(value or "").strip()
    if not value:
        return None
    if value.startswith('"') and value.endswith('"'):
        return value
    return f'"{value}"'


def _is_not_modified(etag, last_modified) -> bool:
    if_none_match = request.headers.get("If-None-Match")
    if if_none_match and etag:
        candidates = {part.strip().strip('"') for part in if_none_match.split(",")}
        return "*" in candidates or etag.strip('"') in candidates

    if_modified_since = parse_date(request.headers.get("If-Modified-Since"))
    if if_modified_since is None or not hasattr(last_modified, "timestamp"):
        return False
    return int(_as_utc(last_modified).timestamp()) <= int(
        _as_utc(if_modified_since).timestamp()
    )


def _media_headers(stat):
    cache_max_age = max(
        int(current_app.config.get("MEDIA_CACHE_MAX_AGE_SECONDS", 7 * 24 * 60 * 60)),
        0,
    )
    cache_control = f"public, max-age={cache_max_age}"
    if current_app.config.get("MEDIA_CACHE_IMMUTABLE", True):
        cache_control = f"{cache_control}, immutable"

    headers = {
        "Cache-Control": cache_control,
        "Accept-Ranges": "bytes",
        "Content-Type": getattr(stat, "content_type", None) or "application/octet-stream",
    }

    size = getattr(stat, "size", None)
    if size is not None:
        headers["Content-Length"] = str(size)

    etag = _quote_etag(getattr(stat, "etag", None))
    if etag:
        headers["ETag"] = etag

    last_modified = getattr(stat, "last_modified", None)
    if hasattr(last_modified, "timestamp"):
        headers["Last-Modified"] = http_date(_as_utc(last_modified).timestamp())

    return headers


@main_bp.route("/media/<storage_id>", methods=["GET", "HEAD"])
def get_media(storage_id: str):
    stored = media_service.get_uploaded_object(storage_id)
    if stored is None:
        return jsonify({"error": "Media not found"}), 404

    bucket = current_app.config["MINIO_BUCKET"]
    minio = get_minio_client()

    try:
        stat = minio.stat_object(bucket_name=bucket, object_name=stored.object_name)
    except S3Error as e:
        return _media_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to stat media %s", storage_id)
        return jsonify({"error": "Media unavailable"}), 503

    headers = _media_headers(stat)
    if _is_not_modified(headers.get("ETag"), getattr(stat, "last_modified", None)):
        return Response(status=304, headers=headers)

    if request.method == "HEAD":
        return Response(status=200, headers=headers)

    try:
        minio_response = minio.get_object(bucket_name=bucket, object_name=stored.object_name)
    except S3Error as e:
        return _media_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch media %s", storage_id)
        return jsonify({"error": "Media unavailable"}), 503

    chunk_size = max(
        int(current_app.config.get("MEDIA_STREAM_CHUNK_SIZE", 256 * 1024)),
        1024,
    )

    def _stream():
        try:
            yield from minio_response.stream(chunk_size)
        finally:
            minio_response.close()
            minio_response.release_conn()

    return Response(
        stream_with_context(_stream()),
        status=200,
        headers=headers,
        direct_passthrough=True,
    )
