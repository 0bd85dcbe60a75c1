import logging
import os
from datetime import timezone

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    jsonify,
    request,
    send_from_directory,
    stream_with_context,
)
from minio.error import S3Error
from werkzeug.http import http_date, parse_date

from socialfeed.extensions.minio_client import get_minio_client
from socialfeed.storage.minio_storage import is_not_found

logger = logging.getLogger(__name__)

media_bp = Blueprint("media", __name__)


def _cache_control():
    max_age = max(int(current_app.config.get("MEDIA_CACHE_MAX_AGE_SECONDS", 0)), 0)
    value = f"public, max-age={max_age}"
    if current_app.config.get("MEDIA_CACHE_IMMUTABLE", True):
        value = f"{value}, immutable"
    return value


def _quoted_etag(value):
    value = str(value or "").strip()
    if not value:
        return None
    if value.startswith('"') and value.endswith('"'):
        return value
    return f'"{value}"'


def _as_utc(value):
    if value is None:
        return None
    if not hasattr(value, "timestamp"):
        value = parse_date(str(value))
        if value is None:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _object_headers(stat):
    headers = {
        "Cache-Control": _cache_control(),
        "Accept-Ranges": "bytes",
        "Content-Type": getattr(stat, "content_type", None) or "application/octet-stream",
    }

    size = getattr(stat, "size", None)
    if size is not None:
        headers["Content-Length"] = str(size)

    etag = _quoted_etag(getattr(stat, "etag", None))
    if etag:
        headers["ETag"] = etag

    last_modified = _as_utc(getattr(stat, "last_modified", None))
    if last_modified is not None:
        headers["Last-Modified"] = http_date(last_modified.timestamp())

    return headers


def _not_modified(etag, last_modified):
    if_none_match = request.headers.get("If-None-Match")
    if if_none_match and etag:
        candidates = {part.strip().strip('"') for part in if_none_match.split(",")}
        if "*" in candidates or etag.strip('"') in candidates:
            return True

    since = _as_utc(parse_date(request.headers.get("If-Modified-Since") or ""))
    last_modified = _as_utc(last_modified)
    if since is None or last_modified is None:
        return False
    return int(last_modified.timestamp()) <= int(since.timestamp())


def _storage_error(error):
    if isinstance(error, S3Error) and is_not_found(error):
        return jsonify({"error": "Media not found"}), 404
    logger.warning("Media object unavailable: %s", error)
    return jsonify({"error": "Media unavailable"}), 503


@media_bp.route("/media/<path:object_name>", methods=["GET", "HEAD"])
def get_media(object_name):
    bucket = current_app.config["MINIO_BUCKET"]
    client = get_minio_client()

    try:
        stat = client.stat_object(bucket_name=bucket, object_name=object_name)
    except Exception as e:
        return _storage_error(e)

    headers = _object_headers(stat)
    if _not_modified(headers.get("ETag"), getattr(stat, "last_modified", None)):
        return Response(status=304, headers=headers)
    if request.method == "HEAD":
        return Response(status=200, headers=headers)

    try:
        obj = client.get_object(bucket_name=bucket, object_name=object_name)
    except Exception as e:
        return _storage_error(e)

    chunk_size = max(int(current_app.config.get("MEDIA_STREAM_CHUNK_SIZE", 256 * 1024)), 1024)

    def _stream():
        try:
            yield from obj.stream(chunk_size)
        finally:
            obj.close()
            obj.release_conn()

    return Response(
        stream_with_context(_stream()),
        status=200,
        headers=headers,
        direct_passthrough=True,
    )


@media_bp.route("/uploads/<path:filename>", methods=["GET", "HEAD"])
def get_upload(filename):
    upload_dir = os.path.abspath(current_app.config["UPLOAD_DIR"])
    if not os.path.isdir(upload_dir):
        abort(404)
    response = send_from_directory(upload_dir, filename, conditional=True)
    response.headers["Cache-Control"] = _cache_control()
    return response
