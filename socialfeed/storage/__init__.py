"""
Blob storage for uploaded media.

Two backends share one interface: LocalBlobStore writes under UPLOAD_DIR and
MinioBlobStore writes to a bucket. STORAGE_BACKEND picks one.
"""

import base64
import binascii
import logging
import re
from typing import NamedTuple

from flask import current_app

from socialfeed.errors import ValidationError
from socialfeed.storage import content_validator
from socialfeed.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


class BlobRef(NamedTuple):
    reference: str
    id: str


_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/ogg": "ogv",
    "audio/mpeg": "mp3",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
}

DEFAULT_EXTENSION = "bin"

_DATA_URL_RE = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,")


def extension_for_mimetype(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type, DEFAULT_EXTENSION)


def ensure_content_matches(data: bytes, mime_type: str):
    """Raise ValidationError unless data carries the signature of mime_type."""
    if content_validator.validate(data, mime_type):
        return

    detected = content_validator.detect(data)
    if detected:
        logger.warning("File claimed to be %s but appears to be %s", mime_type, detected)
        raise ValidationError(
            f"Invalid file format: File appears to be {detected} "
            f"but was claimed to be {mime_type}"
        )

    logger.warning("File claimed to be %s but doesn't match any known format", mime_type)
    raise ValidationError(
        f"Invalid file format: File doesn't match the claimed type {mime_type}"
    )


def mime_type_from_data_url(data_url: str) -> str | None:
    if not isinstance(data_url, str):
        return None
    match = _DATA_URL_RE.match(data_url)
    return match.group(1) if match else None


def data_url_to_bytes(data_url: str) -> bytes:
    _, _, payload = data_url.partition(",")
    if not payload:
        raise ValidationError("Invalid data URL format")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Invalid data URL format") from e


def get_blob_store():
    config = current_app.config
    policy = RetryPolicy.from_config(config)
    backend = config.get("STORAGE_BACKEND", "local")

    if backend == "minio":
        from socialfeed.extensions.minio_client import get_minio_client
        from socialfeed.storage.minio_storage import MinioBlobStore

        return MinioBlobStore(
            client=get_minio_client(),
            bucket=config["MINIO_BUCKET"],
            retry_policy=policy,
        )

    from socialfeed.storage.local_storage import LocalBlobStore

    return LocalBlobStore(
        upload_dir=config["UPLOAD_DIR"],
        public_path=config.get("UPLOAD_PUBLIC_PATH", "/uploads"),
        retry_policy=policy,
    )
