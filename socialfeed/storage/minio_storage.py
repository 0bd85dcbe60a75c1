import io
import logging
import uuid

from minio.error import S3Error

from socialfeed.errors import StorageIOError
from socialfeed.storage import BlobRef, ensure_content_matches, extension_for_mimetype
from socialfeed.utils.retry import RetryPolicy, retry

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "/media/"
OBJECT_PREFIX = "uploads/"


def is_not_found(error) -> bool:
    return getattr(error, "code", None) in {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


class MinioBlobStore:
    """Stores blobs as objects in a MinIO bucket, served under /media/."""

    def __init__(self, client, bucket, retry_policy=None, sleep=None):
        self.client = client
        self.bucket = bucket
        self.retry_policy = retry_policy or RetryPolicy()
        self._retry_kwargs = {"sleep": sleep} if sleep is not None else {}

    def _ensure_bucket(self):
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)

    def _upload(self, object_name: str, data: bytes, mime_type: str):
        self._ensure_bucket()
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=mime_type,
        )

    def put(self, data: bytes, mime_type: str, suggested_name=None) -> BlobRef:
        ensure_content_matches(data, mime_type)

        file_id = uuid.uuid4().hex
        object_name = f"{OBJECT_PREFIX}{file_id}.{extension_for_mimetype(mime_type)}"

        try:
            retry(
                lambda: self._upload(object_name, data, mime_type),
                self.retry_policy,
                description=f"Uploading {object_name}",
                **self._retry_kwargs,
            )
        except Exception as e:
            logger.error("All upload attempts failed for %s", suggested_name or object_name)
            raise StorageIOError(
                f"Failed to upload file after {self.retry_policy.max_attempts} attempts: {e}",
                last_error=e,
            ) from e

        return BlobRef(reference=f"{MEDIA_PREFIX}{object_name}", id=file_id)

    def owns(self, reference) -> bool:
        return isinstance(reference, str) and reference.startswith(
            f"{MEDIA_PREFIX}{OBJECT_PREFIX}"
        )

    def _remove(self, object_name: str):
        try:
            self.client.remove_object(self.bucket, object_name)
        except S3Error as e:
            if not is_not_found(e):
                raise

    def delete(self, reference: str) -> bool:
        object_name = reference[len(MEDIA_PREFIX):] if reference.startswith(MEDIA_PREFIX) else reference

        try:
            self.client.stat_object(self.bucket, object_name)
        except S3Error as e:
            if is_not_found(e):
                logger.info("Object %s doesn't exist, considering it already deleted", object_name)
                return True
        except Exception:
            # Unreachable storage still gets the retried delete below.
            logger.warning("Could not stat %s before deleting", object_name)

        try:
            retry(
                lambda: self._remove(object_name),
                self.retry_policy,
                description=f"Deleting {object_name}",
                **self._retry_kwargs,
            )
        except Exception as e:
            logger.error(
                "Failed to delete object %s after %d attempts: %s",
                object_name,
                self.retry_policy.max_attempts,
                e,
            )
            return False

        return True

    def public_url_for(self, file_id: str) -> str:
        return f"{MEDIA_PREFIX}{OBJECT_PREFIX}{file_id}"
