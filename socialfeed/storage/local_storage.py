import logging
import os
import uuid

from socialfeed.errors import StorageIOError
from socialfeed.storage import BlobRef, ensure_content_matches, extension_for_mimetype
from socialfeed.utils.retry import RetryPolicy, retry

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Stores blobs as files in one directory, named <id>.<extension>."""

    def __init__(self, upload_dir, public_path="/uploads", retry_policy=None, sleep=None):
        self.upload_dir = upload_dir
        self.public_path = public_path.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self._retry_kwargs = {"sleep": sleep} if sleep is not None else {}

    def _path_for(self, filename: str) -> str:
        return os.path.join(self.upload_dir, os.path.basename(filename))

    def _write(self, path: str, data: bytes):
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(path, "wb") as handle:
            handle.write(data)

    def _remove(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def put(self, data: bytes, mime_type: str, suggested_name=None) -> BlobRef:
        ensure_content_matches(data, mime_type)

        file_id = uuid.uuid4().hex
        filename = f"{file_id}.{extension_for_mimetype(mime_type)}"
        path = self._path_for(filename)

        try:
            retry(
                lambda: self._write(path, data),
                self.retry_policy,
                exceptions=(OSError,),
                description=f"Writing {filename}",
                **self._retry_kwargs,
            )
        except OSError as e:
            logger.error("All upload attempts failed for %s", suggested_name or filename)
            raise StorageIOError(
                f"Failed to upload file after {self.retry_policy.max_attempts} attempts: {e}",
                last_error=e,
            ) from e

        return BlobRef(reference=f"{self.public_path}/{filename}", id=file_id)

    def owns(self, reference) -> bool:
        return isinstance(reference, str) and reference.startswith(f"{self.public_path}/")

    def delete(self, reference: str) -> bool:
        filename = os.path.basename(reference)
        path = self._path_for(filename)

        if not os.path.exists(path):
            logger.info("File %s doesn't exist, considering it already deleted", filename)
            return True

        try:
            retry(
                lambda: self._remove(path),
                self.retry_policy,
                exceptions=(OSError,),
                description=f"Deleting {filename}",
                **self._retry_kwargs,
            )
        except OSError as e:
            logger.error(
                "Failed to delete file %s after %d attempts: %s",
                filename,
                self.retry_policy.max_attempts,
                e,
            )
            return False

        logger.info("Successfully deleted file: %s", filename)
        return True

    def public_url_for(self, file_id: str) -> str:
        return f"{self.public_path}/{file_id}"
