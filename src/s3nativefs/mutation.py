from s3nativefs.errors import OperationNotSupportedError
from s3nativefs.errors import PartialRenameError
from s3nativefs.errors import S3OperationError
from s3nativefs.errors import StoreTransportError
from s3nativefs.retry import StoreOperation
from s3nativefs.types import DELIMITER

import base64
import hashlib
import logging
import os


logger = logging.getLogger(__name__)

CONTENT_MD5_METADATA = "content-md5"


def file_md5(local_path, chunk_size=1024 * 1024):
    digest = hashlib.md5()
    with open(local_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.digest()


class MutationOps:
    """Writes, deletes, copies and renames objects."""

    def __init__(self, s3_client):
        self._s3_client = s3_client

    def store_file(self, key, local_path, content_md5=None):
        try:
            length = os.path.getsize(local_path)
            if content_md5 is None:
                content_md5 = file_md5(local_path)
        except OSError as e:
            logger.error(
                "store file failed, local path: %s, key: %s, error: %s",
                local_path,
                key,
                e,
            )
            raise StoreTransportError(
                f"reading local file {local_path} for "
                f"{self._s3_client.store_path(key)} failed: {e}",
                operation="store_file",
                key=self._s3_client.store_path(key),
            ) from e
        logger.debug("store file, local path: %s, len: %d", local_path, length)
        extra_args = {
            "Metadata": {
                CONTENT_MD5_METADATA: base64.b64encode(content_md5).decode("ascii")
            }
        }
        try:
            self._s3_client.upload_file(local_path, key, extra_args=extra_args)
        except S3OperationError as e:
            logger.error(
                "store file failed, local path: %s, key: %s, error: %s",
                local_path,
                key,
                e,
            )
            raise
        logger.debug("store file success, local path: %s, key: %s", local_path, key)

    def store_empty_file(self, key):
        """Create the directory marker for ``key``."""
        if not key.endswith(DELIMITER):
            key = key + DELIMITER
        try:
            response = self._s3_client.execute(
                StoreOperation.PUT_OBJECT, key, Body=b"", ContentLength=0
            )
        except S3OperationError as e:
            logger.error("store empty file failed, key: %s, error: %s", key, e)
            raise
        logger.debug(
            "store empty file success, key: %s, etag: %s", key, response.get("ETag")
        )

    def delete(self, key):
        logger.debug(
            "deleting key: %s from bucket: %s", key, self._s3_client.bucket_name
        )
        try:
            self._s3_client.execute(StoreOperation.DELETE_OBJECT, key)
        except S3OperationError as e:
            logger.error("delete key %s failed: %s", key, e)
            raise

    def copy(self, src_key, dst_key):
        logger.debug("copy src key: %s, dst key: %s", src_key, dst_key)
        copy_source = {
            "Bucket": self._s3_client.bucket_name,
            "Key": self._s3_client.wire_key(src_key),
        }
        try:
            self._s3_client.execute(
                StoreOperation.COPY_OBJECT, dst_key, CopySource=copy_source
            )
        except S3OperationError as e:
            logger.error(
                "copy object failed, src key: %s, dst key: %s, error: %s",
                src_key,
                dst_key,
                e,
            )
            raise

    def rename(self, src_key, dst_key):
        """Copy ``src_key`` to ``dst_key``, then delete ``src_key``.

        Not atomic. When the delete fails the copy is left in place and
        PartialRenameError is raised.
        """
        logger.debug("rename src key: %s, dst key: %s", src_key, dst_key)
        self.copy(src_key, dst_key)
        try:
            self._s3_client.execute(StoreOperation.DELETE_OBJECT, src_key)
        except S3OperationError as e:
            logger.error(
                "rename left both keys, src key: %s, dst key: %s, error: %s",
                src_key,
                dst_key,
                e,
            )
            raise PartialRenameError(
                f"rename copied {self._s3_client.store_path(src_key)} to "
                f"{self._s3_client.store_path(dst_key)} but could not delete "
                f"the source: {e.message}",
                src_key=src_key,
                dst_key=dst_key,
                operation="rename",
                key=e.key,
                attempts=e.attempts,
            ) from e

    def purge(self, prefix):
        raise OperationNotSupportedError("purge not supported", operation="purge")

    def dump(self):
        raise OperationNotSupportedError("dump not supported", operation="dump")
