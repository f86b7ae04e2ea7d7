from s3nativefs.errors import S3OperationError
from s3nativefs.errors import StoreClientError
from s3nativefs.retry import StoreOperation
from s3nativefs.types import DELIMITER
from s3nativefs.types import FileMetadata
from s3nativefs.types import to_mtime

import logging


logger = logging.getLogger(__name__)


class MetadataResolver:
    """Tells files, directory markers and absent keys apart.

    The bucket has no directories: a directory exists when a zero-length
    object named ``<key>/`` exists.
    """

    def __init__(self, s3_client):
        self._s3_client = s3_client

    def resolve(self, key):
        is_file = not key.endswith(DELIMITER)
        stripped = key[:-1] if key.endswith(DELIMITER) else key

        if stripped:
            metadata = self._query(stripped, is_file)
            if metadata is not None:
                return metadata

        marker_key = stripped + DELIMITER
        # The bucket root has no marker object of its own
        if not self._s3_client.wire_key(marker_key):
            return FileMetadata(key=DELIMITER, length=0, mtime=0, is_file=False)
        return self._query(marker_key, False)

    def file_length(self, key):
        logger.debug("get file length, key: %s", key)
        try:
            response = self._s3_client.execute(StoreOperation.HEAD_OBJECT, key)
        except S3OperationError as e:
            logger.error("get file length failed, key: %s, error: %s", key, e)
            raise
        return response["ContentLength"]

    def _query(self, key, is_file):
        """HEAD ``key``; None when the store reports it missing."""
        try:
            response = self._s3_client.execute(StoreOperation.HEAD_OBJECT, key)
        except StoreClientError as e:
            if e.not_found:
                return None
            logger.error("retrieve metadata failed, key: %s, error: %s", key, e)
            raise
        logger.debug(
            "retrieved metadata key: %s, etag: %s, length: %s",
            key,
            response.get("ETag"),
            response.get("ContentLength"),
        )
        # Directories report no length, even when a plain object answered
        length = response.get("ContentLength", 0) if is_file else 0
        return FileMetadata(
            key=key,
            length=length,
            mtime=to_mtime(response.get("LastModified")),
            is_file=is_file,
        )
