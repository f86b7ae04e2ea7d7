from botocore.exceptions import BotoCoreError
from s3nativefs.errors import S3OperationError
from s3nativefs.errors import StoreTransportError
from s3nativefs.retry import StoreOperation

import contextlib
import logging
import os
import shutil
import tempfile


logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 1024 * 1024


class ContentAccessor:
    """Reads object content as streams or into local block files."""

    def __init__(self, s3_client, metadata):
        self._s3_client = s3_client
        self._metadata = metadata

    def retrieve(self, key):
        logger.debug("retrieve key: %s", key)
        try:
            response = self._s3_client.execute(StoreOperation.GET_OBJECT, key)
        except S3OperationError as e:
            logger.error("retrieve key %s failed: %s", key, e)
            raise
        return response["Body"]

    def retrieve_from(self, key, byte_range_start):
        logger.debug("retrieve key: %s, byte range start: %d", key, byte_range_start)
        try:
            byte_range_end = self._metadata.file_length(key) - 1
            params = {}
            # Past the end, the store answers a plain get with its own semantics
            if byte_range_end >= byte_range_start:
                params["Range"] = f"bytes={byte_range_start}-{byte_range_end}"
            response = self._s3_client.execute(StoreOperation.GET_OBJECT, key, **params)
        except S3OperationError as e:
            logger.error(
                "retrieve key %s from byte %d failed: %s", key, byte_range_start, e
            )
            raise
        return response["Body"]

    def retrieve_block(self, key, byte_range_start, block_size, local_block_path):
        file_size = self._metadata.file_length(key)
        byte_range_end = 0
        params = {}
        if file_size > 0:
            byte_range_end = min(file_size - 1, byte_range_start + block_size - 1)
            params["Range"] = f"bytes={byte_range_start}-{byte_range_end}"

        try:
            self._download(key, params, local_block_path)
        except (BotoCoreError, OSError) as e:
            logger.error(
                "retrieve block of key %s into %s failed: %s", key, local_block_path, e
            )
            raise StoreTransportError(
                f"retrieve block of {self._s3_client.store_path(key)} "
                f"into {local_block_path} failed: {e}",
                operation="retrieve_block",
                key=self._s3_client.store_path(key),
            ) from e
        except S3OperationError as e:
            logger.error(
                "retrieve block of key %s with range [%d - %d] failed: %s",
                key,
                byte_range_start,
                byte_range_end,
                e,
            )
            raise
        return True

    def _download(self, key, params, local_block_path):
        """Stream the object body into ``local_block_path`` via a temp file."""
        target_dir = os.path.dirname(local_block_path) or "."
        os.makedirs(target_dir, exist_ok=True, mode=0o700)
        fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".block.tmp")
        try:
            with os.fdopen(fd, "wb") as out:
                response = self._s3_client.execute(
                    StoreOperation.GET_OBJECT, key, **params
                )
                with contextlib.closing(response["Body"]) as body:
                    shutil.copyfileobj(body, out, COPY_BUFFER_SIZE)
            os.replace(tmp_path, local_block_path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
