from boto3.s3.transfer import create_transfer_manager
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from s3nativefs.errors import StoreConfigurationError
from s3nativefs.interfaces import IS3Client
from s3nativefs.retry import RetryExecutor
from s3nativefs.retry import StoreOperation
from s3nativefs.types import DELIMITER
from s3nativefs.types import MAX_RETRY
from s3nativefs.types import to_logical_key
from zope.interface import implementer

import boto3
import logging
import re


logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_THREAD_POOL = 32
DEFAULT_USER_AGENT = "s3nativefs"
DEFAULT_MULTIPART_THRESHOLD = 8 * 1024 * 1024
DEFAULT_MULTIPART_CHUNKSIZE = 8 * 1024 * 1024

# Operations addressed by prefix rather than by a single key
_KEYLESS_OPERATIONS = frozenset({StoreOperation.LIST_OBJECTS})


def validate_pool_size(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise StoreConfigurationError(
            f"upload-thread-pool value is invalid number: {value!r}"
        )
    if value <= 0:
        raise StoreConfigurationError(
            f"upload-thread-pool value must be greater than 0, got {value}"
        )
    return value


@implementer(IS3Client)
class S3Client:
    """boto3 client, upload transfer manager and retry executor for one bucket."""

    def __init__(
        self,
        bucket_name,
        region_name=None,
        secret_id=None,
        secret_key=None,
        app_id=None,
        endpoint_url=None,
        prefix="",
        use_ssl=False,
        addressing_style="auto",
        connect_timeout=60,
        read_timeout=60,
        upload_thread_pool=DEFAULT_UPLOAD_THREAD_POOL,
        user_agent=DEFAULT_USER_AGENT,
        multipart_threshold=DEFAULT_MULTIPART_THRESHOLD,
        multipart_chunksize=DEFAULT_MULTIPART_CHUNKSIZE,
        max_attempts=MAX_RETRY,
        executor=None,
    ):
        if not bucket_name:
            raise StoreConfigurationError("bucket name is missing")
        if bool(secret_id) != bool(secret_key):
            missing = "secret key" if secret_id else "secret id"
            raise StoreConfigurationError(f"{missing} is missing")
        validate_pool_size(upload_thread_pool)

        # Account-scoped buckets carry the account id as a name suffix
        if app_id and not bucket_name.endswith(f"-{app_id}"):
            bucket_name = f"{bucket_name}-{app_id}"
        self.bucket_name = bucket_name
        self._prefix = prefix.strip(DELIMITER) if prefix else ""

        if self._prefix:
            if not re.fullmatch(r"[a-zA-Z0-9._/-]*", self._prefix):
                raise StoreConfigurationError(
                    f"key-prefix contains invalid characters: {self._prefix!r}. "
                    "Only alphanumeric characters, dots, hyphens, underscores, "
                    "and slashes are allowed."
                )
            if ".." in self._prefix:
                raise StoreConfigurationError(
                    f"key-prefix must not contain '..': {self._prefix!r}"
                )

        # Retries are owned by the executor, botocore must not add its own
        config = Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"total_max_attempts": 1},
            user_agent_extra=user_agent,
            max_pool_connections=max(10, upload_thread_pool),
        )

        kwargs = {"config": config}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if region_name:
            kwargs["region_name"] = region_name
        if secret_id:
            kwargs["aws_access_key_id"] = secret_id
            kwargs["aws_secret_access_key"] = secret_key
        kwargs["use_ssl"] = use_ssl
        if not use_ssl:
            logger.warning(
                "S3 SSL is disabled, data and credentials are transmitted in cleartext"
            )

        self._client = boto3.client("s3", **kwargs)
        self._executor = executor or RetryExecutor(max_attempts=max_attempts)
        self.upload_thread_pool = upload_thread_pool
        self.multipart_threshold = multipart_threshold
        self.multipart_chunksize = multipart_chunksize
        self._closed = False
        self._transfer_manager = create_transfer_manager(
            self._client,
            TransferConfig(
                max_concurrency=upload_thread_pool,
                multipart_threshold=multipart_threshold,
                multipart_chunksize=multipart_chunksize,
                preferred_transfer_client="classic",
            ),
        )

    @property
    def executor(self):
        return self._executor

    def wire_key(self, key):
        key = key.lstrip(DELIMITER)
        if self._prefix:
            return f"{self._prefix}/{key}"
        return key

    def logical_key(self, wire_key):
        if self._prefix and wire_key.startswith(self._prefix + DELIMITER):
            wire_key = wire_key[len(self._prefix) + 1 :]
        return to_logical_key(wire_key)

    def store_path(self, key):
        return f"s3://{self.bucket_name}/{self.wire_key(key or '')}"

    def execute(self, operation, key, **params):
        params.setdefault("Bucket", self.bucket_name)
        if operation not in _KEYLESS_OPERATIONS:
            params.setdefault("Key", self.wire_key(key))
        method = getattr(self._client, operation.value)
        return self._executor.call(
            operation.value, lambda: method(**params), target=self.store_path(key)
        )

    def upload_file(self, local_path, key, extra_args=None):
        full_key = self.wire_key(key)

        def upload():
            future = self._transfer_manager.upload(
                local_path, self.bucket_name, full_key, extra_args=extra_args
            )
            return future.result()

        # A failed multipart upload cannot be resumed, every retry starts over
        return self._executor.call("upload", upload, target=self.store_path(key))

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._executor.interrupt()
        self._transfer_manager.shutdown()
