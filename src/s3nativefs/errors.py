class S3OperationError(Exception):
    """Base error for every failure raised by the store.

    Wraps botocore errors to avoid leaking AWS infrastructure details; the
    original exception is kept as ``__cause__``.
    """

    def __init__(self, message, operation=None, key=None, attempts=None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.key = key
        self.attempts = attempts


class StoreConfigurationError(S3OperationError):
    """A required setting is missing or invalid."""


class StoreClientError(S3OperationError):
    """The store answered with a client fault (4xx). Never retried."""

    def __init__(self, message, status_code=None, error_code=None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.error_code = error_code

    @property
    def not_found(self):
        return self.status_code == 404 or self.error_code in (
            "404",
            "NoSuchKey",
            "NotFound",
        )


class RetryExhaustedError(S3OperationError):
    """Server faults persisted for the whole attempt budget."""


class StoreTransportError(S3OperationError):
    """The request, or the local file I/O around it, failed outside the store."""


class StoreInterruptedError(S3OperationError):
    """A retry backoff wait was interrupted."""


class OperationNotSupportedError(S3OperationError):
    """The operation is declared but not implemented by this store."""


class PartialRenameError(S3OperationError):
    """Rename copied the source but could not delete it.

    Both ``src_key`` and ``dst_key`` exist in the bucket afterwards.
    """

    def __init__(self, message, src_key, dst_key, **kwargs):
        super().__init__(message, **kwargs)
        self.src_key = src_key
        self.dst_key = dst_key
