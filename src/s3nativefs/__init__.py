from s3nativefs.errors import OperationNotSupportedError
from s3nativefs.errors import PartialRenameError
from s3nativefs.errors import RetryExhaustedError
from s3nativefs.errors import S3OperationError
from s3nativefs.errors import StoreClientError
from s3nativefs.errors import StoreConfigurationError
from s3nativefs.errors import StoreInterruptedError
from s3nativefs.errors import StoreTransportError
from s3nativefs.s3client import S3Client
from s3nativefs.store import NativeS3Store
from s3nativefs.types import DelimiterMode
from s3nativefs.types import FileMetadata
from s3nativefs.types import PartialListing


__all__ = [
    "DelimiterMode",
    "FileMetadata",
    "NativeS3Store",
    "OperationNotSupportedError",
    "PartialListing",
    "PartialRenameError",
    "RetryExhaustedError",
    "S3Client",
    "S3OperationError",
    "StoreClientError",
    "StoreConfigurationError",
    "StoreInterruptedError",
    "StoreTransportError",
]
