from s3nativefs.content import ContentAccessor
from s3nativefs.errors import StoreConfigurationError
from s3nativefs.interfaces import INativeFileSystemStore
from s3nativefs.listing import DEFAULT_MAX_ENTRIES
from s3nativefs.listing import Lister
from s3nativefs.metadata import MetadataResolver
from s3nativefs.mutation import MutationOps
from s3nativefs.s3client import S3Client
from s3nativefs.types import DelimiterMode
from urllib.parse import urlparse
from zope.interface import implementer

import logging


logger = logging.getLogger(__name__)


@implementer(INativeFileSystemStore)
class NativeS3Store:
    """Filesystem-shaped access to one S3 bucket.

    Directories are zero-length ``<key>/`` marker objects, listings are
    paged through an explicit marker and every store call goes through
    the S3 client's retry executor.
    """

    def __init__(self, s3_client):
        self._s3_client = s3_client
        self._metadata = MetadataResolver(s3_client)
        self._lister = Lister(s3_client)
        self._content = ContentAccessor(s3_client, self._metadata)
        self._mutation = MutationOps(s3_client)

    @classmethod
    def from_uri(cls, uri, **settings):
        """Open the store for the bucket named by the host of ``uri``."""
        bucket_name = urlparse(uri).netloc
        if not bucket_name:
            raise StoreConfigurationError(f"no bucket in store uri {uri!r}")
        return cls(S3Client(bucket_name=bucket_name, **settings))

    def __repr__(self):
        return f"<NativeS3Store for bucket {self._s3_client.bucket_name!r}>"

    @property
    def s3_client(self):
        return self._s3_client

    # -- Writes --

    def store_file(self, key, local_path, content_md5=None):
        self._mutation.store_file(key, local_path, content_md5)

    def store_empty_file(self, key):
        self._mutation.store_empty_file(key)

    def delete(self, key):
        self._mutation.delete(key)

    def copy(self, src_key, dst_key):
        self._mutation.copy(src_key, dst_key)

    def rename(self, src_key, dst_key):
        self._mutation.rename(src_key, dst_key)

    def purge(self, prefix):
        self._mutation.purge(prefix)

    def dump(self):
        self._mutation.dump()

    # -- Metadata --

    def retrieve_metadata(self, key):
        return self._metadata.resolve(key)

    def get_file_length(self, key):
        return self._metadata.file_length(key)

    # -- Content --

    def retrieve(self, key):
        return self._content.retrieve(key)

    def retrieve_from(self, key, byte_range_start):
        return self._content.retrieve_from(key, byte_range_start)

    def retrieve_block(self, key, byte_range_start, block_size, local_block_path):
        return self._content.retrieve_block(
            key, byte_range_start, block_size, local_block_path
        )

    # -- Listing --

    def list(
        self, prefix, max_entries=DEFAULT_MAX_ENTRIES, marker=None, recursive=False
    ):
        mode = DelimiterMode.FLAT if recursive else DelimiterMode.HIERARCHICAL
        return self._lister.list(prefix, mode, max_entries, marker)

    def iter_listing(self, prefix, max_entries=DEFAULT_MAX_ENTRIES, recursive=False):
        mode = DelimiterMode.FLAT if recursive else DelimiterMode.HIERARCHICAL
        return self._lister.iter_listing(prefix, mode, max_entries)

    def close(self):
        logger.debug("closing store for bucket %s", self._s3_client.bucket_name)
        self._s3_client.close()
