from zope.interface import Attribute
from zope.interface import Interface


class IRetryExecutor(Interface):
    """Runs a single logical store call with bounded retries."""

    max_attempts = Attribute("Total number of attempts per logical call.")

    def call(name, func, target=None):
        """Call ``func()``, retrying server faults; return its result."""

    def interrupt():
        """Abort pending and future backoff waits."""


class IS3Client(Interface):
    """Process-scoped access to one bucket of an S3-compatible store."""

    bucket_name = Attribute("Name of the bucket holding the filesystem.")

    def execute(operation, key, **params):
        """Dispatch a StoreOperation for a logical key through the executor."""

    def upload_file(local_path, key, extra_args=None):
        """Upload a local file with the transfer manager, retrying the whole upload."""

    def wire_key(key):
        """Map a logical key to the key stored in the bucket."""

    def logical_key(wire_key):
        """Map a stored key back to a logical key with a leading delimiter."""

    def store_path(key):
        """Return the s3://bucket/key path used in error messages."""

    def close():
        """Release the transfer manager and interrupt pending retries."""


class INativeFileSystemStore(Interface):
    """Hierarchical filesystem semantics over a flat object store."""

    def store_file(key, local_path, content_md5=None):
        """Upload a local file, recording its MD5 as object metadata."""

    def store_empty_file(key):
        """Create a directory marker for ``key``."""

    def retrieve_metadata(key):
        """Return FileMetadata for a file or directory, or None if absent."""

    def get_file_length(key):
        """Return the length of an existing object."""

    def retrieve(key):
        """Return a readable stream over the whole object."""

    def retrieve_from(key, byte_range_start):
        """Return a readable stream from ``byte_range_start`` to the end."""

    def retrieve_block(key, byte_range_start, block_size, local_block_path):
        """Download a bounded byte range of ``key`` into a local file."""

    def list(prefix, max_entries=1000, marker=None, recursive=False):
        """Return one PartialListing page for ``prefix``."""

    def iter_listing(prefix, max_entries=1000, recursive=False):
        """Yield every PartialListing page for ``prefix`` until exhausted."""

    def delete(key):
        """Delete ``key``; absent keys are not an error."""

    def copy(src_key, dst_key):
        """Server-side copy inside the bucket."""

    def rename(src_key, dst_key):
        """Copy then delete; not atomic."""

    def purge(prefix):
        """Not supported."""

    def dump():
        """Not supported."""

    def close():
        """Release resources held by the store."""
