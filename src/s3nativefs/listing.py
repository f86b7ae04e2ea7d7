from s3nativefs.errors import S3OperationError
from s3nativefs.retry import StoreOperation
from s3nativefs.types import DELIMITER
from s3nativefs.types import DelimiterMode
from s3nativefs.types import FileMetadata
from s3nativefs.types import PartialListing
from s3nativefs.types import to_mtime

import logging


logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000


class Lister:
    """Pages through a prefix, splitting objects from common prefixes."""

    def __init__(self, s3_client):
        self._s3_client = s3_client

    def list(
        self,
        prefix,
        mode=DelimiterMode.HIERARCHICAL,
        max_entries=DEFAULT_MAX_ENTRIES,
        marker=None,
    ):
        if not prefix.startswith(DELIMITER):
            prefix = DELIMITER + prefix
        logger.debug(
            "list prefix: %s, mode: %s, marker: %s", prefix, mode.name, marker
        )

        params = {
            "Prefix": self._s3_client.wire_key(prefix),
            "MaxKeys": max_entries,
        }
        if mode.value is not None:
            params["Delimiter"] = mode.value
        if marker:
            params["Marker"] = marker

        try:
            response = self._s3_client.execute(
                StoreOperation.LIST_OBJECTS, prefix, **params
            )
        except S3OperationError as e:
            logger.error(
                "list failed, prefix: %s, delimiter: %s, max entries: %d, "
                "marker: %s, error: %s",
                prefix,
                mode.value or "",
                max_entries,
                marker,
                e,
            )
            raise

        files = []
        for summary in response.get("Contents", []):
            file_path = self._s3_client.logical_key(summary["Key"])
            # The directory's own marker is not a child of itself
            if file_path == prefix:
                continue
            files.append(
                FileMetadata(
                    key=file_path,
                    length=summary.get("Size", 0),
                    mtime=to_mtime(summary.get("LastModified")),
                    is_file=True,
                )
            )

        common_prefixes = [
            FileMetadata(
                key=self._s3_client.logical_key(entry["Prefix"]),
                length=0,
                mtime=0,
                is_file=False,
            )
            for entry in response.get("CommonPrefixes", [])
        ]

        logger.debug(
            "listed %d files and %d common prefixes under %s",
            len(files),
            len(common_prefixes),
            prefix,
        )
        return PartialListing(
            next_marker=_next_marker(
                response, target=self._s3_client.store_path(prefix)
            ),
            files=tuple(files),
            common_prefixes=tuple(common_prefixes),
        )

    def iter_listing(
        self, prefix, mode=DelimiterMode.HIERARCHICAL, max_entries=DEFAULT_MAX_ENTRIES
    ):
        marker = None
        while True:
            listing = self.list(prefix, mode, max_entries, marker)
            yield listing
            if listing.exhausted:
                return
            marker = listing.next_marker


def _next_marker(response, target=None):
    """Continuation marker of a list_objects page, None when complete.

    S3 only sends NextMarker when a delimiter was given; otherwise the
    last key of the page is the marker. A truncated page with nothing to
    resume from is an error rather than the end of the listing.
    """
    if not response.get("IsTruncated"):
        return None
    marker = response.get("NextMarker")
    if marker:
        return marker
    candidates = [obj["Key"] for obj in response.get("Contents", [])]
    candidates.extend(entry["Prefix"] for entry in response.get("CommonPrefixes", []))
    if not candidates:
        raise S3OperationError(
            f"listing of {target} is truncated but carries no continuation marker",
            operation="list_objects",
            key=target,
        )
    return max(candidates)
