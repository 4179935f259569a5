"""Blob transfer adapter over the S3 storage backend.

Translates storage and transport failures into ``BlobError`` so that
callers never deal with botocore exceptions directly.
"""

import logging
from collections.abc import Callable, Iterable
from typing import BinaryIO, Final, Self

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.storage import storages

from filebox.apps.files.exceptions import BlobError, BlobErrorKind
from filebox.apps.files.infrastructure.metadata import get_file_size
from filebox.apps.files.infrastructure.storage import FileStorage

logger = logging.getLogger(__name__)

_DEFAULT_MAX_OBJECT_BYTES: Final = 50 * 1024 * 1024
_TOO_LARGE_CODES: Final = frozenset(('EntityTooLarge', 'RequestEntityTooLarge'))

_TransportError = (BotoCoreError, ClientError)


def get_max_upload_bytes() -> int:
    """Get the per-file size ceiling.

    Returns:
        Limit in bytes from settings or default of 50 MB.
    """
    return getattr(settings, 'FILEBOX_MAX_UPLOAD_BYTES', _DEFAULT_MAX_OBJECT_BYTES)


class BlobStore:
    """Upload, download and remove payloads keyed by storage path.

    Instances wrap one explicitly constructed storage backend and are
    passed by reference to whatever needs blob access.
    """

    def __init__(
        self,
        storage: FileStorage,
        max_object_bytes: int | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            storage: Configured S3 storage backend.
            max_object_bytes: Per-object ceiling; defaults to settings.
        """
        self._storage = storage
        if max_object_bytes is None:
            max_object_bytes = get_max_upload_bytes()
        self.max_object_bytes = max_object_bytes

    @classmethod
    def from_settings(cls) -> Self:
        """Build a fresh adapter from ``STORAGES['default']``.

        Returns:
            BlobStore over a new storage backend instance.
        """
        storage = storages.create_storage(settings.STORAGES['default'])
        return cls(storage)

    def exists(self, path: str) -> bool:
        """Check whether a blob is stored at path.

        Args:
            path: Storage key.

        Returns:
            True if the blob exists.

        Raises:
            BlobError: On transport failure.
        """
        try:
            return self._storage.exists(path)
        except _TransportError as error:
            raise _connectivity_error(path, error) from error

    def upload(  # noqa: WPS211
        self,
        path: str,
        content: BinaryIO,
        content_type: str,
        cache_control: str | None = None,
        upsert: bool = False,
        progress: Callable[[int], None] | None = None,
        size_bytes: int | None = None,
    ) -> None:
        """Store payload at path.

        Args:
            path: Storage key.
            content: Payload stream.
            content_type: MIME type stored with the blob.
            cache_control: Optional Cache-Control header value.
            upsert: Replace an existing blob instead of failing.
            progress: Receives the byte count of each transferred chunk.
            size_bytes: Payload size if already known; measured otherwise.

        Raises:
            BlobError: If the path is occupied (and not upsert), the payload
                exceeds the ceiling, or the transfer fails.
        """
        if size_bytes is None:
            size_bytes = get_file_size(content)
        if size_bytes > self.max_object_bytes:
            raise BlobError(
                BlobErrorKind.SIZE_LIMIT,
                f'Object of {size_bytes} bytes exceeds the maximum allowed size',
                path,
            )

        if not upsert and self.exists(path):
            raise BlobError(
                BlobErrorKind.CONFLICT,
                f'The resource already exists: {path}',
                path,
            )

        if content.seekable():
            content.seek(0)

        try:
            self._storage.upload_object(
                path,
                content,
                content_type=content_type,
                cache_control=cache_control,
                callback=progress,
            )
        except ClientError as error:
            if _error_code(error) in _TOO_LARGE_CODES:
                raise BlobError(
                    BlobErrorKind.SIZE_LIMIT,
                    'The object exceeded the maximum allowed size',
                    path,
                ) from error
            raise _connectivity_error(path, error) from error
        except BotoCoreError as error:
            raise _connectivity_error(path, error) from error

    def download(self, path: str) -> bytes:
        """Return the raw payload stored at path.

        Args:
            path: Storage key.

        Returns:
            Blob content.

        Raises:
            BlobError: If the blob is absent or the transfer fails.
        """
        if not self.exists(path):
            raise BlobError(
                BlobErrorKind.NOT_FOUND,
                f'Object not found: {path}',
                path,
            )

        try:
            return self._storage.read_object(path)
        except FileNotFoundError as error:
            raise BlobError(
                BlobErrorKind.NOT_FOUND,
                f'Object not found: {path}',
                path,
            ) from error
        except _TransportError as error:
            raise _connectivity_error(path, error) from error

    def remove(self, paths: Iterable[str]) -> None:
        """Delete zero or more blobs; absent paths are ignored.

        Args:
            paths: Storage keys to delete.

        Raises:
            BlobError: On transport failure.
        """
        for path in paths:
            try:
                self._storage.delete(path)
            except _TransportError as error:
                raise _connectivity_error(path, error) from error

    def rollback_upload(self, path: str) -> bool:
        """Best-effort removal of a blob whose metadata write failed.

        Args:
            path: Storage key written moments ago.

        Returns:
            True if removed, False if the blob is left orphaned.
        """
        return self._storage.rollback_upload(path)

    def create_signed_url(self, path: str, ttl_seconds: int) -> str | None:
        """Issue a time-limited read URL.

        Failure is not fatal to anyone: it is logged and None is returned.

        Args:
            path: Storage key.
            ttl_seconds: URL lifetime.

        Returns:
            Signed URL, or None if it could not be generated.
        """
        try:
            return self._storage.url(path, expire=ttl_seconds)
        except Exception:
            logger.exception('Failed to sign URL for: %s', path)
            return None


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def _connectivity_error(path: str, error: Exception) -> BlobError:
    logger.error('Blob store request failed for %s: %s', path, error)
    return BlobError(BlobErrorKind.CONNECTIVITY, str(error), path)
