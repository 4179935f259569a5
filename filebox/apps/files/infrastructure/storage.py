"""Custom storage backend for S3-compatible storage."""

import logging
from collections.abc import Callable
from typing import BinaryIO, final, override

from boto3.s3.transfer import TransferConfig
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)

# Transfers stay on the calling thread; progress callbacks arrive in order
_TRANSFER_CONFIG = TransferConfig(use_threads=False)


@final
class FileStorage(S3Storage):
    """Custom S3 storage backend for user files.

    Extends django-storages S3Storage with:
    - Uploads that report transferred bytes to a callback
    - Best-effort rollback for failed metadata writes
    - Enhanced error logging
    """

    def read_object(self, name: str) -> bytes:
        """Read the whole object stored under name.

        Args:
            name: Storage key.

        Returns:
            Object content.

        Raises:
            FileNotFoundError: If the key does not exist.
        """
        logger.info('Reading object from storage: %s', name)
        with self.open(name, 'rb') as stored:
            content = stored.read()
        logger.debug('Read %d bytes from %s', len(content), name)
        return content

    @override
    def delete(self, name: str) -> None:
        """Delete file from S3 with error handling and logging.

        Deleting a missing key is not an error.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted file: %s', name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

    def upload_object(
        self,
        name: str,
        content: BinaryIO,
        content_type: str,
        cache_control: str | None = None,
        callback: Callable[[int], None] | None = None,
    ) -> None:
        """Upload content to an exact key, reporting progress.

        Unlike ``save()``, the key is never rewritten to avoid conflicts;
        callers are expected to check ``exists()`` first.

        Args:
            name: Storage key.
            content: Readable binary stream, positioned at the start.
            content_type: MIME type stored with the object.
            cache_control: Optional Cache-Control header value.
            callback: Called with the byte count of every transferred chunk.

        Raises:
            Exception: If S3 upload fails.
        """
        extra_args = {'ContentType': content_type}
        if cache_control:
            extra_args['CacheControl'] = cache_control

        try:
            logger.info('Uploading object to storage: %s', name)
            self.bucket.Object(name).upload_fileobj(
                content,
                ExtraArgs=extra_args,
                Config=_TRANSFER_CONFIG,
                Callback=callback,
            )
            logger.info('Successfully uploaded object: %s', name)
        except Exception:
            logger.exception('Failed to upload object to storage: %s', name)
            raise

    def rollback_upload(self, name: str) -> bool:
        """Delete uploaded file after a failed metadata write.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised. The blob then stays in storage with no
        record pointing at it.

        Args:
            name: Storage path of file to delete.

        Returns:
            True if the file was deleted, False if it was orphaned.
        """
        try:
            logger.warning('Rolling back upload, deleting file: %s', name)
            self.delete(name)
        except Exception:
            logger.exception(
                'Failed to rollback upload, orphaned file: %s',
                name,
            )
            return False
        logger.info('Successfully rolled back file upload: %s', name)
        return True
