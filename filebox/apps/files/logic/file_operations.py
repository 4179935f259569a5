"""Business logic for file operations."""

import dataclasses
import logging
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO, Final, final

from django.conf import settings
from django.core.files.base import File as DjangoFile

from filebox.apps.files.exceptions import FileTooLargeError, StoreError
from filebox.apps.files.infrastructure.blobs import BlobStore, get_max_upload_bytes
from filebox.apps.files.infrastructure.metadata import (
    detect_mime_type,
    generate_storage_path,
    get_file_size,
    is_image_type,
    validate_storage_path,
)
from filebox.apps.files.logic import records
from filebox.apps.files.models import File

logger = logging.getLogger(__name__)

_DEFAULT_PREVIEW_TTL: Final = 3600
_DEFAULT_CACHE_CONTROL: Final = 'max-age=3600'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class DownloadedFile:
    """Payload of a download, named for the user."""

    name: str
    content_type: str
    content: bytes


def get_preview_ttl() -> int:
    """Get signed preview URL lifetime in seconds.

    Returns:
        TTL from settings or default of 3600.
    """
    return getattr(settings, 'FILEBOX_PREVIEW_URL_TTL', _DEFAULT_PREVIEW_TTL)


def get_display_name(file_obj: BinaryIO | DjangoFile) -> str:
    """Get the user-facing name of an incoming file.

    Args:
        file_obj: Incoming file; Django files carry ``name``.

    Returns:
        Base filename, or empty string if unnamed.
    """
    name = getattr(file_obj, 'name', None) or ''
    return Path(name).name


def check_upload_size(
    file_name: str,
    size_bytes: int,
    limit_bytes: int | None = None,
) -> None:
    """Reject files above the per-file cap before any transfer.

    Args:
        file_name: Display name, for the error message.
        size_bytes: Size of the file.
        limit_bytes: Cap; defaults to ``FILEBOX_MAX_UPLOAD_BYTES``.

    Raises:
        FileTooLargeError: If the file exceeds the cap.
    """
    if limit_bytes is None:
        limit_bytes = get_max_upload_bytes()
    if size_bytes > limit_bytes:
        logger.warning(
            'Rejected upload of %s: %d bytes exceeds %d',
            file_name,
            size_bytes,
            limit_bytes,
        )
        raise FileTooLargeError(file_name, size_bytes, limit_bytes)


def upload_file(  # noqa: WPS211
    owner_id: int,
    blobs: BlobStore,
    file_obj: BinaryIO | DjangoFile,
    folder_id: int | None = None,
    progress: Callable[[int], None] | None = None,
    size_bytes: int | None = None,
) -> File:
    """Upload file to storage and create its metadata record.

    Transaction safety: upload to storage first, then create the record.
    If the record cannot be created, the uploaded blob is deleted again
    (best effort; a failed rollback is logged and leaves an orphan).

    Args:
        owner_id: ID of the uploading user.
        blobs: Blob store adapter.
        file_obj: Incoming file.
        folder_id: Target folder, or None for top level.
        progress: Receives transferred byte counts.
        size_bytes: Size already measured by the caller, if any.

    Returns:
        Created File instance.

    Raises:
        FileTooLargeError: If the file exceeds the cap (nothing is stored).
        BlobError: If the transfer fails (no record is created).
        StoreError: If the record cannot be created (blob rolled back).
    """
    original_name = get_display_name(file_obj)
    file_size = size_bytes
    if file_size is None:
        file_size = get_file_size(file_obj)
    check_upload_size(original_name, file_size, blobs.max_object_bytes)

    storage_path = generate_storage_path(owner_id, original_name, folder_id)
    validate_storage_path(owner_id, storage_path)
    file_type = detect_mime_type(
        original_name,
        getattr(file_obj, 'content_type', None),
    )

    # Step 1: Upload to storage first
    logger.info(
        'Uploading %s (%d bytes) to %s',
        original_name,
        file_size,
        storage_path,
    )
    blobs.upload(
        storage_path,
        file_obj,
        content_type=file_type,
        cache_control=getattr(
            settings,
            'FILEBOX_CACHE_CONTROL',
            _DEFAULT_CACHE_CONTROL,
        ),
        upsert=False,
        progress=progress,
        size_bytes=file_size,
    )

    # Step 2: Create metadata record
    try:
        return records.insert_file(
            owner_id,
            storage_path=storage_path,
            original_name=original_name,
            file_type=file_type,
            file_size=file_size,
            folder_id=folder_id,
        )
    except StoreError:
        # Rollback: delete blob from storage since the record failed
        logger.exception(
            'Metadata insert failed, rolling back storage upload: %s',
            storage_path,
        )
        if not blobs.rollback_upload(storage_path):
            logger.warning(
                'Blob left without a record (orphaned): %s',
                storage_path,
            )
        raise


def download_file(owner_id: int, blobs: BlobStore, file_id: int) -> DownloadedFile:
    """Fetch a file's content under its display name.

    Args:
        owner_id: ID of the owning user.
        blobs: Blob store adapter.
        file_id: File ID.

    Returns:
        DownloadedFile named after ``original_name``.

    Raises:
        StoreError: If the record is missing.
        BlobError: If the blob is missing or the transfer fails.
    """
    file_instance = records.get_file(owner_id, file_id)
    content = blobs.download(file_instance.storage_path)
    logger.info(
        'Downloaded file: %s (ID: %d)',
        file_instance.storage_path,
        file_id,
    )
    return DownloadedFile(
        name=file_instance.original_name,
        content_type=file_instance.file_type,
        content=content,
    )


def delete_file(owner_id: int, blobs: BlobStore, file_id: int) -> None:
    """Delete a file from storage, then its record.

    Args:
        owner_id: ID of the owning user.
        blobs: Blob store adapter.
        file_id: File ID.

    Raises:
        StoreError: If the record is missing or cannot be deleted.
        BlobError: If the blob cannot be deleted (the record is kept).
    """
    file_instance = records.get_file(owner_id, file_id)
    logger.info(
        'Deleting file: ID=%d, path=%s',
        file_id,
        file_instance.storage_path,
    )
    blobs.remove([file_instance.storage_path])
    records.delete_file(owner_id, file_id)


def get_preview_url(
    blobs: BlobStore,
    storage_path: str,
    file_type: str,
    ttl_seconds: int | None = None,
) -> str | None:
    """Signed URL for previewing an image file.

    Args:
        blobs: Blob store adapter.
        storage_path: Key of the blob.
        file_type: MIME type of the file.
        ttl_seconds: URL lifetime; defaults to settings.

    Returns:
        URL for image files, None for anything else or on failure.
    """
    if not is_image_type(file_type):
        return None
    if ttl_seconds is None:
        ttl_seconds = get_preview_ttl()
    return blobs.create_signed_url(storage_path, ttl_seconds)
