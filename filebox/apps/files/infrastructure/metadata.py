"""Metadata helpers for uploaded files."""

import io
import mimetypes
import os
import secrets
import time
from pathlib import Path
from typing import BinaryIO, Final

from django.core.exceptions import ValidationError
from django.core.files.base import File as DjangoFile

DEFAULT_MIME_TYPE: Final = 'application/octet-stream'

# 6 random bytes -> 12 hex chars appended to the millisecond timestamp
_SUFFIX_BYTES: Final = 6
_SIZE_UNITS: Final = ('Bytes', 'KB', 'MB', 'GB', 'TB')
_SIZE_STEP: Final = 1024


def detect_mime_type(filename: str, declared: str | None = None) -> str:
    """Resolve the MIME type recorded for an upload.

    The type declared by the client wins; otherwise the type is guessed
    from the filename extension.

    Args:
        filename: Display filename with extension.
        declared: Content type sent by the client, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared:
        return declared
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return DEFAULT_MIME_TYPE
    return mime_type


def is_image_type(mime_type: str) -> bool:
    """Whether files of this MIME type get an image preview."""
    return mime_type.startswith('image/')


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = Path(filename).suffix
    return extension.lstrip('.').lower()


def generate_storage_path(
    owner_id: int,
    filename: str,
    folder_id: int | None = None,
    timestamp_ms: int | None = None,
) -> str:
    """Generate a collision-resistant storage key for a new upload.

    Pattern: ``{owner_id}/{folder_id/}{epoch_ms}-{random}.{ext}``.
    The display name never becomes part of the key.

    Args:
        owner_id: ID of the uploading user.
        filename: Display filename, used only for its extension.
        folder_id: Target folder, or None for top level.
        timestamp_ms: Override for the millisecond timestamp.

    Returns:
        Storage key.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    suffix = secrets.token_hex(_SUFFIX_BYTES)
    folder_part = f'{folder_id}/' if folder_id is not None else ''
    key = f'{owner_id}/{folder_part}{timestamp_ms}-{suffix}'

    extension = get_file_extension(filename)
    if extension:
        return f'{key}.{extension}'
    return key


def validate_storage_path(user_id: int, storage_path: str) -> None:
    """Validate storage path follows user isolation rules.

    Ensures the storage path starts with the user's ID to maintain
    multi-user isolation.

    Args:
        user_id: Owner's user ID.
        storage_path: Proposed storage path.

    Raises:
        ValidationError: If path doesn't start with user_id or is invalid.
    """
    if not storage_path:
        raise ValidationError('Storage path cannot be empty')

    first_component = Path(storage_path).parts[0]

    try:
        path_user_id = int(first_component)
    except ValueError as error:
        raise ValidationError(
            'Storage path must start with user ID',
        ) from error

    if path_user_id != user_id:
        raise ValidationError(
            f'Storage path user ID ({path_user_id}) does not match '
            f'owner ({user_id})',
        )


def get_file_size(file_obj: BinaryIO | DjangoFile) -> int:
    """Get file size from file object without reading its content.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.

    Raises:
        io.UnsupportedOperation: If the stream has no size and cannot seek.
    """
    if hasattr(file_obj, 'size'):
        return file_obj.size
    if not file_obj.seekable():
        raise io.UnsupportedOperation(
            'Cannot determine the size of a non-seekable stream',
        )
    position = file_obj.tell()
    file_obj.seek(0, os.SEEK_END)
    file_size = file_obj.tell()
    file_obj.seek(position)
    return file_size


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display.

    Examples: 0 -> '0 Bytes', 1536 -> '1.5 KB', 10485760 -> '10 MB'.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human-readable size.
    """
    if size_bytes <= 0:
        return '0 Bytes'
    exponent = 0
    max_exponent = len(_SIZE_UNITS) - 1
    while exponent < max_exponent and size_bytes >= _SIZE_STEP ** (exponent + 1):
        exponent += 1
    scaled = round(size_bytes / _SIZE_STEP ** exponent, 2)
    return f'{scaled:g} {_SIZE_UNITS[exponent]}'
